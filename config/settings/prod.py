"""Production settings for the car rental service.

This module extends the base settings with production specific
configuration. Ensure that sensitive values are provided via
environment variables and that security settings are appropriate for
production use.
"""

from .base import *  # noqa: F401,F403

# Never run with debug enabled in production
DEBUG = False

# Allowed hosts should be defined explicitly via environment variable
ALLOWED_HOSTS = os.environ.get('DJANGO_ALLOWED_HOSTS', '').split(',')  # noqa: F405

# Configure secure proxies and cookies
CSRF_COOKIE_SECURE = True
SESSION_COOKIE_SECURE = True
SECURE_PROXY_SSL_HEADER = ('HTTP_X_FORWARDED_PROTO', 'https')

# Persistent availability-cache entries survive restarts in production
AVAILABILITY_CACHE['BACKING_ALIAS'] = (  # noqa: F405
    os.environ.get('AVAILABILITY_CACHE_BACKING_ALIAS', 'availability_backing') or None  # noqa: F405
)
