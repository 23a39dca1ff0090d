"""Development settings for the car rental service.

This module extends the base settings with development specific
configuration, such as enabling debug and allowing all hosts. Do not use
these settings in production!
"""

from .base import *  # noqa: F401,F403

# Enable debug mode for development
DEBUG = True

# Allow all hosts in development
ALLOWED_HOSTS = ['*']

# Cache hits and misses are logged at DEBUG
LOGGING['loggers']['apps.availability.cache']['level'] = 'DEBUG'  # noqa: F405
