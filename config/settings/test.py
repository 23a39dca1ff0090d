"""Test settings.

In-memory SQLite, eager Celery and an availability cache without the
background sweeper so tests drive expiry explicitly.
"""

from .base import *  # noqa: F401,F403

DEBUG = False

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'car-rental-test',
    },
    'availability_backing': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'car-rental-test-backing',
        'TIMEOUT': None,
    },
}

AVAILABILITY_CACHE = {
    **AVAILABILITY_CACHE,  # noqa: F405
    'SWEEP_ENABLED': False,
    'SINGLE_FLIGHT': False,
    'BACKING_ALIAS': None,
    'AUTOSTART': False,
}

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = 'cache+memory://'

STORAGES = {
    'default': {'BACKEND': 'django.core.files.storage.FileSystemStorage'},
    'staticfiles': {'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage'},
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

# Everything propagates to the root logger (pytest caplog).
LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'root': {'level': 'WARNING'},
}
