"""
Test settings for the newsroom project.
"""

from .base import *

DEBUG = False

ALLOWED_HOSTS = ['testserver', 'localhost']

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

# Throttle counters never trip in tests
CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.dummy.DummyCache',
    }
}

STORAGES = {
    'default': {
        'BACKEND': 'django.core.files.storage.FileSystemStorage',
    },
    'staticfiles': {
        'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage',
    },
}

# Console only
LOGGING['handlers'].pop('file')
LOGGING['loggers']['django']['handlers'] = ['console']
LOGGING['loggers']['apps']['handlers'] = ['console']
LOGGING['loggers']['apps']['level'] = 'WARNING'

NEWSROOM_SLA_THRESHOLDS = {
    'DRAFT': 7,
    'NEEDS_JOURNALIST_REVIEW': 2,
    'NEEDS_SUB_EDITOR_APPROVAL': 2,
    'APPROVED': 7,
    'TRANSLATED': 1,
}
NEWSROOM_ASSIGNMENT_POLICY = 'apps.tasks.assignment.LeastLoadedPolicy'
NEWSROOM_SUB_EDITOR_CAN_PUBLISH = True
NEWSROOM_METRICS_WORKERS = 1
NEWSROOM_TRANSLATION_LANGUAGES = ['AFRIKAANS', 'XHOSA']
