"""
Settings shared by every newsroom environment.

Environment variables (loaded from .env when present) override the
defaults here; development.py, production.py and test.py adjust the
rest.
"""

import os
from datetime import timedelta
from pathlib import Path

import dj_database_url
from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent.parent.parent

SECRET_KEY = os.getenv('SECRET_KEY', 'django-insecure-newsroom-dev-key')

VERSION = os.getenv('APP_VERSION', '1.0.0')


def env_flag(name, default):
    return os.getenv(name, default).strip().lower() in ('1', 'true', 'yes')


def env_list(name, default):
    return [item.strip() for item in os.getenv(name, default).split(',') if item.strip()]


# =============================================================================
# Editorial Workflow
# =============================================================================

# Days a story may sit in a stage before it counts as exceeding its SLA
NEWSROOM_SLA_THRESHOLDS = {
    'DRAFT': int(os.getenv('SLA_DRAFT_DAYS', '7')),
    'NEEDS_JOURNALIST_REVIEW': int(os.getenv('SLA_JOURNALIST_REVIEW_DAYS', '2')),
    'NEEDS_SUB_EDITOR_APPROVAL': int(os.getenv('SLA_SUB_EDITOR_APPROVAL_DAYS', '2')),
    'APPROVED': int(os.getenv('SLA_APPROVED_DAYS', '7')),
    'TRANSLATED': int(os.getenv('SLA_TRANSLATED_DAYS', '1')),
}

# Dotted path to the class choosing task assignees among eligible staff
NEWSROOM_ASSIGNMENT_POLICY = os.getenv(
    'NEWSROOM_ASSIGNMENT_POLICY',
    'apps.tasks.assignment.LeastLoadedPolicy',
)

NEWSROOM_SUB_EDITOR_CAN_PUBLISH = env_flag('NEWSROOM_SUB_EDITOR_CAN_PUBLISH', 'true')

# Thread pool size for workflow health queries (1 runs them inline)
NEWSROOM_METRICS_WORKERS = int(os.getenv('NEWSROOM_METRICS_WORKERS', '4'))

# Look-ahead window for follow-ups and scheduled publishes
NEWSROOM_TIME_SENSITIVE_WINDOW_DAYS = int(os.getenv('NEWSROOM_TIME_SENSITIVE_WINDOW_DAYS', '7'))

# Hours a task may wait without an assignee before /health/ reports degraded
NEWSROOM_UNASSIGNED_GRACE_HOURS = int(os.getenv('NEWSROOM_UNASSIGNED_GRACE_HOURS', '24'))

NEWSROOM_TRANSLATION_LANGUAGES = env_list('NEWSROOM_TRANSLATION_LANGUAGES', 'AFRIKAANS,XHOSA')


# =============================================================================
# Django
# =============================================================================

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',

    'rest_framework',
    'rest_framework_simplejwt',
    'rest_framework_simplejwt.token_blacklist',

    'apps.core',
    'apps.stories',
    'apps.tasks',
    'apps.translations',
    'apps.editorial',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'whitenoise.middleware.WhiteNoiseMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
    # After auth so the request context carries the user id
    'apps.core.middleware.RequestIDMiddleware',
]

ROOT_URLCONF = 'config.urls'
WSGI_APPLICATION = 'config.wsgi.application'

# Only the admin renders templates
TEMPLATES = [{
    'BACKEND': 'django.template.backends.django.DjangoTemplates',
    'APP_DIRS': True,
    'OPTIONS': {
        'context_processors': [
            'django.template.context_processors.request',
            'django.contrib.auth.context_processors.auth',
            'django.contrib.messages.context_processors.messages',
        ],
    },
}]

# DATABASE_URL wins; otherwise a local SQLite file
DATABASES = {
    'default': dj_database_url.config(
        default=f"sqlite:///{BASE_DIR / 'db.sqlite3'}",
        conn_max_age=int(os.getenv('DB_CONN_MAX_AGE', '60')),
        conn_health_checks=True,
    ),
}

AUTH_PASSWORD_VALIDATORS = [
    {'NAME': f'django.contrib.auth.password_validation.{name}'}
    for name in (
        'UserAttributeSimilarityValidator',
        'MinimumLengthValidator',
        'CommonPasswordValidator',
        'NumericPasswordValidator',
    )
]

LANGUAGE_CODE = 'en-us'
TIME_ZONE = os.getenv('TIME_ZONE', 'Africa/Johannesburg')
USE_I18N = True
USE_TZ = True

STATIC_URL = '/static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'
STORAGES = {
    'default': {'BACKEND': 'django.core.files.storage.FileSystemStorage'},
    'staticfiles': {'BACKEND': 'whitenoise.storage.CompressedManifestStaticFilesStorage'},
}

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# Throttle counters live in the cache; Redis when configured
REDIS_URL = os.getenv('REDIS_URL', '')
CACHES = {
    'default': (
        {'BACKEND': 'django.core.cache.backends.redis.RedisCache', 'LOCATION': REDIS_URL}
        if REDIS_URL else
        {'BACKEND': 'django.core.cache.backends.locmem.LocMemCache'}
    ),
}


# =============================================================================
# API
# =============================================================================

REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': [
        'rest_framework_simplejwt.authentication.JWTAuthentication',
        'rest_framework.authentication.SessionAuthentication',
    ],
    'DEFAULT_PERMISSION_CLASSES': ['rest_framework.permissions.IsAuthenticated'],
    'DEFAULT_PAGINATION_CLASS': 'rest_framework.pagination.PageNumberPagination',
    'PAGE_SIZE': 25,
    'DEFAULT_THROTTLE_RATES': {
        'workflow': os.getenv('THROTTLE_WORKFLOW_RATE', '120/minute'),
        'metrics': os.getenv('THROTTLE_METRICS_RATE', '30/minute'),
    },
    'EXCEPTION_HANDLER': 'apps.core.exceptions.newsroom_exception_handler',
}

SIMPLE_JWT = {
    'ACCESS_TOKEN_LIFETIME': timedelta(minutes=int(os.getenv('JWT_ACCESS_MINUTES', '60'))),
    'REFRESH_TOKEN_LIFETIME': timedelta(days=int(os.getenv('JWT_REFRESH_DAYS', '7'))),
    'ROTATE_REFRESH_TOKENS': True,
    'BLACKLIST_AFTER_ROTATION': True,
    'UPDATE_LAST_LOGIN': True,
    'SIGNING_KEY': SECRET_KEY,
    'AUTH_HEADER_TYPES': ('Bearer',),
}


# =============================================================================
# Logging
# =============================================================================

LOG_DIR = Path(os.getenv('LOG_DIR', BASE_DIR / 'logs'))
LOG_DIR.mkdir(parents=True, exist_ok=True)

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'filters': {
        'request_id': {'()': 'apps.core.middleware.RequestIDFilter'},
    },
    'formatters': {
        'verbose': {
            'format': '[{request_id}] {levelname} {asctime} {name} {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
            'filters': ['request_id'],
        },
        'file': {
            'class': 'logging.handlers.RotatingFileHandler',
            'filename': LOG_DIR / 'newsroom.log',
            'maxBytes': 5 * 1024 * 1024,
            'backupCount': 5,
            'formatter': 'verbose',
            'filters': ['request_id'],
        },
    },
    'root': {'handlers': ['console'], 'level': 'INFO'},
    'loggers': {
        'django': {'handlers': ['console', 'file'], 'level': 'INFO', 'propagate': False},
        'apps': {'handlers': ['console', 'file'], 'level': 'INFO', 'propagate': False},
    },
}
