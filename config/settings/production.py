"""
Production settings: PostgreSQL via DATABASE_URL, Redis cache, JSON logs.
"""

import os

from .base import *

DEBUG = False

ALLOWED_HOSTS = env_list('ALLOWED_HOSTS', '')
CSRF_TRUSTED_ORIGINS = [f"https://{host}" for host in ALLOWED_HOSTS]

SECURE_SSL_REDIRECT = env_flag('SECURE_SSL_REDIRECT', 'true')
SECURE_PROXY_SSL_HEADER = ('HTTP_X_FORWARDED_PROTO', 'https')
SESSION_COOKIE_SECURE = True
CSRF_COOKIE_SECURE = True
SECURE_HSTS_SECONDS = int(os.getenv('SECURE_HSTS_SECONDS', str(60 * 60 * 24 * 365)))
SECURE_HSTS_INCLUDE_SUBDOMAINS = True
SECURE_CONTENT_TYPE_NOSNIFF = True
X_FRAME_OPTIONS = 'DENY'

# Long-lived connections; the SLA monitor's worker threads close their own
DATABASES['default']['CONN_MAX_AGE'] = int(os.getenv('DB_CONN_MAX_AGE', '600'))

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.redis.RedisCache',
        'LOCATION': REDIS_URL or 'redis://redis:6379/0',
        'KEY_PREFIX': 'newsroom',
    }
}
SESSION_ENGINE = 'django.contrib.sessions.backends.cache'

# Structured logs for the aggregator; request_id comes from RequestIDFilter
LOGGING['formatters']['json'] = {
    '()': 'pythonjsonlogger.json.JsonFormatter',
    'fmt': '%(asctime)s %(name)s %(levelname)s %(message)s %(request_id)s',
}
for handler in LOGGING['handlers'].values():
    handler['formatter'] = 'json'

LOGGING['root']['level'] = 'WARNING'
LOGGING['loggers']['django']['level'] = 'WARNING'
