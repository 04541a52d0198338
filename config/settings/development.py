"""
Local development: DEBUG on, SQLite unless DATABASE_URL is set.
"""

import os

from .base import *

DEBUG = True

ALLOWED_HOSTS = ['localhost', '127.0.0.1', '[::1]']

LOGGING['root']['level'] = 'DEBUG'
LOGGING['loggers']['apps']['level'] = 'DEBUG'

# SQLite serializes writers; keep workflow health queries on one thread
NEWSROOM_METRICS_WORKERS = int(os.getenv('NEWSROOM_METRICS_WORKERS', '1'))
