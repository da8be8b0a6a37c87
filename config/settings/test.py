"""Test settings for the vehicle rental project.

In-memory SQLite, eager Celery and a fixed engine configuration so tests
do not depend on the environment.
"""

from .base import *  # noqa: F401,F403

DEBUG = False

SECRET_KEY = 'test-secret-key'

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

STORAGES['staticfiles'] = {  # noqa: F405
    'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage',
}

# Run tasks inline, no broker needed
CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = 'cache+memory://'

RESERVATIONS = {
    'HOLD_DURATION_MINUTES': 15,
    'SWEEP_INTERVAL_SECONDS': 60,
    'CANCELLATION_CUTOFF_HOURS': 0,
    'RECORD_REJECTED_ATTEMPTS': True,
    'RETENTION_DAYS': 365,
    'PRICING_MODIFIERS': [],
}

VEHICLES = {
    'LOCATION_HISTORY_LIMIT': 100,
    'DEFAULT_CURRENCY': 'USD',
}

# Let pytest's caplog see application records
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "handlers": {
        "null": {"class": "logging.NullHandler"},
    },
    "root": {"handlers": ["null"], "level": "INFO"},
}
