"""Test settings.

SQLite in the temp directory, eager Celery, local media in a temporary
directory and a fast password hasher.
"""

import os
import tempfile

from .base import *  # noqa: F401,F403

DEBUG = False

SECRET_KEY = 'test-secret-key'

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': os.path.join(tempfile.gettempdir(), 'rental_marketplace.sqlite3'),
        # File-backed so threaded tests get real connections with lock waits
        'TEST': {'NAME': os.path.join(tempfile.gettempdir(), 'test_rental_marketplace.sqlite3')},
        'OPTIONS': {'transaction_mode': 'IMMEDIATE', 'timeout': 20},
    }
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

STORAGES = {
    'default': {'BACKEND': 'django.core.files.storage.FileSystemStorage'},
    'staticfiles': {'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage'},
}
MEDIA_ROOT = tempfile.mkdtemp(prefix='vehicle-media-')

S3_ENABLED = False

VAPID_PUBLIC_KEY = 'test-public-key'
VAPID_PRIVATE_KEY = 'test-private-key'
VAPID_CLAIMS_EMAIL = 'tests@example.com'

BOOKING_DECISION_LOCK_TIMEOUT = 5

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = False
CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = 'cache+memory://'
