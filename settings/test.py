# settings/test.py
"""
Test settings: in-memory database, console-only logging.
"""
from .base import *

DEBUG = False
SECRET_KEY = 'test-secret-key'
ALLOWED_HOSTS = ['testserver', 'localhost']

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
    }
}

# Console only; warnings and errors still reach the test output
LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'handlers': {
        'console': {
            'level': 'WARNING',
            'class': 'logging.StreamHandler',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': 'WARNING',
    },
}

BILLING_CURRENCY = 'PKR'
BILLING_CURRENCY_SYMBOL = 'Rs.'
BILLING_DEFAULT_DUE_DAYS = 7
INVOICE_NUMBER_PREFIX = 'INV'
