from .base import *

DEBUG = False
ALLOWED_HOSTS = ["*"]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

STORAGES = {
    "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
    "staticfiles": {
        "BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage"
    },
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

# Run tasks inline, no broker needed
CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = "memory://"
CELERY_RESULT_BACKEND = "cache+memory://"

# Fixed values so tests do not depend on the local .env
POINTS_CONVERSION = {
    **POINTS_CONVERSION,
    "DEFAULT_RATE": {
        "points_per_cvc": 100,
        "minimum_points": 100,
        "minimum_cvc": "1",
        "claim_fee_eth": "0.0001",
        "is_active": True,
    },
    "NETWORK": "sepolia",
}
