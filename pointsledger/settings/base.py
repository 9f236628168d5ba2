import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()  # Load .env file if present

BASE_DIR = Path(__file__).resolve().parents[2]
SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "dev-insecure-key")
DEBUG = os.getenv("DJANGO_DEBUG", "false").lower() in {"1", "true", "yes"}
raw_hosts = os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1")
ALLOWED_HOSTS = [h.strip() for h in raw_hosts.split(",") if h.strip()]

SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")

INSTALLED_APPS = [
    # Django Admin Deps
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    # Our apps
    "pointsledger.apps.users.apps.UsersConfig",
    "pointsledger.apps.points.apps.PointsConfig",
    "whitenoise.runserver_nostatic",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "whitenoise.middleware.WhiteNoiseMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
    # Resolves X-User-Id into request.actor for the JSON API
    "pointsledger.apps.users.middleware.RequestActorMiddleware",
]

ROOT_URLCONF = "pointsledger.urls"
TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [BASE_DIR / "templates"],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ]
        },
    }
]
WSGI_APPLICATION = "pointsledger.wsgi.application"

# Postgres by default; override with dev/test settings as needed
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.postgresql",
        "HOST": os.getenv("DB_HOST", "localhost"),
        "PORT": os.getenv("DB_PORT", "5432"),
        "NAME": os.getenv("DB_NAME", "pointsledger"),
        "USER": os.getenv("DB_USER", "pointsledger"),
        "PASSWORD": os.getenv("DB_PASSWORD", "pointsledger"),
    }
}

STORAGES = {
    "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
    "staticfiles": {
        "BACKEND": "whitenoise.storage.CompressedManifestStaticFilesStorage"
    },
}

DATABASE_URL = os.getenv("DATABASE_URL")
if DATABASE_URL:
    from urllib.parse import urlparse

    parsed = urlparse(DATABASE_URL)
    DATABASES["default"].update(
        {
            "NAME": parsed.path.lstrip("/"),
            "USER": parsed.username,
            "PASSWORD": parsed.password,
            "HOST": parsed.hostname,
            "PORT": parsed.port or "5432",
            "OPTIONS": {"sslmode": os.getenv("DB_SSLMODE", "require")},
        }
    )

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

STATIC_URL = "/static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# ==============================================================================
# Logging
# ==============================================================================

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "plain": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "plain"},
    },
    "root": {"handlers": ["console"], "level": LOG_LEVEL},
    "loggers": {
        "django": {"handlers": ["console"], "level": "WARNING", "propagate": False},
    },
}

# Celery configuration
CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", "redis://redis:6379/0")
CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", CELERY_BROKER_URL)
CELERY_TASK_DEFAULT_QUEUE = os.getenv("CELERY_TASK_DEFAULT_QUEUE", "points")
CELERY_TASK_ACKS_LATE = True
CELERY_TASK_TIME_LIMIT = int(os.getenv("CELERY_TASK_TIME_LIMIT", "300"))

CELERY_BROKER_CONNECTION_RETRY_ON_STARTUP = True

# Nightly ledger drift check (points history vs user balances)
CELERY_BEAT_SCHEDULE = {
    "reconcile-points-balances": {
        "task": "pointsledger.apps.points.tasks.reconcile_points_balances",
        "schedule": int(os.getenv("RECONCILE_INTERVAL_SECONDS", str(24 * 60 * 60))),
    },
}

# ==============================================================================
# Points -> CVC conversion
# ==============================================================================

# Read once at startup; never mutated at runtime.
# Addresses are only echoed back to clients, no on-chain calls are made with them.
POINTS_CONVERSION = {
    "DEFAULT_RATE": {
        "points_per_cvc": int(os.getenv("DEFAULT_POINTS_PER_CVC", "100")),
        "minimum_points": int(os.getenv("DEFAULT_MINIMUM_POINTS", "100")),
        "minimum_cvc": os.getenv("DEFAULT_MINIMUM_CVC", "1"),
        "claim_fee_eth": os.getenv("DEFAULT_CLAIM_FEE_ETH", "0.0001"),
        "is_active": True,
    },
    "COMPANY_WALLET": os.getenv(
        "COMPANY_WALLET", "0x0000000000000000000000000000000000000000"
    ),
    "CVC_CONTRACT_ADDRESS": os.getenv(
        "CVC_CONTRACT_ADDRESS", "0x0000000000000000000000000000000000000000"
    ),
    "LIQUIDITY_CONTRACT_ADDRESS": os.getenv(
        "LIQUIDITY_CONTRACT_ADDRESS", "0x0000000000000000000000000000000000000000"
    ),
    "NETWORK": os.getenv("CVC_NETWORK", "sepolia"),
}

# Pagination for list endpoints
DEFAULT_PAGE_SIZE = int(os.getenv("DEFAULT_PAGE_SIZE", "10"))
MAX_PAGE_SIZE = int(os.getenv("MAX_PAGE_SIZE", "100"))
