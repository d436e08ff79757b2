import os
from pathlib import Path


def env_bool(name, default=False):
    return os.environ.get(name, str(default)).strip().lower() in ("1", "true", "yes", "on")


BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "insecure-dev-key-change-me")
DEBUG = env_bool("DJANGO_DEBUG", True)
ALLOWED_HOSTS = [h for h in os.environ.get("DJANGO_ALLOWED_HOSTS", "*").split(",") if h]

INSTALLED_APPS = [
    # Django
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",

    # Third party
    "rest_framework",

    # Project apps
    "accounts",
    "vendors",
    "verification",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
]

ROOT_URLCONF = "vendorcheck.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "vendorcheck.wsgi.application"

DATABASES = {
    "default": {
        "ENGINE": os.environ.get("DB_ENGINE", "django.db.backends.sqlite3"),
        "NAME": os.environ.get("DB_NAME", str(BASE_DIR / "db.sqlite3")),
        "USER": os.environ.get("DB_USER", ""),
        "PASSWORD": os.environ.get("DB_PASSWORD", ""),
        "HOST": os.environ.get("DB_HOST", ""),
        "PORT": os.environ.get("DB_PORT", ""),
    }
}

AUTH_USER_MODEL = "accounts.User"
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LANGUAGE_CODE = "en-us"
TIME_ZONE = "Asia/Kolkata"
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"
MEDIA_URL = "/media/"
MEDIA_ROOT = Path(os.environ.get("MEDIA_ROOT", BASE_DIR / "media"))

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [
        "rest_framework.authentication.SessionAuthentication",
        "rest_framework.authentication.BasicAuthentication",
    ],
    "DEFAULT_PERMISSION_CLASSES": [
        "rest_framework.permissions.IsAuthenticated",
    ],
}

# ── caches ─────────────────────────────────────────────────────────────────
# registry responses live in their own alias; LocMemCache is per process,
# point REGISTRY_CACHE_BACKEND at redis/memcached for multi-worker setups
CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "vendorcheck-default",
    },
    "registry": {
        "BACKEND": os.environ.get(
            "REGISTRY_CACHE_BACKEND", "django.core.cache.backends.locmem.LocMemCache"
        ),
        "LOCATION": os.environ.get("REGISTRY_CACHE_LOCATION", "vendorcheck-registry"),
    },
}

# ── celery ─────────────────────────────────────────────────────────────────
CELERY_BROKER_URL = os.environ.get("CELERY_BROKER_URL", "redis://localhost:6379/0")
CELERY_RESULT_BACKEND = os.environ.get("CELERY_RESULT_BACKEND", "redis://localhost:6379/1")
CELERY_TASK_ALWAYS_EAGER = env_bool("CELERY_TASK_ALWAYS_EAGER", False)
CELERY_TASK_SERIALIZER = "json"
CELERY_RESULT_SERIALIZER = "json"
CELERY_ACCEPT_CONTENT = ["json"]
CELERY_BEAT_SCHEDULE = {
    "expire-verified-documents": {
        "task": "verification.tasks.expire_documents_task",
        "schedule": 60 * 60 * 24,
    },
}

# ── verification pipeline ──────────────────────────────────────────────────
GEMINI_API_KEY = os.environ.get("GEMINI_API_KEY", "")
GEMINI_MODEL = os.environ.get("GEMINI_MODEL", "models/gemini-2.5-flash")
GEMINI_TIMEOUT = int(os.environ.get("GEMINI_TIMEOUT", "60"))

TESSERACT_CMD = os.environ.get("TESSERACT_CMD", "")
OCR_PDF_DPI = int(os.environ.get("OCR_PDF_DPI", "300"))

REFERENCE_DOCS_DIR = Path(os.environ.get("REFERENCE_DOCS_DIR", BASE_DIR / "reference_docs"))

REGISTRY_STUB_MODE = env_bool("REGISTRY_STUB_MODE", True)
REGISTRY_TIMEOUT = float(os.environ.get("REGISTRY_TIMEOUT", "15"))
REGISTRY_MAX_RETRIES = int(os.environ.get("REGISTRY_MAX_RETRIES", "3"))
REGISTRY_RETRY_BASE_DELAY = float(os.environ.get("REGISTRY_RETRY_BASE_DELAY", "1.0"))
REGISTRY_CACHE_TTL = int(os.environ.get("REGISTRY_CACHE_TTL", "86400"))
REGISTRY_CACHE_ALIAS = "registry"

REGISTRY_ENDPOINTS = {
    "gstin":            "https://api.masterindia.co/api/v1/gst/gstin",
    "cin":              "https://mca.gov.in/mca/api/v1/companymaster",
    "factory_license":  "https://tnfactories.tn.gov.in/api/factory-licences",
    "fire_noc":         "https://tnfrs.tn.gov.in/api/noc/status",
    "esic":             "https://www.esic.gov.in/portal/api/employer/verify",
    "epf":              "https://unifiedportal-emp.epfindia.gov.in/publicPortal/estSearch",
    "trrn":             "https://unifiedportal-emp.epfindia.gov.in/api/verify-trrn",
    "tnpcb":            "https://www.tnpcb.gov.in/ocmms-api/consent",
    "iso":              "https://www.iafcertsearch.org/api/certificate",
    "oeko_tex":         "https://api.oeko-tex.com/v1/certificate",
    "gots":             "https://api.global-standard.org/v0/licence",
}
REGISTRY_API_KEYS = {
    "gstin": os.environ.get("MASTER_INDIA_API_KEY", ""),
}

# ── logging ────────────────────────────────────────────────────────────────
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": "WARNING",
    },
    "loggers": {
        "vendors": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
        "verification": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
        "accounts": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
    },
}
