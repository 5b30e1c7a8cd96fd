"""Django settings shared by the edge and resolution stages.

``SERVICE_ROLE`` picks which of the two stages this process serves.
"""
from __future__ import annotations

import os

from django.core.exceptions import ImproperlyConfigured


def env(name: str, default: str | None = None) -> str:
    """Fetch environment variables while allowing explicit defaults."""

    value = os.environ.get(name, default)
    if value is None:
        raise ImproperlyConfigured(f"Environment variable {name} is required")
    return value


SERVICE_ROLE = env("SERVICE_ROLE", "edge").strip().lower()

STAGE_URLCONFS = {
    "edge": "cepweather.api.edge_urls",
    "resolution": "cepweather.api.resolution_urls",
}
STAGE_DEFAULT_PORTS = {"edge": "8080", "resolution": "8081"}
STAGE_SERVICE_NAMES = {"edge": "service-a", "resolution": "service-b"}

if SERVICE_ROLE not in STAGE_URLCONFS:
    raise ImproperlyConfigured(
        f"SERVICE_ROLE must be one of {sorted(STAGE_URLCONFS)}, got {SERVICE_ROLE!r}"
    )

SECRET_KEY = env("DJANGO_SECRET_KEY", "cepweather-insecure-dev-key")
DEBUG = os.environ.get("DJANGO_DEBUG", "0") == "1"
ALLOWED_HOSTS = os.environ.get("DJANGO_ALLOWED_HOSTS", "*").split(",")

INSTALLED_APPS = [
    "rest_framework",
    "cepweather.api",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
]

ROOT_URLCONF = STAGE_URLCONFS[SERVICE_ROLE]

WSGI_APPLICATION = "cepweather.wsgi.application"

# No persistence: every entity lives for a single request.
DATABASES: dict = {}

PORT = int(env("PORT", STAGE_DEFAULT_PORTS[SERVICE_ROLE]))

# Edge -> resolution hop
RESOLUTION_SERVICE_URL = env("RESOLUTION_SERVICE_URL", "http://service-b:8081")
EDGE_FORWARD_TIMEOUT = float(env("EDGE_FORWARD_TIMEOUT", "10"))

# Resolution -> providers
PROVIDER_TIMEOUT = float(env("PROVIDER_TIMEOUT", "10"))
VIACEP_BASE_URL = env("VIACEP_BASE_URL", "https://viacep.com.br")
WEATHERAPI_BASE_URL = env("WEATHERAPI_BASE_URL", "https://api.weatherapi.com")
WEATHER_API_KEY = os.environ.get("WEATHER_API_KEY", "")

# Telemetry sink; an empty value disables span export.
OTEL_COLLECTOR_URL = env("OTEL_COLLECTOR_URL", "otel-collector:4317")
OTEL_SERVICE_NAME = env("OTEL_SERVICE_NAME", STAGE_SERVICE_NAMES[SERVICE_ROLE])

REST_FRAMEWORK = {
    "DEFAULT_RENDERER_CLASSES": [
        "rest_framework.renderers.JSONRenderer",
    ],
    "DEFAULT_PARSER_CLASSES": [
        "rest_framework.parsers.JSONParser",
    ],
    "DEFAULT_AUTHENTICATION_CLASSES": [],
    "DEFAULT_PERMISSION_CLASSES": [
        "rest_framework.permissions.AllowAny",
    ],
    "UNAUTHENTICATED_USER": None,
}

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {
            "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "default",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": LOG_LEVEL,
    },
}

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = False
USE_TZ = True
