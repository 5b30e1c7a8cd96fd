"""WSGI entry point; the telemetry collaborator is flushed when the process exits."""
from __future__ import annotations

import atexit
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "cepweather.settings")

application = get_wsgi_application()

from cepweather.wiring import get_telemetry  # noqa: E402  (needs configured settings)

atexit.register(get_telemetry().shutdown)
