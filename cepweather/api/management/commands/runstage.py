"""Management command serving the configured stage on its port."""
from __future__ import annotations

import logging
from typing import Any

from django.conf import settings
from django.core.management import call_command
from django.core.management.base import BaseCommand

from cepweather.wiring import get_telemetry


logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Serve the stage selected by SERVICE_ROLE (edge: /zipcode, resolution: /weather)"

    def add_arguments(self, parser) -> None:  # noqa: D401
        parser.add_argument("--addr", type=str, default="0.0.0.0", help="Address to bind")
        parser.add_argument("--port", type=int, default=None, help="Port to bind (default: PORT)")

    def handle(self, *args: Any, **options: Any) -> None:  # noqa: D401
        port = options.get("port") or settings.PORT
        addrport = f"{options['addr']}:{port}"
        telemetry = get_telemetry()
        logger.info("Starting %s stage on %s", settings.SERVICE_ROLE, addrport)
        try:
            call_command("runserver", addrport, use_reloader=False, use_threading=True)
        finally:
            telemetry.shutdown()
