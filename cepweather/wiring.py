"""Composition root: one telemetry collaborator per process, injected everywhere."""
from __future__ import annotations

from functools import lru_cache

from django.conf import settings

from cepweather.core.providers.base import RequestConfig
from cepweather.core.providers.viacep import ViaCepProvider
from cepweather.core.providers.weatherapi import WeatherApiProvider
from cepweather.core.services.forwarding import ResolutionStageClient
from cepweather.core.services.resolution import ResolutionOrchestrator
from cepweather.core.telemetry import Telemetry


@lru_cache(maxsize=1)
def get_telemetry() -> Telemetry:
    return Telemetry.from_settings(settings)


def build_resolution_orchestrator(telemetry: Telemetry) -> ResolutionOrchestrator:
    request_config = RequestConfig(timeout=settings.PROVIDER_TIMEOUT)
    return ResolutionOrchestrator(
        location=ViaCepProvider(
            telemetry,
            base_url=settings.VIACEP_BASE_URL,
            request_config=request_config,
        ),
        temperature=WeatherApiProvider(
            telemetry,
            api_key=settings.WEATHER_API_KEY or None,
            base_url=settings.WEATHERAPI_BASE_URL,
            request_config=request_config,
        ),
    )


def build_resolution_client(telemetry: Telemetry) -> ResolutionStageClient:
    return ResolutionStageClient(
        telemetry,
        base_url=settings.RESOLUTION_SERVICE_URL,
        timeout=settings.EDGE_FORWARD_TIMEOUT,
    )


__all__ = ["build_resolution_client", "build_resolution_orchestrator", "get_telemetry"]
