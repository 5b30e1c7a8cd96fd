"""URL configuration of the resolution stage."""
from __future__ import annotations

from django.urls import path

from cepweather.api.views import WeatherView
from cepweather.wiring import build_resolution_orchestrator, get_telemetry

telemetry = get_telemetry()

urlpatterns = [
    path(
        "weather",
        WeatherView.as_view(orchestrator=build_resolution_orchestrator(telemetry), telemetry=telemetry),
        name="weather",
    ),
]
