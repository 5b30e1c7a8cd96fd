"""URL configuration of the edge stage."""
from __future__ import annotations

from django.urls import path

from cepweather.api.views import ZipCodeView
from cepweather.wiring import build_resolution_client, get_telemetry

telemetry = get_telemetry()

urlpatterns = [
    path(
        "zipcode",
        ZipCodeView.as_view(client=build_resolution_client(telemetry), telemetry=telemetry),
        name="zipcode",
    ),
]
