from __future__ import annotations

import pytest
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from cepweather.core.providers.viacep import ViaCepProvider
from cepweather.core.providers.weatherapi import WeatherApiProvider
from cepweather.core.services.resolution import ResolutionOrchestrator
from cepweather.core.telemetry import Telemetry

VIACEP_URL = "https://viacep.test"
WEATHERAPI_URL = "https://weatherapi.test"


@pytest.fixture
def span_exporter():
    return InMemorySpanExporter()


@pytest.fixture
def telemetry(span_exporter):
    telemetry = Telemetry("cepweather-test", span_processor=SimpleSpanProcessor(span_exporter))
    yield telemetry
    telemetry.shutdown()


@pytest.fixture
def orchestrator(telemetry):
    return ResolutionOrchestrator(
        location=ViaCepProvider(telemetry, base_url=VIACEP_URL),
        temperature=WeatherApiProvider(telemetry, api_key="test-key", base_url=WEATHERAPI_URL),
    )
