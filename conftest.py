from __future__ import annotations

import os

import django
import pytest
import requests_mock as requests_mock_lib


os.environ.setdefault("DJANGO_SECRET_KEY", "test-secret")
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "cepweather.settings")
os.environ.setdefault("OTEL_COLLECTOR_URL", "")
os.environ.setdefault("WEATHER_API_KEY", "test-key")
os.environ.setdefault("VIACEP_BASE_URL", "https://viacep.test")
os.environ.setdefault("WEATHERAPI_BASE_URL", "https://weatherapi.test")
os.environ.setdefault("RESOLUTION_SERVICE_URL", "http://resolution.test")

django.setup()


@pytest.fixture()
def requests_mock():
    with requests_mock_lib.Mocker() as mocker:
        yield mocker
