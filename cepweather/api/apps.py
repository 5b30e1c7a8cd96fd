from __future__ import annotations

from django.apps import AppConfig


class ApiConfig(AppConfig):
    name = "cepweather.api"
    label = "cepweather_api"
    verbose_name = "CEP weather stages"
