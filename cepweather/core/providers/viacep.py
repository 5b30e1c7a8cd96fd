"""ViaCEP geocoding provider: postal code to city name."""
from __future__ import annotations

from typing import Optional

from opentelemetry.trace import SpanKind

from cepweather.core.providers.base import LocationNotFound, LookupProvider
from cepweather.core.telemetry import CorrelationContext


class ViaCepProvider(LookupProvider):
    name = "viacep"
    error_class = LocationNotFound
    base_url = "https://viacep.com.br"

    def __init__(self, telemetry, base_url: Optional[str] = None, **kwargs) -> None:
        super().__init__(telemetry, **kwargs)
        self.base_url = (base_url or self.base_url).rstrip("/")

    def resolve(self, code: str, correlation: CorrelationContext) -> str:
        with self.telemetry.span(
            "fetch_city_by_zipcode",
            correlation,
            kind=SpanKind.CLIENT,
            attributes={"cep": code},
        ) as scope:
            response = self._request("GET", f"{self.base_url}/ws/{code}/json/", scope)
            data = self._json(response)
            if not isinstance(data, dict):
                raise LocationNotFound("unexpected viacep payload")
            if _flag_set(data.get("erro")):
                self._log.info("viacep reported zipcode %s as not found", code)
                raise LocationNotFound("zipcode not found")
            city = data.get("localidade")
            if not isinstance(city, str) or not city:
                raise LocationNotFound("viacep payload has no localidade")
            return city


def _flag_set(value: object) -> bool:
    # ViaCEP has sent the flag both as a JSON boolean and as the string "true"
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return value is True


__all__ = ["ViaCepProvider"]
