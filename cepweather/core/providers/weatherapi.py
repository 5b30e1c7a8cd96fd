"""WeatherAPI provider: city name to current Celsius reading."""
from __future__ import annotations

import math
from typing import Optional

from opentelemetry.trace import SpanKind

from cepweather.core.providers.base import LookupProvider, TemperatureUnavailable
from cepweather.core.telemetry import CorrelationContext


class WeatherApiProvider(LookupProvider):
    """Reads ``current.temp_c`` from ``/v1/current.json``.

    A missing API key does not prevent construction; it fails every
    :meth:`resolve` call instead, before any network traffic.
    """

    name = "weatherapi"
    error_class = TemperatureUnavailable
    base_url = "https://api.weatherapi.com"

    def __init__(
        self,
        telemetry,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        **kwargs,
    ) -> None:
        super().__init__(telemetry, **kwargs)
        self.api_key = api_key
        self.base_url = (base_url or self.base_url).rstrip("/")

    def resolve(self, city: str, correlation: CorrelationContext) -> float:
        with self.telemetry.span(
            "fetch_temperature",
            correlation,
            kind=SpanKind.CLIENT,
            attributes={"city": city},
        ) as scope:
            if not self.api_key:
                self._log.error("WEATHER_API_KEY is not configured")
                raise TemperatureUnavailable("WEATHER_API_KEY is not configured")
            params = {"key": self.api_key, "q": city, "aqi": "no"}
            response = self._request("GET", f"{self.base_url}/v1/current.json", scope, params=params)
            data = self._json(response)
            current = data.get("current") if isinstance(data, dict) else None
            temp_c = current.get("temp_c") if isinstance(current, dict) else None
            # bool is an int subclass, reject it explicitly
            if isinstance(temp_c, bool) or not isinstance(temp_c, (int, float)):
                raise TemperatureUnavailable("weatherapi payload has no current.temp_c")
            try:
                celsius = float(temp_c)
            except OverflowError as exc:
                raise TemperatureUnavailable("weatherapi temp_c is out of range") from exc
            # json accepts NaN, Infinity and overflowing literals such as 1e400
            if not math.isfinite(celsius):
                raise TemperatureUnavailable(f"weatherapi temp_c is not finite: {celsius}")
            return celsius


__all__ = ["WeatherApiProvider"]
