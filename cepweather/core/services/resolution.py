"""Resolution stage: postal code -> city -> temperature -> three scales."""
from __future__ import annotations

import logging
import math
from typing import Optional

from cepweather.core.abstractions import LocationResolver, TemperatureResolver, WeatherResult
from cepweather.core.conversion import convert_celsius
from cepweather.core.providers.base import TemperatureUnavailable
from cepweather.core.telemetry import CorrelationContext


class ResolutionOrchestrator:
    """Runs the two dependent lookups strictly in order, without retries.

    ``LocationNotFound`` and ``TemperatureUnavailable`` propagate to the caller
    untouched; the first failure ends the request.
    """

    def __init__(
        self,
        *,
        location: LocationResolver,
        temperature: TemperatureResolver,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.location = location
        self.temperature = temperature
        self._log = logger or logging.getLogger(self.__class__.__name__)

    def resolve(self, code: str, correlation: CorrelationContext) -> WeatherResult:
        city = self.location.resolve(code, correlation)
        self._log.info("Zipcode %s resolved to %s via %s", code, city, self.location.name)
        celsius = self.temperature.resolve(city, correlation)
        self._log.info("Temperature for %s is %s C via %s", city, celsius, self.temperature.name)
        result = convert_celsius(city, celsius)
        if not (math.isfinite(result.temp_fahrenheit) and math.isfinite(result.temp_kelvin)):
            raise TemperatureUnavailable(f"{celsius} C cannot be expressed in every scale")
        return result


__all__ = ["ResolutionOrchestrator"]
