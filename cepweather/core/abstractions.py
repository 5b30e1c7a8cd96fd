"""Core abstractions for the postal-code weather domain."""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Protocol

if TYPE_CHECKING:
    from cepweather.core.telemetry import CorrelationContext


@dataclass(frozen=True, slots=True)
class PostalCodeRequest:
    """Inbound payload shared by both stages: ``{"cep": "<8 digits>"}``."""

    cep: str

    def as_payload(self) -> Dict[str, str]:
        return {"cep": self.cep}


@dataclass(frozen=True, slots=True)
class WeatherResult:
    """Current temperature of a resolved city in the three supported scales."""

    city: str
    temp_celsius: float
    temp_fahrenheit: float
    temp_kelvin: float

    def as_payload(self) -> Dict[str, object]:
        return {
            "city": self.city,
            "temp_C": self.temp_celsius,
            "temp_F": self.temp_fahrenheit,
            "temp_K": self.temp_kelvin,
        }


@dataclass(frozen=True, slots=True)
class ErrorEnvelope:
    """The only error-shaped payload a client ever receives."""

    message: str
    status: int

    def as_payload(self) -> Dict[str, str]:
        return {"message": self.message}


class LocationResolver(Protocol):
    """Turns a postal code into a city name."""

    name: str

    def resolve(self, code: str, correlation: CorrelationContext) -> str:
        """Return the city for ``code`` or raise ``LocationNotFound``."""
        ...


class TemperatureResolver(Protocol):
    """Turns a city name into its current Celsius reading."""

    name: str

    def resolve(self, city: str, correlation: CorrelationContext) -> float:
        """Return the temperature for ``city`` or raise ``TemperatureUnavailable``."""
        ...


__all__ = [
    "ErrorEnvelope",
    "LocationResolver",
    "PostalCodeRequest",
    "TemperatureResolver",
    "WeatherResult",
]
