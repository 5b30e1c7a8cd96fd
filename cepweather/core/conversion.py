from __future__ import annotations

from cepweather.core.abstractions import WeatherResult


def celsius_to_fahrenheit(value: float) -> float:
    return value * 1.8 + 32


def celsius_to_kelvin(value: float) -> float:
    return value + 273.15


def convert_celsius(city: str, celsius: float) -> WeatherResult:
    """Build the result for ``city`` with every scale derived from ``celsius``."""
    return WeatherResult(
        city=city,
        temp_celsius=celsius,
        temp_fahrenheit=celsius_to_fahrenheit(celsius),
        temp_kelvin=celsius_to_kelvin(celsius),
    )


__all__ = ["celsius_to_fahrenheit", "celsius_to_kelvin", "convert_celsius"]
