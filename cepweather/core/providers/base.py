from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Type

import requests
from requests import Response

from cepweather.core.telemetry import CorrelationContext, Telemetry
from cepweather.core.transport import bounded_exchange


class ResolutionError(RuntimeError):
    """Base provider error. The cause is logged, never shown to clients."""


class LocationNotFound(ResolutionError):
    """The postal code could not be turned into a city."""


class TemperatureUnavailable(ResolutionError):
    """No Celsius reading could be obtained for the city."""


@dataclass
class RequestConfig:
    # total seconds for connect, headers and body together
    timeout: float = 10.0


class LookupProvider:
    """Base class for the read-only HTTP lookups.

    Every transport problem, non-200 status and undecodable payload collapses
    into ``error_class``; subclasses only parse the happy path.
    """

    name = "provider"
    error_class: Type[ResolutionError] = ResolutionError

    def __init__(
        self,
        telemetry: Telemetry,
        session: Optional[requests.Session] = None,
        request_config: Optional[RequestConfig] = None,
    ) -> None:
        self.telemetry = telemetry
        self.request_config = request_config or RequestConfig()
        self.session = session or requests.Session()
        self._log = logging.getLogger(self.__class__.__name__)

    def _handle_response(self, response: Response) -> Response:
        if response.status_code != 200:
            self._log.error("%s returned status %s", self.name, response.status_code)
            raise self.error_class(f"{self.name} returned status: {response.status_code}")
        return response

    def _request(
        self, method: str, url: str, correlation: CorrelationContext, **kwargs: Any
    ) -> Response:
        headers = self.telemetry.propagator.inject(correlation, dict(kwargs.pop("headers", None) or {}))
        timeout = self.request_config.timeout
        try:
            response = bounded_exchange(
                lambda: self.session.request(
                    method,
                    url,
                    headers=headers,
                    timeout=timeout,
                    stream=True,
                    **kwargs,
                ),
                timeout,
            )
        except requests.Timeout as exc:
            # the URL may carry a credential, so only the exception type is logged
            self._log.error("Request to %s timed out (%s)", self.name, type(exc).__name__)
            raise self.error_class("timeout") from exc
        except requests.RequestException as exc:
            self._log.error("Request to %s failed (%s)", self.name, type(exc).__name__)
            raise self.error_class("request failed") from exc
        return self._handle_response(response)

    def _json(self, response: Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            self._log.error("Failed to decode JSON from %s", self.name)
            raise self.error_class("invalid json") from exc


__all__ = [
    "LocationNotFound",
    "LookupProvider",
    "RequestConfig",
    "ResolutionError",
    "TemperatureUnavailable",
]
