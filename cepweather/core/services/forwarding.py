"""Edge stage client that forwards validated codes to the resolution stage."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Optional

import requests
from opentelemetry.trace import SpanKind

from cepweather.core.abstractions import PostalCodeRequest
from cepweather.core.telemetry import CorrelationContext, Telemetry
from cepweather.core.transport import BodyReadError, DeadlineExceeded, bounded_exchange


logger = logging.getLogger(__name__)


class ForwardingError(RuntimeError):
    """Base error for the edge -> resolution hop."""


class ResolutionStageUnreachable(ForwardingError):
    """Transport failure or timeout before a response arrived."""


class RelayReadError(ForwardingError):
    """A response arrived but its body could not be read before the deadline."""


@dataclass(frozen=True)
class RelayedResponse:
    """Downstream status and raw body, relayed to the client unchanged."""

    status_code: int
    body: bytes


class ResolutionStageClient:
    path = "/weather"

    def __init__(
        self,
        telemetry: Telemetry,
        base_url: str,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.telemetry = telemetry
        self.url = base_url.rstrip("/") + self.path
        self.timeout = timeout
        self.session = session or requests.Session()

    def forward(self, code: str, correlation: CorrelationContext) -> RelayedResponse:
        with self.telemetry.span(
            "forward_to_resolution",
            correlation,
            kind=SpanKind.CLIENT,
            attributes={"http.method": "POST", "http.url": self.url},
        ) as scope:
            headers = self.telemetry.propagator.inject(scope, {"Content-Type": "application/json"})
            body = json.dumps(PostalCodeRequest(cep=code).as_payload())
            try:
                response = bounded_exchange(
                    lambda: self.session.post(
                        self.url,
                        data=body,
                        headers=headers,
                        timeout=self.timeout,
                        stream=True,
                    ),
                    self.timeout,
                )
            except BodyReadError as exc:
                logger.error("Error reading resolution stage response: %s", exc)
                raise RelayReadError(str(exc)) from exc
            except DeadlineExceeded as exc:
                logger.error("Resolution stage at %s: %s", self.url, exc)
                if exc.response_started:
                    raise RelayReadError(str(exc)) from exc
                raise ResolutionStageUnreachable(str(exc)) from exc
            except requests.RequestException as exc:
                logger.error("Error calling resolution stage at %s: %s", self.url, exc)
                raise ResolutionStageUnreachable(str(exc)) from exc
            self.telemetry.set_attribute(scope, "http.status_code", response.status_code)
            return RelayedResponse(status_code=response.status_code, body=response.content)


__all__ = [
    "ForwardingError",
    "RelayReadError",
    "RelayedResponse",
    "ResolutionStageClient",
    "ResolutionStageUnreachable",
]
