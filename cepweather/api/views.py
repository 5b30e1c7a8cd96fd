"""REST API views for the edge (``/zipcode``) and resolution (``/weather``) stages."""
from __future__ import annotations

import logging
from typing import Optional

from django.http import HttpResponse
from opentelemetry.trace import SpanKind
from rest_framework import status
from rest_framework.negotiation import BaseContentNegotiation
from rest_framework.permissions import AllowAny
from rest_framework.renderers import JSONRenderer
from rest_framework.response import Response
from rest_framework.views import APIView

from cepweather.core.abstractions import ErrorEnvelope
from cepweather.core.providers.base import LocationNotFound, TemperatureUnavailable
from cepweather.core.services.forwarding import (
    RelayReadError,
    ResolutionStageClient,
    ResolutionStageUnreachable,
)
from cepweather.core.services.resolution import ResolutionOrchestrator
from cepweather.core.telemetry import CorrelationContext, Telemetry
from cepweather.core.validation import InvalidPostalCode, parse_postal_code_request


logger = logging.getLogger(__name__)

INVALID_ZIPCODE = ErrorEnvelope("invalid zipcode", status.HTTP_422_UNPROCESSABLE_ENTITY)
ZIPCODE_NOT_FOUND = ErrorEnvelope("can not find zipcode", status.HTTP_404_NOT_FOUND)
TEMPERATURE_UNAVAILABLE = ErrorEnvelope("error fetching temperature", status.HTTP_500_INTERNAL_SERVER_ERROR)
RESOLUTION_UNREACHABLE = ErrorEnvelope(
    "error communicating with weather service", status.HTTP_500_INTERNAL_SERVER_ERROR
)
RELAY_UNREADABLE = ErrorEnvelope("error processing response", status.HTTP_500_INTERNAL_SERVER_ERROR)


class IgnoreClientContentNegotiation(BaseContentNegotiation):
    """Always answer JSON, whatever the client's ``Accept`` header says."""

    def select_parser(self, request, parsers):
        return parsers[0]

    def select_renderer(self, request, renderers, format_suffix=None):
        return (renderers[0], renderers[0].media_type)


def error_response(envelope: ErrorEnvelope) -> Response:
    return Response(envelope.as_payload(), status=envelope.status)


class StageView(APIView):
    """POST-only JSON endpoint traced under the inbound correlation context.

    Each request gets one server span, parented under the ``traceparent``
    header when the caller sent one. The child context is handed to the
    handler as ``self.correlation``.
    """

    http_method_names = ["post"]
    authentication_classes: list = []
    permission_classes = [AllowAny]
    renderer_classes = [JSONRenderer]
    content_negotiation_class = IgnoreClientContentNegotiation

    telemetry: Optional[Telemetry] = None
    correlation: Optional[CorrelationContext] = None

    def dispatch(self, request, *args, **kwargs):
        inbound = self.telemetry.propagator.extract(request.headers)
        with self.telemetry.span(
            f"{request.method} {request.path}",
            inbound,
            kind=SpanKind.SERVER,
            attributes={"http.method": request.method, "http.route": request.path},
        ) as correlation:
            self.correlation = correlation
            response = super().dispatch(request, *args, **kwargs)
            self.telemetry.set_attribute(correlation, "http.status_code", response.status_code)
            return response

    def http_method_not_allowed(self, request, *args, **kwargs):
        logger.info("Method not allowed: %s", request.method)
        return Response(status=status.HTTP_405_METHOD_NOT_ALLOWED)


class ZipCodeView(StageView):
    """Edge stage: validate and forward, then relay the resolution stage's answer."""

    client: Optional[ResolutionStageClient] = None

    def post(self, request, *args, **kwargs):
        logger.info("Received request for zipcode")
        try:
            payload = parse_postal_code_request(request.body)
        except InvalidPostalCode as exc:
            logger.info("Rejected zipcode request: %s", exc)
            return error_response(INVALID_ZIPCODE)

        logger.info("Forwarding zipcode %s to the resolution stage", payload.cep)
        try:
            relayed = self.client.forward(payload.cep, self.correlation)
        except ResolutionStageUnreachable as exc:
            logger.error("Error forwarding to the resolution stage: %s", exc)
            self.telemetry.record_failure(self.correlation, exc)
            return error_response(RESOLUTION_UNREACHABLE)
        except RelayReadError as exc:
            logger.error("Error reading the resolution stage response: %s", exc)
            self.telemetry.record_failure(self.correlation, exc)
            return error_response(RELAY_UNREADABLE)

        logger.info("Resolution stage answered with status %s", relayed.status_code)
        return HttpResponse(relayed.body, status=relayed.status_code, content_type="application/json")


class WeatherView(StageView):
    """Resolution stage: postal code to city, city to temperature, three scales."""

    orchestrator: Optional[ResolutionOrchestrator] = None

    def post(self, request, *args, **kwargs):
        try:
            payload = parse_postal_code_request(request.body)
        except InvalidPostalCode as exc:
            logger.info("Rejected weather request: %s", exc)
            return error_response(INVALID_ZIPCODE)

        try:
            result = self.orchestrator.resolve(payload.cep, self.correlation)
        except LocationNotFound as exc:
            logger.warning("Error fetching city by zipcode %s: %s", payload.cep, exc)
            return error_response(ZIPCODE_NOT_FOUND)
        except TemperatureUnavailable as exc:
            logger.warning("Error fetching temperature: %s", exc)
            self.telemetry.record_failure(self.correlation, exc)
            return error_response(TEMPERATURE_UNAVAILABLE)

        return Response(result.as_payload(), status=status.HTTP_200_OK)


__all__ = [
    "IgnoreClientContentNegotiation",
    "StageView",
    "WeatherView",
    "ZipCodeView",
]
