"""Tracing collaborator and W3C correlation propagation.

The tracer provider is owned by a :class:`Telemetry` instance that the
composition root builds once per process and hands to every component that
emits spans. Nothing here installs global OpenTelemetry state; the correlation
context travels as an explicit :class:`CorrelationContext` argument.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping, MutableMapping, Optional

from opentelemetry import trace
from opentelemetry.baggage.propagation import W3CBaggagePropagator
from opentelemetry.context import Context
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.propagators.composite import CompositePropagator
from opentelemetry.propagators.textmap import TextMapPropagator
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import SpanProcessor, TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.trace.sampling import ALWAYS_ON
from opentelemetry.trace import SpanKind, Status, StatusCode
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator


logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class CorrelationContext:
    """Opaque trace context of one logical request.

    Values are never mutated: opening a span derives a new context for the
    child scope and leaves the parent untouched.
    """

    context: Context = field(default_factory=Context)

    @property
    def trace_id(self) -> int:
        return trace.get_current_span(self.context).get_span_context().trace_id


class CorrelationPropagator:
    """Reads and writes W3C ``traceparent``/``tracestate``/``baggage`` headers."""

    def __init__(self, propagator: Optional[TextMapPropagator] = None) -> None:
        self._propagator = propagator or CompositePropagator(
            [TraceContextTextMapPropagator(), W3CBaggagePropagator()]
        )

    def extract(self, headers: Mapping[str, str]) -> CorrelationContext:
        return CorrelationContext(self._propagator.extract(carrier=headers, context=Context()))

    def inject(
        self, correlation: CorrelationContext, headers: MutableMapping[str, str]
    ) -> MutableMapping[str, str]:
        self._propagator.inject(headers, context=correlation.context)
        return headers


class Telemetry:
    """Explicitly constructed tracing collaborator with its own provider."""

    instrumentation_name = "cepweather"

    def __init__(
        self,
        service_name: str,
        span_processor: Optional[SpanProcessor] = None,
        propagator: Optional[CorrelationPropagator] = None,
    ) -> None:
        self.service_name = service_name
        self._provider = TracerProvider(
            resource=Resource.create({SERVICE_NAME: service_name}),
            sampler=ALWAYS_ON,
        )
        if span_processor is not None:
            self._provider.add_span_processor(span_processor)
        self._tracer = self._provider.get_tracer(self.instrumentation_name)
        self.propagator = propagator or CorrelationPropagator()

    @classmethod
    def from_settings(cls, settings: Any) -> "Telemetry":
        """Export to the OTLP/gRPC collector unless ``OTEL_COLLECTOR_URL`` is empty."""
        processor: Optional[SpanProcessor] = None
        endpoint = settings.OTEL_COLLECTOR_URL
        if endpoint:
            processor = BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint, insecure=True))
            logger.info("Exporting spans for %s to %s", settings.OTEL_SERVICE_NAME, endpoint)
        else:
            logger.info("OTEL_COLLECTOR_URL is empty, spans are not exported")
        return cls(settings.OTEL_SERVICE_NAME, span_processor=processor)

    @contextmanager
    def span(
        self,
        name: str,
        correlation: CorrelationContext,
        *,
        kind: SpanKind = SpanKind.INTERNAL,
        attributes: Optional[Mapping[str, Any]] = None,
    ) -> Iterator[CorrelationContext]:
        """Open a span under ``correlation`` and yield the child context."""
        span = self._tracer.start_span(
            name, context=correlation.context, kind=kind, attributes=attributes
        )
        try:
            yield CorrelationContext(trace.set_span_in_context(span, correlation.context))
        except Exception as exc:
            span.record_exception(exc)
            span.set_status(Status(StatusCode.ERROR, str(exc)))
            raise
        finally:
            span.end()

    def record_failure(self, correlation: CorrelationContext, exc: BaseException) -> None:
        """Mark the span behind ``correlation`` failed for an error answered in-band."""
        span = trace.get_current_span(correlation.context)
        span.record_exception(exc)
        span.set_status(Status(StatusCode.ERROR, str(exc)))

    def set_attribute(self, correlation: CorrelationContext, key: str, value: Any) -> None:
        trace.get_current_span(correlation.context).set_attribute(key, value)

    def shutdown(self) -> None:
        logger.info("Shutting down telemetry for %s", self.service_name)
        self._provider.shutdown()


__all__ = ["CorrelationContext", "CorrelationPropagator", "Telemetry"]
