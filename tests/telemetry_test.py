from __future__ import annotations

from types import SimpleNamespace

import pytest
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace import SpanKind, StatusCode

from cepweather.core.telemetry import CorrelationContext, CorrelationPropagator, Telemetry

TRACE_ID = "0af7651916cd43dd8448eb211c80319c"
PARENT_SPAN_ID = "b7ad6b7169203331"
TRACEPARENT = f"00-{TRACE_ID}-{PARENT_SPAN_ID}-01"


def test_extract_without_headers_yields_empty_context():
    correlation = CorrelationPropagator().extract({})

    assert correlation.trace_id == 0


def test_extract_reads_traceparent():
    correlation = CorrelationPropagator().extract({"traceparent": TRACEPARENT})

    assert correlation.trace_id == int(TRACE_ID, 16)


def test_inject_without_span_adds_nothing():
    headers = CorrelationPropagator().inject(CorrelationContext(), {"Content-Type": "application/json"})

    assert headers == {"Content-Type": "application/json"}


def test_span_is_parented_under_inbound_context(telemetry, span_exporter):
    inbound = telemetry.propagator.extract({"traceparent": TRACEPARENT})

    with telemetry.span("handle", inbound, kind=SpanKind.SERVER, attributes={"cep": "01310100"}) as child:
        assert child is not inbound
        assert child.trace_id == inbound.trace_id

    (span,) = span_exporter.get_finished_spans()
    assert span.kind is SpanKind.SERVER
    assert span.context.trace_id == int(TRACE_ID, 16)
    assert span.parent.span_id == int(PARENT_SPAN_ID, 16)
    assert span.attributes["cep"] == "01310100"
    assert span.resource.attributes["service.name"] == "cepweather-test"


def test_nested_spans_share_one_trace(telemetry, span_exporter):
    with telemetry.span("outer", CorrelationContext()) as outer:
        with telemetry.span("inner", outer):
            pass

    inner, outer_span = span_exporter.get_finished_spans()
    assert inner.context.trace_id == outer_span.context.trace_id
    assert inner.parent.span_id == outer_span.context.span_id


def test_span_records_exceptions(telemetry, span_exporter):
    with pytest.raises(RuntimeError):
        with telemetry.span("failing", CorrelationContext()):
            raise RuntimeError("boom")

    (span,) = span_exporter.get_finished_spans()
    assert span.status.status_code is StatusCode.ERROR
    assert span.events[0].name == "exception"


def test_record_failure_marks_current_span(telemetry, span_exporter):
    with telemetry.span("handled", CorrelationContext()) as scope:
        telemetry.record_failure(scope, ValueError("bad payload"))
        telemetry.set_attribute(scope, "http.status_code", 500)

    (span,) = span_exporter.get_finished_spans()
    assert span.status.status_code is StatusCode.ERROR
    assert span.attributes["http.status_code"] == 500


def test_from_settings_without_collector_exports_nothing():
    settings = SimpleNamespace(OTEL_COLLECTOR_URL="", OTEL_SERVICE_NAME="service-b")

    telemetry = Telemetry.from_settings(settings)

    assert telemetry.service_name == "service-b"
    assert telemetry._provider._active_span_processor._span_processors == ()
    telemetry.shutdown()


def test_from_settings_with_collector_batches_to_otlp():
    settings = SimpleNamespace(OTEL_COLLECTOR_URL="localhost:4317", OTEL_SERVICE_NAME="service-a")

    telemetry = Telemetry.from_settings(settings)

    (processor,) = telemetry._provider._active_span_processor._span_processors
    assert isinstance(processor, BatchSpanProcessor)
    telemetry.shutdown()
