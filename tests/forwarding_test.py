from __future__ import annotations

import json
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest
import requests
import responses
from opentelemetry.trace import StatusCode

from cepweather.core.services.forwarding import (
    RelayReadError,
    ResolutionStageClient,
    ResolutionStageUnreachable,
)
from cepweather.core.telemetry import CorrelationContext

RESOLUTION_URL = "http://resolution.test"
TRACEPARENT = "00-4bf92f3577b34da6a3ce929d0e0e4736-00f067aa0ba902b7-01"


class _BrokenBodyResponse:
    status_code = 200

    def __init__(self) -> None:
        self.closed = False

    @property
    def content(self) -> bytes:
        raise requests.exceptions.ChunkedEncodingError("connection broken")

    def close(self) -> None:
        self.closed = True


class _BrokenBodySession:
    def __init__(self) -> None:
        self.response = _BrokenBodyResponse()

    def post(self, *args, **kwargs):
        return self.response


def _client(telemetry, **kwargs) -> ResolutionStageClient:
    return ResolutionStageClient(telemetry, base_url=RESOLUTION_URL + "/", **kwargs)


def test_forward_posts_code_and_returns_raw_body(telemetry):
    body = b'{"city":"S\xc3\xa3o Paulo","temp_C":25.0,"temp_F":77.0,"temp_K":298.15}'
    with responses.RequestsMock() as rsps:
        rsps.add(responses.POST, f"{RESOLUTION_URL}/weather", body=body, status=200)

        relayed = _client(telemetry).forward("01310100", CorrelationContext())

        sent = rsps.calls[0].request
        assert json.loads(sent.body) == {"cep": "01310100"}
        assert sent.headers["Content-Type"] == "application/json"

    assert relayed.status_code == 200
    assert relayed.body == body


@pytest.mark.parametrize(
    "status, body",
    [
        (404, b'{"message":"can not find zipcode"}\n'),
        (422, b'{"message":"invalid zipcode"}'),
        (500, b'{"message":"error fetching temperature"}'),
        (502, b"<html>bad gateway</html>"),
    ],
)
def test_forward_returns_downstream_errors_untouched(telemetry, status, body):
    with responses.RequestsMock() as rsps:
        rsps.add(responses.POST, f"{RESOLUTION_URL}/weather", body=body, status=status)

        relayed = _client(telemetry).forward("00000000", CorrelationContext())

    assert relayed.status_code == status
    assert relayed.body == body


def test_forward_injects_trace_headers(telemetry):
    inbound = telemetry.propagator.extract({"traceparent": TRACEPARENT, "baggage": "tenant=acme"})
    with responses.RequestsMock() as rsps:
        rsps.add(responses.POST, f"{RESOLUTION_URL}/weather", json={}, status=200)

        _client(telemetry).forward("01310100", inbound)

        headers = rsps.calls[0].request.headers
        version, trace_id, span_id, flags = headers["traceparent"].split("-")
        assert trace_id == "4bf92f3577b34da6a3ce929d0e0e4736"
        # the forward span becomes the parent on the far side
        assert span_id != "00f067aa0ba902b7"
        assert headers["baggage"] == "tenant=acme"


def test_forward_uses_bounded_wait(telemetry):
    with responses.RequestsMock() as rsps:
        rsps.add(responses.POST, f"{RESOLUTION_URL}/weather", json={}, status=200)

        _client(telemetry, timeout=10.0).forward("01310100", CorrelationContext())

        assert rsps.calls[0].request.req_kwargs["timeout"] == 10.0


@pytest.mark.parametrize(
    "error",
    [
        requests.exceptions.ConnectTimeout("timed out"),
        requests.exceptions.ReadTimeout("timed out"),
        requests.exceptions.ConnectionError("refused"),
    ],
)
def test_transport_failures_raise_unreachable(telemetry, span_exporter, error):
    with responses.RequestsMock() as rsps:
        rsps.add(responses.POST, f"{RESOLUTION_URL}/weather", body=error)

        with pytest.raises(ResolutionStageUnreachable):
            _client(telemetry).forward("01310100", CorrelationContext())

    (span,) = span_exporter.get_finished_spans()
    assert span.name == "forward_to_resolution"
    assert span.status.status_code is StatusCode.ERROR


def test_unreadable_body_raises_relay_read_error(telemetry):
    session = _BrokenBodySession()

    with pytest.raises(RelayReadError):
        _client(telemetry, session=session).forward("01310100", CorrelationContext())

    assert session.response.closed is True


class _TrickleHandler(BaseHTTPRequestHandler):
    """Sends headers at once, then the 8-byte body one byte every 0.3 s."""

    def do_POST(self) -> None:
        self.rfile.read(int(self.headers["Content-Length"]))
        self.send_response(200)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", "8")
        self.end_headers()
        try:
            for _ in range(8):
                self.wfile.write(b"x")
                self.wfile.flush()
                time.sleep(0.3)
        except (BrokenPipeError, ConnectionResetError):
            pass

    def log_message(self, format, *args) -> None:
        pass


@pytest.fixture
def trickling_server():
    server = ThreadingHTTPServer(("127.0.0.1", 0), _TrickleHandler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{server.server_address[1]}"
    server.shutdown()
    server.server_close()


def test_trickling_body_is_cut_off_at_the_deadline(telemetry, span_exporter, trickling_server):
    client = ResolutionStageClient(telemetry, base_url=trickling_server, timeout=1.0)

    started = time.monotonic()
    with pytest.raises(RelayReadError):
        client.forward("01310100", CorrelationContext())

    assert time.monotonic() - started < 2.0
    (span,) = span_exporter.get_finished_spans()
    assert span.status.status_code is StatusCode.ERROR


class _StalledSession:
    def __init__(self) -> None:
        self.release = threading.Event()

    def post(self, *args, **kwargs):
        self.release.wait(5)
        raise requests.exceptions.ConnectionError("gave up")


def test_stalled_connection_is_unreachable_at_the_deadline(telemetry):
    session = _StalledSession()
    client = _client(telemetry, timeout=0.2, session=session)

    started = time.monotonic()
    try:
        with pytest.raises(ResolutionStageUnreachable):
            client.forward("01310100", CorrelationContext())
    finally:
        session.release.set()

    assert time.monotonic() - started < 2.0
