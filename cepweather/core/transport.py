"""Outbound HTTP exchanges bounded by a total deadline.

``requests`` applies ``timeout`` to each connect and each socket read, so a
peer that trickles bytes can hold a call open indefinitely. :func:`bounded_exchange`
runs the request and the full body read on a worker thread and stops waiting
once the deadline has passed, whatever phase the exchange is in.
"""
from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Callable

import requests
from requests import Response


logger = logging.getLogger(__name__)

_executor = ThreadPoolExecutor(max_workers=64, thread_name_prefix="cepweather-http")


class DeadlineExceeded(requests.Timeout):
    """The exchange did not complete within its total deadline."""

    def __init__(self, deadline: float, response_started: bool) -> None:
        phase = "reading the body" if response_started else "waiting for a response"
        super().__init__(f"deadline of {deadline}s exceeded while {phase}")
        self.deadline = deadline
        self.response_started = response_started


class BodyReadError(requests.RequestException):
    """Headers arrived but the body could not be read."""


def bounded_exchange(send: Callable[[], Response], deadline: float) -> Response:
    """Call ``send`` and read the whole body, giving up after ``deadline`` seconds.

    ``send`` must issue the request with ``stream=True``. The returned response
    has its content loaded and its connection released.
    """
    started = threading.Event()
    abandoned = threading.Event()

    def _exchange() -> Response:
        response = send()
        started.set()
        try:
            if not abandoned.is_set():
                response.content  # loads and caches the body
        except requests.RequestException as exc:
            raise BodyReadError(str(exc)) from exc
        finally:
            response.close()
        return response

    future = _executor.submit(_exchange)
    try:
        return future.result(timeout=deadline)
    except FutureTimeout:
        abandoned.set()
        future.cancel()
        logger.warning("Outbound exchange abandoned after %ss", deadline)
        raise DeadlineExceeded(deadline, started.is_set()) from None


__all__ = ["BodyReadError", "DeadlineExceeded", "bounded_exchange"]
