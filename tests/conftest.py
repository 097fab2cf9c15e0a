"""Pytest configuration and fixtures for the flake detector tests."""

import itertools
from collections.abc import Callable

import httpx
import pytest

from flake_detector.types import RunConfig


class CountingHandler:
    """MockTransport handler that records every request it serves."""

    def __init__(self, respond: Callable[[int, httpx.Request], httpx.Response]) -> None:
        self.respond = respond
        self.requests: list[httpx.Request] = []
        self._counter = itertools.count()

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.respond(next(self._counter), request)


@pytest.fixture
def fast_config() -> RunConfig:
    """Short run with a small cooldown so tests finish quickly."""
    return RunConfig(concurrency=3, duration_secs=0.2, timeout_secs=1.0, cooldown_ms=10)


@pytest.fixture
def healthy_handler() -> CountingHandler:
    return CountingHandler(lambda n, request: httpx.Response(200, json={"result": {}}))


@pytest.fixture
def refusing_handler() -> CountingHandler:
    def respond(n: int, request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Connection refused", request=request)

    return CountingHandler(respond)


@pytest.fixture
def make_handler() -> Callable[[Callable[[int, httpx.Request], httpx.Response]], CountingHandler]:
    """Build a CountingHandler from a ``(request_number, request) -> Response`` function."""
    return CountingHandler
