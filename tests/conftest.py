import json
from collections.abc import Callable

import httpx
import pytest
from fastapi.testclient import TestClient

from app import create_app
from core.config import Config
from core.headers import HeaderBuilder


class RecordingLogger:
    """RequestLogger that keeps everything in memory."""

    def __init__(self):
        self.relays: list[tuple[str, str, int]] = []
        self.cache_hits: list[tuple[str, str]] = []
        self.errors: list[tuple[str | None, int, str]] = []

    def log_relay(self, method, url, status, *, elapsed, headers=None):
        self.relays.append((method, url, status))

    def log_cache_hit(self, method, url):
        self.cache_hits.append((method, url))

    def log_error(self, url, status, message):
        self.errors.append((url, status, message))


class MockUpstream:
    """Callable handler for httpx.MockTransport that records every request."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response] | None = None):
        self.calls: list[httpx.Request] = []
        self.handler = handler or _echo

    def __call__(self, request: httpx.Request) -> httpx.Response:
        request.read()
        self.calls.append(request)
        return self.handler(request)

    @property
    def last(self) -> httpx.Request:
        return self.calls[-1]

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


def _echo(request: httpx.Request) -> httpx.Response:
    """Echo a JSON body back; answer 201 for POST, 200 otherwise."""
    status = 201 if request.method == "POST" else 200
    content_type = request.headers.get("content-type", "")
    if request.content and "json" in content_type:
        return httpx.Response(status, json=json.loads(request.content))
    return httpx.Response(
        status,
        json={"method": request.method, "url": str(request.url), "body": request.content.decode()},
    )


@pytest.fixture
def config(tmp_path) -> Config:
    config = Config()
    config.logging.log_dir = str(tmp_path / "logs")
    return config


@pytest.fixture
def logger() -> RecordingLogger:
    return RecordingLogger()


@pytest.fixture
def header_builder(config) -> HeaderBuilder:
    return HeaderBuilder(
        user_agent=config.relay.user_agent,
        allow_origins=config.cors.allow_origins,
        allow_methods=config.cors.allow_methods,
        allow_headers=config.cors.allow_headers,
    )


@pytest.fixture
def upstream() -> MockUpstream:
    return MockUpstream()


@pytest.fixture
def client(config, logger, upstream):
    app = create_app(config, logger, transport=upstream.transport())
    with TestClient(app) as test_client:
        yield test_client
