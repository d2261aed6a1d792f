"""Pytest configuration and fixtures for the QuoteCraft API."""

import asyncio
import json
import os
import random
import sys
from pathlib import Path
from typing import Callable, Dict, Generator, List, Optional

import httpx
import pytest
from fastapi.testclient import TestClient

# Settings are read at import time, so the test environment must be in place first
os.environ.update({
    "SERVICE_ENV": "test",
    "LOG_LEVEL": "DEBUG",
    "LOG_FORMAT": "text",
    "GEMINI_API_KEY": "test-gemini-key",
    "UNSPLASH_ACCESS_KEY": "test-unsplash-key",
    "PEXELS_API_KEY": "test-pexels-key",
})

# Add the api directory to Python path
api_dir = Path(__file__).parent
sys.path.insert(0, str(api_dir))

from quotecraft.main import app, init_state  # noqa: E402
from quotecraft.services.fallback import FallbackGenerator  # noqa: E402


def gemini_body(text: str) -> Dict:
    """A generateContent response whose single candidate carries `text`."""
    return {"candidates": [{"content": {"role": "model", "parts": [{"text": text}]}}]}


class FakeUpstream:
    """Routes outbound httpx requests to canned responses by host.

    `gemini`, `unsplash` and `pexels` are callables taking the request and
    returning an httpx.Response; every request is recorded in `calls`.
    """

    def __init__(self):
        self.calls: List[httpx.Request] = []
        self.gemini: Optional[Callable[[httpx.Request], httpx.Response]] = None
        self.unsplash: Optional[Callable[[httpx.Request], httpx.Response]] = None
        self.pexels: Optional[Callable[[httpx.Request], httpx.Response]] = None

    def reply_text(self, text: str) -> None:
        self.gemini = lambda request: httpx.Response(200, json=gemini_body(text))

    def reply_json(self, payload: Dict) -> None:
        self.reply_text(json.dumps(payload))

    def calls_to(self, host: str) -> List[httpx.Request]:
        return [c for c in self.calls if c.url.host == host]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        routes = {
            "generativelanguage.googleapis.com": self.gemini,
            "api.unsplash.com": self.unsplash,
            "api.pexels.com": self.pexels,
        }
        route = routes.get(request.url.host)
        if route is None:
            return httpx.Response(503, json={"error": "no fake configured"})
        return route(request)


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def mock_http_client(upstream: FakeUpstream) -> Generator[httpx.AsyncClient, None, None]:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(upstream.handler))
    yield http_client
    asyncio.run(http_client.aclose())


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def generator(rng: random.Random) -> FallbackGenerator:
    return FallbackGenerator(rng)


@pytest.fixture
def client(mock_http_client: httpx.AsyncClient) -> Generator[TestClient, None, None]:
    """Test client whose outbound HTTP goes to the FakeUpstream."""
    with TestClient(app) as test_client:
        init_state(app, mock_http_client, rng=random.Random(42))
        yield test_client
    app.dependency_overrides.clear()
