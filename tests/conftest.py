"""
Pytest config.

Pins the Spotify settings the services read at call time and replaces the
outbound `requests` calls with an in-memory fake, so no test ever talks to
accounts.spotify.com or api.spotify.com.
"""

from __future__ import annotations

import json
from typing import Any, List

import pytest
import requests
from fastapi.testclient import TestClient

from app.config import settings
from app.services import spotify_api, spotify_token_service


@pytest.fixture(autouse=True)
def _spotify_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "CLIENT_ID", "client-id")
    monkeypatch.setattr(settings, "CLIENT_SECRET", "client-secret")
    monkeypatch.setattr(settings, "REDIRECT_URI", "http://localhost:3000/callback")
    monkeypatch.setattr(settings, "SPOTIFY_ACCOUNTS_BASE", "https://accounts.spotify.com")
    monkeypatch.setattr(settings, "SPOTIFY_API_BASE", "https://api.spotify.com/v1")
    monkeypatch.setattr(settings, "SPOTIFY_HTTP_TIMEOUT", None)
    monkeypatch.setattr(settings, "TOKEN_REFRESH_MARGIN_SECONDS", 10)
    monkeypatch.setattr(settings, "COOKIE_SECURE", False)
    monkeypatch.setattr(settings, "COOKIE_MAX_AGE", None)
    spotify_token_service._flights.clear()


def make_response(status_code: int, body: Any = None) -> requests.Response:
    r = requests.Response()
    r.status_code = status_code
    if body is None:
        r._content = b""
    else:
        r._content = json.dumps(body).encode()
        r.headers["Content-Type"] = "application/json"
    return r


class FakeSpotify:
    """Queues replies for the token endpoint and the Web API, and records every call."""

    def __init__(self) -> None:
        self.token_calls: List[dict] = []
        self.api_calls: List[dict] = []
        self._token_replies: List[Any] = []
        self._api_replies: List[Any] = []

    def token_reply(self, status_code: int, body: Any = None) -> None:
        self._token_replies.append(make_response(status_code, body))

    def token_raise(self, exc: Exception) -> None:
        self._token_replies.append(exc)

    def api_reply(self, status_code: int, body: Any = None) -> None:
        self._api_replies.append(make_response(status_code, body))

    def api_raise(self, exc: Exception) -> None:
        self._api_replies.append(exc)

    @staticmethod
    def _next(queue: List[Any]) -> requests.Response:
        item = queue.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def post(self, url, data=None, headers=None, timeout=None):  # type: ignore[no-untyped-def]
        self.token_calls.append({"url": url, "data": data, "headers": headers})
        return self._next(self._token_replies)

    def request(self, method, url, headers=None, params=None, json=None, timeout=None):  # type: ignore[no-untyped-def]
        self.api_calls.append(
            {"method": method, "url": url, "headers": headers, "params": params, "json": json}
        )
        return self._next(self._api_replies)


@pytest.fixture
def spotify(monkeypatch: pytest.MonkeyPatch) -> FakeSpotify:
    fake = FakeSpotify()
    monkeypatch.setattr(spotify_token_service.requests, "post", fake.post)
    monkeypatch.setattr(spotify_api.requests, "request", fake.request)
    return fake


@pytest.fixture
def client() -> TestClient:
    from app.main import app

    return TestClient(app)
