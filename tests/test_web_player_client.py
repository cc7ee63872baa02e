from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import requests

from app.services.errors import Unauthenticated, UpstreamError
from app.services.web_player_client import WebPlayerClient

from conftest import make_response


@pytest.fixture
def http() -> MagicMock:
    return MagicMock(spec=requests.Session)


def test_get_token(http) -> None:
    http.request.return_value = make_response(200, {"access_token": "A1"})
    c = WebPlayerClient("http://localhost:3000/", session=http)

    assert c.get_token() == "A1"
    method, url = http.request.call_args.args
    assert (method, url) == ("GET", "http://localhost:3000/token")


def test_get_token_without_session_is_none(http) -> None:
    http.request.return_value = make_response(401, {"error": "unauthorized"})
    assert WebPlayerClient(session=http).get_token() is None


def test_api_401_raises_unauthenticated(http) -> None:
    http.request.return_value = make_response(401, {"error": "unauthorized"})
    with pytest.raises(Unauthenticated):
        WebPlayerClient(session=http).me()


def test_relayed_error_keeps_status_and_body(http) -> None:
    body = {"error": {"message": "Premium required"}}
    http.request.return_value = make_response(403, body)

    with pytest.raises(UpstreamError) as exc:
        WebPlayerClient(session=http).play(uris=["spotify:track:1"])

    assert exc.value.status_code == 403
    assert exc.value.body == body


def test_play_sends_only_given_fields(http) -> None:
    http.request.return_value = make_response(200, {"ok": True})
    WebPlayerClient(session=http).play(uris=["spotify:track:1"], device_id="dev1")

    kwargs = http.request.call_args.kwargs
    assert kwargs["json"] == {"uris": ["spotify:track:1"]}
    assert kwargs["params"] == {"device_id": "dev1"}


def test_network_error_becomes_upstream_error(http) -> None:
    http.request.side_effect = requests.ConnectionError("refused")
    with pytest.raises(UpstreamError) as exc:
        WebPlayerClient(session=http).next()
    assert exc.value.status_code is None


@pytest.mark.parametrize(
    "call, path, params",
    [
        (lambda c: c.me(), "/api/me", None),
        (lambda c: c.playlists(), "/api/playlists", None),
        (lambda c: c.playlist("37i9dQ"), "/api/playlist/37i9dQ", None),
        (lambda c: c.saved_albums(), "/api/library/albums", None),
        (lambda c: c.search("daft punk"), "/api/search", {"q": "daft punk", "type": "track"}),
    ],
)
def test_library_views_hit_their_proxy_paths(http, call, path, params) -> None:  # type: ignore[no-untyped-def]
    http.request.return_value = make_response(200, {"items": []})

    assert call(WebPlayerClient(session=http)) == {"items": []}

    method, url = http.request.call_args.args
    assert (method, url) == ("GET", f"http://localhost:3000{path}")
    assert http.request.call_args.kwargs["params"] == params


@pytest.mark.parametrize(
    "call",
    [
        lambda c: c.playlists(),
        lambda c: c.playlist("37i9dQ"),
        lambda c: c.saved_albums(),
        lambda c: c.search("x", "album"),
    ],
)
def test_library_views_without_session_raise_unauthenticated(http, call) -> None:  # type: ignore[no-untyped-def]
    http.request.return_value = make_response(401, {"error": "unauthorized"})
    with pytest.raises(Unauthenticated):
        call(WebPlayerClient(session=http))
