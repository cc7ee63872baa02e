# app/api/spotify_proxy_api.py
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query
from fastapi.responses import JSONResponse

from app.api.spotify_auth_api import unauthorized
from app.models.player_models import PlayRequest, TransferRequest
from app.services.errors import BadRequest, TokenRefreshFailed, Unauthenticated, UpstreamError
from app.services.spotify_api import LIST_LIMIT, device_params, search_params, spotify_request
from app.services.user_auth import SpotifySession, get_current_session

router = APIRouter()

logger = logging.getLogger(__name__)

OK = {"ok": True}


def _relay(
    session: SpotifySession,
    method: str,
    path: str,
    *,
    marker: str = "failed",
    params: Optional[Dict[str, Any]] = None,
    json_body: Optional[Dict[str, Any]] = None,
    ok_body: Optional[Dict[str, Any]] = None,
) -> JSONResponse:
    """
    1. 取得可用的 token（失敗 → 401，不打 Spotify）
    2. 打一次 Spotify
    3. 成功 → 原封不動回傳 body（控制類 API 回 {"ok": true}）
       失敗 → 回傳 Spotify 的 status / body，沒有的話 500 + marker
    """
    try:
        access_token = session.access_token()
    except (Unauthenticated, TokenRefreshFailed) as e:
        logger.info("Rejecting %s %s: %s", method, path, e)
        return unauthorized()

    try:
        data = spotify_request(method, path, access_token, params=params, json_body=json_body)
    except UpstreamError as e:
        response = JSONResponse(
            status_code=e.status_code or 500,
            content=e.body if e.body is not None else {"error": marker},
        )
    else:
        response = JSONResponse(content=ok_body if ok_body is not None else data)

    # refresh 過的話，就算 Spotify 失敗也要把新的 cookie 寫回去
    return session.commit(response)


# === Read ===
@router.get("/me")
def me(session: SpotifySession = Depends(get_current_session)):
    return _relay(session, "GET", "me")


@router.get("/playlists")
def playlists(session: SpotifySession = Depends(get_current_session)):
    return _relay(session, "GET", "me/playlists", params={"limit": LIST_LIMIT})


@router.get("/playlist/{playlist_id}")
def playlist(playlist_id: str, session: SpotifySession = Depends(get_current_session)):
    return _relay(session, "GET", f"playlists/{playlist_id}")


@router.get("/library/albums")
def library_albums(session: SpotifySession = Depends(get_current_session)):
    return _relay(session, "GET", "me/albums", params={"limit": LIST_LIMIT})


@router.get("/search")
def search(
    q: str = Query("", description="搜尋字串，不能是空的"),
    type: str = Query("track", description="Spotify search type, e.g. track / album"),
    session: SpotifySession = Depends(get_current_session),
):
    # 空的 query 直接擋掉，不碰 token 也不打 Spotify
    try:
        params = search_params(q, type)
    except BadRequest as e:
        return JSONResponse(status_code=400, content={"error": e.error})

    return _relay(session, "GET", "search", marker="search_failed", params=params)


# === Playback control ===
@router.post("/transfer")
def transfer(payload: TransferRequest, session: SpotifySession = Depends(get_current_session)):
    return _relay(
        session,
        "PUT",
        "me/player",
        marker="transfer_failed",
        json_body={"device_ids": [payload.device_id], "play": False},
        ok_body=OK,
    )


@router.put("/play")
def play(
    payload: Optional[PlayRequest] = Body(None),
    device_id: Optional[str] = Query(None),
    session: SpotifySession = Depends(get_current_session),
):
    body = payload.to_upstream() if payload is not None else {}
    return _relay(
        session,
        "PUT",
        "me/player/play",
        marker="play_failed",
        params=device_params(device_id),
        json_body=body,
        ok_body=OK,
    )


@router.put("/pause")
def pause(
    device_id: Optional[str] = Query(None),
    session: SpotifySession = Depends(get_current_session),
):
    return _relay(
        session,
        "PUT",
        "me/player/pause",
        marker="pause_failed",
        params=device_params(device_id),
        json_body={},
        ok_body=OK,
    )


@router.post("/next")
def next_track(
    device_id: Optional[str] = Query(None),
    session: SpotifySession = Depends(get_current_session),
):
    return _relay(
        session,
        "POST",
        "me/player/next",
        marker="next_failed",
        params=device_params(device_id),
        ok_body=OK,
    )


@router.post("/previous")
def previous_track(
    device_id: Optional[str] = Query(None),
    session: SpotifySession = Depends(get_current_session),
):
    return _relay(
        session,
        "POST",
        "me/player/previous",
        marker="previous_failed",
        params=device_params(device_id),
        ok_body=OK,
    )
