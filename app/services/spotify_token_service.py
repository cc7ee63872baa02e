# app/services/spotify_token_service.py
import base64
import logging
import threading
import time
from typing import Dict, Optional, Tuple
from urllib.parse import urlencode

import requests
from pydantic import ValidationError

from app.config import settings
from app.models.token_model import SessionCredential, TokenResponse
from app.services.errors import TokenExchangeFailed, TokenRefreshFailed, Unauthenticated

logger = logging.getLogger(__name__)

SCOPES = [
    "streaming",
    "user-read-email",
    "user-read-private",
    "playlist-read-private",
    "playlist-read-collaborative",
    "user-library-read",
    "user-read-playback-state",
    "user-modify-playback-state",
    "user-read-currently-playing",
]


def now_ms() -> int:
    return int(time.time() * 1000)


def _token_url() -> str:
    return f"{settings.SPOTIFY_ACCOUNTS_BASE}/api/token"


def _client_headers() -> Dict[str, str]:
    raw = f"{settings.CLIENT_ID}:{settings.CLIENT_SECRET}".encode()
    return {
        "Authorization": "Basic " + base64.b64encode(raw).decode(),
        "Content-Type": "application/x-www-form-urlencoded",
    }


def _request_token(payload: Dict[str, str], error_cls) -> TokenResponse:
    """
    POST 一次到 Spotify token endpoint。
    任何失敗（連線錯誤、非 2xx、body 格式不對）都轉成 error_cls。
    """
    grant = payload.get("grant_type")
    try:
        r = requests.post(
            _token_url(),
            data=payload,
            headers=_client_headers(),
            timeout=settings.SPOTIFY_HTTP_TIMEOUT,
        )
    except requests.RequestException as e:
        logger.warning("Spotify token endpoint unreachable (%s): %s", grant, e)
        raise error_cls(f"token endpoint unreachable: {e}") from e

    if not r.ok:
        logger.warning("Spotify %s grant rejected: %s %s", grant, r.status_code, r.text)
        raise error_cls(f"token endpoint returned {r.status_code}")

    try:
        return TokenResponse.model_validate(r.json())
    except (ValueError, ValidationError) as e:
        logger.warning("Spotify %s grant returned a malformed body: %s", grant, r.text)
        raise error_cls("malformed token response") from e


# --------- Single-flight refresh ---------
class _RefreshFlight:
    def __init__(self):
        self.done = threading.Event()
        self.result: Optional[TokenResponse] = None
        self.error: Optional[BaseException] = None


_flights: Dict[str, _RefreshFlight] = {}
_flights_lock = threading.Lock()


def _refresh_single_flight(refresh_token: str) -> TokenResponse:
    """
    Concurrent callers holding the same refresh token share one exchange.
    The first caller performs the POST; the rest wait for its outcome.
    """
    with _flights_lock:
        flight = _flights.get(refresh_token)
        leader = flight is None
        if leader:
            flight = _RefreshFlight()
            _flights[refresh_token] = flight

    if leader:
        try:
            flight.result = _request_token(
                {"grant_type": "refresh_token", "refresh_token": refresh_token},
                TokenRefreshFailed,
            )
            return flight.result
        except BaseException as e:
            flight.error = e
            raise
        finally:
            with _flights_lock:
                _flights.pop(refresh_token, None)
            flight.done.set()

    flight.done.wait()
    if flight.error is not None:
        raise TokenRefreshFailed(str(flight.error)) from flight.error
    return flight.result


# --------- Public operations ---------
def build_authorize_url() -> str:
    params = {
        "client_id": settings.CLIENT_ID,
        "response_type": "code",
        "redirect_uri": settings.REDIRECT_URI,
        "scope": " ".join(SCOPES),
        "show_dialog": "true",
    }
    return f"{settings.SPOTIFY_ACCOUNTS_BASE}/authorize?{urlencode(params)}"


def exchange_code(code: str, now: Optional[int] = None) -> SessionCredential:
    """Trade an authorization code for a fresh SessionCredential."""
    if not code:
        raise TokenExchangeFailed("missing authorization code")

    token = _request_token(
        {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": settings.REDIRECT_URI,
        },
        TokenExchangeFailed,
    )
    if not token.refresh_token:
        # 沒有 refresh_token 的 session 撐不過第一次過期
        raise TokenExchangeFailed("token response without refresh_token")
    now = now_ms() if now is None else now
    return SessionCredential(
        access_token=token.access_token,
        refresh_token=token.refresh_token,
        expires_at=now + token.expires_in * 1000,
    )


def ensure_valid_token(
    credential: SessionCredential, now: Optional[int] = None
) -> Tuple[str, SessionCredential]:
    """
    回傳「可用的 access_token」以及之後要寫回 cookie 的 credential：

    1. 沒有 refresh_token → Unauthenticated（不打任何 request）
    2. access_token 還沒過期（含 safety margin）→ 原封不動回傳
    3. 快過期 → 用 refresh_token 換新的；Spotify 有時不會回 refresh token，要沿用舊的
    """
    if not credential.refresh_token:
        raise Unauthenticated("no refresh token in session")

    now = now_ms() if now is None else now
    margin_ms = settings.TOKEN_REFRESH_MARGIN_SECONDS * 1000
    if not credential.is_expired(now, margin_ms):
        return credential.access_token, credential

    token = _refresh_single_flight(credential.refresh_token)
    refreshed = SessionCredential(
        access_token=token.access_token,
        refresh_token=token.refresh_token or credential.refresh_token,
        expires_at=now + token.expires_in * 1000,
    )
    logger.debug("Refreshed Spotify access token, expires_at=%s", refreshed.expires_at)
    return refreshed.access_token, refreshed


def logout() -> SessionCredential:
    """Clearing is unconditional; an already-empty credential stays empty."""
    return SessionCredential.empty()
