# app/api/spotify_auth_api.py
import logging
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse, RedirectResponse

from app.models.spotify_auth_models import AccessTokenResponse, ErrorResponse
from app.services.errors import TokenExchangeFailed, TokenRefreshFailed, Unauthenticated
from app.services.session_cookies import write_credential
from app.services.spotify_token_service import build_authorize_url, exchange_code
from app.services.user_auth import SpotifySession, get_current_session

router = APIRouter()

logger = logging.getLogger(__name__)


def unauthorized() -> JSONResponse:
    return JSONResponse(status_code=401, content={"error": "unauthorized"})


def _home(error: Optional[str] = None) -> RedirectResponse:
    url = "/" if not error else "/?" + urlencode({"error": error})
    return RedirectResponse(url=url, status_code=302)


@router.get(
    "/login",
    summary="Spotify Login",
    description="Redirect 使用者到 Spotify 授權頁（固定 scope，每次都顯示授權對話框）。",
    response_class=RedirectResponse,
    status_code=302,
)
def login():
    return RedirectResponse(url=build_authorize_url(), status_code=302)


@router.get(
    "/callback",
    summary="Spotify OAuth Callback",
    description=(
        "Spotify 授權完成後會 redirect 到此 endpoint 並附上 code。"
        "後端用 code 交換 token，寫進 cookie 後 redirect 回首頁。"
    ),
    response_class=RedirectResponse,
    status_code=302,
)
def callback(
    code: Optional[str] = Query(None, description="Spotify 回傳的授權 code"),
    error: Optional[str] = Query(None, description="使用者拒絕授權時 Spotify 帶回的錯誤"),
):
    # 1. 使用者在 Spotify 按了取消
    if error:
        logger.info("Spotify authorization denied: %s", error)
        return _home(error)

    # 2. 沒有 code 就不用換了
    if not code:
        return _home("missing_code")

    # 3. 跟 Spotify 交換 access_token（失敗就結束這次登入，不重試）
    try:
        credential = exchange_code(code)
    except TokenExchangeFailed as e:
        logger.warning("Authorization code exchange failed: %s", e)
        return _home("token_error")

    # 4. 三個 cookie 一起寫，redirect 回首頁
    return write_credential(_home(), credential)


@router.get(
    "/logout",
    summary="Logout",
    response_class=RedirectResponse,
    status_code=302,
)
def logout(session: SpotifySession = Depends(get_current_session)):
    return session.end(_home())


@router.get(
    "/token",
    summary="Access token for the Web Playback SDK",
    response_model=AccessTokenResponse,
    responses={401: {"model": ErrorResponse}},
)
def token(session: SpotifySession = Depends(get_current_session)):
    try:
        access_token = session.access_token()
    except (Unauthenticated, TokenRefreshFailed) as e:
        logger.info("Token request rejected: %s", e)
        return unauthorized()

    return session.commit(JSONResponse(content={"access_token": access_token}))
