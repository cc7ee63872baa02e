# app/services/session_cookies.py
from typing import Dict, Mapping, Optional

from fastapi import Response

from app.config import settings
from app.models.token_model import SessionCredential

COOKIE_NAMES = ("access_token", "refresh_token", "expires_at")


def read_credential(cookies: Mapping[str, str]) -> SessionCredential:
    raw_expires_at = (cookies.get("expires_at") or "").strip()
    try:
        expires_at = int(raw_expires_at) if raw_expires_at else 0
    except ValueError:
        expires_at = 0

    return SessionCredential(
        access_token=cookies.get("access_token") or None,
        refresh_token=cookies.get("refresh_token") or None,
        expires_at=expires_at,
    )


def _cookie_values(credential: SessionCredential) -> Dict[str, Optional[str]]:
    return {
        "access_token": credential.access_token,
        "refresh_token": credential.refresh_token,
        "expires_at": str(credential.expires_at) if credential.expires_at else None,
    }


def session_cookie_kwargs(key: str, value: str) -> dict:
    kwargs = {
        "key": key,
        "value": value,
        "httponly": True,
        "secure": settings.COOKIE_SECURE,
        "samesite": "lax",
        "path": "/",
    }
    # No max_age → cookie lives as long as the browser session.
    if settings.COOKIE_MAX_AGE:
        kwargs["max_age"] = settings.COOKIE_MAX_AGE
    return kwargs


def write_credential(
    response: Response,
    credential: SessionCredential,
    previous: Optional[SessionCredential] = None,
) -> Response:
    """
    Set the cookies for `credential`.

    With `previous`, only the cookies whose value changed are sent, so a
    refresh that did not rotate the refresh token leaves that cookie alone.
    """
    old_values = _cookie_values(previous) if previous is not None else {}
    for name, value in _cookie_values(credential).items():
        if value is None or old_values.get(name) == value:
            continue
        response.set_cookie(**session_cookie_kwargs(name, value))
    return response


def clear_credential(response: Response) -> Response:
    for name in COOKIE_NAMES:
        response.delete_cookie(
            name,
            path="/",
            secure=settings.COOKIE_SECURE,
            httponly=True,
            samesite="lax",
        )
    return response
