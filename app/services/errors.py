# app/services/errors.py
from typing import Any, Optional


class SpotifyError(Exception):
    """Base class for everything the Spotify services raise."""


class Unauthenticated(SpotifyError):
    """No refresh token in the session: the user never logged in or logged out."""


class TokenRefreshFailed(SpotifyError):
    """The refresh_token grant was rejected, unreachable or returned garbage."""


class TokenExchangeFailed(SpotifyError):
    """The authorization_code grant failed; the login attempt is over."""


class UpstreamError(SpotifyError):
    """
    A proxied Web API call failed.

    status_code / body are None when Spotify never answered (network error)
    or answered without a JSON body.
    """

    def __init__(self, status_code: Optional[int] = None, body: Any = None, message: str = ""):
        super().__init__(message or f"Spotify API error (status={status_code})")
        self.status_code = status_code
        self.body = body


class BadRequest(SpotifyError):
    def __init__(self, error: str):
        super().__init__(error)
        self.error = error
