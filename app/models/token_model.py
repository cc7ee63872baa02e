# app/models/token_model.py
from pydantic import BaseModel


class SessionCredential(BaseModel):
    """
    One browser session's Spotify credential.

    expires_at is epoch milliseconds for the current access_token; 0 means unset.
    """
    access_token: str | None = None
    refresh_token: str | None = None
    expires_at: int = 0

    @classmethod
    def empty(cls) -> "SessionCredential":
        return cls()

    def is_expired(self, now_ms: int, margin_ms: int) -> bool:
        if not self.access_token or not self.expires_at:
            return True
        return self.expires_at <= now_ms + margin_ms

    @property
    def is_empty(self) -> bool:
        return not (self.access_token or self.refresh_token or self.expires_at)


class TokenResponse(BaseModel):
    """Body of a successful call to the Spotify token endpoint."""
    access_token: str
    expires_in: int
    token_type: str = "Bearer"
    refresh_token: str | None = None
    scope: str | None = None
