# app/services/user_auth.py
from fastapi import Request, Response

from app.models.token_model import SessionCredential
from app.services.session_cookies import clear_credential, read_credential, write_credential
from app.services.spotify_token_service import ensure_valid_token, logout


class SpotifySession:
    """
    The credential of the browser making the current request.

    Handlers ask for a token through access_token(); if that refreshed the
    credential, commit() writes the new cookies onto whatever response the
    handler ends up returning.
    """

    def __init__(self, credential: SessionCredential):
        self.original = credential
        self.credential = credential

    def access_token(self) -> str:
        token, self.credential = ensure_valid_token(self.credential)
        return token

    @property
    def changed(self) -> bool:
        return self.credential != self.original

    def commit(self, response: Response) -> Response:
        if self.changed:
            write_credential(response, self.credential, previous=self.original)
        return response

    def end(self, response: Response) -> Response:
        self.credential = logout()
        return clear_credential(response)


def get_current_session(request: Request) -> SpotifySession:
    """從 cookie 讀出 access_token / refresh_token / expires_at"""
    return SpotifySession(read_credential(request.cookies))
