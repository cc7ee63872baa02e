# app/services/web_player_client.py
from typing import Any, Dict, List, Optional

import requests

from app.services.errors import Unauthenticated, UpstreamError


class WebPlayerClient:
    """
    Talks to this backend's /token and /api/* endpoints on behalf of the player.

    The requests.Session keeps the access_token / refresh_token / expires_at
    cookies, so refreshed credentials written by the proxy are picked up on
    the next call.
    """

    def __init__(self, base_url: str = "http://localhost:3000", session: Optional[requests.Session] = None, timeout=None):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def _call(self, method: str, path: str, params=None, json_body=None) -> Any:
        try:
            r = self.session.request(
                method,
                f"{self.base_url}{path}",
                params=params,
                json=json_body,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise UpstreamError(message=str(e)) from e

        try:
            body = r.json() if r.content else None
        except ValueError:
            body = None

        if r.status_code == 401:
            raise Unauthenticated("please login")
        if not r.ok:
            raise UpstreamError(r.status_code, body)
        return body

    # --------- Auth ---------
    def get_token(self) -> Optional[str]:
        """None when the browser session has no usable credential."""
        try:
            return self._call("GET", "/token")["access_token"]
        except Unauthenticated:
            return None

    # --------- Library ---------
    def me(self) -> Dict:
        return self._call("GET", "/api/me")

    def playlists(self) -> Dict:
        return self._call("GET", "/api/playlists")

    def playlist(self, playlist_id: str) -> Dict:
        return self._call("GET", f"/api/playlist/{playlist_id}")

    def saved_albums(self) -> Dict:
        return self._call("GET", "/api/library/albums")

    def search(self, q: str, type_: str = "track") -> Dict:
        return self._call("GET", "/api/search", params={"q": q, "type": type_})

    # --------- Playback ---------
    def transfer(self, device_id: str) -> None:
        self._call("POST", "/api/transfer", json_body={"device_id": device_id})

    def play(
        self,
        uris: Optional[List[str]] = None,
        context_uri: Optional[str] = None,
        offset: Optional[Dict] = None,
        device_id: Optional[str] = None,
    ) -> None:
        body = {k: v for k, v in {"uris": uris, "context_uri": context_uri, "offset": offset}.items() if v}
        params = {"device_id": device_id} if device_id else None
        self._call("PUT", "/api/play", params=params, json_body=body or None)

    def pause(self, device_id: Optional[str] = None) -> None:
        self._call("PUT", "/api/pause", params={"device_id": device_id} if device_id else None)

    def next(self, device_id: Optional[str] = None) -> None:
        self._call("POST", "/api/next", params={"device_id": device_id} if device_id else None)

    def previous(self, device_id: Optional[str] = None) -> None:
        self._call("POST", "/api/previous", params={"device_id": device_id} if device_id else None)
