# app/services/spotify_api.py
import logging
from typing import Any, Dict, Optional

import requests

from app.config import settings
from app.services.errors import BadRequest, UpstreamError

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 20
LIST_LIMIT = 50


def _json_or_none(r: requests.Response) -> Any:
    # 204 / 空 body / 非 JSON（proxy 錯誤頁之類）都當作沒有 body
    if r.status_code == 204 or not r.content:
        return None
    if "json" not in r.headers.get("content-type", ""):
        return None
    try:
        return r.json()
    except ValueError:
        return None


def spotify_request(
    method: str,
    path: str,
    access_token: str,
    params: Optional[Dict[str, Any]] = None,
    json_body: Optional[Dict[str, Any]] = None,
) -> Any:
    """
    Issue exactly one request to the Spotify Web API and return its JSON body
    (None when there is none). Anything that is not a success raises
    UpstreamError carrying Spotify's status and JSON body when it sent them.
    """
    url = f"{settings.SPOTIFY_API_BASE}/{path}"
    headers = {"Authorization": f"Bearer {access_token}"}

    try:
        r = requests.request(
            method,
            url,
            headers=headers,
            params=params,
            json=json_body,
            timeout=settings.SPOTIFY_HTTP_TIMEOUT,
        )
    except requests.RequestException as e:
        logger.info("Spotify %s %s failed: %s", method, path, e)
        raise UpstreamError(message=str(e)) from e

    if not r.ok:
        logger.info("Spotify %s %s returned %s", method, path, r.status_code)
        raise UpstreamError(r.status_code, _json_or_none(r))

    return _json_or_none(r)


def search_params(q: Optional[str], type_: Optional[str] = None) -> Dict[str, Any]:
    if not q:
        raise BadRequest("missing_query")
    return {"q": q, "type": type_ or "track", "limit": SEARCH_LIMIT}


def device_params(device_id: Optional[str]) -> Optional[Dict[str, str]]:
    return {"device_id": device_id} if device_id else None
