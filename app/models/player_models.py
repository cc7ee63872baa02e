# app/models/player_models.py
from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class TransferRequest(BaseModel):
    device_id: str


class PlayRequest(BaseModel):
    uris: Optional[List[str]] = None
    context_uri: Optional[str] = None
    offset: Optional[Dict[str, Any]] = None

    def to_upstream(self) -> Dict[str, Any]:
        """Only the fields the caller actually filled in are forwarded."""
        body = {}
        if self.uris:
            body["uris"] = self.uris
        if self.context_uri:
            body["context_uri"] = self.context_uri
        if self.offset:
            body["offset"] = self.offset
        return body
