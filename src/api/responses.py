"""
Response envelope for the intake endpoints.

Every response, success or error, carries the same CORS headers. Message
strings are JSON-encoded as {"message": ...}; upstream bodies are relayed
as-is.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from fastapi.responses import Response


def cors_headers(origin: Optional[str]) -> Dict[str, str]:
    return {
        "Access-Control-Allow-Origin": origin or "*",
        "Access-Control-Allow-Methods": "POST, OPTIONS",
        "Access-Control-Allow-Headers": "Content-Type",
        "Content-Type": "application/json",
    }


@dataclass
class ResponseEnvelope:
    status: int
    body: str
    headers: Dict[str, str] = field(default_factory=dict)

    def to_starlette(self) -> Response:
        # Content-Type travels in headers so upstream bodies are not re-rendered
        return Response(content=self.body, status_code=self.status, headers=self.headers)


def message_response(status: int, message: str, origin: Optional[str], **extra: Any) -> ResponseEnvelope:
    payload: Dict[str, Any] = {"message": message}
    payload.update({k: v for k, v in extra.items() if v is not None})
    return ResponseEnvelope(status=status, body=json.dumps(payload), headers=cors_headers(origin))


def raw_response(status: int, body: str, origin: Optional[str]) -> ResponseEnvelope:
    return ResponseEnvelope(status=status, body=body or "", headers=cors_headers(origin))


def preflight_response(origin: Optional[str]) -> ResponseEnvelope:
    return ResponseEnvelope(status=200, body="", headers=cors_headers(origin))
