"""
Upstream Flow HTTP Client.

Relays a validated intake request to the tenant's workflow endpoint
(verification or inspection flow) and hands the upstream status and body
back untouched. Non-success statuses are not errors here: they are passed
through to the caller verbatim. Only transport failures raise.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from src.gateway.errors import UpstreamUnavailableError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UpstreamReply:
    status_code: int
    text: str


class FlowForwarder:
    def __init__(
        self,
        timeout_seconds: float = 20.0,
        forward_idempotency_header: bool = True,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.timeout_seconds = timeout_seconds
        self.forward_idempotency_header = forward_idempotency_header
        self.transport = transport

    async def forward(
        self,
        url: str,
        body: Dict[str, Any],
        raw_body: Optional[bytes] = None,
        idempotency_key: Optional[str] = None,
    ) -> UpstreamReply:
        headers: Dict[str, str] = {"Content-Type": "application/json"}
        key = str(idempotency_key) if idempotency_key else ""
        # Header values must be ASCII; other keys still travel in the body
        if key and self.forward_idempotency_header and key.isascii():
            headers["Idempotency-Key"] = key

        content = raw_body if raw_body else json.dumps(body).encode("utf-8")
        try:
            logger.info("Forwarding request to upstream flow %s", url)
            async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self.transport) as client:
                response = await client.post(url, content=content, headers=headers)
        except (httpx.RequestError, httpx.InvalidURL) as e:
            logger.error("Request error connecting to upstream flow %s: %s", url, e)
            raise UpstreamUnavailableError(str(e)) from e

        logger.info("Upstream flow responded: status=%s", response.status_code)
        return UpstreamReply(status_code=response.status_code, text=response.text)
