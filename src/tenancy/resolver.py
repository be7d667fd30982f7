"""
Tenant resolution.

The raw tenant string from the request body is sanitized to [a-z0-9-] and
used as the key of a JSON file, read either from the local filesystem or
fetched over HTTP as a static asset depending on deployment.

Resolution fails closed: unreadable, unparsable or unreachable
configuration all mean "no such tenant". Callers must not read more into
a None result than "unavailable".
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from src.tenancy.models import TenantConfig
from src.utils.config_loader import IntakeConfig

logger = logging.getLogger(__name__)

_INVALID_TENANT_CHARS = re.compile(r"[^a-z0-9-]")


def sanitize_tenant_id(raw: Any) -> str:
    """Lowercase and strip everything outside [a-z0-9-]. May return ""."""
    s = "" if raw is None else str(raw)
    return _INVALID_TENANT_CHARS.sub("", s.lower())


class FileTenantSource:
    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    async def load(self, tenant_id: str, origin: Optional[str] = None) -> Optional[Dict[str, Any]]:
        file_path = self.directory / f"{tenant_id}.json"
        logger.info("Loading tenant config from %s", file_path)
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Tenant load error for %s: %s", file_path, e)
            return None


class HttpTenantSource:
    """Fetches <base>/tenants/<id>.json; base defaults to the caller's origin."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout_seconds: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = (base_url or "").rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.transport = transport

    def url_for(self, tenant_id: str, origin: Optional[str] = None) -> Optional[str]:
        base = self.base_url or (origin or "").rstrip("/")
        if not base:
            return None
        return f"{base}/tenants/{tenant_id}.json"

    async def load(self, tenant_id: str, origin: Optional[str] = None) -> Optional[Dict[str, Any]]:
        url = self.url_for(tenant_id, origin)
        if not url:
            logger.warning("No base URL or origin to fetch tenant %s from", tenant_id)
            return None
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self.transport) as client:
                response = await client.get(url)
            if not response.is_success:
                logger.warning("Tenant HTTP fetch failed: %s %s", url, response.status_code)
                return None
            return response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Tenant fetch error for %s: %s", url, e)
            return None


class TenantResolver:
    def __init__(self, source) -> None:
        self.source = source

    async def resolve(self, tenant_id: str, origin: Optional[str] = None) -> Optional[TenantConfig]:
        if not tenant_id:
            return None
        data = await self.source.load(tenant_id, origin)
        if not isinstance(data, dict):
            if data is not None:
                logger.warning("Tenant config for %s is not a JSON object", tenant_id)
            return None
        try:
            return TenantConfig(**{"id": tenant_id, **data})
        except ValidationError as e:
            logger.warning("Tenant config for %s failed validation: %s", tenant_id, e)
            return None


def build_tenant_resolver(cfg: IntakeConfig, transport: Optional[httpx.AsyncBaseTransport] = None) -> TenantResolver:
    tenants = cfg.tenants
    if tenants.source == "http":
        if not tenants.base_url:
            logger.warning(
                "tenants.base_url is empty: tenant files will be fetched from the caller Origin. "
                "Set TENANT_BASE_URL in production."
            )
        source = HttpTenantSource(
            base_url=tenants.base_url,
            timeout_seconds=tenants.fetch_timeout_seconds,
            transport=transport,
        )
    else:
        source = FileTenantSource(tenants.resolved_directory())
    return TenantResolver(source)
