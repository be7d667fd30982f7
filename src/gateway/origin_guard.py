"""Origin allow-list check against the tenant policy."""

from __future__ import annotations

import logging
from typing import Optional

from src.tenancy.models import TenantConfig

logger = logging.getLogger(__name__)


def normalize_origin(origin: Optional[str], strip_trailing_slash: bool = True) -> str:
    if not origin:
        return ""
    value = origin.strip().lower()
    if strip_trailing_slash and value.endswith("/"):
        value = value[:-1]
    return value


class OriginGuard:
    def __init__(self, strip_trailing_slash: bool = True) -> None:
        self.strip_trailing_slash = strip_trailing_slash

    def is_allowed(self, tenant: TenantConfig, origin: Optional[str]) -> bool:
        allowed = tenant.allowed_origins
        # No allow-list means every origin passes
        if not allowed:
            return True
        normalized = {normalize_origin(o, self.strip_trailing_slash) for o in allowed}
        ok = normalize_origin(origin, self.strip_trailing_slash) in normalized
        if not ok:
            logger.info("Origin %r rejected for tenant %s", origin, tenant.id)
        return ok
