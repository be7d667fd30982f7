"""Rejections produced by the intake request pipeline.

Taxonomy:
- 400 client errors (missing tenant / idempotency key, invalid fields), user-correctable
- 403 origin not allowed
- 404 tenant not found
- 500 tenant misconfigured (no upstream URL), operator-fixable only
- 502 upstream transport failure
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional


@dataclass
class Rejection(Exception):
    status_code: int
    message: str
    field_errors: Optional[Dict[str, str]] = field(default=None)

    def __str__(self) -> str:
        return f"{self.status_code} {self.message}"


class UpstreamUnavailableError(Exception):
    """Network failure while calling the tenant's upstream flow."""


def missing_tenant() -> Rejection:
    return Rejection(400, "Missing tenant")


def tenant_not_found() -> Rejection:
    return Rejection(404, "Tenant not found")


def origin_not_allowed() -> Rejection:
    return Rejection(403, "Origin not allowed")


def missing_idempotency_key() -> Rejection:
    return Rejection(400, "Missing idempotencyKey")


def tenant_misconfigured() -> Rejection:
    return Rejection(500, "Tenant misconfigured")


def invalid_payload(field_errors: Dict[str, str], message: str = "Please correct the highlighted fields") -> Rejection:
    return Rejection(400, message, field_errors=field_errors)


def upstream_failed() -> Rejection:
    return Rejection(502, "Upstream service failed")
