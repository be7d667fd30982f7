"""
Request validation pipeline shared by the verification and inspection endpoints.

An ordered chain of steps; each step either returns a Rejection (the
chain stops and the rejection becomes the response) or None to pass the
request on. Steps fill in the request as they go (tenant id, tenant
config, upstream URL), so later steps can rely on earlier ones.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional

from src.gateway import errors
from src.gateway.errors import Rejection
from src.gateway.origin_guard import OriginGuard
from src.intake.validation import FormValidationError, validate_inspection_fields
from src.tenancy.models import TenantConfig
from src.tenancy.resolver import TenantResolver, sanitize_tenant_id

logger = logging.getLogger(__name__)

FLOW_VERIFY = "verify"
FLOW_INSPECTION = "inspection"


@dataclass
class IntakeRequest:
    flow: str
    body: Dict[str, Any]
    origin: Optional[str] = None
    raw_body: Optional[bytes] = None
    tenant_id: str = ""
    tenant: Optional[TenantConfig] = None
    upstream_url: Optional[str] = None

    @property
    def idempotency_key(self) -> Optional[str]:
        value = self.body.get("idempotencyKey")
        return str(value) if value else None


Step = Callable[[IntakeRequest], Awaitable[Optional[Rejection]]]


def select_upstream_url(tenant: TenantConfig, flow: str) -> Optional[str]:
    """Verification uses verifyHttpFlow; inspection prefers inspectionRequestFlow."""
    endpoints = tenant.endpoints
    if flow == FLOW_INSPECTION:
        url = endpoints.inspection_request_flow or endpoints.verify_http_flow
    else:
        url = endpoints.verify_http_flow
    url = (url or "").strip()
    return url or None


class IntakePipeline:
    def __init__(
        self,
        resolver: TenantResolver,
        origin_guard: Optional[OriginGuard] = None,
        building_service_ids: Iterable[str] = ("building", "prepurchase"),
    ) -> None:
        self.resolver = resolver
        self.origin_guard = origin_guard or OriginGuard()
        self.building_service_ids = tuple(building_service_ids)

    def steps_for(self, flow: str) -> List[Step]:
        steps: List[Step] = [
            self.require_tenant,
            self.load_tenant,
            self.check_origin,
            self.require_idempotency_key,
            self.select_upstream,
        ]
        if flow == FLOW_INSPECTION:
            steps.append(self.validate_inspection_payload)
        return steps

    async def run(self, request: IntakeRequest) -> Optional[Rejection]:
        for step in self.steps_for(request.flow):
            rejection = await step(request)
            if rejection is not None:
                logger.info(
                    "Rejected %s request for tenant %r at %s: %s",
                    request.flow,
                    request.tenant_id,
                    step.__name__,
                    rejection.message,
                )
                return rejection
        return None

    # --- steps -----------------------------------------------------------------

    async def require_tenant(self, request: IntakeRequest) -> Optional[Rejection]:
        request.tenant_id = sanitize_tenant_id(request.body.get("tenant"))
        logger.info("Tenant: %s", request.tenant_id)
        if not request.tenant_id:
            return errors.missing_tenant()
        return None

    async def load_tenant(self, request: IntakeRequest) -> Optional[Rejection]:
        request.tenant = await self.resolver.resolve(request.tenant_id, origin=request.origin)
        if request.tenant is None:
            return errors.tenant_not_found()
        return None

    async def check_origin(self, request: IntakeRequest) -> Optional[Rejection]:
        if not self.origin_guard.is_allowed(request.tenant, request.origin):
            return errors.origin_not_allowed()
        return None

    async def require_idempotency_key(self, request: IntakeRequest) -> Optional[Rejection]:
        if not request.idempotency_key:
            return errors.missing_idempotency_key()
        return None

    async def select_upstream(self, request: IntakeRequest) -> Optional[Rejection]:
        request.upstream_url = select_upstream_url(request.tenant, request.flow)
        if not request.upstream_url:
            logger.error("Tenant %s has no upstream URL for %s", request.tenant_id, request.flow)
            return errors.tenant_misconfigured()
        return None

    async def validate_inspection_payload(self, request: IntakeRequest) -> Optional[Rejection]:
        try:
            validate_inspection_fields(
                request.body,
                allowed_service_ids=request.tenant.service_ids(),
                building_service_ids=self.building_service_ids,
            )
        except FormValidationError as e:
            return errors.invalid_payload(e.field_errors, e.message)
        return None
