"""
APIRouter for the intake proxy.

Endpoints:
- POST|OPTIONS /inspection   forward an inspection request to the tenant's flow
- POST|OPTIONS /verify       forward a verification request to the tenant's flow
- GET          /tenants/{tenant}.json   tenant configuration as a static asset

Both POST endpoints run the shared IntakePipeline (tenant, origin,
idempotency key, upstream URL, and for inspections the request fields)
before a single outbound call to the upstream flow.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response

from src.api.responses import message_response, preflight_response, raw_response
from src.error_handler import ErrorHandler
from src.gateway import errors
from src.gateway.errors import UpstreamUnavailableError
from src.gateway.pipeline import FLOW_INSPECTION, FLOW_VERIFY, IntakePipeline, IntakeRequest
from src.integrations.clients.real_http.flow_forwarder import FlowForwarder
from src.tenancy.resolver import FileTenantSource, sanitize_tenant_id

logger = logging.getLogger(__name__)

router = APIRouter()


def get_pipeline(request: Request) -> IntakePipeline:
    return request.app.state.pipeline


def get_forwarder(request: Request) -> FlowForwarder:
    return request.app.state.forwarder


def get_tenant_files(request: Request) -> FileTenantSource:
    return request.app.state.tenant_files


def get_error_handler(request: Request) -> ErrorHandler:
    return request.app.state.error_handler


def _parse_body(raw: bytes) -> Dict[str, Any]:
    # Anything but a JSON object is treated as an empty body
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


async def handle_intake(
    flow: str,
    request: Request,
    pipeline: IntakePipeline,
    forwarder: FlowForwarder,
    error_handler: ErrorHandler,
) -> Response:
    origin = request.headers.get("origin")
    if request.method == "OPTIONS":
        return preflight_response(origin).to_starlette()

    try:
        raw = await request.body()
        intake = IntakeRequest(flow=flow, body=_parse_body(raw), origin=origin, raw_body=raw or None)

        rejection = await pipeline.run(intake)
        if rejection is not None:
            return message_response(
                rejection.status_code,
                rejection.message,
                origin,
                field_errors=rejection.field_errors,
            ).to_starlette()

        try:
            reply = await forwarder.forward(
                intake.upstream_url,
                intake.body,
                raw_body=intake.raw_body,
                idempotency_key=intake.idempotency_key,
            )
        except UpstreamUnavailableError:
            failed = errors.upstream_failed()
            return message_response(failed.status_code, failed.message, origin).to_starlette()

        return raw_response(reply.status_code, reply.text, origin).to_starlette()
    except Exception as e:
        return error_handler.handle_exception(e, context={"flow": flow}, origin=origin).to_starlette()


@router.api_route("/inspection", methods=["POST", "OPTIONS"], tags=["Intake"])
async def inspection(
    request: Request,
    pipeline: IntakePipeline = Depends(get_pipeline),
    forwarder: FlowForwarder = Depends(get_forwarder),
    error_handler: ErrorHandler = Depends(get_error_handler),
):
    """Submit an inspection request to the tenant's inspection flow."""
    return await handle_intake(FLOW_INSPECTION, request, pipeline, forwarder, error_handler)


@router.api_route("/verify", methods=["POST", "OPTIONS"], tags=["Intake"])
async def verify(
    request: Request,
    pipeline: IntakePipeline = Depends(get_pipeline),
    forwarder: FlowForwarder = Depends(get_forwarder),
    error_handler: ErrorHandler = Depends(get_error_handler),
):
    """Confirm a previously submitted request through the tenant's verification flow."""
    return await handle_intake(FLOW_VERIFY, request, pipeline, forwarder, error_handler)


@router.get("/tenants/{tenant_id}.json", tags=["Tenants"])
async def tenant_config(tenant_id: str, tenant_files: FileTenantSource = Depends(get_tenant_files)):
    """Serve a tenant's configuration file for the form controller."""
    sanitized = sanitize_tenant_id(tenant_id)
    data = await tenant_files.load(sanitized) if sanitized else None
    if not isinstance(data, dict):
        return JSONResponse(status_code=404, content={"message": "Tenant not found"})
    return JSONResponse(content=data, headers={"Cache-Control": "no-cache"})
