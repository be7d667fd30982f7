"""
FastAPI application - Main entry point
"""

from dotenv import load_dotenv

load_dotenv()

import logging
from typing import Optional

from fastapi import FastAPI

from src.api.intake_router import router as intake_router
from src.error_handler import ErrorHandler
from src.gateway.origin_guard import OriginGuard
from src.gateway.pipeline import IntakePipeline
from src.integrations.clients.real_http.flow_forwarder import FlowForwarder
from src.tenancy.resolver import FileTenantSource, TenantResolver, build_tenant_resolver
from src.utils.config_loader import IntakeConfig, load_intake_config

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

SERVICE_NAME = "Inspection Intake Proxy"
SERVICE_VERSION = "1.0.0"


def create_app(
    config: Optional[IntakeConfig] = None,
    resolver: Optional[TenantResolver] = None,
    forwarder: Optional[FlowForwarder] = None,
) -> FastAPI:
    """
    Build the intake app.

    The tenant resolver and upstream forwarder are chosen here and only
    here; tests pass their own (e.g. backed by httpx.MockTransport).
    """
    cfg = config or load_intake_config()

    app = FastAPI(
        title=f"{SERVICE_NAME} API",
        description="Tenant-aware proxy forwarding inspection and verification requests to workflow endpoints",
        version=SERVICE_VERSION,
    )

    app.state.config = cfg
    app.state.resolver = resolver or build_tenant_resolver(cfg)
    app.state.pipeline = IntakePipeline(
        app.state.resolver,
        origin_guard=OriginGuard(strip_trailing_slash=cfg.origins.strip_trailing_slash),
        building_service_ids=cfg.controller.building_service_ids,
    )
    app.state.forwarder = forwarder or FlowForwarder(
        timeout_seconds=cfg.upstream.timeout_seconds,
        forward_idempotency_header=cfg.upstream.forward_idempotency_header,
    )
    app.state.tenant_files = FileTenantSource(cfg.tenants.resolved_directory())
    app.state.error_handler = ErrorHandler()

    # Same handlers at the root and under /api (the form controller calls api/<flow>)
    app.include_router(intake_router)
    app.include_router(intake_router, prefix="/api")

    @app.get("/health")
    def health():
        """API health check"""
        return {
            "status": "healthy",
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "tenant_source": cfg.tenants.source,
        }

    logger.info("Intake proxy ready (tenant source=%s)", cfg.tenants.source)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
