"""Pytest fixtures for the intake proxy and form controller tests."""

import json
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest
from fastapi.testclient import TestClient

from src.api.main import create_app
from src.integrations.clients.real_http.flow_forwarder import FlowForwarder
from src.utils.config_loader import IntakeConfig, TenantSourceConfig

ALLOWED_ORIGIN = "https://intake.acme.example"
INSPECTION_FLOW = "https://flows.acme.example/inspection"
VERIFY_FLOW = "https://flows.acme.example/verify"


def tenant_doc(**overrides: Any) -> Dict[str, Any]:
    doc: Dict[str, Any] = {
        "policy": {"allowedOrigins": [ALLOWED_ORIGIN]},
        "endpoints": {"verifyHttpFlow": VERIFY_FLOW, "inspectionRequestFlow": INSPECTION_FLOW},
        "text": {"title": {"en": "Book an inspection"}},
        "cssVars": {"brand": "#123456"},
        "assets": {"logo": "/assets/acme/logo.svg", "favicon": "/assets/acme/favicon.ico"},
        "services": [
            {"id": "building", "label": "Building"},
            {"id": "pest", "label": "Pest"},
            {"id": "prepurchase", "label": "Pre-purchase"},
        ],
    }
    doc.update(overrides)
    return doc


def inspection_body(**overrides: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {
        "tenant": "acme",
        "lang": "en",
        "source": "inspection-form",
        "idempotencyKey": "5f0c6a43-8f4e-4b0c-9a59-2a7d0d3c1e11",
        "firstName": "Jane",
        "lastName": "Citizen",
        "email": "jane@example.com",
        "phone": "+61412345678",
        "address1": "1 Example St",
        "suburb": "Carlton",
        "state": "VIC",
        "postcode": "3053",
        "country": "AU",
        "service": [{"code": "pest", "quantity": 1}],
        "preferences": [{"date": "2026-11-02", "time": "09:30", "localDateTime": "2026-11-02T09:30"}],
    }
    body.update(overrides)
    return body


class UpstreamRecorder:
    """httpx handler standing in for a tenant's workflow endpoint."""

    def __init__(self, status_code: int = 200, text: str = '{"status":"accepted"}', error: Optional[Exception] = None) -> None:
        self.status_code = status_code
        self.text = text
        self.error = error
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, text=self.text)

    @property
    def called(self) -> bool:
        return bool(self.requests)

    def last_json(self) -> Dict[str, Any]:
        return json.loads(self.requests[-1].content)


@pytest.fixture
def tenants_dir(tmp_path):
    directory = tmp_path / "tenants"
    directory.mkdir()
    return directory


@pytest.fixture
def write_tenant(tenants_dir) -> Callable[..., None]:
    def _write(tenant_id: str, doc: Any) -> None:
        path = tenants_dir / f"{tenant_id}.json"
        if isinstance(doc, str):
            path.write_text(doc, encoding="utf-8")
        else:
            path.write_text(json.dumps(doc), encoding="utf-8")

    return _write


@pytest.fixture
def intake_config(tenants_dir) -> IntakeConfig:
    return IntakeConfig(tenants=TenantSourceConfig(source="filesystem", directory=str(tenants_dir)))


@pytest.fixture
def upstream() -> UpstreamRecorder:
    return UpstreamRecorder()


@pytest.fixture
def app(intake_config, upstream):
    forwarder = FlowForwarder(transport=httpx.MockTransport(upstream))
    return create_app(config=intake_config, forwarder=forwarder)


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)
