import logging

import httpx
import pytest
from pydantic import ValidationError

from conftest import ALLOWED_ORIGIN, INSPECTION_FLOW, tenant_doc
from src.tenancy.resolver import (
    FileTenantSource,
    HttpTenantSource,
    TenantResolver,
    build_tenant_resolver,
    sanitize_tenant_id,
)
from src.utils.config_loader import IntakeConfig, TenantSourceConfig


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("extoz", "extoz"),
        ("ExToz", "extoz"),
        ("free-mano_2", "free-mano2"),
        ("../../etc/passwd", "etcpasswd"),
        (" ulysses ", "ulysses"),
        ("!!!", ""),
        ("", ""),
        (None, ""),
        (42, "42"),
    ],
)
def test_sanitize_tenant_id(raw, expected):
    assert sanitize_tenant_id(raw) == expected


@pytest.mark.asyncio
async def test_file_source_resolves_tenant(tenants_dir, write_tenant):
    write_tenant("acme", tenant_doc())
    resolver = TenantResolver(FileTenantSource(tenants_dir))

    tenant = await resolver.resolve("acme")

    assert tenant is not None
    assert tenant.id == "acme"
    assert tenant.allowed_origins == [ALLOWED_ORIGIN]
    assert tenant.endpoints.inspection_request_flow == INSPECTION_FLOW
    assert tenant.service_ids() == ["building", "pest", "prepurchase"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "content",
    [
        "{ broken json",
        "[1, 2, 3]",
        '{"services": "not-a-list"}',
    ],
)
async def test_file_source_fails_closed(tenants_dir, write_tenant, content):
    write_tenant("acme", content)
    resolver = TenantResolver(FileTenantSource(tenants_dir))

    assert await resolver.resolve("acme") is None


@pytest.mark.asyncio
async def test_missing_file_and_empty_id_resolve_to_none(tenants_dir):
    resolver = TenantResolver(FileTenantSource(tenants_dir))

    assert await resolver.resolve("ghost") is None
    assert await resolver.resolve("") is None


@pytest.mark.asyncio
async def test_tenant_config_is_read_only(tenants_dir, write_tenant):
    write_tenant("acme", tenant_doc())
    tenant = await TenantResolver(FileTenantSource(tenants_dir)).resolve("acme")

    with pytest.raises(ValidationError):
        tenant.id = "other"


@pytest.mark.asyncio
async def test_http_source_fetches_from_caller_origin():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return httpx.Response(200, json=tenant_doc())

    source = HttpTenantSource(transport=httpx.MockTransport(handler))
    tenant = await TenantResolver(source).resolve("acme", origin="https://intake.acme.example/")

    assert tenant is not None
    assert seen == ["https://intake.acme.example/tenants/acme.json"]


@pytest.mark.asyncio
async def test_http_source_prefers_configured_base_url():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return httpx.Response(200, json=tenant_doc())

    source = HttpTenantSource(base_url="https://static.example/app/", transport=httpx.MockTransport(handler))
    await TenantResolver(source).resolve("acme", origin="https://intake.acme.example")

    assert seen == ["https://static.example/app/tenants/acme.json"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(404, text="not found"),
        httpx.Response(500, text="boom"),
        httpx.Response(200, text="<html>not json</html>"),
    ],
)
async def test_http_source_fails_closed_on_bad_responses(response):
    source = HttpTenantSource(base_url="https://static.example", transport=httpx.MockTransport(lambda r: response))

    assert await TenantResolver(source).resolve("acme") is None


@pytest.mark.asyncio
async def test_http_source_fails_closed_on_network_error():
    def handler(request):
        raise httpx.ConnectError("unreachable")

    source = HttpTenantSource(base_url="https://static.example", transport=httpx.MockTransport(handler))

    assert await TenantResolver(source).resolve("acme") is None


@pytest.mark.asyncio
async def test_http_source_without_base_or_origin_resolves_to_none():
    assert await TenantResolver(HttpTenantSource()).resolve("acme") is None


def test_build_tenant_resolver_selects_source(tenants_dir):
    file_cfg = IntakeConfig(tenants=TenantSourceConfig(source="filesystem", directory=str(tenants_dir)))
    http_cfg = IntakeConfig(tenants=TenantSourceConfig(source="http", base_url="https://static.example"))

    assert isinstance(build_tenant_resolver(file_cfg).source, FileTenantSource)
    http_source = build_tenant_resolver(http_cfg).source
    assert isinstance(http_source, HttpTenantSource)
    assert http_source.base_url == "https://static.example"


@pytest.mark.asyncio
async def test_null_sections_fall_back_to_defaults(tenants_dir, write_tenant):
    write_tenant(
        "acme",
        {"policy": None, "endpoints": None, "text": None, "cssVars": None, "assets": None, "services": None},
    )

    tenant = await TenantResolver(FileTenantSource(tenants_dir)).resolve("acme")

    assert tenant is not None
    assert tenant.allowed_origins == []
    assert tenant.endpoints.verify_http_flow is None
    assert tenant.css_vars == {}
    assert tenant.service_ids() == []


def test_http_source_without_base_url_warns(caplog):
    cfg = IntakeConfig(tenants=TenantSourceConfig(source="http"))

    with caplog.at_level(logging.WARNING, logger="src.tenancy.resolver"):
        build_tenant_resolver(cfg)

    assert "TENANT_BASE_URL" in caplog.text
