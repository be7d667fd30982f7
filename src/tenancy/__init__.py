"""
Tenancy package.

Each tenant is a customer organization with its own branding, allowed
origins and upstream workflow URLs, described by tenants/<id>.json.
"""

from .models import ServiceOption, TenantAssets, TenantConfig, TenantEndpoints, TenantPolicy
from .resolver import (
    FileTenantSource,
    HttpTenantSource,
    TenantResolver,
    build_tenant_resolver,
    sanitize_tenant_id,
)

__all__ = [
    "ServiceOption", "TenantAssets", "TenantConfig", "TenantEndpoints", "TenantPolicy",
    "FileTenantSource", "HttpTenantSource", "TenantResolver",
    "build_tenant_resolver", "sanitize_tenant_id",
]
