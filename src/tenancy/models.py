"""
Tenant configuration contracts.

One JSON file per tenant (tenants/<id>.json) with keys:
- policy.allowedOrigins[]     origins allowed to call the proxy
- endpoints.verifyHttpFlow    upstream verification workflow
- endpoints.inspectionRequestFlow  upstream inspection workflow
- text{}, cssVars{}, assets{logo,favicon}, services[{id,label}]

Loaded read-only per request and never mutated.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="allow")


class TenantPolicy(_Frozen):
    # Localized policy links (privacy, terms) sit beside the allow-list as extra keys
    allowed_origins: List[str] = Field(default_factory=list, alias="allowedOrigins")

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def _null_origins(cls, v: Any) -> Any:
        return [] if v is None else v


class TenantEndpoints(_Frozen):
    verify_http_flow: Optional[str] = Field(default=None, alias="verifyHttpFlow")
    inspection_request_flow: Optional[str] = Field(default=None, alias="inspectionRequestFlow")


class TenantAssets(_Frozen):
    logo: Optional[str] = None
    favicon: Optional[str] = None


class ServiceOption(_Frozen):
    id: str
    label: str = ""


class TenantConfig(_Frozen):
    id: str = ""
    policy: TenantPolicy = Field(default_factory=TenantPolicy)
    endpoints: TenantEndpoints = Field(default_factory=TenantEndpoints)
    text: Dict[str, Any] = Field(default_factory=dict)
    css_vars: Dict[str, Any] = Field(default_factory=dict, alias="cssVars")
    assets: TenantAssets = Field(default_factory=TenantAssets)
    services: List[ServiceOption] = Field(default_factory=list)

    # JSON null on an optional section means the same as leaving it out
    @field_validator("policy", "endpoints", "text", "css_vars", "assets", mode="before")
    @classmethod
    def _null_section(cls, v: Any) -> Any:
        return {} if v is None else v

    @field_validator("services", mode="before")
    @classmethod
    def _null_services(cls, v: Any) -> Any:
        return [] if v is None else v

    @property
    def allowed_origins(self) -> List[str]:
        return list(self.policy.allowed_origins or [])

    def service_ids(self) -> List[str]:
        return [s.id for s in self.services]
