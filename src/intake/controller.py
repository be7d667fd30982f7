"""
Form controller for the inspection intake pages.

Python counterpart of the browser controller: it resolves the tenant from
the page query, loads the tenant configuration (falling back to the
default tenant's), and drives the two entry pages:

- inspection page: build, validate and submit an InspectionRequest,
  with draft save/restore and a honeypot guard
- verification page: confirm a request identified by an idempotency key

Configuration (base path, default tenant, allowed tenants, country code)
is passed in explicitly at construction time. At most one network call
is in flight per controller; a second action while busy is refused.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set
from urllib.parse import parse_qs, urlparse
from uuid import uuid4

import httpx
from pydantic import ValidationError

from src.database.draft_store import SessionDraftStore
from src.intake.normalization import normalize_phone, theme_variables, to_preference, with_base
from src.intake.validation import FormValidationError, validate_inspection_fields
from src.tenancy.models import TenantAssets, TenantConfig
from src.utils.config_loader import ControllerConfig

logger = logging.getLogger(__name__)

PAGE_VERIFY = "verify"
PAGE_INSPECTION = "inspection"

LOAD_SUCCESS = "success"
LOAD_FALLBACK = "fallback"
LOAD_FAILURE = "failure"

HONEYPOT_FIELD = "website"

MSG_THANKS = "Thank you! We will be in touch shortly."
MSG_SUBMITTED = "Thanks! Your inspection request has been submitted."
MSG_FIX_FIELDS = "Please fix the highlighted fields and try again."
MSG_BUILDINGS = "Please specify the number of buildings/structures to be inspected."
MSG_SUBMIT_FAILED = "Something went wrong submitting your request. Please try again."
MSG_VERIFIED = "Thanks! We've verified your details."
MSG_VERIFY_FAILED = "Could not verify right now. Please try again."
MSG_BUSY = "A request is already in progress."
MSG_NOT_READY = "The form is not ready yet. Please reload the page."


@dataclass
class TenantLoadResult:
    status: str
    tenant_id: str
    config: Optional[TenantConfig] = None

    @property
    def ok(self) -> bool:
        return self.status != LOAD_FAILURE and self.config is not None


@dataclass
class ActionOutcome:
    ok: bool
    message: str
    status_code: Optional[int] = None
    payload: Optional[Dict[str, Any]] = None
    field_errors: Dict[str, str] = field(default_factory=dict)
    network_called: bool = False


class InspectionForm:
    """Field values of the inspection form keyed by input name, plus selected services."""

    def __init__(self, fields: Optional[Dict[str, Any]] = None, services: Optional[Iterable[str]] = None) -> None:
        self.fields: Dict[str, Any] = dict(fields or {})
        self.services: List[str] = list(services or [])

    def get(self, name: str) -> Optional[str]:
        value = self.fields.get(name)
        if value is None:
            return None
        return str(value).strip()

    def reset(self) -> None:
        self.fields = {}
        self.services = []

    def to_draft(self) -> Dict[str, Any]:
        return {**self.fields, "service": list(self.services)}

    def restore(self, draft: Mapping[str, Any]) -> None:
        for key, value in draft.items():
            if key == "service":
                if isinstance(value, list):
                    self.services = [str(v) for v in value]
                continue
            self.fields[key] = value


def query_from_url(url: str) -> Dict[str, str]:
    """First value of each query parameter of a page URL."""
    parsed = parse_qs(urlparse(url).query)
    return {k: v[0] for k, v in parsed.items() if v}


def detect_pages(element_ids: Iterable[str]) -> Set[str]:
    ids = set(element_ids)
    pages: Set[str] = set()
    if "verification-cta" in ids:
        pages.add(PAGE_VERIFY)
    if "inspection-form" in ids:
        pages.add(PAGE_INSPECTION)
    return pages


def verify_intro_message(target: Optional[str]) -> Optional[str]:
    if not target:
        return None
    if target.startswith("email"):
        return "When you click verify we will confirm the email details you provided."
    return "When you click verify we will confirm the phone details you provided."


def _count(value: Optional[str]) -> int:
    try:
        return int(float(value)) if value else 0
    except (ValueError, OverflowError):
        return 0


class IntakeController:
    def __init__(
        self,
        settings: ControllerConfig,
        api_base_url: str,
        draft_store: Optional[SessionDraftStore] = None,
        timeout_seconds: float = 20.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        origin: Optional[str] = None,
    ) -> None:
        self.settings = settings
        self.api_base_url = api_base_url.rstrip("/")
        # Origin of the page hosting the form; browsers send it on every API call
        self.origin = origin
        self.draft_store = draft_store or SessionDraftStore()
        self.timeout_seconds = timeout_seconds
        self.transport = transport

        self.tenant: str = settings.default_tenant
        self.lang: str = settings.default_lang
        self.config: Optional[TenantConfig] = None
        self.load_result: Optional[TenantLoadResult] = None
        self._busy = False

    # --- boot ------------------------------------------------------------------

    @property
    def busy(self) -> bool:
        return self._busy

    def url_for(self, path: str) -> str:
        return f"{self.api_base_url}{with_base(path, self.settings.base_path)}"

    def resolve_tenant_id(self, query: Mapping[str, str]) -> str:
        raw = (query.get("tenant") or "").lower().strip()
        return raw if raw in self.settings.allowed_tenants else self.settings.default_tenant

    def resolve_lang(self, query: Mapping[str, str]) -> str:
        return query.get("lang") or self.settings.default_lang

    def _client(self) -> httpx.AsyncClient:
        headers = {"Origin": self.origin} if self.origin else None
        return httpx.AsyncClient(timeout=self.timeout_seconds, transport=self.transport, headers=headers)

    async def _fetch_tenant(self, tenant: str) -> Optional[TenantConfig]:
        url = self.url_for(f"/tenants/{tenant}.json")
        try:
            async with self._client() as client:
                response = await client.get(url, headers={"Cache-Control": "no-cache"})
            if not response.is_success:
                logger.warning("Tenant config fetch failed: %s HTTP %s", url, response.status_code)
                return None
            return TenantConfig(**{"id": tenant, **response.json()})
        except (httpx.HTTPError, ValueError, TypeError, ValidationError) as e:
            logger.warning("Tenant config fetch error for %s: %s", url, e)
            return None

    async def load_tenant_config(self, tenant: str) -> TenantLoadResult:
        """Requested tenant first, then the default tenant's configuration."""
        config = await self._fetch_tenant(tenant)
        if config is not None:
            return TenantLoadResult(LOAD_SUCCESS, tenant, self._with_base_assets(config))

        default = self.settings.default_tenant
        if tenant != default:
            config = await self._fetch_tenant(default)
            if config is not None:
                logger.info("Using %s configuration for tenant %s", default, tenant)
                return TenantLoadResult(LOAD_FALLBACK, default, self._with_base_assets(config))

        logger.error("No tenant configuration available for %s", tenant)
        return TenantLoadResult(LOAD_FAILURE, tenant)

    def _with_base_assets(self, config: TenantConfig) -> TenantConfig:
        assets = config.assets
        rebased = TenantAssets(
            logo=with_base(assets.logo, self.settings.base_path),
            favicon=with_base(assets.favicon, self.settings.base_path),
        )
        return config.model_copy(update={"assets": rebased})

    async def boot(self, query: Mapping[str, str], element_ids: Iterable[str] = ()) -> Set[str]:
        """Resolve tenant and language, load configuration, return the pages to wire."""
        self.tenant = self.resolve_tenant_id(query)
        self.lang = self.resolve_lang(query)
        self.load_result = await self.load_tenant_config(self.tenant)
        if not self.load_result.ok:
            self.config = None
            return set()
        self.config = self.load_result.config
        return detect_pages(element_ids)

    def theme(self) -> Dict[str, str]:
        """CSS custom properties for the loaded tenant."""
        return theme_variables(self.config.css_vars) if self.config else {}

    # --- inspection page ---------------------------------------------------------

    def _building_selected(self, services: Iterable[str]) -> bool:
        return bool(set(services) & set(self.settings.building_service_ids))

    def build_inspection_payload(self, form: InspectionForm) -> Dict[str, Any]:
        services = [{"code": code, "quantity": 1} for code in form.services]
        email = form.get("email")
        payload: Dict[str, Any] = {
            "tenant": self.tenant,
            "lang": self.lang,
            "source": "inspection-form",
            "idempotencyKey": str(uuid4()),
            "title": form.get("title") or None,
            "firstName": form.get("firstName"),
            "lastName": form.get("lastName"),
            "email": email.lower() if email else email,
            "phone": normalize_phone(form.get("phone"), self.settings.phone_country_code),
            "prefMethod": form.get("contactMethod"),
            "address1": form.get("address1"),
            "address2": form.get("address2") or None,
            "address3": form.get("address3") or None,
            "suburb": form.get("suburb"),
            "state": form.get("state"),
            "postcode": form.get("postcode"),
            "country": "AU",
            "service": services,
            "serviceNotes": form.get("notes") or None,
            "preferences": [
                p
                for p in (
                    to_preference(form.get("date1"), form.get("time1")),
                    to_preference(form.get("date2"), form.get("time2")),
                )
                if p
            ],
            "submittedUtc": datetime.now(timezone.utc).isoformat(),
            "metadata": {
                "policyAccepted": bool(form.get("privacyPolicy")),
                "termsAccepted": bool(form.get("termsConsent")),
            },
        }
        if self._building_selected(form.services):
            payload["building"] = {
                name: _count(form.get(name))
                for name in (
                    "nbrBuildings",
                    "nbrLounge",
                    "nbrKitchen",
                    "nbrBathroom",
                    "nbrBedroom",
                    "nbrToilet",
                    "nbrLaundry",
                    "nbrOther",
                )
            }
        return payload

    def save_draft(self, form: InspectionForm) -> None:
        self.draft_store.save(self.tenant, form.to_draft())

    def restore_draft(self, form: InspectionForm) -> bool:
        draft = self.draft_store.load(self.tenant)
        if not draft:
            return False
        form.restore(draft)
        return True

    async def submit_inspection(self, form: InspectionForm) -> ActionOutcome:
        if self._busy:
            return ActionOutcome(False, MSG_BUSY)

        # Bots fill the hidden field; pretend success without touching the network
        if form.get(HONEYPOT_FIELD):
            form.reset()
            return ActionOutcome(True, MSG_THANKS)

        if self.config is None:
            return ActionOutcome(False, MSG_NOT_READY)

        payload = self.build_inspection_payload(form)
        try:
            validate_inspection_fields(
                payload,
                allowed_service_ids=self.config.service_ids(),
                building_service_ids=self.settings.building_service_ids,
            )
        except FormValidationError as e:
            message = MSG_BUILDINGS if "building.nbrBuildings" in e.field_errors else MSG_FIX_FIELDS
            return ActionOutcome(False, message, payload=payload, field_errors=dict(e.field_errors))

        self._busy = True
        try:
            async with self._client() as client:
                response = await client.post(self.url_for("/api/inspection"), json=payload)
        except httpx.HTTPError as e:
            logger.error("Inspection submission failed: %s", e)
            return ActionOutcome(False, MSG_SUBMIT_FAILED, payload=payload, network_called=True)
        finally:
            self._busy = False

        if not response.is_success:
            logger.error("Inspection submission rejected: HTTP %s %s", response.status_code, response.text)
            return ActionOutcome(False, MSG_SUBMIT_FAILED, response.status_code, payload, network_called=True)

        self.draft_store.clear(self.tenant)
        form.reset()
        return ActionOutcome(True, MSG_SUBMITTED, response.status_code, payload, network_called=True)

    # --- verification page -------------------------------------------------------

    def build_verify_payload(self, idempotency_key: Optional[str], target: Optional[str]) -> Dict[str, Any]:
        return {
            "tenant": self.tenant,
            "lang": self.lang,
            "source": "verify-page",
            "target": target or None,
            "idempotencyKey": idempotency_key or None,
            "submittedUtc": datetime.now(timezone.utc).isoformat(),
        }

    async def verify(self, query: Mapping[str, str]) -> ActionOutcome:
        if self._busy:
            return ActionOutcome(False, MSG_BUSY)
        if self.config is None:
            return ActionOutcome(False, MSG_NOT_READY)

        idempotency_key = query.get("idempotencyKey")
        payload = self.build_verify_payload(idempotency_key, query.get("target"))
        headers = {"Content-Type": "application/json"}
        if idempotency_key and idempotency_key.isascii():
            headers["Idempotency-Key"] = idempotency_key

        self._busy = True
        try:
            async with self._client() as client:
                response = await client.post(self.url_for("/api/verify"), json=payload, headers=headers)
        except httpx.HTTPError as e:
            logger.error("Verification failed: %s", e)
            return ActionOutcome(False, MSG_VERIFY_FAILED, payload=payload, network_called=True)
        finally:
            self._busy = False

        if not response.is_success:
            logger.error("Verification rejected: HTTP %s %s", response.status_code, response.text)
            return ActionOutcome(False, MSG_VERIFY_FAILED, response.status_code, payload, network_called=True)
        return ActionOutcome(True, MSG_VERIFIED, response.status_code, payload, network_called=True)
