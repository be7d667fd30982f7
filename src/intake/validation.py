"""Shared validation for inspection-request submissions.

The form controller builds an `InspectionRequest` payload from form fields;
the proxy re-checks the same payload before forwarding it. Both sides use
these validators so a payload the controller accepts is one the proxy
accepts.

On validation failure, raise `FormValidationError` so callers can surface
structured `field_errors` (the proxy maps it to HTTP 400).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Iterable, List, Optional


@dataclass
class FormValidationError(Exception):
    """Exception raised for form validation failures.

    Attributes:
        field_errors: mapping of field name -> human-readable error message.
        message: optional top-level message.
    """

    field_errors: Dict[str, str]
    message: str = "Validation failed"

    def __str__(self) -> str:  # pragma: no cover
        return self.message


def _as_str(v: Any) -> str:
    return "" if v is None else str(v)


def _strip(v: Any) -> str:
    return _as_str(v).strip()


def add_error(errors: Dict[str, str], field: str, message: str) -> None:
    if field not in errors:
        errors[field] = message


def require_str(payload: Dict[str, Any], field: str, errors: Dict[str, str], *, label: Optional[str] = None) -> str:
    value = _strip(payload.get(field))
    if not value:
        add_error(errors, field, f"{label or field} is required")
    return value


def parse_int(payload: Dict[str, Any], field: str, errors: Dict[str, str], *, min_value: Optional[int] = None, max_value: Optional[int] = None, required: bool = False, error_key: Optional[str] = None) -> int:
    key = error_key or field
    raw = payload.get(field)
    if raw is None or _strip(raw) == "":
        if required:
            add_error(errors, key, f"{field} is required")
        return 0
    try:
        val = int(str(raw))
    except ValueError:
        add_error(errors, key, f"{field} must be a whole number")
        return 0
    if min_value is not None and val < min_value:
        add_error(errors, key, f"{field} must be at least {min_value}")
    if max_value is not None and val > max_value:
        add_error(errors, key, f"{field} must be at most {max_value}")
    return val


_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_TIME_RE = re.compile(r"^\d{1,2}:\d{2}(:\d{2})?$")


def validate_email(value: str, errors: Dict[str, str], field: str = "email") -> str:
    value = _strip(value)
    if not value:
        add_error(errors, field, "Email is required")
        return value
    if not _EMAIL_RE.match(value):
        add_error(errors, field, "Email is not valid")
    return value


def validate_phone(value: str, errors: Dict[str, str], field: str = "phone") -> str:
    raw = _strip(value)
    if not raw:
        add_error(errors, field, "Phone number is required")
        return raw
    digits = re.sub(r"[\s\-\(\)]", "", raw)
    if digits.startswith("+"):
        digits = digits[1:]
    if not digits.isdigit() or len(digits) < 8:
        add_error(errors, field, "Phone number format is not valid")
    return raw


def validate_date_iso(value: str, errors: Dict[str, str], field: str, *, required: bool = True) -> str:
    raw = _strip(value)
    if not raw:
        if required:
            add_error(errors, field, f"{field} is required")
        return raw
    try:
        date.fromisoformat(raw)
    except ValueError:
        add_error(errors, field, f"{field} must be a valid date (YYYY-MM-DD)")
    return raw


def validate_service_codes(value: Any, allowed_ids: Iterable[str], errors: Dict[str, str], field: str = "service") -> List[str]:
    """Accepts [{code, quantity}] or plain codes; empty allowed_ids skips the membership check."""
    if value is None:
        add_error(errors, field, "Select at least one service")
        return []
    if not isinstance(value, list):
        add_error(errors, field, f"{field} must be a list")
        return []

    codes: List[str] = []
    for item in value:
        code = _strip(item.get("code")) if isinstance(item, dict) else _strip(item)
        if code:
            codes.append(code)
    if not codes:
        add_error(errors, field, "Select at least one service")
        return []

    allowed = set(allowed_ids)
    if allowed and any(c not in allowed for c in codes):
        add_error(errors, field, f"{field} contains invalid selection(s)")
    return codes


BUILDING_COUNT_FIELDS = (
    "nbrBuildings",
    "nbrLounge",
    "nbrKitchen",
    "nbrBathroom",
    "nbrBedroom",
    "nbrToilet",
    "nbrLaundry",
    "nbrOther",
)


def validate_building(value: Any, errors: Dict[str, str], field: str = "building") -> Dict[str, int]:
    if not isinstance(value, dict):
        add_error(errors, f"{field}.nbrBuildings", "Please specify the number of buildings/structures to be inspected.")
        return {}
    counts: Dict[str, int] = {}
    for name in BUILDING_COUNT_FIELDS:
        counts[name] = parse_int(value, name, errors, min_value=0, error_key=f"{field}.{name}")
    if counts.get("nbrBuildings", 0) <= 0:
        add_error(errors, f"{field}.nbrBuildings", "Please specify the number of buildings/structures to be inspected.")
    return counts


def validate_preferences(value: Any, errors: Dict[str, str], field: str = "preferences") -> None:
    if value is None:
        return
    if not isinstance(value, list):
        add_error(errors, field, f"{field} must be a list")
        return
    for i, pref in enumerate(value):
        if not isinstance(pref, dict):
            add_error(errors, f"{field}[{i}]", "Preference must be an object")
            continue
        validate_date_iso(_as_str(pref.get("date")), errors, f"{field}[{i}].date", required=False)
        time = _strip(pref.get("time"))
        if time and not _TIME_RE.match(time):
            add_error(errors, f"{field}[{i}].time", "Time must be HH:MM")


def validate_inspection_fields(
    payload: Dict[str, Any],
    allowed_service_ids: Iterable[str] = (),
    building_service_ids: Iterable[str] = ("building", "prepurchase"),
) -> None:
    """Validate the structured fields of an inspection request; raises FormValidationError."""
    errors: Dict[str, str] = {}
    require_str(payload, "firstName", errors, label="First Name")
    require_str(payload, "lastName", errors, label="Last Name")
    validate_email(payload.get("email", ""), errors, field="email")
    validate_phone(payload.get("phone", ""), errors, field="phone")

    require_str(payload, "address1", errors, label="Address")
    require_str(payload, "suburb", errors, label="Suburb")
    require_str(payload, "state", errors, label="State")
    require_str(payload, "postcode", errors, label="Postcode")

    codes = validate_service_codes(payload.get("service"), allowed_service_ids, errors)
    if set(codes) & set(building_service_ids):
        validate_building(payload.get("building"), errors)

    validate_preferences(payload.get("preferences"), errors)
    raise_if_errors(errors)


def raise_if_errors(errors: Dict[str, str], message: str = "Please correct the highlighted fields") -> None:
    if errors:
        raise FormValidationError(field_errors=errors, message=message)
