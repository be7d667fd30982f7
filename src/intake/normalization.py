"""
Light normalization applied to form values before submission:
phone numbers, time-of-day rounding, scheduling preferences, base-path
aware URLs and tenant theme variables.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Optional

_SLOT_MINUTES = 30
_LAST_SLOT = 23 * 60 + 30
_CSS_VAR_KEY = re.compile(r"^[a-zA-Z0-9-]+$")
_ABSOLUTE_URL = re.compile(r"^https?://", re.IGNORECASE)


def round_to_half_hour(value: Optional[str]) -> Optional[str]:
    """
    Round "HH:MM" to the nearest half hour.

    Quarter-past and quarter-to round down ("09:15" -> "09:00",
    "09:16" -> "09:30"). Empty or unparsable values come back unchanged;
    anything past 23:30 stays on 23:30.
    """
    if not value:
        return value
    parts = value.split(":")
    if len(parts) < 2:
        return value
    try:
        hours, minutes = int(parts[0]), int(parts[1])
    except ValueError:
        return value
    if hours < 0 or not 0 <= minutes < 60:
        return value

    slots, remainder = divmod(hours * 60 + minutes, _SLOT_MINUTES)
    if remainder > _SLOT_MINUTES // 2:
        slots += 1
    total = min(slots * _SLOT_MINUTES, _LAST_SLOT)
    return f"{total // 60:02d}:{total % 60:02d}"


def normalize_phone(value: Optional[str], country_code: str = "+61") -> Optional[str]:
    """Replace a leading trunk "0" with the country code, e.g. 0412 345 678 -> +61412345678."""
    if not value or not value.startswith("0"):
        return value
    return country_code + re.sub(r"\s+", "", value[1:])


def to_preference(date: Optional[str], time: Optional[str]) -> Optional[Dict[str, Any]]:
    if not date and not time:
        return None
    rounded = round_to_half_hour(time or "09:00")
    return {
        "date": date or None,
        "time": rounded,
        "localDateTime": f"{date}T{rounded}" if date else None,
    }


def normalize_base_path(base_path: Optional[str]) -> str:
    """Both "/" and "" mean the root; otherwise drop the trailing slash."""
    return (base_path or "").rstrip("/")


def with_base(path: Optional[str], base_path: str = "") -> Optional[str]:
    if not path:
        return path
    if _ABSOLUTE_URL.match(path):
        return path
    base = normalize_base_path(base_path)
    if path.startswith("/"):
        return base + path
    return f"{base}/{path.lstrip('/')}"


def theme_variables(css_vars: Optional[Dict[str, Any]]) -> Dict[str, str]:
    """Tenant cssVars as CSS custom properties; keys outside [a-zA-Z0-9-] are dropped."""
    return {f"--{k}": str(v) for k, v in (css_vars or {}).items() if _CSS_VAR_KEY.match(str(k))}
