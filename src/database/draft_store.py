"""
Session-scoped draft storage for the inspection form.

Stands in for the browser's per-tab session storage: one store per
controller instance, read and written synchronously, no coordination
with other sessions. Drafts are keyed per tenant as ``draft:<tenant>``.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class SessionDraftStore:
    def __init__(self) -> None:
        # Values are stored JSON-encoded, as session storage only holds strings
        self._items: Dict[str, str] = {}

    @staticmethod
    def draft_key(tenant: str) -> str:
        return f"draft:{tenant}"

    def save(self, tenant: str, data: Dict[str, Any]) -> None:
        self._items[self.draft_key(tenant)] = json.dumps(data)

    def load(self, tenant: str) -> Optional[Dict[str, Any]]:
        raw = self._items.get(self.draft_key(tenant))
        if raw is None:
            return None
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("Discarding unreadable draft for tenant %s", tenant)
            return None
        return data if isinstance(data, dict) else None

    def clear(self, tenant: str) -> None:
        self._items.pop(self.draft_key(tenant), None)

    def has_draft(self, tenant: str) -> bool:
        return self.draft_key(tenant) in self._items
