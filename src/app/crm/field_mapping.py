"""Lead field access for CRM records.

Leads are kept as the raw dicts the CRM returns. Custom fields can arrive
either flattened (``{"custom.cf_abc": ...}``, as returned when requested via
``_fields``) or nested (``{"custom": {"cf_abc": ...}}`` / ``{"custom": {"Label": ...}}``).
``lead_field`` reads a configured key from either shape.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

CUSTOM_PREFIX = "custom."


def lead_field(lead: Any, key: str) -> Any:
    """Return the value stored under ``key`` in a lead, or None.

    Args:
        lead: Raw lead record. Values that are not mappings yield None.
        key: Field key, e.g. ``"status_label"`` or ``"custom.cf_abc123"``.
    """
    if not isinstance(lead, Mapping) or not key:
        return None

    if key in lead:
        return lead[key]

    if key.startswith(CUSTOM_PREFIX):
        custom = lead.get("custom")
        if isinstance(custom, Mapping):
            return custom.get(key[len(CUSTOM_PREFIX):])

    return None
