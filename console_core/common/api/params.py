# console_core/common/api/params.py
from __future__ import annotations

from uuid import UUID

from rest_framework.exceptions import ValidationError

TRUTHY = {"1", "true", "yes", "y", "on"}


def parse_uuid(value, field_name: str) -> UUID:
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        raise ValidationError({field_name: "Invalid UUID"})


def optional_uuid(params, field_name: str) -> UUID | None:
    raw = params.get(field_name)
    if not raw:
        return None
    return parse_uuid(raw, field_name)


def parse_bool(params, field_name: str, default: bool | None = None) -> bool | None:
    raw = params.get(field_name)
    if raw in (None, ""):
        return default
    return str(raw).strip().lower() in TRUTHY
