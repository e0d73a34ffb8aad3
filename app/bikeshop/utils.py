from __future__ import annotations

from typing import Any

from flask import request

# Form plumbing that must never be persisted as submitted data.
_RESERVED_FIELDS = frozenset({"csrf_token", "_method"})


def text_value(value: Any) -> str:
    """Normalize a form/JSON value to stripped text ("" for missing)."""
    if value is None:
        return ""
    return str(value).strip()


def request_payload() -> dict[str, Any]:
    """Submitted fields from a JSON body or a URL-encoded form."""
    if request.is_json:
        data = request.get_json(silent=True)
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if k not in _RESERVED_FIELDS}
        return {}
    return {k: v for k, v in request.form.items() if k not in _RESERVED_FIELDS}


def missing_fields(payload: dict[str, Any], required: dict[str, str]) -> list[str]:
    """Error messages for each required field that is absent or blank."""
    return [f"{label} is required." for key, label in required.items() if not text_value(payload.get(key))]


def extra_fields(payload: dict[str, Any], known: set[str] | frozenset[str]) -> dict[str, Any] | None:
    """Submitted fields with no dedicated column, kept as-is (only strings are stripped)."""
    extra = {
        k: v.strip() if isinstance(v, str) else v
        for k, v in payload.items()
        if k not in known and k not in _RESERVED_FIELDS
    }
    return extra or None
