from __future__ import annotations

import re
from typing import Any

PHONE_RE = re.compile(r"^[0-9+\- ]{6,20}$")
EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")

MIN_NAME_LENGTH = 2


def _as_str(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def validate_registration(payload: dict) -> list[str]:
    """
    Check name/phone/email well-formedness. Returns list of errors (empty = valid).
    Every rule runs; nothing is trimmed or lowercased here.
    """
    errors: list[str] = []

    name = _as_str(payload.get("name"))
    if not name or len(name) < MIN_NAME_LENGTH:
        errors.append("Invalid name")

    phone = _as_str(payload.get("phone"))
    if not phone or not PHONE_RE.fullmatch(phone):
        errors.append("Invalid phone")

    email = _as_str(payload.get("email"))
    if not email or not EMAIL_RE.fullmatch(email):
        errors.append("Invalid email")

    return errors
