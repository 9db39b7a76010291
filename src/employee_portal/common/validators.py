from __future__ import annotations

import re
import uuid
from datetime import date, datetime
from typing import Any, List, Optional

from ..core.exceptions import FieldError, ValidationError

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PERSON_NAME_RE = re.compile(r"^[a-zA-Z\s'-]+$")
PASSWORD_CLASSES = (re.compile(r"[a-z]"), re.compile(r"[A-Z]"), re.compile(r"\d"))


class FieldErrors:
    """Collects per-field problems so one ValidationError reports all of them."""

    def __init__(self) -> None:
        self._items: List[FieldError] = []

    def add(self, field: str, message: str) -> None:
        self._items.append(FieldError(field=field, message=message))

    def check(self, ok: bool, field: str, message: str) -> bool:
        if not ok:
            self.add(field, message)
        return ok

    def __bool__(self) -> bool:
        return bool(self._items)

    def raise_if_any(self) -> None:
        if not self._items:
            return
        summary = ", ".join(f"{e.field}: {e.message}" for e in self._items)
        raise ValidationError(f"Validation error: {summary}", self._items)


def is_int(value: Any) -> bool:
    # bool is an int subclass but never a valid count or age
    return isinstance(value, int) and not isinstance(value, bool)


def is_uuid(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    try:
        uuid.UUID(value)
    except ValueError:
        return False
    return len(value) == 36


def require_id(value: Any, field_name: str = "id") -> str:
    if not is_uuid(value):
        raise ValidationError(f"Invalid {field_name} format", [FieldError(field_name, "Invalid ID format")])
    return str(value).lower()


def check_length(errors: FieldErrors, value: str, field: str, *, min_len: int = 0, max_len: Optional[int] = None, label: str = "") -> None:
    label = label or field.capitalize()
    if len(value) < min_len:
        errors.add(field, f"{label} must be at least {min_len} characters")
    elif max_len is not None and len(value) > max_len:
        errors.add(field, f"{label} must be less than {max_len} characters")


def check_person_name(errors: FieldErrors, value: Any, field: str = "name") -> Optional[str]:
    if not isinstance(value, str):
        errors.add(field, "Name is required")
        return None
    value = value.strip()
    check_length(errors, value, field, min_len=2, max_len=100, label="Name")
    errors.check(
        bool(PERSON_NAME_RE.match(value)),
        field,
        "Name can only contain letters, spaces, hyphens, and apostrophes",
    )
    return value


def check_email(errors: FieldErrors, value: Any, field: str = "email") -> Optional[str]:
    if not isinstance(value, str) or not value.strip():
        errors.add(field, "Email is required")
        return None
    email = value.strip().lower()
    if len(email) > 255:
        errors.add(field, "Email must be less than 255 characters")
    elif not EMAIL_RE.match(email):
        errors.add(field, "Invalid email format")
    return email


def check_password(errors: FieldErrors, value: Any, field: str = "password") -> Optional[str]:
    if not isinstance(value, str):
        errors.add(field, "Password is required")
        return None
    check_length(errors, value, field, min_len=8, max_len=128, label="Password")
    errors.check(
        all(p.search(value) for p in PASSWORD_CLASSES),
        field,
        "Password must contain at least one uppercase letter, one lowercase letter, and one number",
    )
    return value


def check_int_range(errors: FieldErrors, value: Any, field: str, *, low: int, high: int, label: str = "") -> Optional[int]:
    label = label or field.capitalize()
    if not is_int(value):
        errors.add(field, f"{label} must be a whole number")
        return None
    if value < low:
        errors.add(field, f"{label} must be at least {low}")
    elif value > high:
        errors.add(field, f"{label} must be at most {high}")
    return value


def parse_date_value(value: Any) -> Optional[date]:
    """Accept ``YYYY-MM-DD`` or an ISO datetime string; anything else is None."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    raw = value.strip()
    try:
        return date.fromisoformat(raw[:10])
    except ValueError:
        return None
