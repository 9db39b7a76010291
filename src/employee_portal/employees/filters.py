from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from ..common.validators import FieldErrors, check_int_range


@dataclass(frozen=True)
class EmployeeFilter:
    """Validated listing filter; ``None`` fields impose no constraint.

    Text fields are matched as case-insensitive substrings.
    """

    name: Optional[str] = None
    age: Optional[int] = None
    class_label: Optional[str] = None
    is_active: Optional[bool] = None


def _text(errors: FieldErrors, raw: Mapping[str, Any], field: str, max_len: int, *aliases: str) -> Optional[str]:
    value = next((raw[k] for k in (field, *aliases) if raw.get(k) is not None), None)
    if value is None:
        return None
    if not isinstance(value, str):
        errors.add(field, f"{field} must be a string")
        return None
    value = value.strip()
    if len(value) > max_len:
        errors.add(field, f"{field} must be at most {max_len} characters")
        return None
    return value or None


def normalize_filter(raw: Optional[Mapping[str, Any]]) -> EmployeeFilter:
    if not raw:
        return EmployeeFilter()
    errors = FieldErrors()

    name = _text(errors, raw, "name", 100)
    class_label = _text(errors, raw, "class", 50, "class_label")

    age = raw.get("age")
    if age is not None:
        age = check_int_range(errors, age, "age", low=0, high=150)

    is_active = raw.get("isActive", raw.get("is_active"))
    if is_active is not None and not isinstance(is_active, bool):
        errors.add("isActive", "isActive must be a boolean")
        is_active = None

    errors.raise_if_any()
    return EmployeeFilter(name=name, age=age, class_label=class_label, is_active=is_active)
