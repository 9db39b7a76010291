from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class Employee:
    """Domain entity: profile owned by exactly one User."""

    id: str
    user_id: str
    name: str
    age: Optional[int] = None
    class_label: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
