from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one present/absent mark per employee per day."""

    id: str
    employee_id: str
    date: date
    status: bool
    created_at: Optional[datetime] = None
