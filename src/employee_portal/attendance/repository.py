from __future__ import annotations

from datetime import date
from typing import Iterable, Optional, Protocol, Sequence

from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    async def find_many_by_employee_ids(self, employee_ids: Iterable[str]) -> Sequence[AttendanceRecord]:
        """Rows for all given employees, newest date first."""
        raise NotImplementedError

    async def list_for_employee(
        self,
        employee_id: str,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    async def upsert(self, *, employee_id: str, work_date: date, status: bool) -> AttendanceRecord:
        """Create-or-update the single row for ``(employee_id, work_date)``."""
        raise NotImplementedError
