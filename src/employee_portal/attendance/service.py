from __future__ import annotations

from datetime import date
from typing import Any, Callable, Optional, Sequence

from ..common.datetime_utils import today
from ..common.validators import FieldErrors, is_uuid, parse_date_value
from ..core.exceptions import NotFoundError
from ..employees.repository import EmployeeRepository
from .model import AttendanceRecord
from .repository import AttendanceRepository


class AttendanceService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        employees: EmployeeRepository,
        *,
        clock: Callable[[], date] = today,
    ):
        self._attendance = attendance
        self._employees = employees
        self._today = clock

    async def mark_attendance(self, *, employee_id: Any, work_date: Any, status: Any) -> AttendanceRecord:
        errors = FieldErrors()
        errors.check(is_uuid(employee_id), "employeeId", "Invalid employee ID format")
        parsed = parse_date_value(work_date)
        if errors.check(parsed is not None, "date", "Invalid date format"):
            errors.check(parsed <= self._today(), "date", "Cannot mark attendance for future dates")
        errors.check(isinstance(status, bool), "status", "Status must be a boolean")
        errors.raise_if_any()

        employee_id = str(employee_id).lower()
        if not await self._employees.get_by_id(employee_id):
            raise NotFoundError("Employee not found")

        return await self._attendance.upsert(employee_id=employee_id, work_date=parsed, status=status)

    async def attendance_for_employee(
        self,
        *,
        employee_id: str,
        start_date: Any = None,
        end_date: Any = None,
    ) -> Sequence[AttendanceRecord]:
        """Rows in ``[start_date, end_date]`` (either bound optional), newest first."""
        errors = FieldErrors()
        start = self._optional_date(errors, start_date, "startDate", "Invalid start date format")
        end = self._optional_date(errors, end_date, "endDate", "Invalid end date format")
        errors.raise_if_any()

        return await self._attendance.list_for_employee(employee_id, start_date=start, end_date=end)

    @staticmethod
    def _optional_date(errors: FieldErrors, value: Any, field: str, message: str) -> Optional[date]:
        if value is None or value == "":
            return None
        parsed = parse_date_value(value)
        errors.check(parsed is not None, field, message)
        return parsed
