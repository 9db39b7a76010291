from __future__ import annotations

import uuid
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Sequence

from ..core.exceptions import NotFoundError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import AttendanceRecord
from .repository import AttendanceRepository

ATTENDANCE_COLUMNS = "id, employee_id, date, status, created_at"


def row_to_record(r: Dict[str, Any]) -> AttendanceRecord:
    return AttendanceRecord(
        id=r["id"],
        employee_id=r["employee_id"],
        date=r["date"],
        status=bool(r["status"]),
        created_at=r.get("created_at"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    async def find_many_by_employee_ids(self, employee_ids: Iterable[str]) -> Sequence[AttendanceRecord]:
        ids = list(employee_ids)
        if not ids:
            return []
        async with db_cursor(self._conn_factory) as (_, cur):
            await cur.execute(
                f"""
                SELECT {ATTENDANCE_COLUMNS}
                FROM attendance
                WHERE employee_id IN ({in_clause(ids)})
                ORDER BY date DESC
                """,
                tuple(ids),
            )
            return [row_to_record(r) for r in await fetchall(cur)]

    async def list_for_employee(
        self,
        employee_id: str,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Sequence[AttendanceRecord]:
        clauses = ["employee_id=%s"]
        params: List[object] = [employee_id]
        if start_date is not None:
            clauses.append("date >= %s")
            params.append(start_date)
        if end_date is not None:
            clauses.append("date <= %s")
            params.append(end_date)

        async with db_cursor(self._conn_factory) as (_, cur):
            await cur.execute(
                f"SELECT {ATTENDANCE_COLUMNS} FROM attendance WHERE {' AND '.join(clauses)} ORDER BY date DESC",
                tuple(params),
            )
            return [row_to_record(r) for r in await fetchall(cur)]

    async def upsert(self, *, employee_id: str, work_date: date, status: bool) -> AttendanceRecord:
        async with db_cursor(self._conn_factory) as (_, cur):
            # uq_attendance_employee_date turns the insert into an update on repeat marks
            await cur.execute(
                """
                INSERT INTO attendance(id, employee_id, date, status)
                VALUES(%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE status=VALUES(status)
                """,
                (str(uuid.uuid4()), employee_id, work_date, 1 if status else 0),
            )
            await cur.execute(
                f"SELECT {ATTENDANCE_COLUMNS} FROM attendance WHERE employee_id=%s AND date=%s",
                (employee_id, work_date),
            )
            row = await fetchone(cur)
        if row is None:
            raise NotFoundError("Attendance record not found")
        return row_to_record(row)
