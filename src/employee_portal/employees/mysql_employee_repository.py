from __future__ import annotations

import uuid
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from mysql.connector.errors import IntegrityError

from ..common.pagination import PageRequest
from ..core.enums import Role
from ..core.exceptions import NotFoundError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause, like_pattern, raise_conflict_on_duplicate
from .filters import EmployeeFilter
from .model import Employee
from .repository import EmployeeRepository

EMPLOYEE_COLUMNS = "e.id, e.user_id, e.name, e.age, e.class_label, e.is_active, e.created_at, e.updated_at"

# allow-listed sort keys -> columns; never interpolate client input directly
SORT_COLUMNS = {
    "name": "e.name",
    "age": "e.age",
    "class": "e.class_label",
    "createdAt": "e.created_at",
    "updatedAt": "e.updated_at",
}

UPDATABLE_COLUMNS = ("name", "age", "class_label", "is_active")


def row_to_employee(r: Dict[str, Any]) -> Employee:
    return Employee(
        id=r["id"],
        user_id=r["user_id"],
        name=r["name"],
        age=int(r["age"]) if r.get("age") is not None else None,
        class_label=r.get("class_label"),
        is_active=bool(r.get("is_active", True)),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


def filter_clause(flt: EmployeeFilter) -> Tuple[str, List[object]]:
    clauses = ["u.role=%s", "u.otp_verified=1"]
    params: List[object] = [Role.EMPLOYEE.value]

    if flt.name is not None:
        clauses.append("LOWER(e.name) LIKE %s")
        params.append(like_pattern(flt.name))
    if flt.age is not None:
        clauses.append("e.age=%s")
        params.append(int(flt.age))
    if flt.class_label is not None:
        clauses.append("LOWER(e.class_label) LIKE %s")
        params.append(like_pattern(flt.class_label))
    if flt.is_active is not None:
        clauses.append("e.is_active=%s")
        params.append(1 if flt.is_active else 0)

    return " AND ".join(clauses), params


class MySQLEmployeeRepository(EmployeeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    async def _select_where(self, where: str, params: Sequence[object]) -> List[Employee]:
        async with db_cursor(self._conn_factory) as (_, cur):
            await cur.execute(f"SELECT {EMPLOYEE_COLUMNS} FROM employees e WHERE {where}", tuple(params))
            return [row_to_employee(r) for r in await fetchall(cur)]

    async def get_by_id(self, employee_id: str) -> Optional[Employee]:
        rows = await self._select_where("e.id=%s", (employee_id,))
        return rows[0] if rows else None

    async def get_by_user_id(self, user_id: str) -> Optional[Employee]:
        rows = await self._select_where("e.user_id=%s", (user_id,))
        return rows[0] if rows else None

    async def find_many_by_ids(self, employee_ids: Iterable[str]) -> Sequence[Employee]:
        ids = list(employee_ids)
        if not ids:
            return []
        return await self._select_where(f"e.id IN ({in_clause(ids)})", ids)

    async def find_many_by_user_ids(self, user_ids: Iterable[str]) -> Sequence[Employee]:
        ids = list(user_ids)
        if not ids:
            return []
        return await self._select_where(f"e.user_id IN ({in_clause(ids)})", ids)

    async def find_by_subject_ids(self, subject_ids: Iterable[str]) -> Sequence[Tuple[str, Employee]]:
        ids = list(subject_ids)
        if not ids:
            return []
        async with db_cursor(self._conn_factory) as (_, cur):
            await cur.execute(
                f"""
                SELECT es.subject_id, {EMPLOYEE_COLUMNS}
                FROM employee_subjects es
                JOIN employees e ON e.id = es.employee_id
                WHERE es.subject_id IN ({in_clause(ids)})
                ORDER BY e.name ASC, e.id ASC
                """,
                tuple(ids),
            )
            return [(r["subject_id"], row_to_employee(r)) for r in await fetchall(cur)]

    async def list_page(self, flt: EmployeeFilter, page: PageRequest) -> Sequence[Employee]:
        where, params = filter_clause(flt)
        order_col = SORT_COLUMNS[page.sort_by]
        direction = "ASC" if page.sort_order.value == "asc" else "DESC"
        async with db_cursor(self._conn_factory) as (_, cur):
            await cur.execute(
                f"""
                SELECT {EMPLOYEE_COLUMNS}
                FROM employees e
                JOIN users u ON u.id = e.user_id
                WHERE {where}
                ORDER BY {order_col} {direction}, e.id ASC
                LIMIT %s OFFSET %s
                """,
                (*params, int(page.take), int(page.skip)),
            )
            return [row_to_employee(r) for r in await fetchall(cur)]

    async def count(self, flt: EmployeeFilter) -> int:
        where, params = filter_clause(flt)
        async with db_cursor(self._conn_factory) as (_, cur):
            await cur.execute(
                f"SELECT COUNT(*) AS total FROM employees e JOIN users u ON u.id = e.user_id WHERE {where}",
                tuple(params),
            )
            row = await fetchone(cur)
            return int(row["total"]) if row else 0

    async def create(
        self,
        *,
        user_id: str,
        name: str,
        age: Optional[int] = None,
        class_label: Optional[str] = None,
        subject_ids: Sequence[str] = (),
    ) -> Employee:
        employee_id = str(uuid.uuid4())
        try:
            async with db_cursor(self._conn_factory) as (_, cur):
                await cur.execute(
                    """
                    INSERT INTO employees(id, user_id, name, age, class_label, is_active)
                    VALUES(%s,%s,%s,%s,%s,1)
                    """,
                    (employee_id, user_id, name, age, class_label),
                )
                for subject_id in dict.fromkeys(subject_ids):
                    await cur.execute(
                        "INSERT INTO employee_subjects(employee_id, subject_id) VALUES(%s,%s)",
                        (employee_id, subject_id),
                    )
        except IntegrityError as err:
            raise_conflict_on_duplicate(err, "User already has an employee record")

        created = await self.get_by_id(employee_id)
        if created is None:
            raise NotFoundError("Employee not found")
        return created

    async def update(
        self,
        employee_id: str,
        changes: Mapping[str, Any],
        subject_ids: Optional[Sequence[str]] = None,
    ) -> Optional[Employee]:
        columns = [c for c in UPDATABLE_COLUMNS if c in changes]
        if columns or subject_ids is not None:
            async with db_cursor(self._conn_factory) as (_, cur):
                if subject_ids is not None:
                    await cur.execute("DELETE FROM employee_subjects WHERE employee_id=%s", (employee_id,))
                    for subject_id in dict.fromkeys(subject_ids):
                        await cur.execute(
                            "INSERT INTO employee_subjects(employee_id, subject_id) VALUES(%s,%s)",
                            (employee_id, subject_id),
                        )
                if columns:
                    assignments = ", ".join(f"{c}=%s" for c in columns)
                    params = [changes[c] for c in columns]
                    await cur.execute(f"UPDATE employees SET {assignments} WHERE id=%s", (*params, employee_id))
        return await self.get_by_id(employee_id)

    async def delete(self, employee_id: str) -> bool:
        async with db_cursor(self._conn_factory) as (_, cur):
            await cur.execute("DELETE FROM employees WHERE id=%s", (employee_id,))
            return cur.rowcount > 0
