from __future__ import annotations

import uuid
from typing import Iterable, Optional, Sequence, Tuple

from mysql.connector.errors import IntegrityError

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause, raise_conflict_on_duplicate
from .model import Subject
from .repository import SubjectRepository


class MySQLSubjectRepository(SubjectRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    async def get_by_id(self, subject_id: str) -> Optional[Subject]:
        async with db_cursor(self._conn_factory) as (_, cur):
            await cur.execute("SELECT id, name FROM subjects WHERE id=%s", (subject_id,))
            r = await fetchone(cur)
            return Subject(id=r["id"], name=r["name"]) if r else None

    async def get_by_name(self, name: str) -> Optional[Subject]:
        async with db_cursor(self._conn_factory) as (_, cur):
            await cur.execute("SELECT id, name FROM subjects WHERE name=%s", (name,))
            r = await fetchone(cur)
            return Subject(id=r["id"], name=r["name"]) if r else None

    async def find_many_by_ids(self, subject_ids: Iterable[str]) -> Sequence[Subject]:
        ids = list(subject_ids)
        if not ids:
            return []
        async with db_cursor(self._conn_factory) as (_, cur):
            await cur.execute(f"SELECT id, name FROM subjects WHERE id IN ({in_clause(ids)})", tuple(ids))
            return [Subject(id=r["id"], name=r["name"]) for r in await fetchall(cur)]

    async def find_by_employee_ids(self, employee_ids: Iterable[str]) -> Sequence[Tuple[str, Subject]]:
        ids = list(employee_ids)
        if not ids:
            return []
        async with db_cursor(self._conn_factory) as (_, cur):
            await cur.execute(
                f"""
                SELECT es.employee_id, s.id, s.name
                FROM employee_subjects es
                JOIN subjects s ON s.id = es.subject_id
                WHERE es.employee_id IN ({in_clause(ids)})
                ORDER BY s.name ASC
                """,
                tuple(ids),
            )
            return [(r["employee_id"], Subject(id=r["id"], name=r["name"])) for r in await fetchall(cur)]

    async def list_all(self) -> Sequence[Subject]:
        async with db_cursor(self._conn_factory) as (_, cur):
            await cur.execute("SELECT id, name FROM subjects ORDER BY name")
            return [Subject(id=r["id"], name=r["name"]) for r in await fetchall(cur)]

    async def create(self, name: str) -> Subject:
        subject = Subject(id=str(uuid.uuid4()), name=name)
        try:
            async with db_cursor(self._conn_factory) as (_, cur):
                await cur.execute("INSERT INTO subjects(id, name) VALUES(%s,%s)", (subject.id, subject.name))
        except IntegrityError as err:
            raise_conflict_on_duplicate(err, "Subject with this name already exists")
        return subject

    async def delete(self, subject_id: str) -> bool:
        async with db_cursor(self._conn_factory) as (_, cur):
            await cur.execute("DELETE FROM subjects WHERE id=%s", (subject_id,))
            return cur.rowcount > 0
