from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Dict, Iterable, Optional, Sequence

from mysql.connector.errors import IntegrityError

from ..core.enums import Role
from ..core.exceptions import NotFoundError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause, raise_conflict_on_duplicate
from .model import User
from .repository import UserRepository

USER_COLUMNS = "id, email, password_hash, role, otp_hash, otp_expires, otp_verified, created_at"


def row_to_user(r: Dict[str, Any]) -> User:
    return User(
        id=r["id"],
        email=r["email"],
        password_hash=r["password_hash"],
        role=Role(r["role"]),
        otp_hash=r.get("otp_hash"),
        otp_expires=r.get("otp_expires"),
        otp_verified=bool(r.get("otp_verified", False)),
        created_at=r.get("created_at"),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    async def get_by_id(self, user_id: str) -> Optional[User]:
        async with db_cursor(self._conn_factory) as (_, cur):
            await cur.execute(f"SELECT {USER_COLUMNS} FROM users WHERE id=%s", (user_id,))
            row = await fetchone(cur)
            return row_to_user(row) if row else None

    async def get_by_email(self, email: str) -> Optional[User]:
        async with db_cursor(self._conn_factory) as (_, cur):
            await cur.execute(f"SELECT {USER_COLUMNS} FROM users WHERE email=%s", (email.strip().lower(),))
            row = await fetchone(cur)
            return row_to_user(row) if row else None

    async def find_many_by_ids(self, user_ids: Iterable[str]) -> Sequence[User]:
        ids = list(user_ids)
        if not ids:
            return []
        async with db_cursor(self._conn_factory) as (_, cur):
            await cur.execute(f"SELECT {USER_COLUMNS} FROM users WHERE id IN ({in_clause(ids)})", tuple(ids))
            return [row_to_user(r) for r in await fetchall(cur)]

    async def create_user(
        self,
        *,
        email: str,
        password_hash: str,
        role: Role,
        otp_hash: Optional[str],
        otp_expires: Optional[datetime],
    ) -> User:
        user_id = str(uuid.uuid4())
        try:
            async with db_cursor(self._conn_factory) as (_, cur):
                await cur.execute(
                    """
                    INSERT INTO users(id, email, password_hash, role, otp_hash, otp_expires, otp_verified)
                    VALUES(%s,%s,%s,%s,%s,%s,0)
                    """,
                    (user_id, email, password_hash, role.value, otp_hash, otp_expires),
                )
        except IntegrityError as err:
            raise_conflict_on_duplicate(err, "User with this email already exists")
        created = await self.get_by_id(user_id)
        if created is None:
            raise NotFoundError("User not found")
        return created

    async def set_otp(self, user_id: str, *, otp_hash: str, otp_expires: datetime) -> bool:
        async with db_cursor(self._conn_factory) as (_, cur):
            await cur.execute(
                "UPDATE users SET otp_hash=%s, otp_expires=%s WHERE id=%s",
                (otp_hash, otp_expires, user_id),
            )
            return cur.rowcount > 0

    async def mark_verified(self, user_id: str) -> bool:
        async with db_cursor(self._conn_factory) as (_, cur):
            await cur.execute(
                "UPDATE users SET otp_verified=1, otp_hash=NULL, otp_expires=NULL WHERE id=%s",
                (user_id,),
            )
            return cur.rowcount > 0

    async def list_without_employee(self) -> Sequence[User]:
        async with db_cursor(self._conn_factory) as (_, cur):
            await cur.execute(
                """
                SELECT u.id, u.email, u.password_hash, u.role, u.otp_hash, u.otp_expires, u.otp_verified, u.created_at
                FROM users u
                LEFT JOIN employees e ON e.user_id = u.id
                WHERE e.id IS NULL AND u.role=%s AND u.otp_verified=1
                ORDER BY u.created_at DESC
                """,
                (Role.EMPLOYEE.value,),
            )
            return [row_to_user(r) for r in await fetchall(cur)]
