from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence, Tuple

from mysql.connector import errorcode
from mysql.connector.errors import IntegrityError

from ..core.exceptions import ConflictError
from .connection import DatabaseConnection


@asynccontextmanager
async def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True) -> AsyncIterator[Tuple[Any, Any]]:
    conn = await conn_factory.connect()
    try:
        cur = await conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            await conn.commit()
        finally:
            await cur.close()
    except Exception:
        await conn.rollback()
        raise
    finally:
        await conn.close()


async def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = await cur.fetchone()
    return row if row else None


async def fetchall(cur) -> List[Dict[str, Any]]:
    rows = await cur.fetchall()
    return list(rows or [])


def in_clause(values: Sequence[Any]) -> str:
    """Placeholder list for ``col IN (...)``; callers never pass an empty set."""
    return ", ".join(["%s"] * len(values))


def like_pattern(text: str) -> str:
    escaped = text.lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def raise_conflict_on_duplicate(err: IntegrityError, message: str) -> None:
    if err.errno == errorcode.ER_DUP_ENTRY:
        raise ConflictError(message) from err
    raise err
