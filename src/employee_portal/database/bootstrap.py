"""Schema/seed helpers used by scripts and ``AUTO_INIT_DB`` on startup.

These run before the event loop exists, so they use the blocking driver.
"""
from __future__ import annotations

import logging
import re
import uuid
from pathlib import Path
from typing import Iterator

import mysql.connector
from werkzeug.security import generate_password_hash

from ..core.enums import Role
from .connection import DBConfig

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parents[3] / "database" / "schema.sql"


def _connect(config: DBConfig, *, with_database: bool = True):
    kwargs = dict(host=config.host, port=config.port, user=config.user, password=config.password, use_pure=True)
    if with_database:
        kwargs["database"] = config.database
    return mysql.connector.connect(**kwargs)


def split_statements(sql: str) -> Iterator[str]:
    # schema.sql holds DDL only; strip line comments and split on ';'
    sql = re.sub(r"(?m)^\s*--.*$", "", sql)
    for stmt in sql.split(";"):
        stmt = stmt.strip()
        if stmt:
            yield stmt


def ensure_database_exists(config: DBConfig) -> None:
    conn = _connect(config, with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{config.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(config: DBConfig, *, schema_path: str | Path = SCHEMA_PATH) -> None:
    ensure_database_exists(config)
    sql = Path(schema_path).read_text(encoding="utf-8")

    conn = _connect(config)
    try:
        cur = conn.cursor()
        for stmt in split_statements(sql):
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()
    logger.info("schema applied to %s@%s/%s", config.user, config.host, config.database)


def ensure_admin(config: DBConfig, *, email: str, password: str) -> str:
    """Create (or re-verify) an admin account so a fresh install can log in."""
    email = email.strip().lower()
    conn = _connect(config)
    try:
        cur = conn.cursor(dictionary=True)
        cur.execute("SELECT id FROM users WHERE email=%s", (email,))
        row = cur.fetchone()
        if row:
            cur.execute(
                "UPDATE users SET role=%s, otp_verified=1, otp_hash=NULL, otp_expires=NULL WHERE id=%s",
                (Role.ADMIN.value, row["id"]),
            )
            user_id = row["id"]
        else:
            user_id = str(uuid.uuid4())
            cur.execute(
                """
                INSERT INTO users(id, email, password_hash, role, otp_verified)
                VALUES(%s,%s,%s,%s,1)
                """,
                (user_id, email, generate_password_hash(password), Role.ADMIN.value),
            )
        conn.commit()
        return user_id
    finally:
        conn.close()


def list_tables(config: DBConfig) -> list[str]:
    conn = _connect(config)
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
