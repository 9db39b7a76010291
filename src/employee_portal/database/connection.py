from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import mysql.connector.aio


@dataclass
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str

    @classmethod
    def from_dict(cls, db_config: dict) -> "DBConfig":
        return cls(
            host=str(db_config.get("host", "localhost")),
            port=int(db_config.get("port", 3306)),
            user=str(db_config.get("user", "root")),
            password=str(db_config.get("password", "")),
            database=str(db_config.get("database", "employee_portal")),
        )


class DatabaseConnection:
    """Process-wide connection factory shared by every request.

    Note: Each operation opens a short-lived asyncio connection, so concurrent
    requests never share a connection object.
    """

    _instance: Optional["DatabaseConnection"] = None

    def __init__(self, config: DBConfig):
        self._config = config

    @classmethod
    def get_instance(cls, config: DBConfig) -> "DatabaseConnection":
        if cls._instance is None:
            cls._instance = DatabaseConnection(config)
        return cls._instance

    @property
    def target(self) -> str:
        c = self._config
        return f"{c.user}@{c.host}:{c.port}/{c.database}"

    async def connect(self):
        return await mysql.connector.aio.connect(
            host=self._config.host,
            port=int(self._config.port),
            user=self._config.user,
            password=self._config.password,
            database=self._config.database,
        )
