from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

import mysql.connector


@dataclass(frozen=True)
class DBConfig:
    host: str = "localhost"
    port: int = 3306
    user: str = "root"
    password: str = ""
    database: str = "absensi_db"
    connect_timeout: int = 10

    @classmethod
    def from_dict(cls, db_config: Dict[str, Any]) -> "DBConfig":
        defaults = cls()
        return cls(
            host=str(db_config.get("host") or defaults.host),
            port=int(db_config.get("port") or defaults.port),
            user=str(db_config.get("user") or defaults.user),
            password=str(db_config.get("password") or ""),
            database=str(db_config.get("database") or defaults.database),
            connect_timeout=int(db_config.get("connect_timeout") or defaults.connect_timeout),
        )


class DatabaseConnection:
    """Process-wide connection factory.

    Every repository call opens its own short-lived connection; request
    handlers and scheduler threads never share one.
    """

    _instance: Optional["DatabaseConnection"] = None

    def __init__(self, config: DBConfig):
        self.config = config

    @classmethod
    def get_instance(cls, config: DBConfig) -> "DatabaseConnection":
        # A different config (e.g. another test database) replaces the factory.
        if cls._instance is None or cls._instance.config != config:
            cls._instance = cls(config)
        return cls._instance

    def connect(self, *, with_database: bool = True):
        """Open a new connection; ``with_database=False`` is used to create the schema."""

        params: Dict[str, Any] = {
            "host": self.config.host,
            "port": self.config.port,
            "user": self.config.user,
            "password": self.config.password,
            "connection_timeout": self.config.connect_timeout,
            "charset": "utf8mb4",
            "autocommit": False,
        }
        if with_database:
            params["database"] = self.config.database
        return mysql.connector.connect(**params)
