from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple

DEFAULT_CONTACT_POINTS = "localhost:5433"
DEFAULT_DRIVER = "postgresql+asyncpg"
DEFAULT_DATABASE = "yugabyte"
DEFAULT_USER = "yugabyte"
DEFAULT_PASSWORD = "yugabyte"
DEFAULT_DB_CONNECT_TIMEOUT = 60.0
DEFAULT_BATCH_SIZE = 100


@dataclass(frozen=True)
class ContactPoint:
    host: str
    port: int

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"


@dataclass(frozen=True)
class DatabaseConfig:
    url: str
    connect_timeout: float
    contact_points: Tuple[ContactPoint, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class SinkConfig:
    keyspace: str
    table: str
    database: DatabaseConfig
    batch_size: int = DEFAULT_BATCH_SIZE
