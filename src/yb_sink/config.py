"""Configuration loading for the YugabyteDB sink."""

from __future__ import annotations

import os
from typing import List, Optional, Sequence

from dotenv import load_dotenv
from sqlalchemy.engine import URL

from .errors import ConfigError
from .models import (DEFAULT_BATCH_SIZE, DEFAULT_CONTACT_POINTS,
                     DEFAULT_DATABASE, DEFAULT_DB_CONNECT_TIMEOUT,
                     DEFAULT_DRIVER, DEFAULT_PASSWORD, DEFAULT_USER,
                     ContactPoint, DatabaseConfig, SinkConfig)


def _int(value: Optional[str], default: int) -> int:
    try:
        return int(value) if value is not None else default
    except ValueError:
        return default


def _float(value: Optional[str], default: float) -> float:
    try:
        return float(value) if value is not None else default
    except ValueError:
        return default


def _required(name: str) -> str:
    value = (os.getenv(name) or "").strip()
    if not value:
        raise ConfigError(f"Need a valid value for '{name}'.")
    return value


def parse_contact_point(host_port: str) -> ContactPoint:
    parts = host_port.strip().split(":")
    if len(parts) != 2 or not parts[0]:
        raise ConfigError(f"Invalid host:port format {host_port}")
    try:
        port = int(parts[1])
    except ValueError as exc:
        raise ConfigError(f"Invalid port in {host_port}") from exc
    return ContactPoint(host=parts[0], port=port)


def parse_contact_points(csv_host_ports: Optional[str]) -> List[ContactPoint]:
    """Parse ``host:port,host:port``; every contact point must share one port."""
    if csv_host_ports is None or not csv_host_ports.strip():
        raise ConfigError("Invalid empty contact point list")
    points = [parse_contact_point(item) for item in csv_host_ports.split(",")]
    if len({point.port for point in points}) > 1:
        raise ConfigError("Using multiple ports is not supported.")
    return points


def build_url(
    contact_points: Sequence[ContactPoint],
    user: str,
    password: str,
    database: str,
    driver: str = DEFAULT_DRIVER,
) -> URL:
    if len(contact_points) == 1:
        point = contact_points[0]
        return URL.create(
            driver,
            username=user,
            password=password,
            host=point.host,
            port=point.port,
            database=database,
        )
    # Multi-host connections use repeated "host" query parameters.
    return URL.create(
        driver,
        username=user,
        password=password,
        database=database,
        query={"host": [str(point) for point in contact_points]},
    )


def load_config() -> SinkConfig:
    """Load sink configuration from environment variables."""
    load_dotenv()

    keyspace = _required("YB_KEYSPACE")
    table = _required("YB_TABLE")
    contact_points = parse_contact_points(
        os.getenv("YB_CONTACT_POINTS", DEFAULT_CONTACT_POINTS)
    )
    url = build_url(
        contact_points,
        user=os.getenv("YB_USER", DEFAULT_USER),
        password=os.getenv("YB_PASSWORD", DEFAULT_PASSWORD),
        database=os.getenv("YB_DATABASE", DEFAULT_DATABASE),
        driver=os.getenv("YB_DRIVER", DEFAULT_DRIVER),
    )

    return SinkConfig(
        keyspace=keyspace,
        table=table,
        database=DatabaseConfig(
            url=url.render_as_string(hide_password=False),
            connect_timeout=_float(
                os.getenv("DATABASE_CONNECT_TIMEOUT"), DEFAULT_DB_CONNECT_TIMEOUT
            ),
            contact_points=tuple(contact_points),
        ),
        batch_size=max(1, _int(os.getenv("SINK_BATCH_SIZE"), DEFAULT_BATCH_SIZE)),
    )
