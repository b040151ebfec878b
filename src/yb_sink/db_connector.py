from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable, Optional

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from .errors import DatabaseUnavailableError
from .models import DatabaseConfig

LOGGER = logging.getLogger("yb_sink.db")

PING = text("SELECT 1")
MAX_BACKOFF = 10.0

EngineFactory = Callable[..., AsyncEngine]


def backoff(attempt: int) -> float:
    return min(2.0 * attempt, MAX_BACKOFF)


class DatabaseSession:
    """Own the engine that reaches the cluster's contact points.

    ``open`` keeps pinging until one contact point answers or the configured
    connect timeout passes. The same engine is reused for every attempt and
    for every batch afterwards.
    """

    def __init__(
        self,
        config: DatabaseConfig,
        engine_factory: EngineFactory = create_async_engine,
    ) -> None:
        self._config = config
        self._engine_factory = engine_factory
        self._engine: Optional[AsyncEngine] = None

    def describe(self) -> str:
        """Contact points when configured, else the URL with the password hidden."""
        if self._config.contact_points:
            return ",".join(str(point) for point in self._config.contact_points)
        return make_url(self._config.url).render_as_string(hide_password=True)

    async def open(self) -> AsyncEngine:
        if self._engine is not None:
            return self._engine

        target = self.describe()
        LOGGER.info("Connecting to nodes: %s", target)
        engine = self._engine_factory(self._config.url, pool_pre_ping=True)
        deadline = time.monotonic() + self._config.connect_timeout
        attempt = 0
        while True:
            attempt += 1
            try:
                await self._ping(engine)
            except (OperationalError, OSError) as exc:
                if time.monotonic() >= deadline:
                    await engine.dispose()
                    raise DatabaseUnavailableError(
                        f"No contact point in {target} answered within "
                        f"{self._config.connect_timeout:g}s ({attempt} attempts)."
                    ) from exc
                delay = backoff(attempt)
                LOGGER.warning(
                    "Cluster not ready (%s), retrying in %.0fs", exc.__class__.__name__, delay
                )
                await asyncio.sleep(delay)
                continue
            LOGGER.info("Connected to %s after %s attempt(s)", target, attempt)
            self._engine = engine
            return engine

    @staticmethod
    async def _ping(engine: AsyncEngine) -> Any:
        async with engine.connect() as connection:
            return await connection.execute(PING)

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Engine not initialised; call open()")
        return self._engine

    async def dispose(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
        self._engine = None
