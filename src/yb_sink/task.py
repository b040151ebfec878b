"""Sink task lifecycle: start, put batches, stop."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from .db_connector import DatabaseSession
from .models import SinkConfig
from .processor import RejectHandler
from .records import SinkRecord
from .writer import BatchSummary, write_batch

LOGGER = logging.getLogger("yb_sink.task")

VERSION = "1"


class SinkTask:
    """Write batches of sink records into one YugabyteDB table."""

    def __init__(
        self,
        config: SinkConfig,
        on_reject: Optional[RejectHandler] = None,
        session: Optional[DatabaseSession] = None,
    ) -> None:
        self._config = config
        self._on_reject = on_reject
        self._session = session or DatabaseSession(config.database)

    @property
    def version(self) -> str:
        return VERSION

    async def start(self) -> None:
        LOGGER.info(
            "Start with keyspace=%s, table=%s", self._config.keyspace, self._config.table
        )
        await self._session.open()

    async def put(self, records: Sequence[SinkRecord]) -> BatchSummary:
        """Write one batch in a single transaction.

        Schema errors abort the batch and propagate to the caller.
        """
        if not records:
            return BatchSummary()
        LOGGER.info("Processing %s records from the source.", len(records))
        async with self._session.engine.begin() as conn:
            return await conn.run_sync(
                write_batch,
                self._config.keyspace,
                self._config.table,
                records,
                self._on_reject,
            )

    async def stop(self) -> None:
        await self._session.dispose()
