from __future__ import annotations

import asyncio
import os
import sys
from typing import Iterable, Iterator, List, Optional, TextIO

from rich.console import Console

from .config import load_config
from .errors import ConfigError, RecordDecodeError, SchemaError
from .logging_utils import get_logger, setup_logging
from .models import SinkConfig
from .records import SinkRecord, decode_record
from .task import SinkTask

console = Console(stderr=True)
LOGGER = get_logger("yb_sink.cli")


def iter_records(lines: Iterable[str]) -> Iterator[SinkRecord]:
    """Decode JSON lines, logging and skipping lines that cannot be decoded."""
    for offset, line in enumerate(lines):
        try:
            yield decode_record(line, offset=offset)
        except RecordDecodeError as exc:
            LOGGER.warning("Dropping line %s: %s", offset, exc)


def iter_batches(records: Iterable[SinkRecord], size: int) -> Iterator[List[SinkRecord]]:
    batch: List[SinkRecord] = []
    for record in records:
        batch.append(record)
        if len(batch) >= size:
            yield batch
            batch = []
    if batch:
        yield batch


async def run_sink(config: SinkConfig, source: TextIO, task: Optional[SinkTask] = None) -> int:
    """Feed ``source`` into the sink batch by batch; returns rows written."""
    sink = task or SinkTask(config)
    written = 0
    rejected = 0
    await sink.start()
    try:
        with console.status("Writing records...") as status:
            for batch in iter_batches(iter_records(source), config.batch_size):
                summary = await sink.put(batch)
                written += summary.written
                rejected += len(summary.rejected)
                status.update(f"Wrote {written} records; {rejected} rejected")
    finally:
        await sink.stop()
    LOGGER.info("Sink completed: %s written, %s rejected", written, rejected)
    return written


def main() -> None:
    setup_logging(os.getenv("LOG_LEVEL", "INFO"), console=console)
    try:
        config = load_config()
    except ConfigError as exc:
        LOGGER.error("Configuration error: %s", exc)
        print(f"Configuration error: {exc}", file=sys.stderr)
        sys.exit(1)

    try:
        asyncio.run(run_sink(config, sys.stdin))
    except SchemaError as exc:
        LOGGER.exception("Target table is not usable")
        print(f"Schema error: {exc}", file=sys.stderr)
        sys.exit(2)
    except Exception as exc:  # pragma: no cover - guard for CLI usage
        LOGGER.exception("Sink failed")
        print(f"Sink failed: {exc}", file=sys.stderr)
        sys.exit(3)


if __name__ == "__main__":
    main()
