"""Execute one batch of records against the target table."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Sequence

from .binder import BoundStatement
from .processor import RejectedRecord, RejectHandler, prepare_batch, process
from .records import SinkRecord

LOGGER = logging.getLogger("yb_sink.writer")


@dataclass
class BatchSummary:
    received: int = 0
    written: int = 0
    rejected: List[RejectedRecord] = field(default_factory=list)

    @property
    def skipped(self) -> int:
        return self.received - self.written - len(self.rejected)


def execute_statements(conn: Any, statements: Sequence[BoundStatement]) -> int:
    """Run bound statements, one ``executemany`` per statement template."""
    if not statements:
        return 0
    group: List[BoundStatement] = []
    for statement in statements:
        if group and statement.template is not group[0].template:
            _execute_group(conn, group)
            group = []
        group.append(statement)
    _execute_group(conn, group)
    return len(statements)


def _execute_group(conn: Any, group: Sequence[BoundStatement]) -> None:
    template = group[0].template
    conn.execute(template.statement, [dict(item.parameters) for item in group])


def write_batch(
    conn: Any,
    namespace: str,
    table_name: str,
    records: Iterable[SinkRecord],
    on_reject: Optional[RejectHandler] = None,
) -> BatchSummary:
    """Load the schema, bind ``records`` and execute them on ``conn``.

    ``conn`` is a synchronous SQLAlchemy connection; the caller owns the
    transaction. Schema errors propagate, record errors are collected in the
    returned summary.
    """
    batch = list(records)
    summary = BatchSummary(received=len(batch))
    LOGGER.info("Processing %s records", summary.received)

    def _collect(rejected: RejectedRecord) -> None:
        summary.rejected.append(rejected)
        if on_reject is not None:
            on_reject(rejected)

    context = prepare_batch(conn, namespace, table_name)
    statements = process(batch, context, on_reject=_collect)
    if not statements:
        LOGGER.info("No valid statements were received.")
        return summary

    summary.written = execute_statements(conn, statements)
    LOGGER.info(
        "Wrote %s of %s records to %s (%s rejected)",
        summary.written,
        summary.received,
        context.schema.qualified_name,
        len(summary.rejected),
    )
    return summary
