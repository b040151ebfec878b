"""Turn a batch of sink records into bound insert statements."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Optional

from .binder import BoundStatement, bind
from .catalog import TableSchema, load_schema
from .errors import InvalidRecordShapeError, RecordError
from .normalizer import CanonicalRecord, normalize_map, normalize_struct
from .records import FieldType, SinkRecord
from .statement import StatementTemplate, build_insert

LOGGER = logging.getLogger("yb_sink.processor")


@dataclass(frozen=True)
class RejectedRecord:
    position: int
    record: SinkRecord
    error: RecordError


RejectHandler = Callable[[RejectedRecord], None]


@dataclass(frozen=True)
class BatchContext:
    """Schema and prepared statement shared, read-only, by one batch."""

    schema: TableSchema
    template: StatementTemplate
    sql: str


def prepare_batch(bind_to: Any, namespace: str, table_name: str) -> BatchContext:
    """Load the table schema and prepare the insert for a new batch."""
    schema = load_schema(bind_to, namespace, table_name)
    template = build_insert(schema)
    sql = template.prepare(dialect=getattr(bind_to, "dialect", None))
    return BatchContext(schema=schema, template=template, sql=sql)


def canonicalize(record: SinkRecord, schema: TableSchema) -> CanonicalRecord:
    value_schema = record.value_schema
    if value_schema is None:
        if not isinstance(record.value, Mapping):
            raise InvalidRecordShapeError(
                f"Schema-less value must be a map, got {type(record.value).__name__}."
            )
        return normalize_map(record.value, schema)

    if value_schema.type is not FieldType.STRUCT:
        raise InvalidRecordShapeError(
            f"Invalid schema for value {value_schema.type.value} expected a struct."
        )
    if not isinstance(record.value, Mapping):
        raise InvalidRecordShapeError(
            f"Struct value must be a map of fields, got {type(record.value).__name__}."
        )
    return normalize_struct(value_schema, record.value, schema)


def is_empty(record: SinkRecord) -> bool:
    value = record.value
    return value is None or (isinstance(value, Mapping) and not value)


def _log_reject(rejected: RejectedRecord) -> None:
    LOGGER.warning(
        "Dropping record %s (offset %s): %s: %s",
        rejected.position,
        rejected.record.offset,
        type(rejected.error).__name__,
        rejected.error,
    )


def process(
    records: Iterable[SinkRecord],
    context: BatchContext,
    on_reject: Optional[RejectHandler] = None,
) -> List[BoundStatement]:
    """Bind each record of a batch, in arrival order.

    Records without a value, or with an empty map, are skipped. A record
    that fails normalization or binding is logged, handed to ``on_reject``
    and left out of the result; the rest of the batch still binds.
    """
    statements: List[BoundStatement] = []
    for position, record in enumerate(records):
        if is_empty(record):
            LOGGER.debug("Skipping empty record %s", position)
            continue
        try:
            canonical = canonicalize(record, context.schema)
            statements.append(bind(context.template, canonical, context.schema))
        except RecordError as exc:
            rejected = RejectedRecord(position=position, record=record, error=exc)
            _log_reject(rejected)
            if on_reject is not None:
                on_reject(rejected)
    return statements
