"""Schema-driven sink that writes connector records into a YugabyteDB table."""

from __future__ import annotations

from .binder import BoundStatement, bind
from .catalog import ColumnDefinition, ColumnType, TableSchema, load_schema
from .normalizer import CanonicalValue, normalize_map, normalize_struct
from .processor import BatchContext, RejectedRecord, prepare_batch, process
from .records import ConnectField, ConnectSchema, FieldType, SinkRecord
from .statement import StatementTemplate, build_insert

__all__ = [
    "BatchContext",
    "BoundStatement",
    "CanonicalValue",
    "ColumnDefinition",
    "ColumnType",
    "ConnectField",
    "ConnectSchema",
    "FieldType",
    "RejectedRecord",
    "SinkRecord",
    "StatementTemplate",
    "TableSchema",
    "bind",
    "build_insert",
    "load_schema",
    "normalize_map",
    "normalize_struct",
    "prepare_batch",
    "process",
]
