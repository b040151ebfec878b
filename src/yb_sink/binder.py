"""Coerce canonical values into typed statement parameters."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Mapping, Optional

from .catalog import ColumnDefinition, ColumnType, TableSchema
from .errors import (TimestampFormatError, TypeMismatchError,
                     UnsupportedColumnTypeError)
from .normalizer import ABSENT, CanonicalRecord, CanonicalValue
from .records import FieldType
from .statement import StatementTemplate

LOGGER = logging.getLogger("yb_sink.binder")

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

INT8_RANGE = (-(2**7), 2**7 - 1)
INT16_RANGE = (-(2**15), 2**15 - 1)
INT32_RANGE = (-(2**31), 2**31 - 1)
INT64_RANGE = (-(2**63), 2**63 - 1)
FLOAT32_MAX = 3.4028235e38


@dataclass(frozen=True)
class BoundStatement:
    """A statement template plus one parameter per table column."""

    template: StatementTemplate
    parameters: Mapping[str, Any]


def _type_name(value: Any) -> str:
    return type(value).__name__


def _integer(value: Any, bounds: tuple[int, int], label: str) -> int:
    # bool is a subclass of int but never a valid integer value.
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeMismatchError(f"Value should be of type {label}, got {_type_name(value)}.")
    low, high = bounds
    if not low <= value <= high:
        raise TypeMismatchError(f"Value {value} is out of range for {label}.")
    return value


def _floating(value: Any, label: str, limit: Optional[float] = None) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeMismatchError(f"Value should be of type {label}, got {_type_name(value)}.")
    try:
        result = float(value)
    except OverflowError as exc:
        raise TypeMismatchError(f"Value {value} is out of range for {label}.") from exc
    # inf and nan are representable at every width.
    if limit is not None and math.isfinite(result) and abs(result) > limit:
        raise TypeMismatchError(f"Value {value} is out of range for {label}.")
    return result


def _text(value: Any) -> str:
    if not isinstance(value, str):
        raise TypeMismatchError(f"Value should be of type string, got {_type_name(value)}.")
    return value


def _boolean(value: Any) -> bool:
    if not isinstance(value, bool):
        raise TypeMismatchError(f"Value should be of type boolean, got {_type_name(value)}.")
    return value


def _blob(value: Any) -> bytes:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    raise TypeMismatchError(f"Value should be a byte sequence, got {_type_name(value)}.")


def parse_timestamp(value: str) -> datetime:
    """Parse ``yyyy-MM-dd HH:mm:ss`` as a UTC instant; no other format is accepted."""
    try:
        parsed = datetime.strptime(value, TIMESTAMP_FORMAT)
    except ValueError as exc:
        raise TimestampFormatError(
            f"Invalid timestamp format for {value!r}. Expect 'yyyy-mm-dd hh:mm:ss'."
        ) from exc
    return parsed.replace(tzinfo=timezone.utc)


def timestamp_from_millis(value: int) -> datetime:
    try:
        return EPOCH + timedelta(milliseconds=value)
    except (OverflowError, ValueError) as exc:
        raise TypeMismatchError(
            f"Epoch milliseconds {value} are out of range for a timestamp."
        ) from exc


def _timestamp(value: Any) -> datetime:
    if isinstance(value, str):
        return parse_timestamp(value)
    if isinstance(value, int) and not isinstance(value, bool):
        return timestamp_from_millis(value)
    raise TypeMismatchError(
        f"Timestamp can be set as string or integer only, got {_type_name(value)}."
    )


COLUMN_COERCIONS: Dict[ColumnType, Callable[[Any], Any]] = {
    ColumnType.INT: lambda value: _integer(value, INT32_RANGE, "int"),
    ColumnType.BIGINT: lambda value: _integer(value, INT64_RANGE, "bigint"),
    ColumnType.FLOAT: lambda value: _floating(value, "float", FLOAT32_MAX),
    ColumnType.DOUBLE: lambda value: _floating(value, "double"),
    ColumnType.TEXT: _text,
    ColumnType.BOOLEAN: _boolean,
    ColumnType.BLOB: _blob,
    ColumnType.TIMESTAMP: _timestamp,
}

FIELD_COERCIONS: Dict[FieldType, Callable[[Any], Any]] = {
    FieldType.INT8: lambda value: _integer(value, INT8_RANGE, "int8"),
    FieldType.INT16: lambda value: _integer(value, INT16_RANGE, "int16"),
    FieldType.INT32: lambda value: _integer(value, INT32_RANGE, "int32"),
    FieldType.INT64: lambda value: _integer(value, INT64_RANGE, "int64"),
    FieldType.FLOAT32: lambda value: _floating(value, "float32", FLOAT32_MAX),
    FieldType.FLOAT64: lambda value: _floating(value, "float64"),
    FieldType.BOOLEAN: _boolean,
    FieldType.STRING: _text,
    FieldType.BYTES: _blob,
}


def coerce_by_column_type(column: ColumnDefinition, value: Any) -> Any:
    """Coerce an untyped value according to the column's declared type."""
    coerce = COLUMN_COERCIONS.get(column.type)
    if coerce is None:
        raise UnsupportedColumnTypeError(
            f"Column type {column.sql_type or column.type.value} for {column.name} "
            "not supported yet."
        )
    try:
        return coerce(value)
    except TypeMismatchError as exc:
        raise TypeMismatchError(f"Column {column.name}: {exc}") from exc


def coerce_by_field_type(column: ColumnDefinition, field_type: FieldType, value: Any) -> Any:
    """Coerce a value according to the type the record declared for it.

    The column's declared type is not consulted.
    """
    coerce = FIELD_COERCIONS.get(field_type)
    if coerce is None:
        raise UnsupportedColumnTypeError(
            f"Schema type {field_type.value} for {column.name} not supported yet."
        )
    try:
        return coerce(value)
    except TypeMismatchError as exc:
        raise TypeMismatchError(f"Field {column.name}: {exc}") from exc


def bind_value(column: ColumnDefinition, entry: CanonicalValue) -> Any:
    if entry.absent:
        LOGGER.debug("Entry for table column '%s' not found in sink record.", column.name)
        return None
    if entry.hint is None:
        LOGGER.debug("Bind '%s' of type %s", column.name, column.type.value)
        return coerce_by_column_type(column, entry.value)
    LOGGER.debug("Bind '%s' as %s", column.name, entry.hint.value)
    value = coerce_by_field_type(column, entry.hint, entry.value)
    # No field type yields a datetime, so typed values never fit a timestamp column.
    if column.type is ColumnType.TIMESTAMP and not isinstance(value, datetime):
        raise TypeMismatchError(
            f"Field {column.name}: timestamp column can't take a "
            f"{entry.hint.value} value."
        )
    return value


def bind(
    template: StatementTemplate,
    record: CanonicalRecord,
    schema: TableSchema,
) -> BoundStatement:
    """Bind every table column, in table order, or raise without binding any."""
    parameters: Dict[str, Any] = {}
    for column in schema.columns:
        parameters[column.name] = bind_value(column, record.get(column.key, ABSENT))
    return BoundStatement(template=template, parameters=parameters)
