"""Unit tests for value coercion and binding."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from yb_sink.binder import (bind, coerce_by_column_type, coerce_by_field_type,
                            parse_timestamp, timestamp_from_millis)
from yb_sink.catalog import ColumnDefinition, ColumnType, TableSchema
from yb_sink.errors import (TimestampFormatError, TypeMismatchError,
                            UnsupportedColumnTypeError)
from yb_sink.normalizer import CanonicalValue, normalize_map
from yb_sink.records import FieldType
from yb_sink.statement import build_insert


def _column(column_type: ColumnType) -> ColumnDefinition:
    return ColumnDefinition(name="col", type=column_type, sql_type=column_type.value)


def test_timestamp_string_and_epoch_millis_bind_the_same_instant() -> None:
    """The fixed string pattern is UTC and matches epoch milliseconds."""
    column = _column(ColumnType.TIMESTAMP)

    from_string = coerce_by_column_type(column, "2023-01-15 10:30:00")
    from_millis = coerce_by_column_type(column, 1673778600000)

    assert from_string == from_millis
    assert from_string == datetime(2023, 1, 15, 10, 30, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "value", ["2023-01-15T10:30:00", "2023/01/15 10:30:00", "15.01.2023", ""]
)
def test_parse_timestamp_rejects_other_formats(value: str) -> None:
    """Only yyyy-MM-dd HH:mm:ss is accepted."""
    with pytest.raises(TimestampFormatError):
        parse_timestamp(value)


def test_timestamp_rejects_other_runtime_types() -> None:
    """Floats and booleans are not timestamps."""
    column = _column(ColumnType.TIMESTAMP)

    with pytest.raises(TypeMismatchError):
        coerce_by_column_type(column, 1.5)
    with pytest.raises(TypeMismatchError):
        coerce_by_column_type(column, True)


def test_timestamp_from_millis_handles_pre_epoch_values() -> None:
    """Negative milliseconds count back from the epoch."""
    assert timestamp_from_millis(-1000) == datetime(
        1969, 12, 31, 23, 59, 59, tzinfo=timezone.utc
    )


def test_int_column_enforces_int32_range() -> None:
    """INT columns only take 32-bit integers."""
    column = _column(ColumnType.INT)

    assert coerce_by_column_type(column, 2**31 - 1) == 2**31 - 1
    with pytest.raises(TypeMismatchError, match="out of range"):
        coerce_by_column_type(column, 2**31)


def test_integer_columns_reject_booleans_and_strings() -> None:
    """Booleans and numeric strings are not integers."""
    column = _column(ColumnType.BIGINT)

    with pytest.raises(TypeMismatchError):
        coerce_by_column_type(column, True)
    with pytest.raises(TypeMismatchError):
        coerce_by_column_type(column, "12")


def test_floating_columns_accept_ints_and_floats() -> None:
    """Numbers widen to float for FLOAT and DOUBLE columns."""
    assert coerce_by_column_type(_column(ColumnType.FLOAT), 3) == 3.0
    assert coerce_by_column_type(_column(ColumnType.DOUBLE), 2.5) == 2.5
    with pytest.raises(TypeMismatchError):
        coerce_by_column_type(_column(ColumnType.DOUBLE), "2.5")


def test_text_and_boolean_columns_are_strict() -> None:
    """TEXT needs a str and BOOLEAN needs a bool."""
    assert coerce_by_column_type(_column(ColumnType.TEXT), "hi") == "hi"
    assert coerce_by_column_type(_column(ColumnType.BOOLEAN), False) is False
    with pytest.raises(TypeMismatchError):
        coerce_by_column_type(_column(ColumnType.TEXT), 5)
    with pytest.raises(TypeMismatchError):
        coerce_by_column_type(_column(ColumnType.BOOLEAN), 1)


@pytest.mark.parametrize(
    "value", [b"\x00\x01", bytearray(b"\x00\x01"), memoryview(b"\x00\x01")]
)
def test_blob_column_wraps_byte_sequences(value) -> None:
    """Buffers and raw byte arrays bind as bytes."""
    assert coerce_by_column_type(_column(ColumnType.BLOB), value) == b"\x00\x01"


def test_unsupported_column_type_raises() -> None:
    """Columns outside the supported set cannot be bound."""
    with pytest.raises(UnsupportedColumnTypeError):
        coerce_by_column_type(_column(ColumnType.DECIMAL), 1)


def test_field_type_wins_over_column_type() -> None:
    """Typed values follow their own declared type, not the column's."""
    text_column = _column(ColumnType.TEXT)

    assert coerce_by_field_type(text_column, FieldType.BYTES, b"raw") == b"raw"
    assert coerce_by_field_type(text_column, FieldType.INT8, 12) == 12


def test_field_type_checks_width_and_runtime_type() -> None:
    """Typed integers are range checked per width."""
    column = _column(ColumnType.BIGINT)

    with pytest.raises(TypeMismatchError):
        coerce_by_field_type(column, FieldType.INT8, 200)
    with pytest.raises(TypeMismatchError):
        coerce_by_field_type(column, FieldType.STRING, 1)


def test_non_primitive_field_type_is_unsupported() -> None:
    """Nested field types cannot be bound into a column."""
    with pytest.raises(UnsupportedColumnTypeError):
        coerce_by_field_type(_column(ColumnType.TEXT), FieldType.ARRAY, [1])


def test_bind_sets_every_parameter(events_schema: TableSchema) -> None:
    """A full record binds all parameters, none null."""
    template = build_insert(events_schema)
    record = normalize_map(
        {"id": 1, "name": "alice", "created": "2023-01-15 10:30:00"}, events_schema
    )

    bound = bind(template, record, events_schema)

    assert dict(bound.parameters) == {
        "id": 1,
        "name": "alice",
        "created": datetime(2023, 1, 15, 10, 30, tzinfo=timezone.utc),
    }
    assert bound.template is template


def test_bind_nulls_missing_columns(events_schema: TableSchema) -> None:
    """Missing columns are bound as explicit nulls."""
    template = build_insert(events_schema)

    bound = bind(template, normalize_map({"id": 2}, events_schema), events_schema)

    assert list(bound.parameters) == list(template.param_names)
    assert dict(bound.parameters) == {"id": 2, "name": None, "created": None}


@pytest.mark.parametrize("value", [2**62, -(2**62), 10**17])
def test_epoch_millis_outside_datetime_range_is_a_mismatch(value: int) -> None:
    """Milliseconds no datetime can hold raise a record error, not an overflow."""
    with pytest.raises(TypeMismatchError, match="out of range"):
        coerce_by_column_type(_column(ColumnType.TIMESTAMP), value)


@pytest.mark.parametrize("value", [1e300, -1e300, 2**200])
def test_single_precision_targets_reject_values_above_float32(value) -> None:
    """FLOAT columns and float32 fields refuse magnitudes a REAL cannot store."""
    with pytest.raises(TypeMismatchError, match="out of range"):
        coerce_by_column_type(_column(ColumnType.FLOAT), value)
    with pytest.raises(TypeMismatchError, match="out of range"):
        coerce_by_field_type(_column(ColumnType.DOUBLE), FieldType.FLOAT32, value)


def test_single_precision_keeps_boundary_and_non_finite_values() -> None:
    """The float32 maximum and infinities still bind."""
    column = _column(ColumnType.FLOAT)

    assert coerce_by_column_type(column, 3.4028235e38) == 3.4028235e38
    assert coerce_by_column_type(column, float("inf")) == float("inf")
    assert coerce_by_column_type(_column(ColumnType.DOUBLE), 1e300) == 1e300


def test_double_rejects_integers_too_large_for_a_float() -> None:
    """Integers beyond the double range are a mismatch."""
    with pytest.raises(TypeMismatchError, match="out of range"):
        coerce_by_column_type(_column(ColumnType.DOUBLE), 10**400)


@pytest.mark.parametrize(
    ("field_type", "value"),
    [(FieldType.INT64, 1673778600000), (FieldType.STRING, "2023-01-15 10:30:00")],
)
def test_typed_value_cannot_target_timestamp_column(field_type: FieldType, value) -> None:
    """No declared field type produces a timestamp, so binding fails per record."""
    schema = TableSchema.from_columns("main", "t", [("created", ColumnType.TIMESTAMP)])
    record = {"created": CanonicalValue(hint=field_type, value=value)}

    with pytest.raises(TypeMismatchError, match="created"):
        bind(build_insert(schema), record, schema)
