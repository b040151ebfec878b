"""Normalize incoming record shapes into one canonical column -> value view."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional

from .catalog import TableSchema
from .errors import (DuplicateColumnCapitalizationError,
                     InvalidRecordShapeError, UnknownColumnError)
from .records import ConnectSchema, FieldType

LOGGER = logging.getLogger("yb_sink.normalizer")


@dataclass(frozen=True)
class CanonicalValue:
    """A raw value plus the type the record declared for it.

    ``hint`` is ``None`` for values that came from a schema-less map; the
    binder then falls back to the column's declared type.
    """

    hint: Optional[FieldType]
    value: Any = None

    @property
    def absent(self) -> bool:
        return self.value is None


ABSENT = CanonicalValue(hint=None)

CanonicalRecord = Dict[str, CanonicalValue]


def index_field_names(names: Iterable[Any], schema: TableSchema) -> Dict[str, str]:
    """Map lower-cased field names to their original spelling.

    Rejects names that collide once lower-cased and names the table does not
    have.
    """
    lower_to_orig: Dict[str, str] = {}
    for name in names:
        if not isinstance(name, str):
            raise InvalidRecordShapeError(f"Field name {name!r} is not a string.")
        key = name.lower()
        existing = lower_to_orig.get(key)
        if existing is not None:
            raise DuplicateColumnCapitalizationError(
                f"Column name {name} with different capitalization already "
                f"present as {existing}."
            )
        lower_to_orig[key] = name

    if len(lower_to_orig) > len(schema):
        raise UnknownColumnError(
            f"Record has {len(lower_to_orig)} columns but table "
            f"{schema.qualified_name} only has {len(schema)}."
        )
    unknown = sorted(key for key in lower_to_orig if key not in schema.by_key)
    if unknown:
        LOGGER.debug(
            "Record columns %s, table columns %s", sorted(lower_to_orig), schema.keys
        )
        raise UnknownColumnError(
            f"Columns {', '.join(unknown)} not found in table {schema.qualified_name}."
        )
    return lower_to_orig


def normalize_map(values: Mapping[str, Any], schema: TableSchema) -> CanonicalRecord:
    """Canonical view of a schema-less map; every entry is untyped."""
    lower_to_orig = index_field_names(values.keys(), schema)
    record: CanonicalRecord = {}
    for key in schema.keys:
        name = lower_to_orig.get(key)
        record[key] = ABSENT if name is None else CanonicalValue(None, values[name])
    return record


def normalize_struct(
    value_schema: ConnectSchema,
    values: Mapping[str, Any],
    schema: TableSchema,
) -> CanonicalRecord:
    """Canonical view of a struct; entries carry the field's declared type."""
    fields = {connect_field.name: connect_field for connect_field in value_schema.fields}
    lower_to_orig = index_field_names(fields.keys(), schema)
    record: CanonicalRecord = {}
    for key in schema.keys:
        name = lower_to_orig.get(key)
        if name is None:
            record[key] = ABSENT
            continue
        record[key] = CanonicalValue(fields[name].schema.type, values.get(name))
    return record
