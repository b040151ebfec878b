"""Sink record model and the JSON converter envelope decoder."""

from __future__ import annotations

import base64
import binascii
import enum
import json
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import RecordDecodeError


class FieldType(str, enum.Enum):
    """Connect schema types, spelled the way the JSON converter spells them."""

    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    FLOAT32 = "float"
    FLOAT64 = "double"
    BOOLEAN = "boolean"
    STRING = "string"
    BYTES = "bytes"
    ARRAY = "array"
    MAP = "map"
    STRUCT = "struct"


@dataclass(frozen=True)
class ConnectSchema:
    type: FieldType
    fields: Tuple["ConnectField", ...] = ()
    name: Optional[str] = None
    optional: bool = False


@dataclass(frozen=True)
class ConnectField:
    name: str
    schema: ConnectSchema


@dataclass(frozen=True)
class SinkRecord:
    """One record as delivered by the upstream framework.

    ``value`` is ``None``, a flat mapping (no ``value_schema``), or a mapping
    of field name to value described by a ``STRUCT`` ``value_schema``.
    """

    value: Any
    value_schema: Optional[ConnectSchema] = None
    key: Any = None
    key_schema: Optional[ConnectSchema] = None
    topic: Optional[str] = None
    offset: Optional[int] = None


class FieldModel(BaseModel):
    field: str
    type: FieldType
    optional: bool = False
    name: Optional[str] = None
    fields: Optional[List["FieldModel"]] = None

    model_config = ConfigDict(extra="allow")


class SchemaModel(BaseModel):
    type: FieldType
    fields: Optional[List[FieldModel]] = None
    optional: bool = False
    name: Optional[str] = None

    model_config = ConfigDict(extra="allow")


class EnvelopeModel(BaseModel):
    value_schema: Optional[SchemaModel] = Field(default=None, alias="schema")
    payload: Any = None


def _to_connect_schema(model: SchemaModel | FieldModel) -> ConnectSchema:
    fields = tuple(
        ConnectField(name=item.field, schema=_to_connect_schema(item))
        for item in model.fields or []
    )
    return ConnectSchema(
        type=model.type, fields=fields, name=model.name, optional=model.optional
    )


def _decode_bytes(schema: ConnectSchema, payload: Mapping[str, Any]) -> Dict[str, Any]:
    values = dict(payload)
    for connect_field in schema.fields:
        value = values.get(connect_field.name)
        if connect_field.schema.type is FieldType.BYTES and isinstance(value, str):
            try:
                values[connect_field.name] = base64.b64decode(value, validate=True)
            except binascii.Error as exc:
                raise RecordDecodeError(
                    f"Field {connect_field.name} is not valid base64: {exc}"
                ) from exc
    return values


def is_envelope(document: Any) -> bool:
    return isinstance(document, dict) and set(document) == {"schema", "payload"}


def decode_record(line: str, offset: Optional[int] = None) -> SinkRecord:
    """Decode one JSON line into a ``SinkRecord``.

    Objects with exactly ``schema`` and ``payload`` keys are converter
    envelopes; any other JSON value is taken as a schema-less value. A blank
    line decodes to an empty record.
    """
    text = line.strip()
    if not text:
        return SinkRecord(value=None, offset=offset)
    try:
        document = json.loads(text)
    except json.JSONDecodeError as exc:
        raise RecordDecodeError(f"Invalid JSON at offset {offset}: {exc}") from exc

    if not is_envelope(document):
        return SinkRecord(value=document, offset=offset)

    try:
        envelope = EnvelopeModel.model_validate(document)
    except ValidationError as exc:
        raise RecordDecodeError(f"Invalid record envelope: {exc}") from exc

    if envelope.value_schema is None:
        return SinkRecord(value=envelope.payload, offset=offset)

    schema = _to_connect_schema(envelope.value_schema)
    payload = envelope.payload
    if schema.type is FieldType.STRUCT and isinstance(payload, Mapping):
        payload = _decode_bytes(schema, payload)
    return SinkRecord(value=payload, value_schema=schema, offset=offset)
