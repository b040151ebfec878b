"""Exception hierarchy for the sink.

Errors are split by the unit of work they abort: a ``SchemaError`` makes the
whole batch unusable, a ``RecordError`` only drops the offending record.
"""

from __future__ import annotations


class SinkError(Exception):
    """Base exception for all sink failures."""


class ConfigError(SinkError):
    """Raised for invalid connector configuration."""


class SchemaError(SinkError):
    """Raised when the target table cannot be used for the current batch."""


class SchemaNotFoundError(SchemaError):
    """Raised when the namespace or the table is missing from the catalog."""


class EmptySchemaError(SchemaError):
    """Raised when the target table has no columns."""


class AmbiguousColumnError(SchemaError):
    """Raised when two table columns differ only by capitalization."""


class RecordError(SinkError):
    """Raised when a single record cannot be written."""


class DuplicateColumnCapitalizationError(RecordError):
    """Raised when two record fields differ only by capitalization."""


class UnknownColumnError(RecordError):
    """Raised when a record carries a field the table does not have."""


class InvalidRecordShapeError(RecordError):
    """Raised when a record value is neither a flat map nor a struct."""


class RecordDecodeError(RecordError):
    """Raised when a serialized record cannot be decoded."""


class TypeMismatchError(RecordError):
    """Raised when a value does not match the type it is bound as."""


class TimestampFormatError(RecordError):
    """Raised when a timestamp string does not follow the accepted pattern."""


class UnsupportedColumnTypeError(RecordError):
    """Raised when a value targets a type the binder cannot handle."""


class DatabaseUnavailableError(SinkError):
    """Raised when no contact point answers before the connect timeout."""
