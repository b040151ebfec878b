"""Load the target table's column definitions from the database catalog."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Tuple

from sqlalchemy import inspect
from sqlalchemy import types as sqltypes

from .errors import AmbiguousColumnError, SchemaNotFoundError

LOGGER = logging.getLogger("yb_sink.catalog")

# Float precision (in binary digits) up to which a column is single precision.
SINGLE_PRECISION_DIGITS = 24


class ColumnType(str, enum.Enum):
    """Declared database type of a column."""

    INT = "int"
    BIGINT = "bigint"
    FLOAT = "float"
    DOUBLE = "double"
    TEXT = "text"
    BOOLEAN = "boolean"
    BLOB = "blob"
    TIMESTAMP = "timestamp"
    SMALLINT = "smallint"
    DECIMAL = "decimal"
    DATE = "date"
    OTHER = "other"


@dataclass(frozen=True)
class ColumnDefinition:
    """A single catalog column; ``name`` keeps the catalog's spelling."""

    name: str
    type: ColumnType
    sql_type: str = ""
    timezone: bool = False

    @property
    def key(self) -> str:
        return self.name.lower()


@dataclass(frozen=True)
class TableSchema:
    """Ordered columns of the target table plus a lower-cased lookup."""

    namespace: str
    table: str
    columns: Tuple[ColumnDefinition, ...]
    by_key: Dict[str, ColumnDefinition] = field(
        init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        by_key: Dict[str, ColumnDefinition] = {}
        for column in self.columns:
            existing = by_key.get(column.key)
            if existing is not None:
                raise AmbiguousColumnError(
                    f"Columns {existing.name!r} and {column.name!r} of "
                    f"{self.qualified_name} differ only by capitalization"
                )
            by_key[column.key] = column
        object.__setattr__(self, "by_key", by_key)

    @classmethod
    def from_columns(
        cls,
        namespace: str,
        table: str,
        columns: Iterable[Tuple[str, ColumnType]],
    ) -> "TableSchema":
        return cls(
            namespace=namespace,
            table=table,
            columns=tuple(
                ColumnDefinition(name=name, type=column_type, sql_type=column_type.value)
                for name, column_type in columns
            ),
        )

    @property
    def qualified_name(self) -> str:
        return f"{self.namespace}.{self.table}"

    @property
    def keys(self) -> Tuple[str, ...]:
        return tuple(column.key for column in self.columns)

    def __len__(self) -> int:
        return len(self.columns)


def column_type_for(sql_type: sqltypes.TypeEngine) -> ColumnType:
    """Map a reflected SQLAlchemy type onto a ``ColumnType``.

    Subclasses are checked before their bases: ``BigInteger`` and
    ``SmallInteger`` both derive from ``Integer``, ``Float`` derives from
    ``Numeric`` and ``Enum`` derives from ``String``.
    """
    if isinstance(sql_type, sqltypes.BigInteger):
        return ColumnType.BIGINT
    if isinstance(sql_type, sqltypes.SmallInteger):
        return ColumnType.SMALLINT
    if isinstance(sql_type, sqltypes.Integer):
        return ColumnType.INT
    if isinstance(sql_type, sqltypes.Double):
        return ColumnType.DOUBLE
    if isinstance(sql_type, sqltypes.REAL):
        return ColumnType.FLOAT
    if isinstance(sql_type, sqltypes.Float):
        precision = sql_type.precision
        if precision is not None and precision <= SINGLE_PRECISION_DIGITS:
            return ColumnType.FLOAT
        return ColumnType.DOUBLE
    if isinstance(sql_type, sqltypes.Numeric):
        return ColumnType.DECIMAL
    if isinstance(sql_type, sqltypes.Boolean):
        return ColumnType.BOOLEAN
    if isinstance(sql_type, sqltypes.Enum):
        return ColumnType.OTHER
    if isinstance(sql_type, sqltypes.String):
        return ColumnType.TEXT
    if isinstance(sql_type, (sqltypes.LargeBinary, sqltypes.BINARY, sqltypes.VARBINARY)):
        return ColumnType.BLOB
    if isinstance(sql_type, sqltypes.DateTime):
        return ColumnType.TIMESTAMP
    if isinstance(sql_type, sqltypes.Date):
        return ColumnType.DATE
    return ColumnType.OTHER


def load_schema(bind: Any, namespace: str, table_name: str) -> TableSchema:
    """Reflect ``namespace.table_name`` from the catalog behind ``bind``.

    ``bind`` is a synchronous SQLAlchemy ``Connection`` or ``Engine``. The
    schema is never cached: callers load it once per batch so that table
    evolution between batches is picked up.
    """
    inspector = inspect(bind)
    if namespace not in inspector.get_schema_names():
        raise SchemaNotFoundError(f"Keyspace {namespace} not found.")
    if not inspector.has_table(table_name, schema=namespace):
        raise SchemaNotFoundError(f"Table {table_name} not found in {namespace}.")

    columns = []
    for reflected in inspector.get_columns(table_name, schema=namespace):
        sql_type = reflected["type"]
        column = ColumnDefinition(
            name=reflected["name"],
            type=column_type_for(sql_type),
            sql_type=str(sql_type),
            timezone=bool(getattr(sql_type, "timezone", False)),
        )
        LOGGER.debug(
            "Add column %s of type %s (%s)", column.name, column.type.value, column.sql_type
        )
        columns.append(column)

    schema = TableSchema(namespace=namespace, table=table_name, columns=tuple(columns))
    LOGGER.info("Loaded %s columns for %s", len(schema), schema.qualified_name)
    return schema
