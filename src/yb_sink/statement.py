"""Build the single parameterized INSERT used for every record of a batch."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional, Tuple

from sqlalchemy import Column, MetaData, Table, insert
from sqlalchemy import types as sqltypes
from sqlalchemy.engine import Dialect
from sqlalchemy.sql import Insert

from .catalog import ColumnDefinition, ColumnType, TableSchema
from .errors import EmptySchemaError

LOGGER = logging.getLogger("yb_sink.statement")


class UtcDateTime(sqltypes.TypeDecorator):
    """Bind UTC-aware datetimes, dropping the offset for naive columns."""

    impl = sqltypes.DateTime
    cache_ok = True

    def __init__(self, with_timezone: bool = False) -> None:
        super().__init__(timezone=with_timezone)
        self.with_timezone = with_timezone

    def process_bind_param(self, value: Any, dialect: Dialect) -> Any:
        if not isinstance(value, datetime) or self.with_timezone or value.tzinfo is None:
            return value
        return value.astimezone(timezone.utc).replace(tzinfo=None)


def _sql_type(column: ColumnDefinition) -> sqltypes.TypeEngine:
    if column.type is ColumnType.INT:
        return sqltypes.Integer()
    if column.type is ColumnType.BIGINT:
        return sqltypes.BigInteger()
    if column.type is ColumnType.FLOAT:
        return sqltypes.REAL()
    if column.type is ColumnType.DOUBLE:
        return sqltypes.Double()
    if column.type is ColumnType.TEXT:
        return sqltypes.Text()
    if column.type is ColumnType.BOOLEAN:
        return sqltypes.Boolean()
    if column.type is ColumnType.BLOB:
        return sqltypes.LargeBinary()
    if column.type is ColumnType.TIMESTAMP:
        return UtcDateTime(with_timezone=column.timezone)
    return sqltypes.NullType()


@dataclass(frozen=True)
class StatementTemplate:
    """An INSERT naming every table column, one named parameter per column.

    Parameters are keyed by the catalog spelling of the column and listed in
    table order by ``param_names``.
    """

    schema: TableSchema
    table: Table
    statement: Insert
    param_names: Tuple[str, ...]

    def prepare(self, dialect: Optional[Dialect] = None) -> str:
        """Compile the statement once per batch and return its SQL text.

        The text is only logged and reported. Execution passes ``statement``
        itself and relies on SQLAlchemy's compiled-statement cache, so the
        returned string is never handed to the driver.
        """
        sql = str(self.statement.compile(dialect=dialect))
        LOGGER.info("Insert %s", sql)
        return sql


def build_insert(schema: TableSchema) -> StatementTemplate:
    if not schema.columns:
        raise EmptySchemaError(f"Table {schema.qualified_name} has no columns.")

    table = Table(
        schema.table,
        MetaData(),
        *(Column(column.name, _sql_type(column)) for column in schema.columns),
        schema=schema.namespace,
    )
    return StatementTemplate(
        schema=schema,
        table=table,
        statement=insert(table),
        param_names=tuple(column.name for column in schema.columns),
    )
