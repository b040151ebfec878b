"""Shared fixtures for sink tests."""

from __future__ import annotations

from typing import Iterator

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine

from yb_sink.catalog import ColumnType, TableSchema
from yb_sink.processor import BatchContext
from yb_sink.statement import build_insert


@pytest.fixture
def events_schema() -> TableSchema:
    """The id/name/created table used across scenarios."""
    return TableSchema.from_columns(
        "main",
        "events",
        [
            ("id", ColumnType.BIGINT),
            ("name", ColumnType.TEXT),
            ("created", ColumnType.TIMESTAMP),
        ],
    )


@pytest.fixture
def events_context(events_schema: TableSchema) -> BatchContext:
    template = build_insert(events_schema)
    return BatchContext(schema=events_schema, template=template, sql=template.prepare())


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    """In-memory SQLite database holding an ``events`` table."""
    engine = create_engine("sqlite://")
    with engine.begin() as conn:
        conn.execute(
            text(
                "CREATE TABLE events ("
                "id BIGINT PRIMARY KEY, "
                "name TEXT, "
                "created TIMESTAMP, "
                "qty INTEGER, "
                "score FLOAT, "
                "ratio REAL, "
                "active BOOLEAN, "
                "payload BLOB"
                ")"
            )
        )
    yield engine
    engine.dispose()
