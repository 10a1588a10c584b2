"""Dialect-aware INSERT ... ON CONFLICT helpers (PostgreSQL and SQLite)."""

from typing import Any

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession


def insert_for(db: AsyncSession, model: Any):
    """Return a dialect-specific insert() construct for the session's bind."""
    dialect = db.bind.dialect.name if db.bind is not None else "postgresql"
    if dialect == "sqlite":
        return sqlite_insert(model)
    if dialect == "postgresql":
        return pg_insert(model)
    raise NotImplementedError(f"Upsert not supported for dialect {dialect!r}")
