# src/safeyak/db/statements.py
"""Dialect-aware statement helpers used for atomic storage updates."""

from __future__ import annotations

from typing import Any

from sqlalchemy import inspect, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session


def insert_ignore(session: Session, model: type[Any], values: dict[str, Any]) -> bool:
    """Insert a row unless its primary key already exists.

    Uses ``ON CONFLICT DO NOTHING`` on SQLite and PostgreSQL so concurrent
    callers cannot both insert.

    Returns:
        True if this call inserted the row.
    """
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        stmt = pg_insert(model).values(**values).on_conflict_do_nothing()
    elif dialect == "sqlite":
        stmt = sqlite_insert(model).values(**values).on_conflict_do_nothing()
    else:
        key = tuple(values[column.key] for column in inspect(model).primary_key)
        if session.get(model, key if len(key) > 1 else key[0]) is not None:
            return False
        session.add(model(**values))
        session.flush()
        return True
    result = session.execute(stmt)
    return result.rowcount == 1


def increment(session: Session, model: type[Any], where: Any, **deltas: int) -> int:
    """Apply ``column = column + delta`` for each keyword in one UPDATE.

    Returns:
        Number of rows matched.
    """
    values = {name: getattr(model, name) + delta for name, delta in deltas.items()}
    stmt = (
        update(model)
        .where(where)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    return session.execute(stmt).rowcount
