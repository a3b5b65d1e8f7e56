# src/safeyak/db/changes.py
"""Row-change notifications emitted by the storage layer.

ORM inserts, updates and deletes are captured during flush and published to
the realtime channel after the surrounding transaction commits. Changes made
with statement-level ``UPDATE`` (atomic counters) are not seen by the flush
and must be staged explicitly with :func:`stage_update`.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import event, inspect
from sqlalchemy.orm import Session

from safeyak.services.realtime import (
    EVENT_DELETE,
    EVENT_INSERT,
    EVENT_UPDATE,
    ChangeEvent,
    get_realtime_channel,
)

logger = logging.getLogger(__name__)

_PENDING_KEY = "safeyak.pending_changes"


def row_snapshot(obj: Any) -> dict[str, Any]:
    """Return the current column values of a mapped instance."""
    mapper = inspect(obj).mapper
    return {attr.key: getattr(obj, attr.key) for attr in mapper.column_attrs}


def _previous_snapshot(obj: Any) -> dict[str, Any]:
    state = inspect(obj)
    old: dict[str, Any] = {}
    for attr in state.mapper.column_attrs:
        history = state.attrs[attr.key].history
        if history.deleted:
            old[attr.key] = history.deleted[0]
        else:
            old[attr.key] = getattr(obj, attr.key)
    return old


def _deleted_snapshot(obj: Any) -> dict[str, Any]:
    # The row is gone; report what was loaded plus the identity.
    state = inspect(obj)
    snapshot = {attr.key: state.dict.get(attr.key) for attr in state.mapper.column_attrs}
    for column, value in zip(state.mapper.primary_key, state.identity or ()):
        snapshot[state.mapper.get_property_by_column(column).key] = value
    return snapshot


def _table_name(obj: Any) -> str:
    return inspect(obj).mapper.local_table.name


def _pending(session: Session) -> list[ChangeEvent]:
    return session.info.setdefault(_PENDING_KEY, [])


def stage_update(session: Session, obj: Any) -> None:
    """Queue an UPDATE event for ``obj`` as it currently reads in the session."""
    _pending(session).append(
        ChangeEvent(table=_table_name(obj), type=EVENT_UPDATE, new=row_snapshot(obj))
    )


@event.listens_for(Session, "after_flush")
def _collect_changes(session: Session, flush_context: Any) -> None:
    pending = _pending(session)
    for obj in session.new:
        pending.append(ChangeEvent(_table_name(obj), EVENT_INSERT, new=row_snapshot(obj)))
    for obj in session.dirty:
        if session.is_modified(obj, include_collections=False):
            pending.append(
                ChangeEvent(
                    _table_name(obj),
                    EVENT_UPDATE,
                    new=row_snapshot(obj),
                    old=_previous_snapshot(obj),
                )
            )
    for obj in session.deleted:
        pending.append(ChangeEvent(_table_name(obj), EVENT_DELETE, new=None, old=_deleted_snapshot(obj)))


@event.listens_for(Session, "after_commit")
def _publish_changes(session: Session) -> None:
    pending = session.info.pop(_PENDING_KEY, [])
    if not pending:
        return
    channel = get_realtime_channel()
    for change in pending:
        channel.publish(change)
    logger.debug("Published %d row changes", len(pending))


@event.listens_for(Session, "after_rollback")
def _discard_changes(session: Session) -> None:
    session.info.pop(_PENDING_KEY, None)
