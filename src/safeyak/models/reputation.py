# src/safeyak/models/reputation.py
"""Models backing the per-author reputation ledger."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from safeyak.db.session import Base
from safeyak.db.time import utcnow


class ReputationRecord(Base):
    """Aggregated trust signals for one pseudonym.

    Owned by the system: clients never write it, only derived events do, and
    every counter is changed with an atomic ``col = col + delta`` update.
    """

    __tablename__ = "reputation"

    author_hash: Mapped[str] = mapped_column(String(128), primary_key=True)
    reputation: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    strikes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    post_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    comment_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    upvotes_received: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    bookmarks_received: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )


class StrikeEvent(Base):
    """Audit row for an applied strike.

    The unique ``event_key`` makes strikes idempotent per content edit.
    """

    __tablename__ = "strike_event"

    event_key: Mapped[str] = mapped_column(String(64), primary_key=True)
    author_hash: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    content_kind: Mapped[str] = mapped_column(String(16), nullable=False)
    content_id: Mapped[int] = mapped_column(Integer, nullable=False)
    penalty: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
