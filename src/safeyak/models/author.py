# src/safeyak/models/author.py
"""SQLAlchemy model for pseudonymous author identities."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from safeyak.db.session import Base
from safeyak.db.time import utcnow


class Author(Base):
    """Anonymous identity keyed by a client-generated token.

    The token is never verified: whoever presents it acts as this author.
    Rows are created lazily on first interaction and never deleted.
    """

    __tablename__ = "anon_author"

    author_hash: Mapped[str] = mapped_column(String(128), primary_key=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    # Advisory cooldown marker; read-then-write, may race under true concurrency.
    last_post_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
