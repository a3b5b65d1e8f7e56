# src/safeyak/models/post.py
"""SQLAlchemy models for posts and their comment threads."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from safeyak.db.session import Base
from safeyak.db.time import utcnow
from safeyak.models.engagement import Bookmark, PostVote


class Post(Base):
    """Top-level anonymous post; together with its comments it forms a thread.

    ``is_blurred`` and ``is_hidden`` are independent flags although the
    moderation policy only ever sets one of them. ``locked`` is one-way.
    """

    __tablename__ = "post"
    __table_args__ = (Index("ix_post_zone_created_at", "zone", "created_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    zone: Mapped[str] = mapped_column(String(64), nullable=False)
    author_hash: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    # Moderation verdict copied from the latest classification.
    is_blurred: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_hidden: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    moderation_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    toxicity: Mapped[float] = mapped_column(default=0.0, nullable=False)

    # Auto-lock state: open (False) -> locked (True), never back.
    locked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    locked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    score: Mapped[int] = mapped_column(default=0, nullable=False)
    upvotes: Mapped[int] = mapped_column(default=0, nullable=False)
    downvotes: Mapped[int] = mapped_column(default=0, nullable=False)
    bookmarks_count: Mapped[int] = mapped_column(default=0, nullable=False)

    comments: Mapped[list[Comment]] = relationship(
        "Comment",
        back_populates="post",
        cascade="all, delete-orphan",
        order_by="Comment.created_at",
    )
    votes: Mapped[list[PostVote]] = relationship("PostVote", cascade="all, delete-orphan")
    bookmarks: Mapped[list[Bookmark]] = relationship("Bookmark", cascade="all, delete-orphan")


class Comment(Base):
    """Reply inside a thread. Locking is a property of the parent post."""

    __tablename__ = "comment"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    post_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("post.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    body: Mapped[str] = mapped_column(Text, nullable=False)
    author_hash: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    is_blurred: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_hidden: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    moderation_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    toxicity: Mapped[float] = mapped_column(default=0.0, nullable=False)

    post: Mapped[Post] = relationship("Post", back_populates="comments")
