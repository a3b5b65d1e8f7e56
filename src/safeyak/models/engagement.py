# src/safeyak/models/engagement.py
"""Models capturing voting and bookmarking interactions on posts."""

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, SmallInteger, String
from sqlalchemy.orm import Mapped, mapped_column

from safeyak.db.session import Base


class PostVote(Base):
    """Per-author vote on a post."""

    __tablename__ = "post_vote"
    __table_args__ = (
        CheckConstraint("direction IN (1, -1)", name="ck_post_vote_direction"),
        Index("ix_post_vote_post_id", "post_id"),
    )

    post_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("post.id", ondelete="CASCADE"),
        primary_key=True,
    )
    # Composite primary key prevents duplicate votes from the same author.
    voter_hash: Mapped[str] = mapped_column(String(128), primary_key=True)

    # 1 = upvote, -1 = downvote.
    direction: Mapped[int] = mapped_column(SmallInteger, nullable=False)


class Bookmark(Base):
    """An author's bookmark of a post; presence of the row means bookmarked."""

    __tablename__ = "bookmark"

    post_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("post.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_hash: Mapped[str] = mapped_column(String(128), primary_key=True)
