# src/safeyak/schemas/reputation.py
"""Reputation and profile Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel


class ReputationResponse(BaseModel):
    """Bare reputation figure for one pseudonym."""

    reputation: int


class TierResponse(BaseModel):
    """Badge information for a reputation score."""

    label: str
    emoji: str
    floor: int
    next_floor: int | None
    progress: float
    is_max: bool


class ProfileResponse(BaseModel):
    """Aggregate profile statistics for a pseudonym."""

    author_hash: str
    reputation: int
    strikes: int
    post_count: int
    comment_count: int
    upvotes_received: int
    bookmarks_received: int
    joined_at: datetime
    tier: TierResponse
