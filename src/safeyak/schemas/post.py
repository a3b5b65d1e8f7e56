# src/safeyak/schemas/post.py
"""Post-related Pydantic schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class PostCreate(BaseModel):
    """Schema for creating a new post."""

    body: str | None = Field(None, description="Post text")
    zone: str | None = Field(None, description="Zone the post belongs to")


class PostUpdate(BaseModel):
    """Schema for editing a post body."""

    body: str | None = Field(None, description="Replacement text")


class PostResponse(BaseModel):
    """Schema for post information returned by the API.

    ``body`` is None for hidden posts unless the viewer is the author.
    """

    id: int
    body: str | None
    zone: str
    author_hash: str
    created_at: datetime
    is_blurred: bool
    is_hidden: bool
    moderation_reason: str | None
    toxicity: float
    locked: bool
    score: int
    upvotes: int
    downvotes: int
    bookmarks_count: int
    reputation: int = 0

    model_config = ConfigDict(from_attributes=True)


class VoteCreate(BaseModel):
    """Schema for casting a vote."""

    direction: Literal[-1, 1] = Field(..., description="1 for upvote, -1 for downvote")


class VoteResponse(BaseModel):
    """Post counters after a vote, plus the caller's resulting vote."""

    post_id: int
    my_vote: int
    score: int
    upvotes: int
    downvotes: int


class BookmarkResponse(BaseModel):
    """Bookmark state after a toggle."""

    post_id: int
    bookmarked: bool
    bookmarks_count: int
