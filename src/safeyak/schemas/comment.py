# src/safeyak/schemas/comment.py
"""Comment-related Pydantic schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class CommentCreate(BaseModel):
    """Schema for replying to a thread or editing a reply."""

    body: str | None = Field(None, description="Comment text")


class CommentResponse(BaseModel):
    """Schema for comment information returned by the API."""

    id: int
    post_id: int
    body: str | None
    author_hash: str
    created_at: datetime
    is_blurred: bool
    is_hidden: bool
    moderation_reason: str | None

    model_config = ConfigDict(from_attributes=True)


class CommentWriteResponse(BaseModel):
    """Result of creating or editing a comment, with the thread lock state."""

    success: bool = True
    comment: CommentResponse
    locked: bool
