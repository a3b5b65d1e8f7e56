# src/safeyak/schemas/moderation.py
"""Moderation-related Pydantic schemas."""

from pydantic import BaseModel, Field


class ModerationRequest(BaseModel):
    """Schema for a moderation preview."""

    text: str | None = Field(None, description="Text to classify")


class ModerationVerdictResponse(BaseModel):
    """Moderation verdict returned by the API."""

    allowed: bool
    blur: bool
    hide: bool
    reason: str | None
    toxicity: float
