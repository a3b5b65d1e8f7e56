"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .comment import CommentCreate, CommentResponse, CommentWriteResponse
from .identity import IdentityResponse
from .moderation import ModerationRequest, ModerationVerdictResponse
from .post import (
    BookmarkResponse,
    PostCreate,
    PostResponse,
    PostUpdate,
    VoteCreate,
    VoteResponse,
)
from .reputation import ProfileResponse, ReputationResponse, TierResponse

__all__ = [
    "CommentCreate", "CommentResponse", "CommentWriteResponse",
    "IdentityResponse",
    "ModerationRequest", "ModerationVerdictResponse",
    "BookmarkResponse", "PostCreate", "PostResponse", "PostUpdate", "VoteCreate", "VoteResponse",
    "ProfileResponse", "ReputationResponse", "TierResponse",
]
