# src/safeyak/models/__init__.py
"""SQLAlchemy models for the SafeYak application."""

from .author import Author
from .engagement import Bookmark, PostVote
from .post import Comment, Post
from .reputation import ReputationRecord, StrikeEvent

__all__ = [
    "Author",
    "Bookmark", "PostVote",
    "Comment", "Post",
    "ReputationRecord", "StrikeEvent",
]
