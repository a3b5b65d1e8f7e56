# src/safeyak/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .comments import router as comments_router
from .identity import router as identity_router
from .moderation import router as moderation_router
from .posts import router as posts_router
from .realtime import router as realtime_router
from .reputation import router as reputation_router
from .system import router as system_router

__all__ = [
    "comments_router",
    "identity_router",
    "moderation_router",
    "posts_router",
    "realtime_router",
    "reputation_router",
    "system_router",
]
