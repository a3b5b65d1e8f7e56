# src/safeyak/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    comments_router,
    identity_router,
    moderation_router,
    posts_router,
    realtime_router,
    reputation_router,
    system_router,
)

__all__ = [
    "comments_router",
    "identity_router",
    "moderation_router",
    "posts_router",
    "realtime_router",
    "reputation_router",
    "system_router",
]
