"""System and transparency endpoints for SafeYak API."""

from __future__ import annotations

from fastapi import APIRouter

from safeyak.core.settings import settings

router = APIRouter(prefix="/system", tags=["system", "transparency"])


@router.get("/config")
async def get_public_config() -> dict[str, object]:
    """Return a sanitized snapshot of public policy configuration.

    Excludes secrets and connection strings; suitable for transparency UIs
    that explain why content was blurred or a thread locked.
    """
    return {
        "zones": list(settings.zones),
        "moderation": {
            "configured": settings.moderation_configured,
            "unconfigured_mode": settings.moderation_unconfigured_mode,
            "thresholds": settings.moderation_thresholds,
        },
        "reputation": {
            "strike_penalty": settings.reputation_strike_penalty,
            "upvote_delta": settings.reputation_upvote_delta,
            "bookmark_delta": settings.reputation_bookmark_delta,
        },
        "autolock": {
            "violation_threshold": settings.autolock_violation_threshold,
            "lock_on_severe": settings.autolock_on_severe,
        },
        "post_cooldown_seconds": settings.post_cooldown_seconds,
        "max_body_length": settings.max_body_length,
    }
