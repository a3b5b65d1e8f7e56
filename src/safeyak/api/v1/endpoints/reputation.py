# src/safeyak/api/v1/endpoints/reputation.py
"""Reputation lookup and profile endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Query
from sqlalchemy.exc import SQLAlchemyError

from safeyak.core.errors import NotFoundError, ValidationError
from safeyak.schemas import ProfileResponse, ReputationResponse, TierResponse
from safeyak.services.reputation import tier_progress

from ..dependencies import LedgerDep

logger = logging.getLogger(__name__)

router = APIRouter(tags=["reputation"])


@router.get("/reputation", response_model=ReputationResponse)
async def get_reputation(
    ledger: LedgerDep,
    author_hash: Annotated[str | None, Query(alias="hash")] = None,
) -> ReputationResponse:
    """Return the reputation of one pseudonym.

    Unknown pseudonyms and a failing store both read as 0, so a badge can
    always be rendered.
    """
    if not author_hash:
        raise ValidationError("Missing hash parameter")
    try:
        reputation = ledger.get_reputation(author_hash)
    except SQLAlchemyError:
        logger.warning("Reputation lookup failed for %s", author_hash, exc_info=True)
        ledger.db.rollback()
        reputation = 0
    return ReputationResponse(reputation=reputation)


@router.get("/profiles/{author_hash}", response_model=ProfileResponse)
async def get_profile(author_hash: str, ledger: LedgerDep) -> ProfileResponse:
    """Return profile statistics and tier badge for a pseudonym."""
    stats = ledger.get_profile_stats(author_hash)
    if stats is None:
        raise NotFoundError("Profile not found")

    progress = tier_progress(stats["reputation"])
    tier = TierResponse(
        label=progress.tier.label,
        emoji=progress.tier.emoji,
        floor=progress.tier.floor,
        next_floor=progress.next_tier.floor if progress.next_tier else None,
        progress=progress.progress,
        is_max=progress.is_max,
    )
    return ProfileResponse(**stats, tier=tier)
