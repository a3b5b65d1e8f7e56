# src/safeyak/api/v1/endpoints/identity.py
"""Pseudonymous identity endpoint."""

from fastapi import APIRouter, status

from safeyak.schemas import IdentityResponse
from safeyak.services.identity import IdentityProvider

router = APIRouter(prefix="/identity", tags=["identity"])


@router.post("", response_model=IdentityResponse, status_code=status.HTTP_201_CREATED)
async def issue_identity() -> IdentityResponse:
    """Mint a new author token.

    The token is not stored server-side until it is first used to post,
    comment, vote or bookmark.
    """
    return IdentityResponse(author_hash=IdentityProvider().issue())
