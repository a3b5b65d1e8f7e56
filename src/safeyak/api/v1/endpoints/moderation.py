# src/safeyak/api/v1/endpoints/moderation.py
"""Moderation preview endpoint."""

from fastapi import APIRouter

from safeyak.schemas import ModerationRequest, ModerationVerdictResponse

from ..dependencies import ModerationPolicyDep

router = APIRouter(prefix="/moderation", tags=["moderation"])


@router.post("/classify", response_model=ModerationVerdictResponse)
async def classify_text(
    request: ModerationRequest,
    policy: ModerationPolicyDep,
) -> ModerationVerdictResponse:
    """Classify text without persisting anything.

    Clients call this before submitting so they can warn the author. A
    failing scorer yields an allowed verdict with a non-null reason.
    """
    verdict = await policy.classify(request.text or "")
    return ModerationVerdictResponse(**verdict.as_dict())
