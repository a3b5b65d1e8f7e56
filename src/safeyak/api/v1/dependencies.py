"""Shared API dependencies for identity, sessions and service wiring."""

from typing import Annotated

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from safeyak.db.session import get_db
from safeyak.services.content import ContentLifecycleManager
from safeyak.services.engagement import EngagementService
from safeyak.services.moderation import ModerationPolicy, get_moderation_policy
from safeyak.services.reputation import ReputationLedger

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]

# The pseudonymous token is presented explicitly; it may be absent.
AuthorHashDep = Annotated[str | None, Header(alias="X-Author-Hash")]


def get_moderation_policy_dep() -> ModerationPolicy:
    """Return the shared moderation policy."""
    return get_moderation_policy()


ModerationPolicyDep = Annotated[ModerationPolicy, Depends(get_moderation_policy_dep)]


def get_reputation_ledger(db: SessionDep) -> ReputationLedger:
    """Return a reputation ledger bound to the request session."""
    return ReputationLedger(db)


LedgerDep = Annotated[ReputationLedger, Depends(get_reputation_ledger)]


def get_content_manager(
    db: SessionDep,
    policy: ModerationPolicyDep,
    ledger: LedgerDep,
) -> ContentLifecycleManager:
    """Return a lifecycle manager for the request session."""
    return ContentLifecycleManager(db, policy, ledger=ledger)


def get_engagement_service(db: SessionDep, ledger: LedgerDep) -> EngagementService:
    """Return a vote/bookmark service for the request session."""
    return EngagementService(db, ledger)


ContentManagerDep = Annotated[ContentLifecycleManager, Depends(get_content_manager)]
EngagementDep = Annotated[EngagementService, Depends(get_engagement_service)]
