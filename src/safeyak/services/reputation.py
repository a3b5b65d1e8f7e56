"""Anonymous reputation ledger and tiering.

Reputation is an integer per pseudonym, lowered by strikes (moderation
violations) and raised by positive signals (upvotes and bookmarks received).
Every mutation is an atomic counter update followed by a staged realtime
UPDATE event on the ``reputation`` table, so every observer keyed on the
author sees the new value as soon as the transaction commits.
"""

from __future__ import annotations

import hashlib
import logging
import math
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Literal

from sqlalchemy import select
from sqlalchemy.orm import Session

from safeyak.core.settings import settings
from safeyak.db.changes import stage_update
from safeyak.db.statements import increment, insert_ignore
from safeyak.db.time import utcnow
from safeyak.models import Author, ReputationRecord, StrikeEvent
from safeyak.services.moderation import ModerationVerdict
from safeyak.services.realtime import (
    EVENT_UPDATE,
    ChangeEvent,
    RealtimeChannel,
    column_equals,
    get_realtime_channel,
)

logger = logging.getLogger(__name__)

SignalKind = Literal["upvote", "bookmark"]
ContentKind = Literal["post", "comment"]


@dataclass(frozen=True)
class Tier:
    """A labelled reputation bracket; ``floor`` is inclusive."""

    rank: int
    label: str
    emoji: str
    floor: int


TIERS: tuple[Tier, ...] = (
    Tier(rank=0, label="Rookie", emoji="🐣", floor=0),
    Tier(rank=1, label="Active", emoji="🔥", floor=21),
    Tier(rank=2, label="Trusted", emoji="⭐", floor=51),
    Tier(rank=3, label="Elite", emoji="💎", floor=101),
    Tier(rank=4, label="Legend", emoji="👑", floor=251),
)


def get_tier(score: int) -> Tier:
    """Return the tier for ``score``; negatives are Rookie, no upper bound."""
    for tier in reversed(TIERS):
        if score >= tier.floor:
            return tier
    return TIERS[0]


@dataclass(frozen=True)
class TierProgress:
    """Progress of a score through its current tier."""

    tier: Tier
    next_tier: Tier | None
    progress: float
    is_max: bool


def tier_progress(score: int) -> TierProgress:
    """Return progress towards the next tier as a percentage in ``[0, 100]``.

    Legend reports 100% and ``is_max``.
    """
    tier = get_tier(score)
    if tier.rank == len(TIERS) - 1:
        return TierProgress(tier=tier, next_tier=None, progress=100.0, is_max=True)

    next_tier = TIERS[tier.rank + 1]
    ratio = (max(score, 0) - tier.floor) / (next_tier.floor - tier.floor)
    progress = min(100.0, max(0.0, ratio * 100))
    return TierProgress(tier=tier, next_tier=next_tier, progress=progress, is_max=False)


def strike_key(kind: ContentKind, content_id: int, verdict: ModerationVerdict, body: str) -> str:
    """Key a strike by content, verdict and body so a re-sent edit cannot double-penalise."""
    body_digest = hashlib.sha256(body.encode("utf-8")).hexdigest()[:16]
    material = f"{kind}:{content_id}:{verdict.fingerprint()}:{body_digest}"
    return hashlib.sha256(material.encode("utf-8")).hexdigest()


class ReputationLedger:
    """Per-author trust score backed by the ``reputation`` table."""

    def __init__(
        self,
        db: Session,
        *,
        strike_penalty: int | None = None,
        upvote_delta: int | None = None,
        bookmark_delta: int | None = None,
    ) -> None:
        self.db = db
        self.strike_penalty = (
            settings.reputation_strike_penalty if strike_penalty is None else strike_penalty
        )
        self.signal_deltas: dict[str, int] = {
            "upvote": settings.reputation_upvote_delta if upvote_delta is None else upvote_delta,
            "bookmark": (
                settings.reputation_bookmark_delta if bookmark_delta is None else bookmark_delta
            ),
        }

    def ensure_record(self, author_hash: str) -> None:
        """Create the author's record on first use."""
        insert_ignore(
            self.db,
            ReputationRecord,
            {
                "author_hash": author_hash,
                "reputation": 0,
                "strikes": 0,
                "post_count": 0,
                "comment_count": 0,
                "upvotes_received": 0,
                "bookmarks_received": 0,
                "joined_at": utcnow(),
            },
        )

    def _apply(self, author_hash: str, **deltas: int) -> ReputationRecord:
        self.ensure_record(author_hash)
        increment(
            self.db,
            ReputationRecord,
            ReputationRecord.author_hash == author_hash,
            **deltas,
        )
        record = self.db.get(ReputationRecord, author_hash, populate_existing=True)
        stage_update(self.db, record)
        return record

    def record_strike(
        self,
        author_hash: str,
        *,
        event_key: str | None = None,
        content_kind: ContentKind = "post",
        content_id: int = 0,
    ) -> bool:
        """Penalise the author for a moderation violation.

        Args:
            author_hash: The offending pseudonym.
            event_key: Idempotency key, see :func:`strike_key`. A key that was
                already applied is ignored.
            content_kind: ``post`` or ``comment`` for the audit row.
            content_id: Identifier of the offending content.

        Returns:
            True if the strike was applied, False if it was a duplicate.
        """
        if event_key is not None:
            applied = insert_ignore(
                self.db,
                StrikeEvent,
                {
                    "event_key": event_key,
                    "author_hash": author_hash,
                    "content_kind": content_kind,
                    "content_id": content_id,
                    "penalty": self.strike_penalty,
                    "created_at": utcnow(),
                },
            )
            if not applied:
                logger.debug("Duplicate strike %s for %s ignored", event_key[:12], author_hash)
                return False

        record = self._apply(author_hash, reputation=-self.strike_penalty, strikes=1)
        logger.info(
            "Strike recorded for %s on %s %s (reputation now %d)",
            author_hash,
            content_kind,
            content_id,
            record.reputation,
        )
        return True

    def _signal_columns(self, kind: str) -> tuple[int, str]:
        if kind not in self.signal_deltas:
            raise ValueError(f"Unknown positive signal kind: {kind}")
        counter = "upvotes_received" if kind == "upvote" else "bookmarks_received"
        return self.signal_deltas[kind], counter

    def record_positive_signal(self, author_hash: str, kind: SignalKind) -> int:
        """Reward the author for an upvote or bookmark received.

        Returns:
            The author's new reputation.
        """
        delta, counter = self._signal_columns(kind)
        record = self._apply(author_hash, reputation=delta, **{counter: 1})
        return record.reputation

    def retract_positive_signal(self, author_hash: str, kind: SignalKind) -> int:
        """Undo a positive signal when the upvote or bookmark is withdrawn."""
        delta, counter = self._signal_columns(kind)
        record = self._apply(author_hash, reputation=-delta, **{counter: -1})
        return record.reputation

    def record_content(self, author_hash: str, kind: ContentKind, delta: int = 1) -> None:
        """Adjust the author's post or comment counter."""
        counter = "post_count" if kind == "post" else "comment_count"
        self._apply(author_hash, **{counter: delta})

    def get_reputation(self, author_hash: str) -> int:
        """Return the author's reputation, 0 for unknown authors."""
        value = self.db.execute(
            select(ReputationRecord.reputation).where(ReputationRecord.author_hash == author_hash)
        ).scalar_one_or_none()
        return int(value) if value is not None else 0

    def get_reputations(self, author_hashes: Sequence[str]) -> dict[str, int]:
        """Return reputations for many authors in one query."""
        if not author_hashes:
            return {}
        rows = self.db.execute(
            select(ReputationRecord.author_hash, ReputationRecord.reputation).where(
                ReputationRecord.author_hash.in_(list(author_hashes))
            )
        ).all()
        return {author_hash: int(reputation) for author_hash, reputation in rows}

    def get_profile_stats(self, author_hash: str) -> dict[str, Any] | None:
        """Return aggregate profile figures, or None for an unknown pseudonym."""
        record = self.db.get(ReputationRecord, author_hash)
        if record is None:
            author = self.db.get(Author, author_hash)
            if author is None:
                return None
            return _profile_dict(author_hash, 0, 0, 0, 0, 0, 0, author.created_at)
        return _profile_dict(
            author_hash,
            record.reputation,
            record.strikes,
            record.post_count,
            record.comment_count,
            record.upvotes_received,
            record.bookmarks_received,
            record.joined_at,
        )


def _profile_dict(
    author_hash: str,
    reputation: int,
    strikes: int,
    post_count: int,
    comment_count: int,
    upvotes_received: int,
    bookmarks_received: int,
    joined_at: datetime,
) -> dict[str, Any]:
    return {
        "author_hash": author_hash,
        "reputation": reputation,
        "strikes": strikes,
        "post_count": post_count,
        "comment_count": comment_count,
        "upvotes_received": upvotes_received,
        "bookmarks_received": bookmarks_received,
        "joined_at": joined_at,
    }


def _as_reputation(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return 0
    if not math.isfinite(value):
        return 0
    return int(value)


def enrich_with_reputation(
    items: Iterable[Mapping[str, Any]],
    lookup: Callable[[list[str]], Mapping[str, Any]],
) -> list[dict[str, Any]]:
    """Attach a numeric ``reputation`` to every item.

    Items without an author, authors missing from the lookup, non-numeric
    values and a failing lookup all yield 0.
    """
    enriched = [dict(item) for item in items]
    hashes = sorted({item["author_hash"] for item in enriched if item.get("author_hash")})

    reputations: Mapping[str, Any] = {}
    if hashes:
        try:
            reputations = lookup(hashes)
        except Exception:  # noqa: BLE001
            logger.warning("Reputation lookup failed; defaulting to 0", exc_info=True)
            reputations = {}

    for item in enriched:
        author_hash = item.get("author_hash")
        item["reputation"] = _as_reputation(reputations.get(author_hash)) if author_hash else 0
    return enriched


def apply_reputation_event(
    items: Iterable[Mapping[str, Any]],
    change: Mapping[str, Any],
) -> list[dict[str, Any]]:
    """Return ``items`` with the changed author's reputation replaced.

    ``change`` is the new ``reputation`` row (``author_hash`` and
    ``reputation``). Items by other authors are returned unchanged.
    """
    author_hash = change.get("author_hash")
    reputation = _as_reputation(change.get("reputation"))
    return [
        {**item, "reputation": reputation}
        if author_hash is not None and item.get("author_hash") == author_hash
        else dict(item)
        for item in items
    ]


class LiveReputationView:
    """Displayed items kept in sync with reputation UPDATE events.

    Pass ``author_hash`` to follow a single pseudonym (a profile view);
    otherwise every reputation change is applied to matching items.
    """

    def __init__(
        self,
        items: Iterable[Mapping[str, Any]],
        *,
        author_hash: str | None = None,
        channel: RealtimeChannel | None = None,
    ) -> None:
        self.items = [dict(item) for item in items]
        predicate = column_equals("author_hash", author_hash) if author_hash else None
        self._subscription = (channel or get_realtime_channel()).subscribe(
            ReputationRecord.__tablename__,
            EVENT_UPDATE,
            predicate,
            callback=self._on_change,
        )

    def _on_change(self, event: ChangeEvent) -> None:
        if event.new is not None:
            self.items = apply_reputation_event(self.items, event.new)

    def close(self) -> None:
        self._subscription.close()

    def __enter__(self) -> LiveReputationView:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
