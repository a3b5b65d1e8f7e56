"""Content lifecycle orchestration.

Create, edit and delete of posts and comments, invoking moderation, the
reputation ledger and the auto-lock engine in order. Each operation commits
once at the end; a failure in any step rolls back all of it. Realtime
observers are notified by the storage layer after the commit.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.orm import Session

from safeyak.core.errors import (
    AuthorizationError,
    NotFoundError,
    RateLimitError,
    ThreadLockedError,
    ValidationError,
)
from safeyak.core.settings import settings
from safeyak.db.time import as_utc, utcnow
from safeyak.db.transaction import atomic
from safeyak.models import Author, Comment, Post
from safeyak.services.autolock import AutoLockEngine
from safeyak.services.identity import IdentityProvider, validate_author_hash
from safeyak.services.moderation import ModerationPolicy, ModerationVerdict
from safeyak.services.reputation import ReputationLedger, strike_key

logger = logging.getLogger(__name__)


@dataclass
class CommentResult:
    """A persisted comment together with the thread's lock state."""

    comment: Comment
    locked: bool


def _apply_verdict(content: Post | Comment, verdict: ModerationVerdict) -> None:
    content.is_blurred = verdict.blur
    content.is_hidden = verdict.hide
    content.moderation_reason = verdict.reason
    content.toxicity = verdict.toxicity


class ContentLifecycleManager:
    """Orchestrates posts and comments through the moderation pipeline."""

    def __init__(
        self,
        db: Session,
        policy: ModerationPolicy,
        *,
        ledger: ReputationLedger | None = None,
        autolock: AutoLockEngine | None = None,
        cooldown_seconds: int | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.db = db
        self.policy = policy
        self.ledger = ledger or ReputationLedger(db)
        self.autolock = autolock or AutoLockEngine(db, clock=clock)
        self.cooldown_seconds = (
            settings.post_cooldown_seconds if cooldown_seconds is None else cooldown_seconds
        )
        self.clock = clock

    # --- validation -------------------------------------------------------------

    @staticmethod
    def _require_body(body: str | None) -> str:
        if body is None or not body.strip():
            raise ValidationError("Missing required fields: body")
        if len(body) > settings.max_body_length:
            raise ValidationError(f"Body exceeds {settings.max_body_length} characters")
        return body

    @staticmethod
    def _require_zone(zone: str | None) -> str:
        if zone is None or not zone.strip():
            raise ValidationError("Missing required fields: zone")
        if settings.zones and zone not in settings.zones:
            raise ValidationError(f"Unknown zone: {zone}")
        return zone

    def _check_cooldown(self, author_hash: str) -> None:
        with atomic(self.db, commit=False):
            author = self.db.get(Author, author_hash)
        if author is None or author.last_post_at is None:
            return
        elapsed = (self.clock() - as_utc(author.last_post_at)).total_seconds()
        if elapsed < self.cooldown_seconds:
            retry_after = max(1, math.ceil(self.cooldown_seconds - elapsed))
            raise RateLimitError(
                "You are posting too fast. Try again shortly.",
                retry_after=retry_after,
            )

    def _touch_author(self, author_hash: str) -> None:
        author = IdentityProvider.ensure_author(self.db, author_hash)
        author.last_post_at = self.clock()

    def _get_post(self, post_id: int) -> Post:
        with atomic(self.db, commit=False):
            post = self.db.get(Post, post_id)
        if post is None:
            raise NotFoundError("Post not found")
        return post

    def _get_comment(self, comment_id: int) -> Comment:
        with atomic(self.db, commit=False):
            comment = self.db.get(Comment, comment_id)
        if comment is None:
            raise NotFoundError("Comment not found")
        return comment

    @staticmethod
    def _authorize(content: Post | Comment, author_hash: str) -> None:
        if content.author_hash != author_hash:
            raise AuthorizationError("Unauthorized")

    def _strike_if_violation(
        self,
        content: Post | Comment,
        kind: str,
        verdict: ModerationVerdict,
    ) -> None:
        if verdict.is_violation:
            self.ledger.record_strike(
                content.author_hash,
                event_key=strike_key(kind, content.id, verdict, content.body),
                content_kind=kind,
                content_id=content.id,
            )

    # --- posts ------------------------------------------------------------------

    async def create_post(self, *, author_hash: str | None, body: str | None, zone: str | None) -> Post:
        """Moderate and persist a new post.

        Raises:
            ValidationError: Missing body, zone or author token.
            RateLimitError: The author posted within the cooldown window.
            StorageUnavailable: The store failed; nothing was persisted.
        """
        body = self._require_body(body)
        zone = self._require_zone(zone)
        token = validate_author_hash(author_hash)
        self._check_cooldown(token)

        verdict = await self.policy.classify(body)

        with atomic(self.db):
            post = Post(body=body, zone=zone, author_hash=token, created_at=self.clock())
            _apply_verdict(post, verdict)
            self.db.add(post)
            self.db.flush()

            self.ledger.record_content(token, "post")
            self._strike_if_violation(post, "post", verdict)
            self._touch_author(token)

        logger.info("Post %s created in %s (verdict=%s)", post.id, zone, verdict.reason or "allowed")
        return post

    async def edit_post(self, *, post_id: int, author_hash: str | None, body: str | None) -> Post:
        """Replace a post body and re-moderate it; the lock flag is untouched."""
        body = self._require_body(body)
        token = validate_author_hash(author_hash)
        post = self._get_post(post_id)
        self._authorize(post, token)

        verdict = await self.policy.classify(body)

        with atomic(self.db):
            post.body = body
            _apply_verdict(post, verdict)
            self.db.flush()
            self._strike_if_violation(post, "post", verdict)

        return post

    def delete_post(self, *, post_id: int, author_hash: str | None) -> None:
        """Hard-delete a post and its thread."""
        token = validate_author_hash(author_hash)
        post = self._get_post(post_id)
        self._authorize(post, token)

        with atomic(self.db):
            for comment in post.comments:
                self.ledger.record_content(comment.author_hash, "comment", -1)
            self.ledger.record_content(post.author_hash, "post", -1)
            self.db.delete(post)

        logger.info("Post %s deleted by its author", post_id)

    # --- comments ---------------------------------------------------------------

    async def create_comment(
        self,
        *,
        post_id: int,
        author_hash: str | None,
        body: str | None,
    ) -> CommentResult:
        """Moderate and persist a reply, then re-evaluate the thread lock.

        Raises:
            ValidationError: Missing body or author token.
            NotFoundError: The parent post does not exist.
            ThreadLockedError: The thread is locked.
            RateLimitError: The author posted within the cooldown window.
        """
        body = self._require_body(body)
        token = validate_author_hash(author_hash)
        post = self._get_post(post_id)
        if post.locked:
            raise ThreadLockedError("Thread is locked")
        self._check_cooldown(token)

        verdict = await self.policy.classify(body)

        with atomic(self.db):
            comment = Comment(post_id=post_id, body=body, author_hash=token, created_at=self.clock())
            _apply_verdict(comment, verdict)
            self.db.add(comment)
            self.db.flush()

            self.ledger.record_content(token, "comment")
            self._strike_if_violation(comment, "comment", verdict)
            locked = self.autolock.evaluate_lock(post_id)
            self._touch_author(token)

        return CommentResult(comment=comment, locked=locked)

    async def edit_comment(
        self,
        *,
        comment_id: int,
        author_hash: str | None,
        body: str | None,
    ) -> CommentResult:
        """Replace a comment body, re-moderate it and re-evaluate the lock."""
        body = self._require_body(body)
        token = validate_author_hash(author_hash)
        comment = self._get_comment(comment_id)
        self._authorize(comment, token)

        verdict = await self.policy.classify(body)

        with atomic(self.db):
            comment.body = body
            _apply_verdict(comment, verdict)
            self.db.flush()
            self._strike_if_violation(comment, "comment", verdict)
            locked = self.autolock.evaluate_lock(comment.post_id)

        return CommentResult(comment=comment, locked=locked)

    def delete_comment(self, *, comment_id: int, author_hash: str | None) -> None:
        """Hard-delete a comment; the thread keeps its lock state."""
        token = validate_author_hash(author_hash)
        comment = self._get_comment(comment_id)
        self._authorize(comment, token)

        with atomic(self.db):
            self.ledger.record_content(comment.author_hash, "comment", -1)
            self.db.delete(comment)
