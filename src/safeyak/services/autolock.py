"""Thread auto-lock state machine.

A thread (a post and its comments) is either open or locked. It moves
``open -> locked`` after a comment insert or edit once the thread has
accumulated enough violating comments, or on a single hidden (severe) one.
There is no transition back.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from safeyak.core.errors import NotFoundError
from safeyak.core.settings import settings
from safeyak.db.time import utcnow
from safeyak.models import Comment, Post
from safeyak.services.moderation import REASON_NOT_CONFIGURED

logger = logging.getLogger(__name__)


class AutoLockEngine:
    """Evaluates the lock rule for a thread after comment activity."""

    def __init__(
        self,
        db: Session,
        *,
        violation_threshold: int | None = None,
        lock_on_severe: bool | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.db = db
        self.violation_threshold = (
            settings.autolock_violation_threshold
            if violation_threshold is None
            else violation_threshold
        )
        self.lock_on_severe = settings.autolock_on_severe if lock_on_severe is None else lock_on_severe
        self.clock = clock

    def should_lock(self, violations: int, severe: int) -> bool:
        """Aggregate trigger rule over the thread's violating comments.

        A non-positive threshold disables the count trigger.
        """
        if self.lock_on_severe and severe > 0:
            return True
        return self.violation_threshold > 0 and violations >= self.violation_threshold

    def violation_counts(self, post_id: int) -> tuple[int, int]:
        """Return ``(violating, hidden)`` comment counts for a thread.

        Comments withheld only because no scorer is configured do not count.
        """
        judged = (
            Comment.post_id == post_id,
            or_(
                Comment.moderation_reason.is_(None),
                Comment.moderation_reason != REASON_NOT_CONFIGURED,
            ),
        )
        violations = self.db.execute(
            select(func.count()).select_from(Comment).where(
                *judged,
                or_(Comment.is_blurred.is_(True), Comment.is_hidden.is_(True)),
            )
        ).scalar_one()
        severe = self.db.execute(
            select(func.count()).select_from(Comment).where(
                *judged,
                Comment.is_hidden.is_(True),
            )
        ).scalar_one()
        return int(violations), int(severe)

    def evaluate_lock(self, post_id: int) -> bool:
        """Lock the thread if the trigger rule holds; never unlocks.

        Idempotent and safe to call after every comment insert.

        Returns:
            Whether the thread is locked after evaluation.

        Raises:
            NotFoundError: If the post does not exist.
        """
        # Make sure pending comment writes are visible to the counts.
        self.db.flush()

        post = self.db.get(Post, post_id)
        if post is None:
            raise NotFoundError("Post not found")
        if post.locked:
            return True

        violations, severe = self.violation_counts(post_id)
        if self.should_lock(violations, severe):
            post.locked = True
            post.locked_at = self.clock()
            self.db.flush()
            logger.info(
                "Thread %s locked (%d violating comments, %d severe)",
                post_id,
                violations,
                severe,
            )
        return post.locked
