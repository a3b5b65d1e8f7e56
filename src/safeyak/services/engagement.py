"""Votes and bookmarks on posts, feeding positive reputation signals."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from safeyak.core.errors import NotFoundError, ValidationError
from safeyak.db.changes import stage_update
from safeyak.db.statements import increment
from safeyak.db.transaction import atomic
from safeyak.models import Bookmark, Post, PostVote
from safeyak.services.identity import IdentityProvider, validate_author_hash
from safeyak.services.reputation import ReputationLedger

logger = logging.getLogger(__name__)


class EngagementService:
    """Casts votes and toggles bookmarks with atomic counter updates."""

    def __init__(self, db: Session, ledger: ReputationLedger | None = None) -> None:
        self.db = db
        self.ledger = ledger or ReputationLedger(db)

    def _get_post(self, post_id: int) -> Post:
        post = self.db.get(Post, post_id)
        if post is None:
            raise NotFoundError("Post not found")
        return post

    def _bump_post(self, post: Post, **deltas: int) -> Post:
        increment(self.db, Post, Post.id == post.id, **deltas)
        refreshed = self.db.get(Post, post.id, populate_existing=True)
        stage_update(self.db, refreshed)
        return refreshed

    def cast_vote(self, *, post_id: int, voter_hash: str | None, direction: int) -> tuple[Post, int]:
        """Apply a +1/-1 vote with toggle semantics.

        Voting the same direction twice withdraws the vote; voting the other
        direction switches it. Upvotes received reward the post author unless
        they voted on their own post.

        Returns:
            The updated post and the voter's resulting direction (0 if withdrawn).
        """
        if direction not in (1, -1):
            raise ValidationError("Vote direction must be 1 or -1")
        token = validate_author_hash(voter_hash)

        with atomic(self.db):
            post = self._get_post(post_id)
            IdentityProvider.ensure_author(self.db, token)
            existing = self.db.get(PostVote, (post_id, token))

            up_delta = down_delta = 0
            if existing is None:
                self.db.add(PostVote(post_id=post_id, voter_hash=token, direction=direction))
                result = direction
                if direction == 1:
                    up_delta = 1
                else:
                    down_delta = 1
            elif existing.direction == direction:
                self.db.delete(existing)
                result = 0
                if direction == 1:
                    up_delta = -1
                else:
                    down_delta = -1
            else:
                existing.direction = direction
                result = direction
                if direction == 1:
                    up_delta, down_delta = 1, -1
                else:
                    up_delta, down_delta = -1, 1

            self.db.flush()
            post = self._bump_post(
                post,
                upvotes=up_delta,
                downvotes=down_delta,
                score=up_delta - down_delta,
            )

            if post.author_hash != token:
                if up_delta > 0:
                    self.ledger.record_positive_signal(post.author_hash, "upvote")
                elif up_delta < 0:
                    self.ledger.retract_positive_signal(post.author_hash, "upvote")

        return post, result

    def toggle_bookmark(self, *, post_id: int, user_hash: str | None) -> tuple[Post, bool]:
        """Bookmark or un-bookmark a post.

        Returns:
            The updated post and whether it is now bookmarked by the caller.
        """
        token = validate_author_hash(user_hash)

        with atomic(self.db):
            post = self._get_post(post_id)
            IdentityProvider.ensure_author(self.db, token)
            existing = self.db.get(Bookmark, (post_id, token))

            if existing is None:
                self.db.add(Bookmark(post_id=post_id, user_hash=token))
                bookmarked, delta = True, 1
            else:
                self.db.delete(existing)
                bookmarked, delta = False, -1

            self.db.flush()
            post = self._bump_post(post, bookmarks_count=delta)

            if post.author_hash != token:
                if bookmarked:
                    self.ledger.record_positive_signal(post.author_hash, "bookmark")
                else:
                    self.ledger.retract_positive_signal(post.author_hash, "bookmark")

        logger.debug("Bookmark on post %s by %s -> %s", post_id, token, bookmarked)
        return post, bookmarked
