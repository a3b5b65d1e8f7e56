"""Response shaping shared by the post and comment endpoints."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from safeyak.models import Comment, Post
from safeyak.schemas import CommentResponse, PostResponse
from safeyak.services.reputation import ReputationLedger, enrich_with_reputation


def _mask(payload: dict[str, Any], viewer_hash: str | None) -> dict[str, Any]:
    if payload.get("is_hidden") and payload.get("author_hash") != viewer_hash:
        payload["body"] = None
    return payload


def post_payloads(
    posts: Iterable[Post],
    ledger: ReputationLedger,
    viewer_hash: str | None = None,
) -> list[dict[str, Any]]:
    """Serialize posts with author reputation attached and hidden bodies masked."""
    items = [PostResponse.model_validate(post).model_dump() for post in posts]
    enriched = enrich_with_reputation(items, ledger.get_reputations)
    return [_mask(item, viewer_hash) for item in enriched]


def post_payload(post: Post, ledger: ReputationLedger, viewer_hash: str | None = None) -> dict[str, Any]:
    return post_payloads([post], ledger, viewer_hash)[0]


def comment_payload(comment: Comment, viewer_hash: str | None = None) -> dict[str, Any]:
    return _mask(CommentResponse.model_validate(comment).model_dump(), viewer_hash)
