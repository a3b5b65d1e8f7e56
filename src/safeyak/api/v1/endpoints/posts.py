# src/safeyak/api/v1/endpoints/posts.py
"""Post-related endpoints for the SafeYak API."""

from typing import Annotated, Any

from fastapi import APIRouter, Query, status
from sqlalchemy import select

from safeyak.core.errors import NotFoundError, ValidationError
from safeyak.core.settings import settings
from safeyak.models import Post
from safeyak.schemas import (
    BookmarkResponse,
    PostCreate,
    PostResponse,
    PostUpdate,
    VoteCreate,
    VoteResponse,
)

from ..dependencies import (
    AuthorHashDep,
    ContentManagerDep,
    EngagementDep,
    LedgerDep,
    SessionDep,
)
from ..serializers import post_payload, post_payloads

router = APIRouter(prefix="/posts", tags=["posts"])


@router.get("", response_model=list[PostResponse])
async def list_posts(
    db: SessionDep,
    ledger: LedgerDep,
    author_hash: AuthorHashDep = None,
    zone: str | None = None,
    limit: Annotated[int, Query(ge=1, le=100)] = settings.feed_page_size,
    before: int | None = None,
) -> list[dict[str, Any]]:
    """List recent posts, newest first, with author reputation attached.

    Args:
        db: Database session
        ledger: Reputation ledger used for enrichment
        author_hash: Optional viewer token, unmasks the viewer's own hidden posts
        zone: Restrict the feed to one zone
        limit: Maximum number of posts to return
        before: Only return posts with an id lower than this cursor
    """
    stmt = select(Post)
    if zone is not None:
        if settings.zones and zone not in settings.zones:
            raise ValidationError(f"Unknown zone: {zone}")
        stmt = stmt.where(Post.zone == zone)
    if before is not None:
        stmt = stmt.where(Post.id < before)
    stmt = stmt.order_by(Post.created_at.desc(), Post.id.desc()).limit(limit)

    posts = db.execute(stmt).scalars().all()
    return post_payloads(posts, ledger, author_hash)


@router.get("/{post_id}", response_model=PostResponse)
async def get_post(
    post_id: int,
    db: SessionDep,
    ledger: LedgerDep,
    author_hash: AuthorHashDep = None,
) -> dict[str, Any]:
    """Return a single post with its author's reputation."""
    post = db.get(Post, post_id)
    if post is None:
        raise NotFoundError("Post not found")
    return post_payload(post, ledger, author_hash)


@router.post("", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    post_data: PostCreate,
    manager: ContentManagerDep,
    author_hash: AuthorHashDep = None,
) -> dict[str, Any]:
    """Moderate and publish a new post."""
    post = await manager.create_post(
        author_hash=author_hash,
        body=post_data.body,
        zone=post_data.zone,
    )
    return post_payload(post, manager.ledger, author_hash)


@router.patch("/{post_id}", response_model=PostResponse)
async def edit_post(
    post_id: int,
    post_data: PostUpdate,
    manager: ContentManagerDep,
    author_hash: AuthorHashDep = None,
) -> dict[str, Any]:
    """Edit a post body; only its author may do so."""
    post = await manager.edit_post(post_id=post_id, author_hash=author_hash, body=post_data.body)
    return post_payload(post, manager.ledger, author_hash)


@router.delete("/{post_id}")
async def delete_post(
    post_id: int,
    manager: ContentManagerDep,
    author_hash: AuthorHashDep = None,
) -> dict[str, bool]:
    """Delete a post and its thread; only its author may do so."""
    manager.delete_post(post_id=post_id, author_hash=author_hash)
    return {"success": True}


@router.post("/{post_id}/vote", response_model=VoteResponse)
async def vote_on_post(
    post_id: int,
    vote_data: VoteCreate,
    engagement: EngagementDep,
    author_hash: AuthorHashDep = None,
) -> VoteResponse:
    """Upvote or downvote a post; repeating a vote withdraws it."""
    post, my_vote = engagement.cast_vote(
        post_id=post_id,
        voter_hash=author_hash,
        direction=vote_data.direction,
    )
    return VoteResponse(
        post_id=post.id,
        my_vote=my_vote,
        score=post.score,
        upvotes=post.upvotes,
        downvotes=post.downvotes,
    )


@router.post("/{post_id}/bookmark", response_model=BookmarkResponse)
async def toggle_bookmark(
    post_id: int,
    engagement: EngagementDep,
    author_hash: AuthorHashDep = None,
) -> BookmarkResponse:
    """Bookmark a post, or remove the caller's bookmark."""
    post, bookmarked = engagement.toggle_bookmark(post_id=post_id, user_hash=author_hash)
    return BookmarkResponse(
        post_id=post.id,
        bookmarked=bookmarked,
        bookmarks_count=post.bookmarks_count,
    )
