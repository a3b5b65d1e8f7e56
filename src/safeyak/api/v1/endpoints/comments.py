# src/safeyak/api/v1/endpoints/comments.py
"""Comment endpoints: thread replies, edits and deletions."""

from typing import Any

from fastapi import APIRouter, status
from sqlalchemy import select

from safeyak.core.errors import NotFoundError
from safeyak.models import Comment, Post
from safeyak.schemas import CommentCreate, CommentResponse, CommentWriteResponse

from ..dependencies import AuthorHashDep, ContentManagerDep, SessionDep
from ..serializers import comment_payload

router = APIRouter(tags=["comments"])


@router.get("/posts/{post_id}/comments", response_model=list[CommentResponse])
async def list_comments(
    post_id: int,
    db: SessionDep,
    author_hash: AuthorHashDep = None,
) -> list[dict[str, Any]]:
    """Return a thread's comments, oldest first."""
    if db.get(Post, post_id) is None:
        raise NotFoundError("Post not found")
    comments = db.execute(
        select(Comment)
        .where(Comment.post_id == post_id)
        .order_by(Comment.created_at.asc(), Comment.id.asc())
    ).scalars().all()
    return [comment_payload(comment, author_hash) for comment in comments]


@router.post(
    "/posts/{post_id}/comments",
    response_model=CommentWriteResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_comment(
    post_id: int,
    comment_data: CommentCreate,
    manager: ContentManagerDep,
    author_hash: AuthorHashDep = None,
) -> dict[str, Any]:
    """Reply to a thread. The response reports whether the thread is now locked."""
    result = await manager.create_comment(
        post_id=post_id,
        author_hash=author_hash,
        body=comment_data.body,
    )
    return {
        "success": True,
        "comment": comment_payload(result.comment, author_hash),
        "locked": result.locked,
    }


@router.patch("/comments/{comment_id}", response_model=CommentWriteResponse)
async def edit_comment(
    comment_id: int,
    comment_data: CommentCreate,
    manager: ContentManagerDep,
    author_hash: AuthorHashDep = None,
) -> dict[str, Any]:
    result = await manager.edit_comment(
        comment_id=comment_id,
        author_hash=author_hash,
        body=comment_data.body,
    )
    return {
        "success": True,
        "comment": comment_payload(result.comment, author_hash),
        "locked": result.locked,
    }


@router.delete("/comments/{comment_id}")
async def delete_comment(
    comment_id: int,
    manager: ContentManagerDep,
    author_hash: AuthorHashDep = None,
) -> dict[str, bool]:
    manager.delete_comment(comment_id=comment_id, author_hash=author_hash)
    return {"success": True}
