"""Tests for the content lifecycle manager."""

import pytest
from sqlalchemy.exc import OperationalError

from safeyak.core.errors import (
    AuthorizationError,
    NotFoundError,
    RateLimitError,
    ScorerNotConfigured,
    StorageUnavailable,
    ThreadLockedError,
    ValidationError,
)
from safeyak.models import Comment, Post, ReputationRecord
from safeyak.services.moderation import REASON_NOT_CONFIGURED, REASON_UNAVAILABLE
from safeyak.services.reputation import ReputationLedger

AUTHOR = "author-aaaaaaaa"
OTHER = "author-bbbbbbbb"


async def _post(manager, clock, author=AUTHOR, body="Dining hall pizza is back", zone="Campus"):
    post = await manager.create_post(author_hash=author, body=body, zone=zone)
    clock.advance(60)
    return post


@pytest.mark.asyncio
async def test_clean_post_is_visible(manager, clock, db_session) -> None:
    post = await _post(manager, clock)

    assert post.id is not None
    assert post.is_blurred is False
    assert post.is_hidden is False
    assert post.moderation_reason is None
    assert db_session.get(ReputationRecord, AUTHOR).post_count == 1
    assert db_session.get(ReputationRecord, AUTHOR).strikes == 0


@pytest.mark.asyncio
async def test_offensive_post_blurred_and_struck(manager, clock, scorer, db_session) -> None:
    scorer.toxicity = 0.75
    post = await _post(manager, clock)

    assert post.is_blurred is True
    assert post.is_hidden is False
    assert post.moderation_reason is not None
    assert manager.ledger.get_reputation(AUTHOR) == -5


@pytest.mark.asyncio
async def test_severe_post_hidden_and_struck(manager, clock, scorer) -> None:
    scorer.toxicity = 0.97
    post = await _post(manager, clock)

    assert post.is_hidden is True
    assert post.is_blurred is False
    assert manager.ledger.get_reputation(AUTHOR) == -5


@pytest.mark.asyncio
async def test_scorer_outage_allows_post(manager, clock, scorer) -> None:
    from safeyak.core.errors import ScorerUnavailable

    scorer.error = ScorerUnavailable("timeout")
    post = await _post(manager, clock)

    assert post.is_blurred is False
    assert post.is_hidden is False
    assert post.moderation_reason == REASON_UNAVAILABLE
    assert manager.ledger.get_reputation(AUTHOR) == 0


@pytest.mark.asyncio
async def test_closed_mode_hides_without_strikes_or_locks(manager, clock, scorer) -> None:
    manager.policy.unconfigured_mode = "closed"
    scorer.error = ScorerNotConfigured("no key")
    post = await _post(manager, clock)

    assert post.is_hidden is True
    assert post.moderation_reason == REASON_NOT_CONFIGURED
    assert manager.ledger.get_reputation(AUTHOR) == 0

    results = []
    for index in range(3):
        results.append(
            await manager.create_comment(
                post_id=post.id,
                author_hash=f"author-commenter{index}",
                body=f"reply {index}",
            )
        )

    assert all(result.comment.is_hidden for result in results)
    assert [result.locked for result in results] == [False, False, False]
    for index in range(3):
        assert manager.ledger.get_reputation(f"author-commenter{index}") == 0


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("author", "body", "zone"),
    [
        (AUTHOR, "", "Campus"),
        (AUTHOR, "   ", "Campus"),
        (AUTHOR, "hello", ""),
        (AUTHOR, "hello", "Narnia"),
        (None, "hello", "Campus"),
        ("bad token!", "hello", "Campus"),
    ],
)
async def test_create_post_validation(manager, db_session, author, body, zone) -> None:
    with pytest.raises(ValidationError):
        await manager.create_post(author_hash=author, body=body, zone=zone)
    assert db_session.query(Post).count() == 0


@pytest.mark.asyncio
async def test_cooldown_boundary(manager, clock) -> None:
    await manager.create_post(author_hash=AUTHOR, body="first", zone="Campus")

    clock.advance(14)
    with pytest.raises(RateLimitError) as excinfo:
        await manager.create_post(author_hash=AUTHOR, body="second", zone="Campus")
    assert excinfo.value.retry_after == 1

    clock.advance(1)
    post = await manager.create_post(author_hash=AUTHOR, body="third", zone="Campus")
    assert post.body == "third"


@pytest.mark.asyncio
async def test_cooldown_is_per_author(manager) -> None:
    await manager.create_post(author_hash=AUTHOR, body="first", zone="Campus")
    post = await manager.create_post(author_hash=OTHER, body="mine", zone="Dorm")
    assert post.author_hash == OTHER


@pytest.mark.asyncio
async def test_comments_share_the_cooldown(manager, clock) -> None:
    post = await _post(manager, clock)
    await manager.create_comment(post_id=post.id, author_hash=OTHER, body="agree")
    with pytest.raises(RateLimitError):
        await manager.create_comment(post_id=post.id, author_hash=OTHER, body="again")


@pytest.mark.asyncio
async def test_edit_requires_author(manager, clock) -> None:
    post = await _post(manager, clock)
    with pytest.raises(AuthorizationError):
        await manager.edit_post(post_id=post.id, author_hash=OTHER, body="hijacked")
    assert post.body == "Dining hall pizza is back"


@pytest.mark.asyncio
async def test_edit_remoderates_and_strikes(manager, clock, scorer) -> None:
    post = await _post(manager, clock)
    scorer.toxicity = 0.95
    edited = await manager.edit_post(post_id=post.id, author_hash=AUTHOR, body="something vile")

    assert edited.is_hidden is True
    assert edited.body == "something vile"
    assert manager.ledger.get_reputation(AUTHOR) == -5


@pytest.mark.asyncio
async def test_resending_same_edit_does_not_double_strike(manager, clock, scorer) -> None:
    post = await _post(manager, clock)
    scorer.toxicity = 0.7
    await manager.edit_post(post_id=post.id, author_hash=AUTHOR, body="rude")
    await manager.edit_post(post_id=post.id, author_hash=AUTHOR, body="rude")

    assert manager.ledger.get_reputation(AUTHOR) == -5


@pytest.mark.asyncio
async def test_edit_missing_post(manager) -> None:
    with pytest.raises(NotFoundError):
        await manager.edit_post(post_id=404, author_hash=AUTHOR, body="x")


@pytest.mark.asyncio
async def test_delete_post_removes_thread(manager, clock, db_session) -> None:
    post = await _post(manager, clock)
    await manager.create_comment(post_id=post.id, author_hash=OTHER, body="first!")

    with pytest.raises(AuthorizationError):
        manager.delete_post(post_id=post.id, author_hash=OTHER)

    manager.delete_post(post_id=post.id, author_hash=AUTHOR)
    assert db_session.query(Post).count() == 0
    assert db_session.query(Comment).count() == 0
    assert db_session.get(ReputationRecord, AUTHOR).post_count == 0
    assert db_session.get(ReputationRecord, OTHER).comment_count == 0


@pytest.mark.asyncio
async def test_three_blurred_comments_lock_thread(manager, clock, scorer) -> None:
    post = await _post(manager, clock)
    scorer.toxicity = 0.7

    results = []
    for index in range(3):
        results.append(
            await manager.create_comment(
                post_id=post.id,
                author_hash=f"author-commenter{index}",
                body=f"rude reply {index}",
            )
        )

    assert [result.locked for result in results] == [False, False, True]
    for index in range(3):
        assert manager.ledger.get_reputation(f"author-commenter{index}") == -5


@pytest.mark.asyncio
async def test_locked_thread_rejects_comments(manager, clock, scorer, db_session) -> None:
    post = await _post(manager, clock)
    scorer.toxicity = 0.99
    result = await manager.create_comment(post_id=post.id, author_hash=OTHER, body="vile")
    assert result.locked is True

    scorer.toxicity = 0.0
    with pytest.raises(ThreadLockedError):
        await manager.create_comment(post_id=post.id, author_hash="author-dddddddd", body="hi")
    assert db_session.query(Comment).count() == 1


@pytest.mark.asyncio
async def test_editing_post_keeps_lock(manager, clock, scorer) -> None:
    post = await _post(manager, clock)
    scorer.toxicity = 0.99
    await manager.create_comment(post_id=post.id, author_hash=OTHER, body="vile")

    scorer.toxicity = 0.0
    edited = await manager.edit_post(post_id=post.id, author_hash=AUTHOR, body="calm now")
    assert edited.locked is True


@pytest.mark.asyncio
async def test_comment_on_missing_post(manager) -> None:
    with pytest.raises(NotFoundError):
        await manager.create_comment(post_id=123, author_hash=AUTHOR, body="hello")


@pytest.mark.asyncio
async def test_edit_and_delete_comment(manager, clock, scorer, db_session) -> None:
    post = await _post(manager, clock)
    result = await manager.create_comment(post_id=post.id, author_hash=OTHER, body="nice")

    with pytest.raises(AuthorizationError):
        await manager.edit_comment(comment_id=result.comment.id, author_hash=AUTHOR, body="x")

    scorer.toxicity = 0.95
    edited = await manager.edit_comment(comment_id=result.comment.id, author_hash=OTHER, body="vile")
    assert edited.comment.is_hidden is True
    assert edited.locked is True

    manager.delete_comment(comment_id=result.comment.id, author_hash=OTHER)
    assert db_session.query(Comment).count() == 0
    assert db_session.get(Post, post.id).locked is True


@pytest.mark.asyncio
async def test_storage_failure_leaves_nothing_behind(manager, scorer, db_session, mocker) -> None:
    scorer.toxicity = 0.7
    mocker.patch.object(
        ReputationLedger,
        "record_strike",
        side_effect=OperationalError("UPDATE reputation", {}, Exception("disk I/O error")),
    )

    with pytest.raises(StorageUnavailable):
        await manager.create_post(author_hash=AUTHOR, body="rude", zone="Campus")

    assert db_session.query(Post).count() == 0
    assert db_session.get(ReputationRecord, AUTHOR) is None
