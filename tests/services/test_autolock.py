"""Tests for the thread auto-lock engine."""

import pytest

from safeyak.core.errors import NotFoundError
from safeyak.models import Comment, Post
from safeyak.services.autolock import AutoLockEngine
from safeyak.services.moderation import REASON_NOT_CONFIGURED, REASON_SEVERE

AUTHOR = "author-aaaaaaaa"


@pytest.fixture()
def post(db_session) -> Post:
    post = Post(body="Library wifi is down again", zone="Campus", author_hash=AUTHOR)
    db_session.add(post)
    db_session.commit()
    return post


def _comment(db_session, post, *, blurred=False, hidden=False, reason=None) -> Comment:
    comment = Comment(
        post_id=post.id,
        body="reply",
        author_hash="author-cccccccc",
        is_blurred=blurred,
        is_hidden=hidden,
        moderation_reason=reason,
    )
    db_session.add(comment)
    db_session.flush()
    return comment


def test_clean_thread_stays_open(db_session, autolock, post) -> None:
    _comment(db_session, post)
    _comment(db_session, post)
    assert autolock.evaluate_lock(post.id) is False
    assert post.locked is False


def test_locks_at_violation_threshold(db_session, autolock, post, clock) -> None:
    _comment(db_session, post, blurred=True)
    _comment(db_session, post, blurred=True)
    assert autolock.evaluate_lock(post.id) is False

    _comment(db_session, post, blurred=True)
    assert autolock.evaluate_lock(post.id) is True
    assert post.locked is True
    assert post.locked_at == clock()


def test_single_hidden_comment_locks(db_session, autolock, post) -> None:
    _comment(db_session, post, hidden=True)
    assert autolock.evaluate_lock(post.id) is True


def test_severe_trigger_can_be_disabled(db_session, post) -> None:
    engine = AutoLockEngine(db_session, violation_threshold=3, lock_on_severe=False)
    _comment(db_session, post, hidden=True)
    assert engine.evaluate_lock(post.id) is False


def test_unscored_hidden_comments_do_not_lock(db_session, autolock, post) -> None:
    for _ in range(3):
        _comment(db_session, post, hidden=True, reason=REASON_NOT_CONFIGURED)
    assert autolock.evaluate_lock(post.id) is False
    assert autolock.violation_counts(post.id) == (0, 0)

    _comment(db_session, post, hidden=True, reason=REASON_SEVERE)
    assert autolock.evaluate_lock(post.id) is True


def test_non_positive_threshold_disables_count_rule(db_session, post) -> None:
    engine = AutoLockEngine(db_session, violation_threshold=0, lock_on_severe=False)
    for _ in range(5):
        _comment(db_session, post, blurred=True)
    assert engine.evaluate_lock(post.id) is False


def test_lock_is_monotonic(db_session, autolock, post) -> None:
    flagged = _comment(db_session, post, hidden=True)
    assert autolock.evaluate_lock(post.id) is True

    db_session.delete(flagged)
    db_session.flush()
    assert autolock.evaluate_lock(post.id) is True
    assert post.locked is True


def test_evaluate_is_idempotent(db_session, autolock, post) -> None:
    _comment(db_session, post, hidden=True)
    assert autolock.evaluate_lock(post.id) is True
    first_locked_at = post.locked_at
    assert autolock.evaluate_lock(post.id) is True
    assert post.locked_at == first_locked_at


def test_missing_post(autolock) -> None:
    with pytest.raises(NotFoundError):
        autolock.evaluate_lock(9999)
