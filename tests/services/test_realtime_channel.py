"""Tests for the realtime channel and storage change events."""

import asyncio

import pytest

from safeyak.models import Post
from safeyak.services.realtime import ChangeEvent, RealtimeChannel, column_equals
from safeyak.services.reputation import LiveReputationView

AUTHOR = "author-aaaaaaaa"


def _event(table="reputation", type_="UPDATE", **row) -> ChangeEvent:
    return ChangeEvent(table=table, type=type_, new=row)


def test_subscription_filters_by_table_and_type() -> None:
    channel = RealtimeChannel()
    received = []
    channel.subscribe("reputation", "UPDATE", callback=received.append)

    channel.publish(_event(author_hash=AUTHOR, reputation=1))
    channel.publish(_event(table="post", id=1))
    channel.publish(_event(type_="INSERT", author_hash=AUTHOR))

    assert len(received) == 1


def test_column_predicate_compares_as_text() -> None:
    channel = RealtimeChannel()
    received = []
    channel.subscribe("comment", predicate=column_equals("post_id", "7"), callback=received.append)

    channel.publish(_event(table="comment", type_="INSERT", post_id=7))
    channel.publish(_event(table="comment", type_="INSERT", post_id=8))

    assert [event.new["post_id"] for event in received] == [7]


def test_unsubscribe_stops_delivery() -> None:
    channel = RealtimeChannel()
    received = []
    with channel.subscribe("reputation", callback=received.append):
        channel.publish(_event(reputation=1))
    channel.publish(_event(reputation=2))

    assert len(received) == 1
    assert channel.subscriber_count == 0


def test_broken_callback_does_not_block_others() -> None:
    channel = RealtimeChannel()
    received = []

    def explode(event):
        raise RuntimeError("boom")

    channel.subscribe("reputation", callback=explode)
    channel.subscribe("reputation", callback=received.append)

    assert channel.publish(_event(reputation=1)) == 1
    assert len(received) == 1


@pytest.mark.asyncio
async def test_queue_delivery() -> None:
    channel = RealtimeChannel()
    async with channel.subscribe("post", "INSERT") as subscription:
        channel.publish(_event(table="post", type_="INSERT", id=1))
        event = await asyncio.wait_for(subscription.get(), timeout=1)
    assert event.new == {"id": 1}


@pytest.mark.asyncio
async def test_full_queue_drops_events() -> None:
    channel = RealtimeChannel()
    subscription = channel.subscribe("post", maxsize=1)
    channel.publish(_event(table="post", id=1))
    channel.publish(_event(table="post", id=2))
    await asyncio.sleep(0)

    assert subscription.queue.qsize() == 1
    assert (await subscription.get()).new == {"id": 1}
    subscription.close()


def test_commit_publishes_orm_changes(db_session, channel) -> None:
    received = []
    with channel.subscribe("post", callback=received.append):
        post = Post(body="Quiet hours tonight?", zone="Dorm", author_hash=AUTHOR)
        db_session.add(post)
        db_session.flush()
        assert received == []
        db_session.commit()
        post_id = post.id

        assert post.body == "Quiet hours tonight?"
        post.body = "Quiet hours tonight??"
        db_session.commit()

        db_session.delete(post)
        db_session.commit()

    assert [event.type for event in received] == ["INSERT", "UPDATE", "DELETE"]
    assert received[0].new["id"] == post_id
    assert received[1].old["body"] == "Quiet hours tonight?"
    assert received[1].new["body"] == "Quiet hours tonight??"
    assert received[2].new is None
    assert received[2].old["id"] == post_id


def test_rollback_discards_changes(db_session, channel) -> None:
    received = []
    with channel.subscribe("post", callback=received.append):
        db_session.add(Post(body="never mind", zone="Dorm", author_hash=AUTHOR))
        db_session.flush()
        db_session.rollback()

    assert received == []


def test_live_view_tracks_reputation(ledger, db_session, channel) -> None:
    items = [
        {"id": 1, "author_hash": AUTHOR, "reputation": 0},
        {"id": 2, "author_hash": "author-zzzzzzzz", "reputation": 9},
    ]
    with LiveReputationView(items, channel=channel) as view:
        ledger.record_positive_signal(AUTHOR, "bookmark")
        db_session.commit()

    assert view.items[0]["reputation"] == 2
    assert view.items[1]["reputation"] == 9
    assert channel.subscriber_count == 0
