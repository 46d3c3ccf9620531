# tests/test_feed_subscriber.py

from __future__ import annotations

import asyncio

import pytest

from taskboard.core.models import ChangeKind
from taskboard.core.results import FatalError, Ok, RetryableError
from taskboard.sync.feed_subscriber import ChangeFeedSubscriber, SubscriptionState, parse_feed_payload
from taskboard.sync.replica_store import ReplicaStore

from .fakes import BackendDown, FakeChangeFeed, make_row


def _subscriber(feed: FakeChangeFeed, store: ReplicaStore | None = None) -> ChangeFeedSubscriber:
    return ChangeFeedSubscriber(feed, store if store is not None else ReplicaStore(), channel_name="tasks-channel")


@pytest.mark.asyncio
async def test_start_opens_one_channel_with_three_bindings() -> None:
    feed = FakeChangeFeed()
    sub = _subscriber(feed)

    assert sub.state is SubscriptionState.UNSUBSCRIBED
    result = await sub.start()

    assert isinstance(result, Ok)
    assert sub.state is SubscriptionState.SUBSCRIBED
    assert sub.last_status == "SUBSCRIBED"
    assert len(feed.channels) == 1
    ch = feed.channels[0]
    assert ch.name == "tasks-channel"
    assert ch.subscribe_calls == 1
    assert sorted(k for k, _, _ in ch.bindings) == ["DELETE", "INSERT", "UPDATE"]
    assert all(schema == "public" and table == "tasks" for _, schema, table in ch.bindings)


@pytest.mark.asyncio
async def test_second_start_does_not_open_another_channel() -> None:
    feed = FakeChangeFeed()
    sub = _subscriber(feed)

    await sub.start()
    await sub.start()

    assert len(feed.channels) == 1


@pytest.mark.asyncio
async def test_events_are_applied_to_store() -> None:
    feed = FakeChangeFeed()
    store = ReplicaStore()
    sub = _subscriber(feed, store)
    await sub.start()

    feed.emit("INSERT", new=make_row(1, "2024-01-01T00:00:00+00:00"))
    feed.emit("INSERT", new=make_row(2, "2024-01-02T00:00:00+00:00"))
    feed.emit("UPDATE", new=make_row(1, "2024-01-01T00:00:00+00:00", description="edited"))
    feed.emit("DELETE", old={"id": 2})

    assert [t.id for t in store] == [1]
    assert store.get(1).description == "edited"


@pytest.mark.asyncio
async def test_js_style_payload_is_accepted() -> None:
    feed = FakeChangeFeed()
    store = ReplicaStore()
    sub = _subscriber(feed, store)
    await sub.start()

    ch = feed.channels[0]
    ch.push("INSERT", {"eventType": "INSERT", "new": make_row(4, "2024-01-01T00:00:00+00:00"), "old": {}})
    assert [t.id for t in store] == [4]

    ch.push("DELETE", {"eventType": "DELETE", "new": {}, "old": {"id": 4}})
    assert len(store) == 0


@pytest.mark.asyncio
async def test_malformed_payload_is_ignored() -> None:
    feed = FakeChangeFeed()
    store = ReplicaStore()
    sub = _subscriber(feed, store)
    await sub.start()
    feed.emit("INSERT", new=make_row(1, "2024-01-01T00:00:00+00:00"))

    feed.channels[0].push("INSERT", {"data": {"type": "INSERT", "record": {"title": "no id"}}})
    feed.channels[0].push("DELETE", {"data": {"type": "DELETE", "old_record": {}}})

    assert [t.id for t in store] == [1]


@pytest.mark.asyncio
async def test_stop_is_idempotent_and_blocks_late_events() -> None:
    feed = FakeChangeFeed()
    store = ReplicaStore()
    sub = _subscriber(feed, store)
    await sub.start()
    feed.emit("INSERT", new=make_row(1, "2024-01-01T00:00:00+00:00"))

    await sub.stop()
    await sub.stop()

    ch = feed.channels[0]
    assert ch.unsubscribe_calls == 1
    assert sub.state is SubscriptionState.UNSUBSCRIBED

    # A message that was already in flight when the channel closed.
    ch.push("INSERT", {"data": {"type": "INSERT", "record": make_row(2, "2024-01-02T00:00:00+00:00")}})
    ch.push("DELETE", {"data": {"type": "DELETE", "old_record": {"id": 1}}})

    assert [t.id for t in store] == [1]


@pytest.mark.asyncio
async def test_stop_before_start_is_noop() -> None:
    feed = FakeChangeFeed()
    sub = _subscriber(feed)

    await sub.stop()

    assert feed.channels == []
    assert sub.state is SubscriptionState.UNSUBSCRIBED


@pytest.mark.asyncio
async def test_failed_subscribe_is_logged_not_retried() -> None:
    feed = FakeChangeFeed()
    feed.fail_subscribe = PermissionError("realtime not enabled")
    sub = _subscriber(feed)

    result = await sub.start()

    assert isinstance(result, FatalError)
    assert sub.state is SubscriptionState.UNSUBSCRIBED
    assert len(feed.channels) == 1
    assert feed.channels[0].subscribe_calls == 1
    assert feed.channels[0].unsubscribe_calls == 1
    assert sub.last_status == "CHANNEL_ERROR"


def test_parse_feed_payload_uses_registered_kind_as_fallback() -> None:
    event = parse_feed_payload({"new": make_row(3, "2024-01-01T00:00:00+00:00")}, ChangeKind.UPDATE)

    assert event is not None
    assert event.kind is ChangeKind.UPDATE
    assert event.record is not None and event.record.id == 3


def test_parse_feed_payload_without_kind_returns_none() -> None:
    assert parse_feed_payload({"new": make_row(3, "2024-01-01T00:00:00+00:00")}) is None


@pytest.mark.asyncio
async def test_stop_while_subscribe_pending_stays_unsubscribed() -> None:
    feed = FakeChangeFeed()
    feed.gate = asyncio.Event()
    store = ReplicaStore()
    sub = _subscriber(feed, store)

    starting = asyncio.create_task(sub.start())
    await asyncio.sleep(0)
    assert sub.state is SubscriptionState.SUBSCRIBING

    await sub.stop()
    feed.gate.set()
    result = await starting

    assert isinstance(result, Ok)
    assert sub.state is SubscriptionState.UNSUBSCRIBED
    ch = feed.channels[0]
    assert ch.subscribed is False

    ch.push("INSERT", {"data": {"type": "INSERT", "record": make_row(1, "2024-01-01T00:00:00+00:00")}})
    assert len(store) == 0


@pytest.mark.asyncio
async def test_channel_setup_error_is_returned_not_raised() -> None:
    feed = FakeChangeFeed()
    feed.fail_channel = BackendDown("realtime socket closed")
    sub = _subscriber(feed)

    result = await sub.start()

    assert isinstance(result, RetryableError)
    assert sub.state is SubscriptionState.UNSUBSCRIBED

    feed.fail_channel = None
    assert isinstance(await sub.start(), Ok)
    assert sub.state is SubscriptionState.SUBSCRIBED
