# src/taskboard/sync/feed_subscriber.py

from __future__ import annotations

"""
Change feed subscriber.

Owns exactly one realtime channel bound to the tasks table and translates
pushed payloads into replica mutations through a typed dispatch table:

    INSERT -> store.apply_insert(record)
    UPDATE -> store.apply_update(record)
    DELETE -> store.apply_delete(old_id)

Lifecycle: UNSUBSCRIBED -> SUBSCRIBING -> SUBSCRIBED -> UNSUBSCRIBED (stop).
A failed subscribe is logged and not retried.
"""

import logging
from collections.abc import Callable
from enum import StrEnum
from typing import Any

from ..core.models import ChangeEvent, ChangeKind, Task
from ..core.ports import ChangeFeed, FeedChannel, FeedPayload
from ..core.results import Ok, Result, classify_error
from .replica_store import ReplicaStore

logger = logging.getLogger(__name__)


class SubscriptionState(StrEnum):
    UNSUBSCRIBED = "unsubscribed"
    SUBSCRIBING = "subscribing"
    SUBSCRIBED = "subscribed"


def _as_dict(value: Any) -> dict[str, Any] | None:
    return value if isinstance(value, dict) else None


def parse_feed_payload(payload: FeedPayload, default_kind: ChangeKind | None = None) -> ChangeEvent | None:
    """
    Normalize a realtime payload into a ChangeEvent.

    Accepted shapes:
    - {"eventType": "INSERT", "new": {...}, "old": {...}}
    - {"data": {"type": "INSERT", "record": {...}, "old_record": {...}}, "ids": [...]}
    Returns None when the payload cannot be interpreted.
    """
    body = _as_dict(payload.get("data")) or payload

    kind = ChangeKind.from_wire(body.get("type") or body.get("eventType")) or default_kind
    if kind is None:
        return None

    new_row = _as_dict(body.get("record")) or _as_dict(body.get("new"))
    old_row = _as_dict(body.get("old_record")) or _as_dict(body.get("old"))

    if kind is ChangeKind.DELETE:
        if not old_row or old_row.get("id") is None:
            return None
        try:
            return ChangeEvent(kind=kind, old_id=int(old_row["id"]))
        except (TypeError, ValueError):
            return None

    if not new_row:
        return None
    try:
        return ChangeEvent(kind=kind, record=Task.from_row(new_row))
    except (TypeError, ValueError):
        return None


class ChangeFeedSubscriber:
    def __init__(
        self,
        feed: ChangeFeed,
        store: ReplicaStore,
        *,
        channel_name: str = "tasks-channel",
        schema: str = "public",
        table: str = "tasks",
    ) -> None:
        self._feed = feed
        self._store = store
        self.channel_name = channel_name
        self.schema = schema
        self.table = table

        self._channel: FeedChannel | None = None
        self._state = SubscriptionState.UNSUBSCRIBED
        self.last_status: str | None = None

        self._dispatch: dict[ChangeKind, Callable[[ChangeEvent], None]] = {
            ChangeKind.INSERT: self._on_insert,
            ChangeKind.UPDATE: self._on_update,
            ChangeKind.DELETE: self._on_delete,
        }

    @property
    def state(self) -> SubscriptionState:
        return self._state

    # ---- dispatch table targets ----

    def _on_insert(self, event: ChangeEvent) -> None:
        if event.record is not None:
            self._store.apply_insert(event.record)

    def _on_update(self, event: ChangeEvent) -> None:
        if event.record is not None:
            self._store.apply_update(event.record)

    def _on_delete(self, event: ChangeEvent) -> None:
        if event.old_id is not None:
            self._store.apply_delete(event.old_id)

    def _make_handler(self, kind: ChangeKind) -> Callable[[FeedPayload], None]:
        def handler(payload: FeedPayload) -> None:
            self.handle_payload(payload, kind)

        return handler

    def handle_payload(self, payload: FeedPayload, kind: ChangeKind | None = None) -> None:
        """Apply one pushed payload to the replica (dropped unless subscribing/subscribed)."""
        if self._state is SubscriptionState.UNSUBSCRIBED:
            logger.debug("Dropping %s event: channel is not active", kind)
            return

        try:
            event = parse_feed_payload(payload, kind)
        except Exception:
            logger.exception("Failed to parse feed payload")
            return

        if event is None:
            logger.warning("Ignoring unrecognized feed payload: %r", payload)
            return

        logger.debug("Feed %s id=%s", event.kind.value, event.record.id if event.record else event.old_id)
        self._dispatch[event.kind](event)

    def _on_status(self, status: str, err: Exception | None = None) -> None:
        self.last_status = str(status)
        if err is not None:
            logger.warning("Subscription: %s (%s)", status, err)
        else:
            logger.info("Subscription: %s", status)

    # ---- lifecycle ----

    async def start(self) -> Result[None]:
        if self._state is not SubscriptionState.UNSUBSCRIBED:
            logger.debug("start() ignored: subscriber is %s", self._state.value)
            return Ok()

        self._state = SubscriptionState.SUBSCRIBING
        channel: FeedChannel | None = None
        try:
            channel = self._feed.channel(self.channel_name)
            self._channel = channel
            for kind in self._dispatch:
                channel.on(kind.value, schema=self.schema, table=self.table, handler=self._make_handler(kind))
            await channel.subscribe(self._on_status)
        except Exception as e:
            err = classify_error(e)
            logger.error("Error subscribing to %s: %s", self.channel_name, err.message)
            logger.debug("subscribe failed", exc_info=True)
            if self._channel is channel:
                await self._release_channel()
            return err

        if self._channel is not channel or self._state is not SubscriptionState.SUBSCRIBING:
            # stop() ran while the subscribe call was pending: close the late join.
            logger.info("Subscribe to %s finished after stop(), closing it", self.channel_name)
            await self._close(channel)
            return Ok()

        self._state = SubscriptionState.SUBSCRIBED
        logger.info("Listening for %s.%s changes on %s", self.schema, self.table, self.channel_name)
        return Ok()

    async def _close(self, channel: FeedChannel) -> None:
        try:
            await channel.unsubscribe()
        except Exception as e:
            logger.warning("Error unsubscribing %s: %s", self.channel_name, classify_error(e).message)

    async def _release_channel(self) -> None:
        channel, self._channel = self._channel, None
        self._state = SubscriptionState.UNSUBSCRIBED
        if channel is not None:
            await self._close(channel)

    async def stop(self) -> None:
        """Tear the channel down. Safe to call any number of times."""
        if self._channel is None and self._state is SubscriptionState.UNSUBSCRIBED:
            return
        await self._release_channel()
        logger.info("Unsubscribed from %s", self.channel_name)
