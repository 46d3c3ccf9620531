# src/taskboard/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The replica store, dispatcher, uploader and subscriber depend on these
Protocols instead of the Supabase SDK. This keeps the backend swappable and
lets tests run against in-memory fakes.

All methods raise on failure; callers convert exceptions into typed results.
"""

from typing import Any, Awaitable, Callable, Protocol

Row = dict[str, Any]

# Raw change-feed payload, as pushed by the backend.
FeedPayload = dict[str, Any]
FeedHandler = Callable[[FeedPayload], None]

# (status, error) reported by the backend for a subscribe call.
StatusCallback = Callable[[str, Exception | None], None]


class TaskTable(Protocol):
    """Record API for one table."""

    def select_all(self, *, order_by: str, ascending: bool = True) -> Awaitable[list[Row]]: ...
    def insert(self, row: Row) -> Awaitable[Row | None]: ...
    def update(self, task_id: int, fields: Row) -> Awaitable[None]: ...
    def delete(self, task_id: int) -> Awaitable[None]: ...


class ObjectStorage(Protocol):
    def upload(
            self,
            bucket: str,
            key: str,
            content: bytes,
            *,
            content_type: str | None = None,
    ) -> Awaitable[None]: ...

    def get_public_url(self, bucket: str, key: str) -> Awaitable[str]: ...


class FeedChannel(Protocol):
    """One logical realtime connection with per-event handlers."""

    def on(self, kind: str, *, schema: str, table: str, handler: FeedHandler) -> None: ...
    def subscribe(self, status_callback: StatusCallback) -> Awaitable[None]: ...
    def unsubscribe(self) -> Awaitable[None]: ...


class ChangeFeed(Protocol):
    def channel(self, name: str) -> FeedChannel: ...
