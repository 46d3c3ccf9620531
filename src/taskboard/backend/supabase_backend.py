# src/taskboard/backend/supabase_backend.py

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import Any

from supabase import AsyncClient, acreate_client

from ..core.ports import FeedHandler, Row, StatusCallback

logger = logging.getLogger(__name__)


async def _maybe_await(value: Any) -> Any:
    # storage3 made some helpers (get_public_url) async in the async client; older ones are sync.
    if inspect.isawaitable(value):
        return await value
    return value


def _status_name(status: Any) -> str:
    return str(getattr(status, "value", status))


class SupabaseTaskTable:
    """TaskTable port over PostgREST (`client.table(...)`)."""

    def __init__(self, client: AsyncClient, table: str = "tasks") -> None:
        self._client = client
        self.table = table

    async def select_all(self, *, order_by: str, ascending: bool = True) -> list[Row]:
        resp = await self._client.table(self.table).select("*").order(order_by, desc=not ascending).execute()
        return list(resp.data or [])

    async def insert(self, row: Row) -> Row | None:
        resp = await self._client.table(self.table).insert(row).execute()
        data = resp.data or []
        return data[0] if data else None

    async def update(self, task_id: int, fields: Row) -> None:
        await self._client.table(self.table).update(fields).eq("id", task_id).execute()

    async def delete(self, task_id: int) -> None:
        await self._client.table(self.table).delete().eq("id", task_id).execute()


class SupabaseStorage:
    """ObjectStorage port over Supabase Storage buckets."""

    def __init__(self, client: AsyncClient) -> None:
        self._client = client

    async def upload(
        self,
        bucket: str,
        key: str,
        content: bytes,
        *,
        content_type: str | None = None,
    ) -> None:
        file_options = {"content-type": content_type} if content_type else None
        await self._client.storage.from_(bucket).upload(path=key, file=content, file_options=file_options)

    async def get_public_url(self, bucket: str, key: str) -> str:
        url = await _maybe_await(self._client.storage.from_(bucket).get_public_url(key))
        return str(url)


class SupabaseFeedChannel:
    """FeedChannel port over one realtime channel (postgres_changes)."""

    def __init__(self, client: AsyncClient, name: str) -> None:
        self._client = client
        self.name = name
        self._channel = client.channel(name)

    def on(self, kind: str, *, schema: str, table: str, handler: FeedHandler) -> None:
        self._channel.on_postgres_changes(kind, callback=handler, schema=schema, table=table)

    async def subscribe(self, status_callback: StatusCallback) -> None:
        def _on_status(status: Any, err: Exception | None = None) -> None:
            status_callback(_status_name(status), err)

        await self._channel.subscribe(_on_status)

    async def unsubscribe(self) -> None:
        if self._channel is None:
            return
        channel, self._channel = self._channel, None
        await self._client.remove_channel(channel)


class SupabaseChangeFeed:
    def __init__(self, client: AsyncClient) -> None:
        self._client = client

    def channel(self, name: str) -> SupabaseFeedChannel:
        return SupabaseFeedChannel(self._client, name)


@dataclass(slots=True)
class Backend:
    """
    Explicitly constructed backend handle.

    Created once in the composition root and passed to the components that
    need it; close() ends its lifetime (channels removed, session signed out).
    """

    client: AsyncClient
    table: SupabaseTaskTable
    storage: SupabaseStorage
    feed: SupabaseChangeFeed
    owner_email: str | None = None
    signed_in: bool = False

    async def close(self) -> None:
        try:
            await self.client.remove_all_channels()
        except Exception:
            logger.debug("remove_all_channels failed", exc_info=True)

        if self.signed_in:
            try:
                await self.client.auth.sign_out()
            except Exception:
                logger.debug("sign_out failed", exc_info=True)
            self.signed_in = False


def wrap_client(client: AsyncClient, settings) -> Backend:
    """Build the port adapters around an already created client."""
    return Backend(
        client=client,
        table=SupabaseTaskTable(client, getattr(settings, "table", "tasks")),
        storage=SupabaseStorage(client),
        feed=SupabaseChangeFeed(client),
        owner_email=getattr(settings, "user_email", None),
    )


async def create_backend(settings) -> Backend:
    """
    Create the Supabase client from settings.

    If both user e-mail and password are configured we sign in once so row
    level security sees an authenticated user; the session e-mail then becomes
    the owner e-mail of created tasks.
    """
    url = (getattr(settings, "supabase_url", None) or "").strip()
    key = (getattr(settings, "supabase_key", None) or "").strip()

    if not url:
        raise RuntimeError("Supabase URL is not set. Set TASKBOARD_SUPABASE_URL in your .env.")
    if not key:
        raise RuntimeError("Supabase key is not set. Set TASKBOARD_SUPABASE_KEY in your .env.")

    client = await acreate_client(url, key)
    backend = wrap_client(client, settings)
    logger.info("Supabase client created (url=%s, table=%s)", url, backend.table.table)

    email = getattr(settings, "user_email", None)
    password = getattr(settings, "user_password", None)
    if email and password:
        resp = await client.auth.sign_in_with_password({"email": email, "password": password})
        user = getattr(resp, "user", None)
        backend.owner_email = getattr(user, "email", None) or email
        backend.signed_in = True
        logger.info("Signed in as %s", backend.owner_email)

    return backend
