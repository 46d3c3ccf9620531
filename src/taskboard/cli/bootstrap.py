# src/taskboard/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- creates the backend client (explicit lifetime, no module-level singleton),
- wires the replica store, dispatcher, uploader and subscriber into AppState.
"""

from __future__ import annotations

import logging

from ..backend.supabase_backend import create_backend
from ..config import get_settings
from ..core.ports import ChangeFeed, ObjectStorage, TaskTable
from ..core.state import AppState
from ..sync.feed_subscriber import ChangeFeedSubscriber
from ..sync.replica_store import ReplicaStore
from ..tasks.dispatcher import CommandDispatcher
from ..tasks.uploader import AttachmentUploader
from ..ui.task_manager import TaskManager

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    data_dir = getattr(settings, "data_dir", None)
    if data_dir is not None:
        data_dir.mkdir(parents=True, exist_ok=True)


def build_task_manager(
    settings,
    *,
    table: TaskTable,
    storage: ObjectStorage,
    feed: ChangeFeed,
    owner_email: str | None = None,
) -> TaskManager:
    """Wire the components around the given ports (real backend or test fakes)."""
    store = ReplicaStore(
        order_column=getattr(settings, "order_column", "created_at"),
        insert_policy=getattr(settings, "insert_policy", "append"),
        dedupe_inserts=bool(getattr(settings, "dedupe_inserts", True)),
    )
    subscriber = ChangeFeedSubscriber(
        feed,
        store,
        channel_name=getattr(settings, "channel", "tasks-channel"),
        schema=getattr(settings, "schema", "public"),
        table=getattr(settings, "table", "tasks"),
    )
    return TaskManager(
        table=table,
        store=store,
        dispatcher=CommandDispatcher(table),
        uploader=AttachmentUploader(storage, bucket=getattr(settings, "bucket", "tasks-images")),
        subscriber=subscriber,
        owner_email=owner_email if owner_email is not None else getattr(settings, "user_email", None),
        load_before_subscribe=bool(getattr(settings, "load_before_subscribe", True)),
    )


async def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    backend = await create_backend(settings)
    manager = build_task_manager(
        settings,
        table=backend.table,
        storage=backend.storage,
        feed=backend.feed,
        owner_email=backend.owner_email,
    )
    return AppState(settings=settings, manager=manager, backend=backend)


async def shutdown(state: AppState) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    try:
        await state.manager.deactivate()
    except Exception:
        logger.exception("Failed to stop the change feed subscriber.")

    backend = state.backend
    if backend is not None and hasattr(backend, "close"):
        try:
            await backend.close()
        except Exception:
            logger.debug("Backend close failed.", exc_info=True)
