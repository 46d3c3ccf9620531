# src/taskboard/ui/task_manager.py

from __future__ import annotations

"""
Task manager component.

Headless version of the single-page task board: holds the form fields,
starts/stops replica synchronisation, and routes user actions to the
dispatcher and uploader. The replica is never mutated from here; user actions
show up in `tasks` once the change feed echoes them back.
"""

import asyncio
import logging
from dataclasses import dataclass

from ..core.models import Task
from ..core.ports import TaskTable
from ..core.results import FatalError, Ok, Result
from ..sync.feed_subscriber import ChangeFeedSubscriber
from ..sync.replica_store import ChangeListener, ReplicaStore
from ..tasks.dispatcher import CommandDispatcher
from ..tasks.uploader import Attachment, AttachmentUploader

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class TaskForm:
    new_title: str = ""
    new_description: str = ""
    task_image: Attachment | None = None
    edit_description: str = ""

    def clear_new_task(self) -> None:
        self.new_title = ""
        self.new_description = ""
        self.task_image = None


class TaskManager:
    def __init__(
        self,
        *,
        table: TaskTable,
        store: ReplicaStore,
        dispatcher: CommandDispatcher,
        uploader: AttachmentUploader,
        subscriber: ChangeFeedSubscriber,
        owner_email: str | None = None,
        load_before_subscribe: bool = True,
    ) -> None:
        self._table = table
        self.store = store
        self.dispatcher = dispatcher
        self.uploader = uploader
        self.subscriber = subscriber
        self.owner_email = owner_email
        self.load_before_subscribe = load_before_subscribe
        self.form = TaskForm()
        self._active = False

    @property
    def tasks(self) -> list[Task]:
        return self.store.snapshot()

    @property
    def active(self) -> bool:
        return self._active

    def on_change(self, listener: ChangeListener) -> None:
        """Register a re-render callback."""
        self.store.add_listener(listener)

    # ---- lifecycle ----

    async def activate(self) -> None:
        """
        Seed the replica and open the change feed.

        By default the subscription starts only after the initial load has
        finished, so the load cannot overwrite events already applied. With
        load_before_subscribe=False both run concurrently and duplicate
        inserts are absorbed by the store's dedupe.
        """
        if self._active:
            return
        self._active = True

        if self.load_before_subscribe:
            await self.store.load(self._table)
            if not self._active:
                logger.info("Deactivated during the initial load, not subscribing.")
                return
            await self.subscriber.start()
        else:
            await asyncio.gather(self.store.load(self._table), self.subscriber.start())
            if not self._active:
                await self.subscriber.stop()

    async def deactivate(self) -> None:
        self._active = False
        await self.subscriber.stop()

    async def reload(self) -> Result[list[Task]]:
        return await self.store.load(self._table)

    # ---- form ----

    def select_image(self, attachment: Attachment | None) -> None:
        self.form.task_image = attachment

    async def submit(self) -> Result[Task | None]:
        """
        Create a task from the form.

        The image (if any) is uploaded first; a failed upload does not abort
        creation, the task is just created without image_url. The form is only
        cleared when the insert succeeds.
        """
        title = self.form.new_title.strip()
        if not title:
            return FatalError("Task title is empty.")

        image_url: str | None = None
        if self.form.task_image is not None:
            image_url = await self.uploader.upload(self.form.task_image)

        result = await self.dispatcher.create_task(
            title,
            self.form.new_description,
            image_url,
            self.owner_email,
        )
        if isinstance(result, Ok):
            self.form.clear_new_task()
        return result

    async def create(
        self,
        title: str,
        description: str,
        image: Attachment | None = None,
    ) -> Result[Task | None]:
        self.form.new_title = title
        self.form.new_description = description
        self.form.task_image = image
        return await self.submit()

    async def edit(self, task_id: int, description: str | None = None) -> Result[None]:
        if description is not None:
            self.form.edit_description = description
        return await self.dispatcher.update_task(task_id, self.form.edit_description)

    async def remove(self, task_id: int) -> Result[None]:
        return await self.dispatcher.delete_task(task_id)


def render_tasks(tasks: list[Task]) -> str:
    """Plain-text rendering of the board (used by the console connector)."""
    if not tasks:
        return "No tasks."
    lines = [f"Tasks ({len(tasks)}):"]
    for t in tasks:
        lines.append(f"  #{t.id} {t.title}")
        if t.description:
            lines.append(f"      {t.description}")
        if t.image_url:
            lines.append(f"      [image] {t.image_url}")
    return "\n".join(lines)
