# src/taskboard/tasks/dispatcher.py

from __future__ import annotations

import logging

from ..core.models import Task, TaskDraft
from ..core.ports import TaskTable
from ..core.results import Ok, Result, classify_error

logger = logging.getLogger(__name__)


class CommandDispatcher:
    """
    Create/update/delete passthrough to the remote record API.

    Never touches the local replica: every mutation becomes visible only when
    the change feed echoes it back. Single attempt, no retry; errors are logged
    and returned as typed results.
    """

    def __init__(self, table: TaskTable) -> None:
        self._table = table

    async def create_task(
        self,
        title: str,
        description: str,
        attachment_url: str | None = None,
        owner_email: str | None = None,
    ) -> Result[Task | None]:
        draft = TaskDraft(
            title=title,
            description=description,
            email=owner_email,
            image_url=attachment_url,
        )
        try:
            row = await self._table.insert(draft.to_row())
        except Exception as e:
            err = classify_error(e)
            logger.error("Error adding task: %s", err.message)
            logger.debug("insert failed", exc_info=True)
            return err

        created: Task | None = None
        if row:
            try:
                created = Task.from_row(row)
            except (TypeError, ValueError):
                logger.debug("Insert returned an unexpected row: %r", row)
        logger.info("Task insert sent (id=%s)", created.id if created else "?")
        return Ok(created)

    async def update_task(self, task_id: int, new_description: str) -> Result[None]:
        try:
            await self._table.update(task_id, {"description": new_description})
        except Exception as e:
            err = classify_error(e)
            logger.error("Error updating task %s: %s", task_id, err.message)
            logger.debug("update failed", exc_info=True)
            return err
        logger.info("Task %s update sent", task_id)
        return Ok()

    async def delete_task(self, task_id: int) -> Result[None]:
        try:
            await self._table.delete(task_id)
        except Exception as e:
            err = classify_error(e)
            logger.error("Error deleting task %s: %s", task_id, err.message)
            logger.debug("delete failed", exc_info=True)
            return err
        logger.info("Task %s delete sent", task_id)
        return Ok()
