# src/taskboard/sync/replica_store.py

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from datetime import datetime, timezone
from enum import StrEnum

from ..core.models import Task
from ..core.ports import TaskTable
from ..core.results import Ok, Result, classify_error

logger = logging.getLogger(__name__)

ChangeListener = Callable[[list[Task]], None]


def _created_key(task: Task) -> tuple[int, float, str]:
    # Compare instants, not strings: rows may carry different UTC offsets.
    try:
        ts = datetime.fromisoformat(task.created_at)
    except ValueError:
        return (1, 0.0, task.created_at)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return (0, ts.timestamp(), task.created_at)


class InsertPolicy(StrEnum):
    """
    Where a feed-delivered insert lands in the ordered replica.

    APPEND keeps the backend's push order (inserts may break the ascending
    created_at order established by load). SORTED re-sorts by created_at.
    """

    APPEND = "append"
    SORTED = "sorted"

    @classmethod
    def parse(cls, raw: str | None) -> InsertPolicy:
        try:
            return cls((raw or "").strip().lower())
        except ValueError:
            return cls.APPEND


class ReplicaStore:
    """
    Ordered in-memory mirror of the tasks table.

    Seeded by load() and kept live by change-feed events. Only mutated from the
    event loop thread, so no locking. Every effective mutation notifies the
    registered listeners with a fresh snapshot.
    """

    def __init__(
        self,
        *,
        order_column: str = "created_at",
        insert_policy: InsertPolicy | str = InsertPolicy.APPEND,
        dedupe_inserts: bool = True,
    ) -> None:
        self._tasks: list[Task] = []
        self._listeners: list[ChangeListener] = []
        self.order_column = order_column
        self.insert_policy = InsertPolicy.parse(str(insert_policy))
        self.dedupe_inserts = dedupe_inserts

    # ---- read access ----

    def snapshot(self) -> list[Task]:
        return list(self._tasks)

    def get(self, task_id: int) -> Task | None:
        for t in self._tasks:
            if t.id == task_id:
                return t
        return None

    def __len__(self) -> int:
        return len(self._tasks)

    def __iter__(self) -> Iterator[Task]:
        return iter(self.snapshot())

    # ---- listeners ----

    def add_listener(self, listener: ChangeListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: ChangeListener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    def _notify(self) -> None:
        snap = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snap)
            except Exception:
                logger.exception("Replica listener crashed")

    # ---- full load ----

    async def load(self, table: TaskTable) -> Result[list[Task]]:
        """
        Replace the whole replica with the backend rows, ascending by order_column.

        On failure the prior state is kept and the error is returned (no retry).
        """
        try:
            rows = await table.select_all(order_by=self.order_column, ascending=True)
        except Exception as e:
            err = classify_error(e)
            logger.error("Error reading tasks: %s", err.message)
            logger.debug("load failed", exc_info=True)
            return err

        tasks: list[Task] = []
        for row in rows or []:
            try:
                tasks.append(Task.from_row(row))
            except (TypeError, ValueError):
                logger.warning("Skipping malformed task row: %r", row)

        self._tasks = tasks
        logger.info("Replica loaded: %d tasks", len(tasks))
        self._notify()
        return Ok(self.snapshot())

    # ---- feed-driven mutations ----

    def _index_of(self, task_id: int) -> int | None:
        for i, t in enumerate(self._tasks):
            if t.id == task_id:
                return i
        return None

    def apply_insert(self, record: Task) -> None:
        idx = self._index_of(record.id) if self.dedupe_inserts else None
        if idx is not None:
            # Already mirrored (e.g. included in the load snapshot): refresh in place.
            self._tasks[idx] = record
            logger.debug("Insert for known task id=%s replaced in place", record.id)
        else:
            self._tasks.append(record)

        if self.insert_policy is InsertPolicy.SORTED:
            self._tasks.sort(key=_created_key)

        self._notify()

    def apply_delete(self, task_id: int) -> None:
        before = len(self._tasks)
        self._tasks = [t for t in self._tasks if t.id != task_id]
        if len(self._tasks) == before:
            logger.debug("Delete for unknown task id=%s ignored", task_id)
            return
        self._notify()

    def apply_update(self, record: Task) -> None:
        idx = self._index_of(record.id)
        if idx is None:
            logger.debug("Update for unknown task id=%s ignored", record.id)
            return
        self._tasks[idx] = record
        self._notify()
