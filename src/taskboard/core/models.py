# src/taskboard/core/models.py

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

class ChangeKind(StrEnum):
    """Mutation kinds delivered by the change feed."""

    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"

    @classmethod
    def from_wire(cls, raw: Any) -> ChangeKind | None:
        if not raw:
            return None
        try:
            return cls(str(raw).strip().upper())
        except ValueError:
            return None

def _opt_str(value: Any) -> str | None:
    if value is None:
        return None
    s = str(value)
    return s if s.strip() else None

@dataclass(frozen=True, slots=True)
class Task:
    """
    One row of the tasks table, as confirmed by the backend.

    id and created_at are always assigned by the backend; the local replica
    never invents them.
    """

    id: int
    title: str
    description: str
    created_at: str
    image_url: str | None = None
    email: str | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Task:
        """Build a Task from a raw row dict. Unknown columns are ignored."""
        if "id" not in row or row["id"] is None:
            raise ValueError("task row has no id")
        return cls(
            id=int(row["id"]),
            title=str(row.get("title") or ""),
            description=str(row.get("description") or ""),
            created_at=str(row.get("created_at") or ""),
            image_url=_opt_str(row.get("image_url")),
            email=_opt_str(row.get("email")),
        )


@dataclass(frozen=True, slots=True)
class TaskDraft:
    """Insert payload: everything except the backend-assigned id/created_at."""

    title: str
    description: str
    email: str | None = None
    image_url: str | None = None

    def to_row(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "email": self.email,
            "image_url": self.image_url,
        }


@dataclass(frozen=True, slots=True)
class ChangeEvent:
    """
    A normalized change-feed notification.

    INSERT/UPDATE carry the new row in `record`; DELETE carries only `old_id`.
    """

    kind: ChangeKind
    record: Task | None = None
    old_id: int | None = None
