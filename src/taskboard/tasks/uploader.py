# src/taskboard/tasks/uploader.py

from __future__ import annotations

import logging
import mimetypes
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from ..core.ports import ObjectStorage
from ..core.results import Ok, Result, classify_error

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


def build_storage_key(file_name: str, now_ms: int) -> str:
    """
    Storage key = original file name + upload timestamp (ms).

    Not unique in the cryptographic sense: two uploads of the same name within
    one millisecond collide.
    """
    return f"{file_name}-{now_ms}"


@dataclass(frozen=True, slots=True)
class Attachment:
    name: str
    content: bytes
    content_type: str | None = None

    @classmethod
    def from_path(cls, path: str | Path) -> Attachment:
        """Read an image file from disk. Non-image files are rejected before any upload."""
        p = Path(path).expanduser()
        content_type, _ = mimetypes.guess_type(p.name)
        if not content_type or not content_type.startswith("image/"):
            raise ValueError(f"Not an image file: {p.name}")
        return cls(name=p.name, content=p.read_bytes(), content_type=content_type)


class AttachmentUploader:
    def __init__(
        self,
        storage: ObjectStorage,
        *,
        bucket: str = "tasks-images",
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self._storage = storage
        self.bucket = bucket
        self._clock = clock

    async def upload_result(self, attachment: Attachment) -> Result[str]:
        key = build_storage_key(attachment.name, self._clock())

        try:
            await self._storage.upload(
                self.bucket,
                key,
                attachment.content,
                content_type=attachment.content_type,
            )
        except Exception as e:
            err = classify_error(e)
            logger.error("Error uploading image: %s", err.message)
            logger.debug("upload failed key=%s", key, exc_info=True)
            return err

        try:
            url = await self._storage.get_public_url(self.bucket, key)
        except Exception as e:
            err = classify_error(e)
            logger.error("Error resolving public URL for %s: %s", key, err.message)
            return err

        logger.info("Uploaded %s (%d bytes) to %s/%s", attachment.name, len(attachment.content), self.bucket, key)
        return Ok(url)

    async def upload(self, attachment: Attachment) -> str | None:
        """Upload and return the public URL, or None on failure."""
        result = await self.upload_result(attachment)
        return result.value if isinstance(result, Ok) else None
