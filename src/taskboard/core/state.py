# src/taskboard/core/state.py

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

from ..ui.task_manager import TaskManager


@dataclass
class AppState:
    # Settings object (real Settings or a test SimpleNamespace).
    settings: Any

    manager: TaskManager

    # Backend handle (None when wired with fakes); closed on shutdown.
    backend: Any = None

    # Set by /exit or a signal; the console loop and main wait on it.
    stop_event: asyncio.Event = field(default_factory=asyncio.Event)
