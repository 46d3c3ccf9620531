# src/taskboard/connectors/console_connector.py

from __future__ import annotations

import asyncio
import logging
import threading
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.models import Task
from ..core.state import AppState
from ..ui.task_manager import render_tasks

logger = logging.getLogger(__name__)

# Sentinel pushed by the reader thread on EOF / Ctrl+C.
_EOF = None


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


def _render(tasks: list[Task]) -> None:
    _print_ts("[BOARD] " + render_tasks(tasks))


def _start_stdin_reader(loop: asyncio.AbstractEventLoop, queue: asyncio.Queue[str | None]) -> threading.Thread:
    """
    Read stdin lines in a daemon thread and hand them to the event loop.

    A daemon thread (not the default executor) so a pending input() never
    blocks interpreter shutdown.
    """

    def _reader() -> None:
        while True:
            try:
                line = input(">>> ")
            except (EOFError, KeyboardInterrupt):
                loop.call_soon_threadsafe(queue.put_nowait, _EOF)
                return
            except RuntimeError:
                # Loop already closed.
                return
            try:
                loop.call_soon_threadsafe(queue.put_nowait, line)
            except RuntimeError:
                return

    t = threading.Thread(target=_reader, name="console-stdin", daemon=True)
    t.start()
    return t


async def run_console_loop(state: AppState) -> None:
    """
    Interactive REPL.

    Input is read off-loop so change feed events keep arriving (and re-rendering)
    while we wait for the next command.
    """
    loop = asyncio.get_running_loop()
    render_on_change = bool(getattr(state.settings, "render_on_change", True))
    lines: asyncio.Queue[str | None] = asyncio.Queue()

    if render_on_change:
        state.manager.on_change(_render)

    logger.info("Console connector started.")
    _print_ts("[CONSOLE] Use /help for commands, /add to create a task, /exit to quit.\n")
    _start_stdin_reader(loop, lines)

    try:
        while not state.stop_event.is_set():
            line = await lines.get()
            if line is _EOF:
                logger.info("Console EOF received, exiting.")
                break

            line = line.strip()
            if not line:
                continue

            if line.lower() in ("/exit", "/quit"):
                logger.info("Console exit command received.")
                break

            if not line.startswith("/"):
                _print_ts("Commands start with '/'. Use /help to list them.")
                continue

            try:
                reply = await command_registry.handle(state, line)
            except Exception:
                logger.exception("Command handler crashed.")
                reply = "Internal error while handling a command."

            if reply is not None:
                _print_ts(reply)
    finally:
        if render_on_change:
            state.manager.store.remove_listener(_render)
        state.stop_event.set()
        logger.info("Console connector finished.")
