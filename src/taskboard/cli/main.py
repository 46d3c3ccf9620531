# src/taskboard/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState (backend client + components), activates
the task manager (initial load + change feed), then runs the console REPL or,
with the console disabled, just keeps the replica in sync until a signal.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal

from ..cli.bootstrap import create_initial_state, shutdown
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


async def _run(settings) -> int:
    try:
        state = await create_initial_state(settings=settings)
    except RuntimeError as e:
        logger.error("%s", e)
        return 2
    except Exception:
        logger.exception("Failed to create the backend client.")
        return 1

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        # Some platforms (Windows) do not support loop signal handlers.
        with contextlib.suppress(NotImplementedError, RuntimeError):
            loop.add_signal_handler(sig, state.stop_event.set)

    try:
        await state.manager.activate()

        if settings.console_enabled:
            console = asyncio.create_task(run_console_loop(state))
            stopper = asyncio.create_task(state.stop_event.wait())
            await asyncio.wait({console, stopper}, return_when=asyncio.FIRST_COMPLETED)
            stopper.cancel()
            if not console.done():
                console.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await console
        else:
            logger.info("Console disabled. Keeping the replica in sync. Press Ctrl+C to stop.")
            await state.stop_event.wait()
    finally:
        await shutdown(state)
        logger.info("Bye.")
    return 0


def main() -> int:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    setup_logging(log_dir=getattr(settings, "data_dir", ".local/taskboard"), console_level=console_level)

    logger.info("Starting %s...", getattr(settings, "app_name", "taskboard"))

    try:
        return asyncio.run(_run(settings))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
