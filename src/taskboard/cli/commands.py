# src/taskboard/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable

from ..core.results import FatalError, Ok, RetryableError
from ..core.state import AppState
from ..tasks.uploader import Attachment
from ..ui.task_manager import render_tasks

CommandReply = str | Awaitable[str]
CommandHandler = Callable[[AppState, list[str]], CommandReply]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by connectors (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(self, state: AppState, line: str) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        Handlers may be plain functions or coroutines.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split(maxsplit=1)
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        rest = parts[1] if len(parts) > 1 else ""
        args = rest.split() if rest else []

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        logger.debug("Command /%s args=%r", name, args)

        reply = handler(state, args)
        if inspect.isawaitable(reply):
            reply = await reply
        return reply

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _describe(result, done: str) -> str:
    if isinstance(result, Ok):
        return done
    if isinstance(result, RetryableError):
        return f"Failed (temporary): {result.message}. Try again later."
    if isinstance(result, FatalError):
        return f"Failed: {result.message}"
    return done


def _parse_id(args: list[str]) -> int | None:
    if not args:
        return None
    try:
        return int(args[0].lstrip("#"))
    except ValueError:
        return None


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    mgr = state.manager
    store = mgr.store
    return (
        "Status:\n"
        f"  Sync: {'active' if mgr.active else 'stopped'}\n"
        f"  Subscription: {mgr.subscriber.state.value} (last status: {mgr.subscriber.last_status or '-'})\n"
        f"  Tasks in replica: {len(store)}\n"
        f"  Insert policy: {store.insert_policy.value} (dedupe={'ON' if store.dedupe_inserts else 'OFF'})\n"
        f"  Owner: {mgr.owner_email or '-'}"
    )


def cmd_list(state: AppState, args: list[str]) -> str:
    return render_tasks(state.manager.tasks)


async def cmd_add(state: AppState, args: list[str]) -> str:
    """
    /add <title> | <description> [| <image path>]
    """
    raw = " ".join(args)
    if not raw.strip():
        return "Usage: /add <title> | <description> [| <image path>]"

    parts = [p.strip() for p in raw.split("|")]
    title = parts[0]
    description = parts[1] if len(parts) > 1 else ""
    image_path = parts[2] if len(parts) > 2 else ""

    form = state.manager.form
    form.new_title = title
    form.new_description = description
    form.task_image = None

    if image_path:
        try:
            form.task_image = Attachment.from_path(image_path)
        except (OSError, ValueError) as e:
            return f"Cannot attach image: {e}"

    result = await state.manager.submit()
    return _describe(result, "Task sent. It will appear once the backend confirms it.")


def cmd_form(state: AppState, args: list[str]) -> str:
    form = state.manager.form
    image = form.task_image.name if form.task_image else "-"
    return (
        "Draft:\n"
        f"  Title: {form.new_title or '-'}\n"
        f"  Description: {form.new_description or '-'}\n"
        f"  Image: {image}"
    )


async def cmd_submit(state: AppState, args: list[str]) -> str:
    """Re-send the current draft (kept after a failed /add)."""
    result = await state.manager.submit()
    return _describe(result, "Task sent. It will appear once the backend confirms it.")


async def cmd_edit(state: AppState, args: list[str]) -> str:
    """
    /edit <id> <new description>
    """
    task_id = _parse_id(args)
    if task_id is None or len(args) < 2:
        return "Usage: /edit <id> <new description>"
    result = await state.manager.edit(task_id, " ".join(args[1:]))
    return _describe(result, f"Update for #{task_id} sent.")


async def cmd_delete(state: AppState, args: list[str]) -> str:
    task_id = _parse_id(args)
    if task_id is None:
        return "Usage: /delete <id>"
    result = await state.manager.remove(task_id)
    return _describe(result, f"Delete for #{task_id} sent.")


async def cmd_reload(state: AppState, args: list[str]) -> str:
    result = await state.manager.reload()
    return _describe(result, f"Reloaded {len(state.manager.store)} tasks.")


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show subscription and replica status.")
registry.register("list", cmd_list, help_text="Show all tasks.", aliases=["ls"])
registry.register("add", cmd_add, help_text="Add a task: /add title | description [| image path].")
registry.register("form", cmd_form, help_text="Show the current task draft.")
registry.register("submit", cmd_submit, help_text="Re-send the current task draft.")
registry.register("edit", cmd_edit, help_text="Change a description: /edit <id> <text>.")
registry.register("delete", cmd_delete, help_text="Delete a task: /delete <id>.", aliases=["rm"])
registry.register("reload", cmd_reload, help_text="Re-fetch all tasks from the backend.")
