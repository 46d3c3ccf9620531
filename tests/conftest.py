# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from taskboard.cli.bootstrap import build_task_manager
from taskboard.core.state import AppState
from taskboard.ui.task_manager import TaskManager

from .fakes import FakeChangeFeed, FakeStorage, FakeTaskTable


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with bootstrap and the components.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the environment.
    """
    return SimpleNamespace(
        app_name="taskboard-test",
        data_dir=tmp_path / "data",
        user_email="owner@example.com",
        table="tasks",
        schema="public",
        order_column="created_at",
        bucket="tasks-images",
        channel="tasks-channel",
        insert_policy="append",
        dedupe_inserts=True,
        load_before_subscribe=True,
        render_on_change=False,
        console_enabled=False,
    )


@pytest.fixture()
def feed() -> FakeChangeFeed:
    return FakeChangeFeed()


@pytest.fixture()
def table() -> FakeTaskTable:
    return FakeTaskTable()


@pytest.fixture()
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture()
def manager(settings, table, storage, feed) -> TaskManager:
    return build_task_manager(settings, table=table, storage=storage, feed=feed)


@pytest.fixture()
def state(settings, manager) -> AppState:
    """AppState wired with in-memory fakes instead of a Supabase backend."""
    return AppState(settings=settings, manager=manager)
