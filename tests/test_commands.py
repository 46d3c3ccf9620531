# tests/test_commands.py

from __future__ import annotations

from pathlib import Path

import pytest

from taskboard.cli.commands import CommandRegistry, registry

from .fakes import BackendDown, make_row


@pytest.mark.asyncio
async def test_command_registry_routes_sync_and_async_handlers(state) -> None:
    reg = CommandRegistry()
    called = {"sync": 0, "async": 0}

    def h_sync(state, args):
        called["sync"] += 1
        return "sync:" + ",".join(args)

    async def h_async(state, args):
        called["async"] += 1
        return "async"

    reg.register("a", h_sync, "a", aliases=["aa"])
    reg.register("b", h_async, "b")

    assert await reg.handle(state, "/a x y") == "sync:x,y"
    assert await reg.handle(state, "/AA") == "sync:"
    assert await reg.handle(state, "/b") == "async"
    assert called == {"sync": 2, "async": 1}


@pytest.mark.asyncio
async def test_command_registry_unknown_and_non_command(state) -> None:
    reg = CommandRegistry()
    assert await reg.handle(state, "hello") is None
    assert "Unknown command" in (await reg.handle(state, "/nope") or "")
    assert "Empty command" in (await reg.handle(state, "/") or "")


@pytest.mark.asyncio
async def test_add_command_sends_insert(state, table) -> None:
    reply = await registry.handle(state, "/add Buy milk | 2%")

    assert reply is not None and "sent" in reply
    assert table.inserted[0]["title"] == "Buy milk"
    assert table.inserted[0]["description"] == "2%"


@pytest.mark.asyncio
async def test_add_command_with_image(state, table, storage, tmp_path: Path) -> None:
    img = tmp_path / "cat.png"
    img.write_bytes(b"png")

    await registry.handle(state, f"/add Cat | cute | {img}")

    assert table.inserted[0]["image_url"].startswith(storage.base_url + "/tasks-images/cat.png-")


@pytest.mark.asyncio
async def test_add_command_rejects_non_image(state, table, tmp_path: Path) -> None:
    doc = tmp_path / "doc.txt"
    doc.write_text("x", "utf-8")

    reply = await registry.handle(state, f"/add T | D | {doc}")

    assert reply is not None and reply.startswith("Cannot attach image")
    assert table.inserted == []


@pytest.mark.asyncio
async def test_failed_add_keeps_draft_for_submit(state, table) -> None:
    table.fail = BackendDown("offline")
    reply = await registry.handle(state, "/add Draft | body")
    assert reply is not None and "temporary" in reply

    form = await registry.handle(state, "/form")
    assert form is not None and "Draft" in form and "body" in form

    table.fail = None
    reply = await registry.handle(state, "/submit")
    assert reply is not None and "sent" in reply
    assert len(table.inserted) == 1


@pytest.mark.asyncio
async def test_edit_delete_list_and_status(state, table, feed) -> None:
    table.rows.append(make_row(5, "2024-01-01T00:00:00+00:00", title="Walk"))
    await state.manager.activate()

    assert "Usage" in (await registry.handle(state, "/edit 5") or "")
    assert "Update for #5 sent" in (await registry.handle(state, "/edit #5 new text") or "")
    assert table.updated == [(5, {"description": "new text"})]

    listing = await registry.handle(state, "/list")
    assert listing is not None and "#5 Walk" in listing

    status = await registry.handle(state, "/status")
    assert status is not None and "subscribed" in status and "Tasks in replica: 1" in status
    assert "Sync: active" in status

    assert "Usage" in (await registry.handle(state, "/delete abc") or "")
    assert "Delete for #5 sent" in (await registry.handle(state, "/rm 5") or "")
    assert table.deleted == [5]


@pytest.mark.asyncio
async def test_help_lists_commands(state) -> None:
    text = await registry.handle(state, "/help")
    assert text is not None
    for name in ("/add", "/edit", "/delete", "/list", "/status"):
        assert name in text
