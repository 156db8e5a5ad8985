# tests/test_commands.py

from __future__ import annotations

import pytest

from taskflow.cli.commands import CommandRegistry, parse_add_args
from taskflow.cli.commands import registry as command_registry
from taskflow.core.state import AppState
from taskflow.tasks.backends import RemoteBackend
from taskflow.tasks.task_manager import TaskManager

from .fakes import FakeRecordStore, SequentialIds


@pytest.mark.asyncio
async def test_command_registry_routes_and_aliases(state) -> None:
    reg = CommandRegistry()
    called = {"a": 0}

    async def handler(state, args):
        called["a"] += 1
        return "a:" + ",".join(args)

    reg.register("alpha", handler, "a", aliases=["al"])

    assert await reg.handle(state, "/alpha x y") == "a:x,y"
    assert await reg.handle(state, "/AL") == "a:"
    assert called["a"] == 2
    assert "/alpha - a" in reg.build_help()


@pytest.mark.asyncio
async def test_command_registry_unknown_and_non_command(state) -> None:
    reg = CommandRegistry()
    assert await reg.handle(state, "hello") is None
    assert "Unknown command" in (await reg.handle(state, "/nope") or "")
    assert "Empty command" in (await reg.handle(state, "/") or "")


def test_parse_add_args() -> None:
    form = parse_add_args(
        ["2024-03-05", "Buy", "milk", "!high", "#home", "#errand", "--", "2", "litres"],
        default_date="2024-01-01",
    )
    assert form.date == "2024-03-05"
    assert form.title == "Buy milk"
    assert form.priority == "high"
    assert tuple(form.tags) == ("home", "errand")
    assert form.notes == "2 litres"

    plain = parse_add_args(["Call", "mom"], default_date="2024-01-01")
    assert plain.date == "2024-01-01"
    assert plain.title == "Call mom"
    assert plain.notes is None


@pytest.mark.asyncio
async def test_add_list_done_rm_flow(state: AppState) -> None:
    await state.manager.load()

    reply = await command_registry.handle(state, "/add 2024-03-05 Buy milk !high #home")
    assert reply is not None and "Buy milk" in reply

    listing = await command_registry.handle(state, "/list 2024-03-05")
    assert listing is not None
    assert "0 of 1 tasks completed" in listing
    assert "(high)" in listing and "#home" in listing

    short_id = state.manager.tasks[0].id[:8]
    assert "completed" in (await command_registry.handle(state, f"/done {short_id}") or "")
    assert state.manager.tasks[0].completed is True

    assert "updated" in (await command_registry.handle(state, f"/edit {short_id} title Buy oat milk") or "")
    assert state.manager.tasks[0].title == "Buy oat milk"

    assert "Deleted" in (await command_registry.handle(state, f"/rm {short_id}") or "")
    assert state.manager.tasks == []


@pytest.mark.asyncio
async def test_add_validation_message(state: AppState) -> None:
    await state.manager.load()
    reply = await command_registry.handle(state, "/add 2024-03-05 !high")
    assert reply is not None and "Title is required." in reply
    assert state.manager.tasks == []


@pytest.mark.asyncio
async def test_report_and_calendar(state: AppState) -> None:
    await state.manager.load()
    await command_registry.handle(state, "/add 2024-03-01 A #work")
    await command_registry.handle(state, "/add 2024-03-01 B")
    a_id = state.manager.by_date("2024-03-01")[0].id[:8]
    await command_registry.handle(state, f"/done {a_id}")

    report = await command_registry.handle(state, "/report 2024-03")
    assert report is not None
    assert "Total: 2  Completed: 1  Incomplete: 1" in report
    assert "Completion: 50% (Good)" in report
    assert "Tags: work" in report

    filtered = await command_registry.handle(state, "/report 2024-03 completion=completed")
    assert filtered is not None and "Matching tasks (1)" in filtered

    cal = await command_registry.handle(state, "/cal 2024-03")
    assert cal is not None and "2024-03-01  1/2" in cal

    assert "Usage" in (await command_registry.handle(state, "/report March") or "")


@pytest.mark.asyncio
async def test_remote_commands_surface_sync_errors(settings) -> None:
    store = FakeRecordStore()
    manager = TaskManager(RemoteBackend(store), id_factory=SequentialIds())
    state = AppState(settings=settings, manager=manager)
    await manager.load(None)

    assert "Sign in" in (await command_registry.handle(state, "/add 2024-03-05 A") or "")

    assert "Signed in as u1" in (await command_registry.handle(state, "/login u1") or "")
    store.fail_on.add("insert")
    reply = await command_registry.handle(state, "/add 2024-03-05 A")
    assert reply == "Failed to save task to cloud."
    assert (await command_registry.handle(state, "/error")) == "Failed to save task to cloud."

    await command_registry.handle(state, "/dismiss")
    assert (await command_registry.handle(state, "/error")) == "No errors."

    assert "Store: remote" in (await command_registry.handle(state, "/status") or "")


@pytest.mark.asyncio
async def test_add_and_report_reject_unpadded_dates(state: AppState) -> None:
    await state.manager.load()

    reply = await command_registry.handle(state, "/add 2024-3-5 Buy milk")
    assert reply is not None and "Date must be YYYY-MM-DD." in reply
    assert state.manager.tasks == []

    assert "Usage" in (await command_registry.handle(state, "/report 2024-3") or "")
    assert "Usage" in (await command_registry.handle(state, "/cal 2024-3") or "")

    await command_registry.handle(state, "/add 2024-03-05 Buy milk")
    assert [t.title for t in state.manager.by_date("2024-03-05")] == ["Buy milk"]
    assert "Date must be YYYY-MM-DD." in (
        await command_registry.handle(state, f"/edit {state.manager.tasks[0].id[:8]} date 2024-3-6") or ""
    )
    assert state.manager.tasks[0].date == "2024-03-05"


@pytest.mark.asyncio
async def test_login_does_not_repeat_earlier_write_failure(settings) -> None:
    store = FakeRecordStore()
    manager = TaskManager(RemoteBackend(store), id_factory=SequentialIds())
    state = AppState(settings=settings, manager=manager)
    await manager.load("u1")

    store.fail_on.add("insert")
    assert await command_registry.handle(state, "/add 2024-03-05 A") == "Failed to save task to cloud."
    store.fail_on.clear()

    reply = await command_registry.handle(state, "/login u2")
    assert reply is not None and reply.startswith("Signed in as u2")

    store.fail_on.add("select")
    assert await command_registry.handle(state, "/login u3") == "Failed to load tasks."
