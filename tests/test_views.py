# tests/test_views.py

import pytest

from config import Config
from storage import MemoryStorage
from task_manager import Priority, TaskManager
from views import TaskListApp, TaskListScreen


def _app(tm=None, **config_overrides):
    return TaskListApp(tm or TaskManager(), MemoryStorage(), Config(**config_overrides))


async def _type(pilot, text):
    await pilot.pause()
    await pilot.press(*["space" if ch == " " else ch for ch in text])


@pytest.mark.asyncio
async def test_app_starts_on_task_list():
    tm = TaskManager()
    tm.add_task("first")
    app = _app(tm)
    async with app.run_test() as pilot:
        await pilot.pause()
        screen = app.screen
        assert isinstance(screen, TaskListScreen)
        assert screen.visible is True
        assert [t.name for t in screen.shown_tasks] == ["first"]
        assert screen.selected_task() is tm.get_tasks()[0]


@pytest.mark.asyncio
async def test_add_task_and_undo():
    app = _app()
    async with app.run_test() as pilot:
        await pilot.press("a")
        await _type(pilot, "buy milk")
        await pilot.press("enter")
        await pilot.pause()
        assert [t.name for t in app.task_manager.get_tasks()] == ["buy milk"]

        await pilot.press("ctrl+u")
        await pilot.pause()
        assert app.task_manager.get_tasks() == []

        await pilot.press("ctrl+r")
        await pilot.pause()
        assert [t.name for t in app.task_manager.get_tasks()] == ["buy milk"]


@pytest.mark.asyncio
async def test_empty_name_is_rejected():
    app = _app()
    async with app.run_test() as pilot:
        await pilot.press("a")
        await pilot.pause()
        await pilot.press("enter")
        await pilot.pause()
        assert app.task_manager.get_tasks() == []
        assert not app.undo_manager.can_undo()


@pytest.mark.asyncio
async def test_escape_cancels_add():
    app = _app()
    async with app.run_test() as pilot:
        await pilot.press("a")
        await _type(pilot, "never")
        await pilot.press("escape")
        await pilot.pause()
        assert app.task_manager.get_tasks() == []


@pytest.mark.asyncio
async def test_complete_priority_and_clear():
    tm = TaskManager()
    tm.add_task("one")
    app = _app(tm)
    async with app.run_test() as pilot:
        await pilot.press("4")
        await pilot.pause()
        assert tm.get_tasks()[0].priority is Priority.HIGH

        await pilot.press("enter")
        await pilot.pause()
        assert tm.get_tasks() == []
        assert [t.name for t in tm.get_done_tasks()] == ["one"]

        await pilot.press("C")
        await pilot.pause()
        assert tm.get_done_tasks() == []

        await pilot.press("ctrl+u")
        await pilot.pause()
        assert [t.name for t in tm.get_done_tasks()] == ["one"]


@pytest.mark.asyncio
async def test_toggle_list_and_filter():
    tm = TaskManager()
    tm.add_task("plain")
    low = tm.add_task("low")
    tm.set_task_priority(low.id, Priority.LOW)
    app = _app(tm)
    async with app.run_test() as pilot:
        screen = app.screen
        assert isinstance(screen, TaskListScreen)
        assert len(screen.shown_tasks) == 2

        await pilot.press("f", "f")
        await pilot.pause()
        assert screen.current_filter is Priority.LOW
        assert [t.name for t in screen.shown_tasks] == ["low"]

        await pilot.press("t")
        await pilot.pause()
        assert screen.show_done
        assert screen.shown_tasks == []

        await pilot.press("escape")
        await pilot.pause()
        assert not screen.show_done


@pytest.mark.asyncio
async def test_quit_saves_tasks():
    tm = TaskManager()
    tm.add_task("keep me")
    app = _app(tm)
    async with app.run_test() as pilot:
        await pilot.press("q")
        await pilot.pause()
    active, _, next_id = app.repository.load_tasks()
    assert [t.name for t in active] == ["keep me"]
    assert next_id == 1
    assert app.saved


@pytest.mark.asyncio
async def test_autosave_after_change():
    app = _app(autosave=True)
    async with app.run_test() as pilot:
        await pilot.press("a")
        await _type(pilot, "saved")
        await pilot.press("enter")
        await pilot.pause()
        active, _, _ = app.repository.load_tasks()
        assert [t.name for t in active] == ["saved"]
