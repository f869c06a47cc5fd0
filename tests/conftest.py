# tests/conftest.py

import datetime

import pytest

from task_manager import Priority, Task, TaskManager
from undo_manager import UndoManager

BASE_TIME = datetime.datetime(2024, 5, 1, 9, 0, tzinfo=datetime.timezone.utc)


def make_task(task_id: int, name: str = "", minutes: int = 0, priority=Priority.NONE, is_done=False) -> Task:
    """Task with a fixed creation time, `minutes` after BASE_TIME."""
    return Task(
        id=task_id,
        name=name or f"task {task_id}",
        created_at=BASE_TIME + datetime.timedelta(minutes=minutes),
        is_done=is_done,
        priority=priority,
    )


def snapshot(tm: TaskManager):
    """Observable state of a TaskManager as plain values."""
    def rows(tasks):
        return [(t.id, t.name, t.priority, t.is_done) for t in tasks]
    return rows(tm.get_tasks()), rows(tm.get_done_tasks())


@pytest.fixture()
def tm() -> TaskManager:
    return TaskManager()


@pytest.fixture()
def um() -> UndoManager:
    return UndoManager(10)

