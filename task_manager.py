# task_manager.py
#
# Description:
# This file contains the core logic for managing tasks. It defines the Task
# data structure and a TaskManager class that owns the active and completed
# task collections and handles every structural change to them. This
# decouples the task logic from the UI and storage.
#

import datetime
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Iterable, List, Optional


class Priority(IntEnum):
    """Enumeration for task priority. Higher values sort first."""
    NONE = 0
    LOW = 1
    MEDIUM = 2
    HIGH = 3

    def __str__(self) -> str:
        return self.name.lower()


def _now() -> datetime.datetime:
    return datetime.datetime.now().astimezone()


@dataclass
class Task:
    """
    Represents a single to-do item.

    Attributes:
        id: Positive identifier, unique across active and done tasks.
        name: The task text shown in the list.
        created_at: The timestamp when the task was created.
        is_done: True while the task sits in the completed collection.
        priority: The priority level of the task.
    """
    id: int
    name: str
    created_at: datetime.datetime = field(default_factory=_now)
    is_done: bool = False
    priority: Priority = Priority.NONE


def sort_tasks(tasks: List[Task]) -> None:
    """
    Sorts tasks in place: highest priority first, newest first within a
    priority. The sort is stable so equal keys keep their relative order.
    """
    tasks.sort(key=lambda t: (t.priority, t.created_at), reverse=True)


def filter_by_priority(tasks: Iterable[Task], priority: Optional[Priority]) -> List[Task]:
    """Returns the tasks with the given priority, or all of them for None."""
    if priority is None:
        return list(tasks)
    return [task for task in tasks if task.priority == priority]


class TaskManager:
    """
    Handles all business logic for tasks.
    It holds the tasks in memory and provides methods to manipulate them.
    Lookups return the stored Task objects themselves; callers must change
    them only through the methods below.
    """
    def __init__(
        self,
        tasks: Optional[Iterable[Task]] = None,
        done_tasks: Optional[Iterable[Task]] = None,
        next_id: int = 0,
    ):
        """
        Initializes the TaskManager from previously loaded tasks.

        Args:
            tasks: Active tasks.
            done_tasks: Completed tasks, in completion order.
            next_id: The last id handed out. The next new task gets
                     next_id + 1.
        """
        self._tasks: List[Task] = list(tasks or [])
        self._done_tasks: List[Task] = list(done_tasks or [])
        known_ids = [t.id for t in self._tasks + self._done_tasks]
        self._next_id = max([next_id] + known_ids)
        sort_tasks(self._tasks)

    # --- Queries ---

    def get_tasks(self) -> List[Task]:
        """Returns a copy of the active task list."""
        return list(self._tasks)

    def get_done_tasks(self) -> List[Task]:
        """Returns a copy of the completed task list."""
        return list(self._done_tasks)

    def get_next_id(self) -> int:
        return self._next_id

    def find_task_by_id(self, task_id: int) -> Optional[Task]:
        """Finds a task by its ID in both active and completed tasks."""
        return self._find(self._tasks, task_id) or self._find(self._done_tasks, task_id)

    # --- Mutations ---

    def add_task(self, name: str) -> Task:
        """
        Adds a new active task.

        Args:
            name: The (already validated) task name.

        Returns:
            The newly created Task object.
        """
        self._next_id += 1
        task = Task(id=self._next_id, name=name)
        self._tasks.append(task)
        sort_tasks(self._tasks)
        return task

    def delete_task(self, task_id: int) -> Optional[Task]:
        """Removes the task from whichever collection holds it."""
        for collection in (self._tasks, self._done_tasks):
            task = self._find(collection, task_id)
            if task:
                collection.remove(task)
                return task
        return None

    def complete_task(self, task_id: int) -> Optional[Task]:
        """Moves an active task to the completed list."""
        task = self._find(self._tasks, task_id)
        if not task:
            return None
        task.is_done = True
        self._tasks.remove(task)
        self._done_tasks.append(task)
        sort_tasks(self._tasks)
        return task

    def uncomplete_task(self, task_id: int) -> Optional[Task]:
        """Moves a completed task back to the active list."""
        task = self._find(self._done_tasks, task_id)
        if not task:
            return None
        task.is_done = False
        self._done_tasks.remove(task)
        self._tasks.append(task)
        sort_tasks(self._tasks)
        return task

    def update_task_name(self, task_id: int, new_name: str) -> Optional[Task]:
        task = self.find_task_by_id(task_id)
        if task:
            task.name = new_name
        return task

    def set_task_priority(self, task_id: int, priority: Priority) -> Optional[Task]:
        """Changes the priority of an active task. Completed tasks are ignored."""
        task = self._find(self._tasks, task_id)
        if not task:
            return None
        task.priority = Priority(priority)
        sort_tasks(self._tasks)
        return task

    def restore_task_priority(self, task_id: int, priority: Priority) -> Optional[Task]:
        """Like set_task_priority, but also reaches completed tasks."""
        task = self.find_task_by_id(task_id)
        if not task:
            return None
        task.priority = Priority(priority)
        sort_tasks(self._tasks)
        return task

    def restore_task(self, task: Task) -> bool:
        """
        Puts a previously removed task back into the collection matching
        its is_done flag.

        Returns:
            False if a task with the same id is already held.
        """
        if self.find_task_by_id(task.id):
            return False
        if task.is_done:
            self._done_tasks.append(task)
        else:
            self._tasks.append(task)
            sort_tasks(self._tasks)
        return True

    def clear_done_tasks(self) -> List[Task]:
        """Removes every completed task and returns them in their old order."""
        cleared = self._done_tasks
        self._done_tasks = []
        return cleared

    @staticmethod
    def _find(collection: List[Task], task_id: int) -> Optional[Task]:
        for task in collection:
            if task.id == task_id:
                return task
        return None
