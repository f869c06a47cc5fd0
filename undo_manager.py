# undo_manager.py
#
# Description:
# This file contains the undo/redo history for task operations. Every change
# made through the TaskManager is recorded as an Action right after it
# happens. Undo applies the inverse of the most recent Action; redo applies
# it forward again and records a fresh Action built from the task's current
# state, so the history stays correct after repeated undo/redo cycles.
#

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple, Union

from task_manager import Priority, Task, TaskManager

logger = logging.getLogger(__name__)

DEFAULT_MAX_UNDO_SIZE = 100


class ActionKind(str, Enum):
    """Enumeration for the kinds of reversible task operations."""
    ADD = "add"
    DELETE = "delete"
    COMPLETE = "complete"
    UNCOMPLETE = "uncomplete"
    EDIT = "edit"
    PRIORITY = "priority"


# Payload type each kind carries in old_state/new_state.
_PAYLOAD_TYPES = {
    ActionKind.EDIT: str,
    ActionKind.PRIORITY: Priority,
}

State = Union[str, Priority, None]


@dataclass(frozen=True)
class Action:
    """
    A recorded, reversible change to a single task.

    Attributes:
        kind: What happened to the task.
        task: The affected task (the same object the TaskManager holds).
        old_state: Name (EDIT) or priority (PRIORITY) before the change.
        new_state: Name (EDIT) or priority (PRIORITY) after the change.
    """
    kind: ActionKind
    task: Task
    old_state: State = None
    new_state: State = None

    def __post_init__(self):
        expected = _PAYLOAD_TYPES.get(self.kind)
        for value in (self.old_state, self.new_state):
            if expected is None:
                if value is not None:
                    raise TypeError(f"{self.kind.value} actions carry no state")
            elif not isinstance(value, expected):
                raise TypeError(
                    f"{self.kind.value} actions need {expected.__name__} state, got {value!r}"
                )

    @classmethod
    def edit(cls, task: Task, old_name: str, new_name: str) -> "Action":
        return cls(ActionKind.EDIT, task, old_name, new_name)

    @classmethod
    def priority(cls, task: Task, old: Priority, new: Priority) -> "Action":
        return cls(ActionKind.PRIORITY, task, Priority(old), Priority(new))


@dataclass(frozen=True)
class CompoundAction:
    """Several actions undone and redone as one step, e.g. clearing completed tasks."""
    actions: Tuple[Action, ...]


Entry = Union[Action, CompoundAction]


class UndoManager:
    """Bounded undo and redo stacks of recorded actions."""

    def __init__(self, max_size: int = DEFAULT_MAX_UNDO_SIZE):
        if max_size <= 0:
            max_size = DEFAULT_MAX_UNDO_SIZE
        self.max_size = max_size
        self._undo_stack: List[Entry] = []
        self._redo_stack: List[Entry] = []

    def push_undo(self, action: Entry) -> None:
        """Records a new action. Any redo history is discarded."""
        self._redo_stack.clear()
        self._push(action)

    def can_undo(self) -> bool:
        return len(self._undo_stack) > 0

    def can_redo(self) -> bool:
        return len(self._redo_stack) > 0

    def clear(self) -> None:
        self._undo_stack.clear()
        self._redo_stack.clear()

    def undo(self, task_manager: TaskManager) -> bool:
        """
        Reverts the most recent action.

        Args:
            task_manager: The TaskManager the action was applied to.

        Returns:
            False if there was nothing to undo.
        """
        if not self._undo_stack:
            return False
        entry = self._undo_stack.pop()
        if isinstance(entry, CompoundAction):
            for action in reversed(entry.actions):
                self._revert(task_manager, action)
        else:
            self._revert(task_manager, entry)
        self._redo_stack.append(entry)
        logger.debug("Undo %s", _describe(entry))
        return True

    def redo(self, task_manager: TaskManager) -> bool:
        """
        Re-applies the most recently undone action and records a fresh
        undo entry for it, without touching the rest of the redo stack.

        Returns:
            False if there was nothing to redo.
        """
        if not self._redo_stack:
            return False
        entry = self._redo_stack.pop()
        if isinstance(entry, CompoundAction):
            replayed = [self._reapply(task_manager, a) for a in entry.actions]
            fresh: Optional[Entry] = CompoundAction(tuple(a for a in replayed if a))
        else:
            fresh = self._reapply(task_manager, entry)
        if fresh:
            self._push(fresh)
        logger.debug("Redo %s", _describe(entry))
        return True

    def _push(self, entry: Entry) -> None:
        self._undo_stack.append(entry)
        while len(self._undo_stack) > self.max_size:
            self._undo_stack.pop(0)

    @staticmethod
    def _revert(tm: TaskManager, action: Action) -> None:
        task = action.task
        kind = action.kind
        if kind is ActionKind.ADD:
            tm.delete_task(task.id)
        elif kind is ActionKind.DELETE:
            tm.restore_task(task)
        elif kind is ActionKind.COMPLETE:
            tm.uncomplete_task(task.id)
        elif kind is ActionKind.UNCOMPLETE:
            tm.complete_task(task.id)
        elif kind is ActionKind.EDIT:
            if tm.update_task_name(task.id, action.old_state) is None:
                logger.debug("Task %s is gone, skipping name restore", task.id)
        elif kind is ActionKind.PRIORITY:
            if tm.restore_task_priority(task.id, action.old_state) is None:
                logger.debug("Task %s is gone, skipping priority restore", task.id)

    @staticmethod
    def _reapply(tm: TaskManager, action: Action) -> Optional[Action]:
        task = action.task
        kind = action.kind
        if kind is ActionKind.ADD:
            tm.restore_task(task)
        elif kind is ActionKind.DELETE:
            tm.delete_task(task.id)
        elif kind is ActionKind.COMPLETE:
            tm.complete_task(task.id)
        elif kind is ActionKind.UNCOMPLETE:
            tm.uncomplete_task(task.id)
        elif kind is ActionKind.EDIT:
            current = task.name
            if tm.update_task_name(task.id, action.new_state) is None:
                return None
            return Action.edit(task, current, action.new_state)
        elif kind is ActionKind.PRIORITY:
            current = task.priority
            if tm.restore_task_priority(task.id, action.new_state) is None:
                return None
            return Action.priority(task, current, action.new_state)
        return Action(kind, task)


def _describe(entry: Entry) -> str:
    if isinstance(entry, CompoundAction):
        return f"{len(entry.actions)} grouped actions"
    return f"{entry.kind.value} task={entry.task.id}"
