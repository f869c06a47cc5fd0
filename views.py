# views.py
#
# Description:
# This file contains all the UI components of the application, built using
# the Textual TUI framework. It defines the main application class, the task
# list screen and the modal screens for entering task names and showing
# usage. Every change the user makes goes through the TaskManager and is
# recorded in the UndoManager right after it succeeds.
#

import logging
from typing import List, Optional

from rich.table import Table
from rich.text import Text
from textual import events
from textual.app import App, ComposeResult
from textual.containers import Container
from textual.screen import ModalScreen, Screen
from textual.widgets import DataTable, Header, Input, Static

from config import Config
from keybindings import key_table, task_list_bindings
from storage import StorageError, TaskRepository
from task_manager import Priority, Task, TaskManager, filter_by_priority
from undo_manager import Action, ActionKind, CompoundAction, UndoManager
from validation import (
    ValidationError,
    sanitize_task_name,
    validate_priority_input,
    validate_task_name,
)

logger = logging.getLogger(__name__)

TIME_FORMAT = "%Y-%m-%d %H:%M"

# Filter cycle: everything first, then one priority at a time.
FILTERS: List[Optional[Priority]] = [None, Priority.NONE, Priority.LOW, Priority.MEDIUM, Priority.HIGH]
FILTER_NAMES = {
    None: "all",
    Priority.NONE: "no priority",
    Priority.LOW: "low priority",
    Priority.MEDIUM: "medium priority",
    Priority.HIGH: "high priority",
}


# --- Modal Screens for Input ---

class TaskNameScreen(ModalScreen):
    """A modal screen asking for a task name. Dismisses with the text, or None on escape."""

    def __init__(self, title: str, placeholder: str = ""):
        super().__init__()
        self.dialog_title = title
        self.placeholder = placeholder

    def compose(self) -> ComposeResult:
        yield Container(
            Static(Text(self.dialog_title, style="bold underline")),
            Static("Input the task name, enter to save, escape to cancel."),
            Input(placeholder=self.placeholder, id="task_name"),
            id="edit_dialog",
        )

    def on_mount(self) -> None:
        self.query_one(Input).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        self.dismiss(event.value)

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            event.stop()
            self.dismiss(None)


class HelpScreen(ModalScreen):
    """Shows every key binding. Any key closes it."""

    def __init__(self, bindings):
        super().__init__()
        self.key_bindings = bindings

    def compose(self) -> ComposeResult:
        table = Table(title="USAGE", title_style="bold underline", show_header=False, box=None)
        table.add_column(style="#90CAF9")
        table.add_column()
        for binding in self.key_bindings:
            keys = "/".join(key.strip() for key in binding.key.split(","))
            table.add_row(keys, binding.description)
        yield Container(Static(table), id="help_dialog")

    def on_key(self, event: events.Key) -> None:
        event.stop()
        self.dismiss(None)


# --- Main Application Screen ---

class TaskListScreen(Screen):
    """The main screen: the active (or completed) task list."""

    def __init__(self, config: Config):
        super().__init__()
        self.config = config
        self.key_bindings = task_list_bindings(config.keymap)
        self.keys = key_table(self.key_bindings)
        self.show_done = False
        self.filter_index = 0
        self.shown_tasks: List[Task] = []

    # Shortcuts to the app-wide state
    @property
    def task_manager(self) -> TaskManager:
        return self.app.task_manager

    @property
    def undo_manager(self) -> UndoManager:
        return self.app.undo_manager

    @property
    def current_filter(self) -> Optional[Priority]:
        return FILTERS[self.filter_index]

    def compose(self) -> ComposeResult:
        yield Header()
        yield Static(id="list_title")
        table = DataTable(id="task_table", cursor_type="row", zebra_stripes=False)
        # Keys are dispatched by this screen, not by the table.
        table.can_focus = False
        yield table
        yield Static(id="status_line")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.add_columns("", "ID", "Task", "Created")
        self.reload()

    async def on_key(self, event: events.Key) -> None:
        action = self.keys.get(event.key)
        if action is None and event.character:
            action = self.keys.get(event.character)
        if action is None:
            return
        event.stop()
        await self.app.run_action(action, self)

    # --- Rendering ---

    def reload(self, follow_id: Optional[int] = None) -> None:
        """Rebuild the table from the TaskManager, keeping the cursor on follow_id if given."""
        table = self.query_one(DataTable)
        previous_row = table.cursor_row
        if self.show_done:
            self.shown_tasks = self.task_manager.get_done_tasks()
            title = "YOUR COMPLETED TASKS"
            empty = "You have no completed tasks."
        else:
            self.shown_tasks = filter_by_priority(self.task_manager.get_tasks(), self.current_filter)
            title = "YOUR TASKS"
            empty = "You have no tasks."

        table.clear()
        for task in self.shown_tasks:
            table.add_row(
                self._priority_marker(task),
                f"#{task.id}",
                Text(task.name, style="strike dim" if task.is_done else ""),
                task.created_at.strftime(TIME_FORMAT),
                key=str(task.id),
            )

        self.query_one("#list_title", Static).update(
            Text(title if self.shown_tasks else empty, style="bold underline")
        )
        self.app.sub_title = f"filter: {FILTER_NAMES[self.current_filter]}"
        self._update_status()

        if not self.shown_tasks:
            return
        row = previous_row
        if follow_id is not None:
            for index, task in enumerate(self.shown_tasks):
                if task.id == follow_id:
                    row = index
                    break
        table.move_cursor(row=max(0, min(row, len(self.shown_tasks) - 1)))

    def _priority_marker(self, task: Task) -> Text:
        theme = self.config.theme
        colors = {
            Priority.HIGH: theme.high_priority_color,
            Priority.MEDIUM: theme.medium_priority_color,
            Priority.LOW: theme.low_priority_color,
        }
        color = colors.get(task.priority)
        if color is None:
            return Text("○")
        return Text("●", style=color)

    def _update_status(self) -> None:
        parts = [f"{len(self.task_manager.get_tasks())} active",
                 f"{len(self.task_manager.get_done_tasks())} done"]
        if self.undo_manager.can_undo():
            parts.append("undo available")
        if self.undo_manager.can_redo():
            parts.append("redo available")
        parts.append("? for help")
        self.query_one("#status_line", Static).update(Text(" | ".join(parts), style="dim"))

    def selected_task(self) -> Optional[Task]:
        if not self.shown_tasks:
            return None
        row = self.query_one(DataTable).cursor_row
        if 0 <= row < len(self.shown_tasks):
            return self.shown_tasks[row]
        return None

    def _changed(self, follow_id: Optional[int] = None) -> None:
        self.reload(follow_id)
        self.app.after_change()

    # --- Task actions ---

    def action_add_task(self) -> None:
        if self.show_done:
            return

        def after_add(value: Optional[str]) -> None:
            if value is None:
                return
            name = self._checked_name(value)
            if name is None:
                return
            task = self.task_manager.add_task(name)
            self.undo_manager.push_undo(Action(ActionKind.ADD, task))
            self._changed(task.id)

        self.app.push_screen(TaskNameScreen("Add Task", "New task name..."), after_add)

    def action_edit_task(self) -> None:
        task = self.selected_task()
        if task is None or self.show_done:
            return

        def after_edit(value: Optional[str]) -> None:
            if value is None:
                return
            new_name = self._checked_name(value)
            if new_name is None or new_name == task.name:
                return
            old_name = task.name
            if self.task_manager.update_task_name(task.id, new_name):
                self.undo_manager.push_undo(Action.edit(task, old_name, new_name))
                self._changed(task.id)

        self.app.push_screen(TaskNameScreen("Edit Task", task.name), after_edit)

    def action_delete_task(self) -> None:
        task = self.selected_task()
        if task is None:
            return
        deleted = self.task_manager.delete_task(task.id)
        if deleted:
            self.undo_manager.push_undo(Action(ActionKind.DELETE, deleted))
            self._changed()

    def action_toggle_done(self) -> None:
        task = self.selected_task()
        if task is None:
            return
        if self.show_done:
            changed = self.task_manager.uncomplete_task(task.id)
            kind = ActionKind.UNCOMPLETE
        else:
            changed = self.task_manager.complete_task(task.id)
            kind = ActionKind.COMPLETE
        if changed:
            self.undo_manager.push_undo(Action(kind, changed))
            self._changed()

    def action_set_priority(self, value: int) -> None:
        task = self.selected_task()
        if task is None or self.show_done:
            return
        old = task.priority
        new = validate_priority_input(value)
        if old == new:
            return
        if self.task_manager.set_task_priority(task.id, new):
            self.undo_manager.push_undo(Action.priority(task, old, new))
            self._changed(task.id)

    def action_cycle_priority(self) -> None:
        task = self.selected_task()
        if task is not None:
            self.action_set_priority((task.priority + 1) % len(Priority))

    def action_clear_completed(self) -> None:
        cleared = self.task_manager.clear_done_tasks()
        if not cleared:
            return
        # Recorded newest-first so undo puts them back in their old order.
        self.undo_manager.push_undo(
            CompoundAction(tuple(Action(ActionKind.DELETE, t) for t in reversed(cleared)))
        )
        self.app.notify(f"Cleared {len(cleared)} completed tasks.", title="Cleared")
        self._changed()

    def action_undo(self) -> None:
        if self.undo_manager.undo(self.task_manager):
            self._changed()

    def action_redo(self) -> None:
        if self.undo_manager.redo(self.task_manager):
            self._changed()

    # --- Navigation ---

    def action_cursor_up(self) -> None:
        self.query_one(DataTable).action_cursor_up()

    def action_cursor_down(self) -> None:
        self.query_one(DataTable).action_cursor_down()

    def action_cursor_top(self) -> None:
        if self.shown_tasks:
            self.query_one(DataTable).move_cursor(row=0)

    def action_cursor_bottom(self) -> None:
        if self.shown_tasks:
            self.query_one(DataTable).move_cursor(row=len(self.shown_tasks) - 1)

    def action_toggle_list(self) -> None:
        self.show_done = not self.show_done
        self.query_one(DataTable).move_cursor(row=0)
        self.reload()

    def action_show_active(self) -> None:
        if self.show_done:
            self.action_toggle_list()

    def action_cycle_filter(self) -> None:
        self.filter_index = (self.filter_index + 1) % len(FILTERS)
        self.reload()

    def action_help(self) -> None:
        self.app.push_screen(HelpScreen(self.key_bindings))

    async def action_quit(self) -> None:
        await self.app.action_quit()

    def _checked_name(self, value: str) -> Optional[str]:
        try:
            return validate_task_name(sanitize_task_name(value))
        except ValidationError as e:
            self.app.notify(str(e), title="Invalid name", severity="error")
            return None


# --- The Main App ---

class TaskListApp(App):
    """A terminal-based personal task list."""

    TITLE = "td"
    CSS = """
    #list_title {
        padding: 1 1 0 1;
    }
    #task_table {
        height: 1fr;
        padding: 0 1;
    }
    #status_line {
        height: 1;
        padding: 0 1;
    }
    #edit_dialog, #help_dialog {
        border: thick $accent;
        padding: 1 2;
        width: 70;
        height: auto;
        background: $surface;
    }
    TaskNameScreen, HelpScreen {
        align: center middle;
    }
    """

    def __init__(self, task_manager: TaskManager, repository: TaskRepository, config: Config):
        super().__init__()
        self.config = config
        self.repository = repository
        self.task_manager = task_manager
        self.undo_manager = UndoManager(config.max_undo)
        self.saved = False

    def on_mount(self) -> None:
        """Called when the app is first mounted."""
        logger.info(
            "App started active=%d done=%d",
            len(self.task_manager.get_tasks()),
            len(self.task_manager.get_done_tasks()),
        )
        self.push_screen(TaskListScreen(self.config))

    def after_change(self) -> None:
        if self.config.autosave:
            self.save_tasks()

    def save_tasks(self) -> bool:
        """Writes both task lists through the repository. Failures are reported, not raised."""
        try:
            self.repository.save_tasks(
                self.task_manager.get_tasks(), self.task_manager.get_done_tasks()
            )
        except StorageError as e:
            logger.error("Failed to save tasks: %s", e)
            self.notify(f"Could not save tasks: {e}", title="Save failed", severity="error")
            return False
        self.saved = True
        return True

    async def action_quit(self) -> None:
        logger.info(
            "Saving tasks before quit active=%d done=%d",
            len(self.task_manager.get_tasks()),
            len(self.task_manager.get_done_tasks()),
        )
        self.save_tasks()
        self.exit()
