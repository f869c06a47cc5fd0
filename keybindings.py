# keybindings.py
#
# Description:
# This file defines the keybindings for the application.
# Keeping them in a separate file makes them easier to manage and customize.
# The configurable keys come from the user's KeyMap; the rest are fixed.
#

from typing import Dict, List

from textual.binding import Binding

from config import KeyMap

# Friendly spellings accepted in the config file, mapped to Textual key names.
KEY_ALIASES = {
    "?": "question_mark",
    "esc": "escape",
    "return": "enter",
    " ": "space",
}


def normalize_key(key: str) -> str:
    return KEY_ALIASES.get(key, key)


def task_list_bindings(keymap: KeyMap) -> List[Binding]:
    """Bindings for the task list screen, in help-screen order."""
    k = {name: normalize_key(value) for name, value in vars(keymap).items()}
    return [
        # Task management
        Binding(k["add"], "add_task", "Add new task"),
        Binding(k["delete"], "delete_task", "Delete task"),
        Binding(f"{k['enter']},x", "toggle_done", "Mark done/undone"),
        Binding(f"{k['right']},l,e", "edit_task", "Edit task name"),
        # Navigation
        Binding(f"{k['up']},k", "cursor_up", "Move up"),
        Binding(f"{k['down']},j", "cursor_down", "Move down"),
        Binding("home,g", "cursor_top", "Go to top"),
        Binding("end,G", "cursor_bottom", "Go to bottom"),
        Binding(k["list_type"], "toggle_list", "Switch active/completed list"),
        Binding(f"{k['escape']},{k['left']},h", "show_active", "Back to active tasks"),
        # Priority and filtering
        Binding(k["priority"], "cycle_priority", "Cycle priority"),
        Binding("1", "set_priority(0)", "Set no priority"),
        Binding("2", "set_priority(1)", "Set low priority"),
        Binding("3", "set_priority(2)", "Set medium priority"),
        Binding("4", "set_priority(3)", "Set high priority"),
        Binding(k["filter"], "cycle_filter", "Filter by priority"),
        # History and app
        Binding(k["undo"], "undo", "Undo"),
        Binding(k["redo"], "redo", "Redo"),
        Binding("C", "clear_completed", "Clear completed tasks"),
        Binding(k["help"], "help", "Toggle usage"),
        Binding(k["quit"], "quit", "Save and quit"),
    ]


def key_table(bindings: List[Binding]) -> Dict[str, str]:
    """
    Flattens bindings into a key -> action lookup. Earlier bindings win when
    two of them claim the same key.
    """
    table: Dict[str, str] = {}
    for binding in bindings:
        for key in binding.key.split(","):
            table.setdefault(key.strip(), binding.action)
    return table
