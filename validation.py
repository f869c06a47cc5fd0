# validation.py
#
# Description:
# Checks applied to text the user types into the UI before it reaches the
# TaskManager. The TaskManager itself trusts its input.
#

import re

from task_manager import Priority

MAX_TASK_NAME_LENGTH = 200

_WHITESPACE_RUN = re.compile(r" {2,}")


class ValidationError(ValueError):
    """Raised when user input cannot be turned into a task change."""


def sanitize_task_name(name: str) -> str:
    """Trims the name, turns newlines and tabs into spaces and collapses runs of spaces."""
    name = name.strip()
    for ch in "\n\r\t":
        name = name.replace(ch, " ")
    return _WHITESPACE_RUN.sub(" ", name).strip()


def validate_task_name(name: str) -> str:
    """
    Validates a task name typed by the user.

    Returns:
        The trimmed name.

    Raises:
        ValidationError: If the name is empty, too long or spans lines.
    """
    name = name.strip()
    if not name:
        raise ValidationError("task name cannot be empty")
    if len(name) > MAX_TASK_NAME_LENGTH:
        raise ValidationError(
            f"task name is too long (maximum {MAX_TASK_NAME_LENGTH} characters)"
        )
    if any(ch in name for ch in "\n\r\t"):
        raise ValidationError("task name cannot contain newlines or tabs")
    return name


def validate_priority_input(value) -> Priority:
    """Converts 0-3 (as int or digit string) into a Priority."""
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"priority must be a number, got {value!r}") from None
    if not Priority.NONE <= number <= Priority.HIGH:
        raise ValidationError("priority must be between 0 and 3")
    return Priority(number)
