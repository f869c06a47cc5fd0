# tests/test_validation.py

import pytest

from task_manager import Priority
from validation import (
    MAX_TASK_NAME_LENGTH,
    ValidationError,
    sanitize_task_name,
    validate_priority_input,
    validate_task_name,
)


def test_sanitize():
    assert sanitize_task_name("  buy\tmilk\nand   eggs \r") == "buy milk and eggs"


def test_validate_returns_trimmed_name():
    assert validate_task_name("  call mom ") == "call mom"


@pytest.mark.parametrize("name", ["", "   ", "a\nb", "tab\there", "x" * (MAX_TASK_NAME_LENGTH + 1)])
def test_validate_rejects(name):
    with pytest.raises(ValidationError):
        validate_task_name(name)


def test_validate_accepts_max_length():
    name = "x" * MAX_TASK_NAME_LENGTH
    assert validate_task_name(name) == name


def test_validation_error_is_value_error():
    assert issubclass(ValidationError, ValueError)


@pytest.mark.parametrize("value,expected", [(0, Priority.NONE), ("2", Priority.MEDIUM), (3, Priority.HIGH)])
def test_priority_input(value, expected):
    assert validate_priority_input(value) is expected


@pytest.mark.parametrize("value", [-1, 4, "high", None, "1.5"])
def test_priority_input_rejects(value):
    with pytest.raises(ValidationError):
        validate_priority_input(value)
