# storage.py
#
# Description:
# Persistence for the task list. JsonStorage reads and writes a single JSON
# file; MemoryStorage keeps everything in memory for tests. Every task read
# from or written to disk is checked against the TaskRecord schema first, so
# the TaskManager never sees malformed data.
#

import datetime
import json
import logging
import os
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, Field, ValidationError, field_validator

from task_manager import Priority, Task

logger = logging.getLogger(__name__)

MAX_PERSISTED_NAME_LENGTH = 500
INTEGRITY_VERSION = 1

LoadResult = Tuple[List[Task], List[Task], int]


class StorageError(Exception):
    """Base class for persistence failures."""


class InvalidDataError(StorageError):
    """The data file exists but does not hold a valid task list."""


class StoragePermissionError(StorageError):
    """The data file cannot be read or written for lack of permission."""


class TaskRecord(BaseModel):
    """On-disk shape of a single task."""
    created_at: datetime.datetime
    name: str = Field(max_length=MAX_PERSISTED_NAME_LENGTH)
    id: int = Field(gt=0)
    is_done: bool = False
    priority: int = Field(default=0, ge=int(Priority.NONE), le=int(Priority.HIGH))

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("task name cannot be empty or only whitespace")
        return value

    @field_validator("created_at")
    @classmethod
    def _created_at_sane(cls, value: datetime.datetime) -> datetime.datetime:
        if value.tzinfo is None:
            value = value.astimezone()
        limit = datetime.datetime.now().astimezone() + datetime.timedelta(hours=24)
        if value > limit:
            raise ValueError("task creation time cannot be more than 24 hours in the future")
        return value

    @classmethod
    def from_task(cls, task: Task) -> "TaskRecord":
        return cls(
            created_at=task.created_at,
            name=task.name,
            id=task.id,
            is_done=task.is_done,
            priority=int(task.priority),
        )

    def to_task(self) -> Task:
        return Task(
            id=self.id,
            name=self.name,
            created_at=self.created_at,
            is_done=self.is_done,
            priority=Priority(self.priority),
        )


def _validate_records(raw_tasks: Any) -> List[TaskRecord]:
    if not isinstance(raw_tasks, list):
        raise InvalidDataError("expected a JSON array of tasks")
    try:
        return [TaskRecord.model_validate(raw) for raw in raw_tasks]
    except ValidationError as e:
        raise InvalidDataError(f"invalid task data: {e}") from e


def _check_unique_ids(records: List[TaskRecord]) -> None:
    seen = set()
    for r in records:
        if r.id in seen:
            raise InvalidDataError(f"duplicate task id {r.id}")
        seen.add(r.id)


def _records_for(tasks: List[Task]) -> List[TaskRecord]:
    try:
        return [TaskRecord.from_task(t) for t in tasks]
    except ValidationError as e:
        raise InvalidDataError(f"cannot save invalid task: {e}") from e


def calculate_checksum(records: List[TaskRecord]) -> str:
    """Cheap checksum over ids, priorities and name lengths, as hex."""
    total = len(records)
    for r in records:
        total += r.id + r.priority + len(r.name.encode("utf-8"))
    return format(total, "x")


def default_data_path() -> Path:
    """
    Default data file:
      ~/.td.json

    Override with TD_DATA_FILE env var or --data-file CLI option.
    """
    env = os.getenv("TD_DATA_FILE")
    if env:
        return Path(env).expanduser()
    return Path.home() / ".td.json"


class TaskRepository(ABC):
    """Load/save contract between the TaskManager and a storage backend."""

    @abstractmethod
    def load_tasks(self) -> LoadResult:
        """Returns (active tasks, done tasks, highest id in use)."""

    @abstractmethod
    def save_tasks(self, tasks: List[Task], done_tasks: List[Task]) -> None:
        """Replaces the stored task list."""

    def close(self) -> None:
        return None


class JsonStorage(TaskRepository):
    """
    File-based storage.

    The file holds a JSON array of every task, active tasks first. With
    integrity=True the file is written as an object that also carries a
    checksum; both shapes are accepted on load.
    """

    def __init__(self, file_path, integrity: bool = False):
        self.file_path = Path(file_path).expanduser()
        self.integrity = integrity

    def load_tasks(self) -> LoadResult:
        logger.debug("Loading tasks from %s", self.file_path)
        try:
            with open(self.file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            logger.debug("Data file does not exist, starting with an empty list")
            return [], [], 0
        except PermissionError as e:
            logger.error("Permission denied reading %s: %s", self.file_path, e)
            raise StoragePermissionError(str(e)) from e
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.error("Failed to decode %s: %s", self.file_path, e)
            raise InvalidDataError(f"invalid data in file: {e}") from e

        if isinstance(data, dict):
            active, done = self._load_with_integrity(data)
        else:
            records = _validate_records(data)
            active = [r for r in records if not r.is_done]
            done = [r for r in records if r.is_done]
        _check_unique_ids(active + done)

        max_id = max((r.id for r in active + done), default=0)
        logger.info(
            "Loaded tasks active=%d done=%d max_id=%d", len(active), len(done), max_id
        )
        return [r.to_task() for r in active], [r.to_task() for r in done], max_id

    def _load_with_integrity(self, data: Mapping[str, Any]) -> Tuple[List[TaskRecord], List[TaskRecord]]:
        active = _validate_records(data.get("tasks") or [])
        done = _validate_records(data.get("done_tasks") or [])
        integrity = data.get("integrity")
        if not isinstance(integrity, dict):
            raise InvalidDataError("missing integrity block")
        if integrity.get("checksum") != calculate_checksum(active + done):
            raise InvalidDataError("data integrity check failed: checksum mismatch")
        _check_unique_ids(active + done)
        # Collections are rebuilt from is_done so the invariant holds either way.
        everything = active + done
        return [r for r in everything if not r.is_done], [r for r in everything if r.is_done]

    def save_tasks(self, tasks: List[Task], done_tasks: List[Task]) -> None:
        logger.debug(
            "Saving tasks to %s active=%d done=%d", self.file_path, len(tasks), len(done_tasks)
        )
        active = _records_for(tasks)
        done = _records_for(done_tasks)
        payload: Any
        if self.integrity:
            payload = {
                "integrity": {
                    "version": INTEGRITY_VERSION,
                    "checksum": calculate_checksum(active + done),
                    "created_at": datetime.datetime.now().astimezone().isoformat(),
                },
                "tasks": [r.model_dump(mode="json") for r in active],
                "done_tasks": [r.model_dump(mode="json") for r in done],
            }
        else:
            payload = [r.model_dump(mode="json") for r in active + done]

        try:
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.file_path, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, ensure_ascii=False)
        except PermissionError as e:
            logger.error("Permission denied writing %s: %s", self.file_path, e)
            raise StoragePermissionError(str(e)) from e
        except OSError as e:
            logger.error("Failed to write %s: %s", self.file_path, e)
            raise StorageError(f"failed to write data: {e}") from e
        logger.info("Saved tasks to %s", self.file_path)

    def move_aside(self) -> Optional[Path]:
        """
        Renames the data file to <name>.bak (replacing an older backup).

        Returns:
            The backup path, or None if there was no file or it could not be moved.
        """
        backup = self.file_path.with_name(self.file_path.name + ".bak")
        try:
            self.file_path.replace(backup)
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.error("Could not move %s aside: %s", self.file_path, e)
            return None
        logger.warning("Moved unreadable data file to %s", backup)
        return backup


class MemoryStorage(TaskRepository):
    """In-memory storage, mainly for tests. Safe to share between threads."""

    def __init__(self):
        self._lock = threading.Lock()
        self._tasks: List[Task] = []
        self._done_tasks: List[Task] = []
        self._max_id = 0

    def load_tasks(self) -> LoadResult:
        with self._lock:
            return list(self._tasks), list(self._done_tasks), self._max_id

    def save_tasks(self, tasks: List[Task], done_tasks: List[Task]) -> None:
        with self._lock:
            self._tasks = list(tasks)
            self._done_tasks = list(done_tasks)
            self._max_id = max((t.id for t in self._tasks + self._done_tasks), default=0)


def create_storage(options: Dict[str, Any]) -> TaskRepository:
    """
    Builds a repository from a small options mapping.

    Args:
        options: {"type": "file" | "memory", "file_path": ..., "integrity": bool}.
                 The type defaults to "file", which requires file_path.

    Raises:
        StorageError: For an unknown type or a missing file path.
    """
    kind = options.get("type", "file")
    if kind == "memory":
        return MemoryStorage()
    if kind != "file":
        raise StorageError(f"unsupported storage type: {kind}")
    file_path = options.get("file_path")
    if not file_path:
        raise StorageError("file_path is required for file storage")
    return JsonStorage(file_path, integrity=bool(options.get("integrity", False)))
