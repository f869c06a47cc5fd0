# tests/test_storage.py

import datetime
import json

import pytest

from storage import (
    InvalidDataError,
    JsonStorage,
    MemoryStorage,
    StorageError,
    TaskRecord,
    calculate_checksum,
    create_storage,
    default_data_path,
)
from task_manager import Priority
from tests.conftest import make_task


def _write(path, payload):
    path.write_text(json.dumps(payload), encoding="utf-8")


def _raw_task(task_id=1, **overrides):
    raw = {
        "created_at": "2024-05-01T09:00:00+00:00",
        "name": f"task {task_id}",
        "id": task_id,
        "is_done": False,
        "priority": 0,
    }
    raw.update(overrides)
    return raw


def test_missing_file_loads_empty(tmp_path):
    storage = JsonStorage(tmp_path / "nope.json")
    assert storage.load_tasks() == ([], [], 0)


def test_save_then_load(tmp_path):
    path = tmp_path / "nested" / "tasks.json"
    storage = JsonStorage(path)
    active = [make_task(2, "write", priority=Priority.HIGH)]
    done = [make_task(5, "read", is_done=True)]
    storage.save_tasks(active, done)

    data = json.loads(path.read_text(encoding="utf-8"))
    assert isinstance(data, list)
    assert [d["id"] for d in data] == [2, 5]
    assert data[0]["priority"] == 3

    loaded_active, loaded_done, next_id = storage.load_tasks()
    assert [(t.id, t.name, t.priority) for t in loaded_active] == [(2, "write", Priority.HIGH)]
    assert [(t.id, t.is_done) for t in loaded_done] == [(5, True)]
    assert loaded_active[0].created_at == active[0].created_at
    assert next_id == 5


def test_load_splits_by_done_flag(tmp_path):
    path = tmp_path / "tasks.json"
    _write(path, [_raw_task(1, is_done=True), _raw_task(2), _raw_task(3, is_done=True)])
    active, done, next_id = JsonStorage(path).load_tasks()
    assert [t.id for t in active] == [2]
    assert [t.id for t in done] == [1, 3]
    assert next_id == 3


def test_naive_timestamps_become_aware(tmp_path):
    path = tmp_path / "tasks.json"
    _write(path, [_raw_task(1, created_at="2024-05-01T09:00:00")])
    active, _, _ = JsonStorage(path).load_tasks()
    assert active[0].created_at.tzinfo is not None


def test_user_home_is_expanded():
    storage = JsonStorage("~/tasks.json")
    assert "~" not in str(storage.file_path)


@pytest.mark.parametrize(
    "content",
    [
        "{not json",
        json.dumps({"tasks": []}),
        json.dumps("a string"),
        json.dumps([_raw_task(1, name="   ")]),
        json.dumps([_raw_task(0)]),
        json.dumps([_raw_task(1, priority=7)]),
        json.dumps([_raw_task(1, name="x" * 501)]),
        json.dumps([{"name": "no date", "id": 1}]),
    ],
)
def test_invalid_data_is_rejected(tmp_path, content):
    path = tmp_path / "tasks.json"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(InvalidDataError):
        JsonStorage(path).load_tasks()


def test_future_created_at_is_rejected(tmp_path):
    path = tmp_path / "tasks.json"
    future = datetime.datetime.now().astimezone() + datetime.timedelta(days=3)
    _write(path, [_raw_task(1, created_at=future.isoformat())])
    with pytest.raises(InvalidDataError):
        JsonStorage(path).load_tasks()


def test_invalid_data_is_a_storage_error():
    assert issubclass(InvalidDataError, StorageError)


def test_integrity_round_trip(tmp_path):
    path = tmp_path / "tasks.json"
    storage = JsonStorage(path, integrity=True)
    storage.save_tasks([make_task(1)], [make_task(2, is_done=True)])

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["integrity"]["version"] == 1
    assert [t["id"] for t in data["tasks"]] == [1]
    assert [t["id"] for t in data["done_tasks"]] == [2]

    # Plain storage reads the wrapped format too.
    active, done, next_id = JsonStorage(path).load_tasks()
    assert [t.id for t in active] == [1]
    assert [t.id for t in done] == [2]
    assert next_id == 2


def test_checksum_mismatch(tmp_path):
    path = tmp_path / "tasks.json"
    JsonStorage(path, integrity=True).save_tasks([make_task(1)], [])
    data = json.loads(path.read_text(encoding="utf-8"))
    data["tasks"][0]["name"] = "a much longer name than before"
    _write(path, data)
    with pytest.raises(InvalidDataError, match="checksum"):
        JsonStorage(path).load_tasks()


def test_checksum_value():
    records = [TaskRecord.from_task(make_task(1, "ab", priority=Priority.LOW))]
    # 1 record + id 1 + priority 1 + 2 name bytes
    assert calculate_checksum(records) == "5"
    assert calculate_checksum([]) == "0"


def test_move_aside(tmp_path):
    path = tmp_path / "tasks.json"
    path.write_text("garbage", encoding="utf-8")
    storage = JsonStorage(path)
    backup = storage.move_aside()
    assert backup == tmp_path / "tasks.json.bak"
    assert backup.read_text(encoding="utf-8") == "garbage"
    assert not path.exists()
    assert storage.move_aside() is None


def test_memory_storage():
    storage = MemoryStorage()
    assert storage.load_tasks() == ([], [], 0)
    active = [make_task(3)]
    storage.save_tasks(active, [make_task(7, is_done=True)])
    loaded_active, loaded_done, next_id = storage.load_tasks()
    assert [t.id for t in loaded_active] == [3]
    assert [t.id for t in loaded_done] == [7]
    assert next_id == 7
    # Saved lists are copied.
    active.clear()
    assert len(storage.load_tasks()[0]) == 1


def test_create_storage(tmp_path):
    storage = create_storage({"file_path": str(tmp_path / "t.json"), "integrity": True})
    assert isinstance(storage, JsonStorage)
    assert storage.integrity is True
    assert isinstance(create_storage({"type": "memory"}), MemoryStorage)


@pytest.mark.parametrize("options", [{"type": "sqlite", "file_path": "x"}, {"type": "file"}, {}])
def test_create_storage_errors(options):
    with pytest.raises(StorageError):
        create_storage(options)


def test_default_data_path(monkeypatch, tmp_path):
    monkeypatch.delenv("TD_DATA_FILE", raising=False)
    assert default_data_path().name == ".td.json"
    monkeypatch.setenv("TD_DATA_FILE", str(tmp_path / "custom.json"))
    assert default_data_path() == tmp_path / "custom.json"


def test_duplicate_ids_are_rejected(tmp_path):
    path = tmp_path / "tasks.json"
    _write(path, [_raw_task(1, name="a"), _raw_task(1, name="b", is_done=True)])
    with pytest.raises(InvalidDataError, match="duplicate task id 1"):
        JsonStorage(path).load_tasks()


def test_duplicate_ids_are_rejected_with_integrity(tmp_path):
    path = tmp_path / "tasks.json"
    # Same id in both lists; the checksum is valid so only the id check can catch it.
    JsonStorage(path, integrity=True).save_tasks([make_task(1, "a")], [make_task(1, "b", is_done=True)])
    with pytest.raises(InvalidDataError, match="duplicate task id 1"):
        JsonStorage(path).load_tasks()
