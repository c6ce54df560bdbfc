"""Unit tests for the JSON-file local storage adapter."""

import json

from studio_tracker.infrastructure.storage.json_local_storage import JsonFileLocalStorage


def test_values_survive_a_new_instance(tmp_path):
    path = tmp_path / "state" / "local_storage.json"
    storage = JsonFileLocalStorage(str(path))

    storage.set_item("authUser", '{"id": "u1"}')
    storage.set_item("chat_lastRead_u1", "2024-01-01T00:00:00+00:00")

    reopened = JsonFileLocalStorage(str(path))
    assert reopened.get_item("authUser") == '{"id": "u1"}'
    assert reopened.get_item("chat_lastRead_u1") == "2024-01-01T00:00:00+00:00"


def test_remove_item_deletes_key(tmp_path):
    path = tmp_path / "local_storage.json"
    storage = JsonFileLocalStorage(str(path))
    storage.set_item("authUser", "x")

    storage.remove_item("authUser")
    storage.remove_item("never-set")

    assert storage.get_item("authUser") is None
    assert json.loads(path.read_text(encoding="utf-8")) == {}


def test_corrupt_file_starts_empty(tmp_path):
    path = tmp_path / "local_storage.json"
    path.write_text("{broken", encoding="utf-8")

    storage = JsonFileLocalStorage(str(path))

    assert storage.get_item("authUser") is None
    storage.set_item("authUser", "y")
    assert json.loads(path.read_text(encoding="utf-8")) == {"authUser": "y"}


def test_non_object_file_starts_empty(tmp_path):
    path = tmp_path / "local_storage.json"
    path.write_text("[1, 2]", encoding="utf-8")

    assert JsonFileLocalStorage(str(path)).get_item("0") is None
