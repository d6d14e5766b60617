from __future__ import annotations

import json

from excel_tutor.storage import InMemoryStorage, JsonFileStorage, make_storage


def test_in_memory_copies_values() -> None:
    storage = InMemoryStorage()
    value = {"a": [1, 2]}
    storage.set_item("k", value)
    value["a"].append(3)
    assert storage.get_item("k") == {"a": [1, 2]}
    storage.remove_item("k")
    storage.remove_item("k")
    assert storage.get_item("k") is None


def test_json_file_storage_persists(tmp_path) -> None:
    path = tmp_path / "nested" / "state.json"
    storage = JsonFileStorage(path)
    assert storage.get_item("missing") is None

    storage.set_item("one", {"x": 1})
    storage.set_item("two", [1, "b"])
    assert json.loads(path.read_text(encoding="utf-8")) == {"one": {"x": 1}, "two": [1, "b"]}

    reopened = JsonFileStorage(path)
    assert reopened.get_item("two") == [1, "b"]
    reopened.remove_item("one")
    assert JsonFileStorage(path).get_item("one") is None
    assert list(path.parent.iterdir()) == [path]


def test_json_file_storage_fails_soft(tmp_path) -> None:
    path = tmp_path / "state.json"
    path.write_text("[1, 2, 3]", encoding="utf-8")
    assert JsonFileStorage(path).get_item("k") is None
    path.write_text("", encoding="utf-8")
    assert JsonFileStorage(path).get_item("k") is None
    path.write_text("{oops", encoding="utf-8")
    storage = JsonFileStorage(path)
    assert storage.get_item("k") is None
    storage.set_item("k", 1)
    assert storage.get_item("k") == 1


def test_make_storage(tmp_path) -> None:
    assert isinstance(make_storage(None), InMemoryStorage)
    assert isinstance(make_storage(tmp_path / "p.json"), JsonFileStorage)
