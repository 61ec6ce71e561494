"""Tests for the JSON file storage backend."""

import json
from pathlib import Path

import pytest

from rabbitry.backends import JsonFileStorage
from rabbitry.errors import StorageError


def test_creates_directory(tmp_path: Path) -> None:
    """Test the data directory is created on init."""
    storage = JsonFileStorage(tmp_path / "data")
    assert storage.path.is_dir()


def test_write_then_read(tmp_path: Path) -> None:
    """Test records persist as one JSON file per key."""
    storage = JsonFileStorage(tmp_path)
    storage.write("rabbit_farm_rabbits", [{"id": 1, "tagId": "R-1"}])

    file = tmp_path / "rabbit_farm_rabbits.json"
    assert json.loads(file.read_text(encoding="utf-8")) == [{"id": 1, "tagId": "R-1"}]
    assert JsonFileStorage(tmp_path).read("rabbit_farm_rabbits") == [{"id": 1, "tagId": "R-1"}]


def test_absent_key(tmp_path: Path) -> None:
    """Test an absent key reads as an empty list."""
    storage = JsonFileStorage(tmp_path)
    assert storage.read("rabbit_farm_tasks") == []
    assert storage.has("rabbit_farm_tasks") is False


def test_keys(tmp_path: Path) -> None:
    """Test keys lists every written key and ignores temp files."""
    storage = JsonFileStorage(tmp_path)
    storage.write("b", [])
    storage.write("a", [{"id": 1}])
    (tmp_path / "notes.txt").write_text("x")
    assert storage.keys() == ["a", "b"]
    assert not list(tmp_path.glob("*.tmp"))


def test_corrupt_file_raises(tmp_path: Path) -> None:
    """Test an unparseable file raises StorageError."""
    (tmp_path / "broken.json").write_text("{not json", encoding="utf-8")
    with pytest.raises(StorageError):
        JsonFileStorage(tmp_path).read("broken")


def test_non_list_file_raises(tmp_path: Path) -> None:
    """Test a file holding an object instead of a list raises StorageError."""
    (tmp_path / "obj.json").write_text('{"id": 1}', encoding="utf-8")
    with pytest.raises(StorageError):
        JsonFileStorage(tmp_path).read("obj")


def test_rejects_path_like_keys(tmp_path: Path) -> None:
    """Test keys cannot escape the data directory."""
    storage = JsonFileStorage(tmp_path)
    with pytest.raises(StorageError):
        storage.write("../outside", [])


def test_unicode_is_preserved(tmp_path: Path) -> None:
    """Test non-ASCII text round-trips."""
    storage = JsonFileStorage(tmp_path)
    storage.write("k", [{"id": 1, "breed": "نيوزيلندي أبيض"}])
    assert storage.read("k")[0]["breed"] == "نيوزيلندي أبيض"
