"""Tests for the in-memory storage backend."""

from rabbitry.backends import MemoryStorage


def test_read_absent_key() -> None:
    """Test an absent key reads as an empty list."""
    storage = MemoryStorage()
    assert storage.read("rabbit_farm_rabbits") == []
    assert storage.has("rabbit_farm_rabbits") is False


def test_write_then_read() -> None:
    """Test written records are read back."""
    storage = MemoryStorage()
    storage.write("rabbit_farm_tasks", [{"id": 1, "title": "Clean cages"}])
    assert storage.read("rabbit_farm_tasks") == [{"id": 1, "title": "Clean cages"}]
    assert storage.has("rabbit_farm_tasks") is True
    assert storage.keys() == ["rabbit_farm_tasks"]


def test_reads_are_copies() -> None:
    """Test mutating a read result does not change the store."""
    storage = MemoryStorage({"k": [{"id": 1}]})
    records = storage.read("k")
    records[0]["id"] = 99
    records.append({"id": 2})
    assert storage.read("k") == [{"id": 1}]


def test_initial_data_is_copied() -> None:
    """Test the initial mapping is not shared with the caller."""
    initial = {"k": [{"id": 1}]}
    storage = MemoryStorage(initial)
    initial["k"].append({"id": 2})
    assert storage.read("k") == [{"id": 1}]
