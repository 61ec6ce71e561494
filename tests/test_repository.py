"""Tests for the collection repository."""

import pytest
from pydantic import ValidationError

from rabbitry.backends import MemoryStorage
from rabbitry.errors import RabbitryError, RecordNotFoundError
from rabbitry.models import Collection, Rabbit, Task
from rabbitry.repository import Repository

from tests.conftest import rabbit_dict


@pytest.fixture
def rabbits(storage: MemoryStorage) -> Repository[Rabbit]:
    """Create a rabbit repository over empty storage."""
    return Repository(storage, Collection.RABBITS)


def _create(repo: Repository[Rabbit], tag_id: str) -> Rabbit:
    return repo.create(tag_id=tag_id, breed="Rex", gender="male", acquired_date="2024-02-01", created_by=1)


def test_create_assigns_id_and_timestamp(rabbits: Repository[Rabbit]) -> None:
    """Test creation generates incrementing ids and a creation time."""
    first = _create(rabbits, "R-1")
    second = _create(rabbits, "R-2")
    assert first.id == 1
    assert second.id == 2
    assert first.created_at is not None
    assert [r.tag_id for r in rabbits.all()] == ["R-1", "R-2"]


def test_create_continues_after_highest_id(storage: MemoryStorage, rabbits: Repository[Rabbit]) -> None:
    """Test new ids follow the highest stored id."""
    storage.write(Collection.RABBITS.key, [rabbit_dict(40, "R-40")])
    assert _create(rabbits, "R-41").id == 41


def test_create_validates(rabbits: Repository[Rabbit]) -> None:
    """Test creation rejects a record missing required fields."""
    with pytest.raises(ValidationError):
        rabbits.create(tag_id="R-1")
    assert rabbits.all() == []


def test_unknown_field_rejected(rabbits: Repository[Rabbit]) -> None:
    """Test misspelled field names are reported instead of stored."""
    with pytest.raises(RabbitryError, match="Unknown field"):
        rabbits.find(tag="R-1")


def test_get_and_not_found(rabbits: Repository[Rabbit]) -> None:
    """Test reading a record by id."""
    rabbit = _create(rabbits, "R-1")
    assert rabbits.get(rabbit.id).tag_id == "R-1"
    with pytest.raises(RecordNotFoundError):
        rabbits.get(99)


def test_find_and_first(rabbits: Repository[Rabbit]) -> None:
    """Test filtering by field equality."""
    _create(rabbits, "R-1")
    _create(rabbits, "R-2")
    assert [r.tag_id for r in rabbits.find(tag_id="R-2")] == ["R-2"]
    assert rabbits.first(tag_id="R-1").id == 1
    assert rabbits.first(tag_id="missing") is None


def test_update_merges_fields(rabbits: Repository[Rabbit]) -> None:
    """Test a partial update keeps untouched fields."""
    rabbit = _create(rabbits, "R-1")
    updated = rabbits.update(rabbit.id, status="for_sale", weight=2300)
    assert updated.status == "for_sale"
    assert updated.weight == 2300
    assert updated.breed == "Rex"
    assert rabbits.get(rabbit.id).weight == 2300


def test_update_keeps_id(rabbits: Repository[Rabbit]) -> None:
    """Test an update cannot move a record to another id."""
    rabbit = _create(rabbits, "R-1")
    assert rabbits.update(rabbit.id, id=7).id == rabbit.id


def test_update_revalidates(rabbits: Repository[Rabbit]) -> None:
    """Test an update producing an invalid record is rejected."""
    rabbit = _create(rabbits, "R-1")
    with pytest.raises(ValidationError):
        rabbits.update(rabbit.id, weight="heavy")
    assert rabbits.get(rabbit.id).weight is None


def test_update_missing(rabbits: Repository[Rabbit]) -> None:
    """Test updating an unknown id raises."""
    with pytest.raises(RecordNotFoundError):
        rabbits.update(5, status="sick")


def test_upsert(rabbits: Repository[Rabbit]) -> None:
    """Test upsert inserts new ids and replaces existing ones."""
    rabbits.upsert(Rabbit.from_dict(rabbit_dict(1, "R-1")))
    rabbits.upsert(Rabbit.from_dict(rabbit_dict(1, "R-1-B")))
    rabbits.upsert(Rabbit.from_dict(rabbit_dict(2, "R-2")))
    assert [(r.id, r.tag_id) for r in rabbits.all()] == [(1, "R-1-B"), (2, "R-2")]


def test_merge_existing_wins(storage: MemoryStorage, rabbits: Repository[Rabbit]) -> None:
    """Test merge keeps stored records on id collision and adds new ids."""
    existing = rabbit_dict(1, "R-1")
    storage.write(Collection.RABBITS.key, [existing])

    added = rabbits.merge([rabbit_dict(1, "R-1-DUPLICATE"), rabbit_dict(2, "R-2")])
    assert added == 1
    stored = storage.read(Collection.RABBITS.key)
    assert stored[0] == existing
    assert [(r["id"], r["tagId"]) for r in stored] == [(1, "R-1"), (2, "R-2")]


def test_merge_drops_incoming_duplicates(rabbits: Repository[Rabbit]) -> None:
    """Test the first incoming record wins among duplicates of a new id."""
    added = rabbits.merge([rabbit_dict(3, "A"), rabbit_dict(3, "B")])
    assert added == 1
    assert [r.tag_id for r in rabbits.all()] == ["A"]


def test_replace(storage: MemoryStorage) -> None:
    """Test replace overwrites the collection."""
    tasks: Repository[Task] = Repository(storage, Collection.TASKS)
    tasks.create(title="Old", created_by=1)
    written = tasks.replace([{"id": 5, "title": "New", "createdBy": 2}])
    assert written == 1
    assert [(t.id, t.title) for t in tasks.all()] == [(5, "New")]


def test_merge_and_replace_write_records_as_given(storage: MemoryStorage, rabbits: Repository[Rabbit]) -> None:
    """Test merged and replaced records are stored without defaults or reformatted dates."""
    given = {"id": 7, "tagId": "R-7", "breed": "Rex", "gender": "male", "acquiredDate": "2024-01-05", "createdBy": 1}

    rabbits.merge([given])
    assert storage.read(Collection.RABBITS.key) == [given]

    rabbits.replace([given, rabbit_dict(8, "R-8")])
    assert storage.read(Collection.RABBITS.key) == [given, rabbit_dict(8, "R-8")]


def test_merge_and_replace_validate(storage: MemoryStorage, rabbits: Repository[Rabbit]) -> None:
    """Test invalid records are rejected before anything is written."""
    with pytest.raises(ValidationError):
        rabbits.merge([rabbit_dict(1, "R-1"), {"id": 2, "tagId": "R-2"}])
    with pytest.raises(ValidationError):
        rabbits.replace([{"id": 2}])
    assert not storage.has(Collection.RABBITS.key)
