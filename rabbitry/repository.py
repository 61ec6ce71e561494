"""Per-collection repository over a storage backend."""

from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from typing import Any, Generic, TypeVar

import structlog

from rabbitry.errors import RabbitryError, RecordNotFoundError
from rabbitry.models import Collection, Record
from rabbitry.storage import Storage

logger = structlog.get_logger()

R = TypeVar("R", bound=Record)


class Repository(Generic[R]):
    """Typed access to one collection.

    Every mutating method reads the collection, applies its change and writes
    the result back in a single call, so callers never run the
    read-modify-write sequence themselves.
    """

    def __init__(self, storage: Storage, collection: Collection) -> None:
        self.storage = storage
        self.collection = collection
        self.model: type[R] = collection.model  # type: ignore[assignment]

    @property
    def key(self) -> str:
        return self.collection.key

    def _load(self) -> list[R]:
        return [self.model.from_dict(item) for item in self.storage.read(self.key)]  # type: ignore[misc]

    def _save(self, records: list[R]) -> None:
        self.storage.write(self.key, [record.to_dict() for record in records])

    def _check_fields(self, fields: dict[str, Any]) -> None:
        unknown = set(fields) - set(self.model.model_fields)
        if unknown:
            raise RabbitryError(f"Unknown field(s) for {self.collection.short_name}: {', '.join(sorted(unknown))}")

    def all(self) -> list[R]:
        """Return every record in storage order."""
        return self._load()

    def get(self, record_id: int) -> R:
        """Return the record with the given id."""
        for record in self._load():
            if record.id == record_id:
                return record
        raise RecordNotFoundError(self.collection.short_name, record_id)

    def find(self, **equals: Any) -> list[R]:
        """Return the records whose fields equal every given value."""
        self._check_fields(equals)
        return [r for r in self._load() if all(getattr(r, k) == v for k, v in equals.items())]

    def first(self, **equals: Any) -> R | None:
        matches = self.find(**equals)
        return matches[0] if matches else None

    def create(self, **fields: Any) -> R:
        """Validate and append a new record with a generated id and timestamp."""
        self._check_fields(fields)
        records = self._load()
        data = dict(fields)
        data["id"] = max((r.id for r in records), default=0) + 1
        data[self.model.timestamp_field] = datetime.now(timezone.utc)
        record = self.model.model_validate(data)
        records.append(record)
        self._save(records)
        logger.info("Record created", collection=self.collection.short_name, record_id=record.id)
        return record

    def update(self, record_id: int, **changes: Any) -> R:
        """Merge the given fields into an existing record and revalidate it."""
        self._check_fields(changes)
        records = self._load()
        for index, record in enumerate(records):
            if record.id == record_id:
                data = record.model_dump()
                data.update(changes)
                data["id"] = record_id
                updated = self.model.model_validate(data)
                records[index] = updated
                self._save(records)
                logger.info(
                    "Record updated",
                    collection=self.collection.short_name,
                    record_id=record_id,
                    fields=sorted(changes),
                )
                return updated
        raise RecordNotFoundError(self.collection.short_name, record_id)

    def upsert(self, record: R) -> R:
        """Insert a record, or replace the stored record with the same id."""
        records = self._load()
        for index, existing in enumerate(records):
            if existing.id == record.id:
                records[index] = record
                break
        else:
            records.append(record)
        self._save(records)
        logger.debug("Record upserted", collection=self.collection.short_name, record_id=record.id)
        return record

    def _validated(self, items: Iterable[Mapping[str, Any]]) -> list[dict[str, Any]]:
        """Check wire-format mappings against the record type and return copies of them.

        Only the id is normalized, so id comparisons see integers.
        """
        checked = []
        for item in items:
            record = self.model.from_dict(dict(item))
            copy = dict(item)
            copy["id"] = record.id
            checked.append(copy)
        return checked

    def merge(self, items: Iterable[Mapping[str, Any]]) -> int:
        """Add the wire-format records whose id is not stored yet. Stored records always win.

        Added records are written exactly as given.

        Returns:
            Number of records added
        """
        existing = self.storage.read(self.key)
        seen = {item.get("id") for item in existing}
        added = []
        for item in self._validated(items):
            if item["id"] in seen:
                continue
            seen.add(item["id"])
            added.append(item)
        self.storage.write(self.key, existing + added)
        logger.debug("Records merged", collection=self.collection.short_name, added=len(added))
        return len(added)

    def replace(self, items: Iterable[Mapping[str, Any]]) -> int:
        """Overwrite the whole collection with wire-format records, written exactly as given.

        Returns:
            Number of records written
        """
        records = self._validated(items)
        self.storage.write(self.key, records)
        logger.debug("Collection replaced", collection=self.collection.short_name, count=len(records))
        return len(records)
