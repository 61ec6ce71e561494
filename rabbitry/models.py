"""Data models for rabbitry."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

RABBIT_GENDERS = ("male", "female")
RABBIT_STATUSES = ("active", "pregnant", "sick", "for_sale", "inactive", "deceased")
HEALTH_STATUSES = ("healthy", "sick", "under_treatment", "recovering")
BREEDING_STATUSES = ("pending", "successful", "failed")
HEALTH_RECORD_TYPES = ("vaccination", "medication", "checkup", "illness", "injury", "other")
TASK_STATUSES = ("pending", "in_progress", "completed", "canceled")
USER_ROLES = ("admin", "manager", "worker")
ACTIVITY_TYPES = ("login", "create", "update", "delete")

AUTH_TOKEN_KEY = "rabbit_farm_auth_token"
SESSION_USER_KEY = "rabbit_farm_user"

# Session state is never exported, imported or merged.
SESSION_KEYS = frozenset({AUTH_TOKEN_KEY, SESSION_USER_KEY})


class Record(BaseModel):
    """Base class for every stored record.

    Field names are snake_case in Python and camelCase on the wire. Fields a
    record type does not declare are kept as extras so they survive a round trip.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    # Name of the field stamped with the creation time.
    timestamp_field: ClassVar[str] = "created_at"
    # Fields that hold credentials and never leave or enter the store via a file.
    credential_fields: ClassVar[tuple[str, ...]] = ()

    id: int

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Record":
        """Validate a wire-format mapping into a record."""
        return cls.model_validate(data)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible mapping with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)


class Rabbit(Record):
    tag_id: str
    breed: str
    gender: str
    birth_date: datetime | None = None
    acquired_date: datetime
    status: str = "active"
    weight: int | None = None  # grams
    cage_number: str | None = None
    parent_male_id: str | None = None
    parent_female_id: str | None = None
    notes: str | None = None
    created_by: int
    health_status: str | None = "healthy"
    created_at: datetime | None = None


class BreedingRecord(Record):
    male_id: str
    female_id: str
    mating_date: datetime
    expected_birth_date: datetime | None = None
    actual_birth_date: datetime | None = None
    status: str = "pending"
    litter_size: int | None = None
    litter_alive: int | None = None
    notes: str | None = None
    created_by: int
    created_at: datetime | None = None


class HealthRecord(Record):
    rabbit_id: str
    record_date: datetime
    record_type: str
    diagnosis: str | None = None
    treatment: str | None = None
    notes: str | None = None
    created_by: int
    created_at: datetime | None = None


class FeedInventory(Record):
    feed_type: str
    quantity: int  # grams
    acquired: datetime
    expiration_date: datetime | None = None
    supplier_info: str | None = None
    cost: int | None = None  # cents
    created_by: int
    created_at: datetime | None = None


class FeedConsumption(Record):
    feed_id: int
    quantity: int  # grams
    consumption_date: datetime
    group_id: str | None = None
    notes: str | None = None
    created_by: int
    created_at: datetime | None = None


class Task(Record):
    title: str
    description: str | None = None
    due_date: datetime | None = None
    status: str = "pending"
    assigned_to: int | None = None
    created_by: int
    created_at: datetime | None = None
    completed_at: datetime | None = None


class Activity(Record):
    timestamp_field: ClassVar[str] = "timestamp"

    user_id: int
    activity_type: str
    description: str
    timestamp: datetime | None = None
    related_entity_type: str | None = None
    related_entity_id: str | None = None


class User(Record):
    credential_fields: ClassVar[tuple[str, ...]] = ("password",)

    username: str
    password: str | None = None
    full_name: str
    role: str = "worker"
    is_active: bool = True
    created_at: datetime | None = None
    last_login: datetime | None = None
    assigned_rabbits: list[str] = Field(default_factory=list)


class Collection(Enum):
    """A named collection of same-typed records, valued by its storage key."""

    RABBITS = "rabbit_farm_rabbits"
    BREEDING_RECORDS = "rabbit_farm_breeding_records"
    HEALTH_RECORDS = "rabbit_farm_health_records"
    FEED_INVENTORY = "rabbit_farm_feed_inventory"
    FEED_CONSUMPTION = "rabbit_farm_feed_consumption"
    TASKS = "rabbit_farm_tasks"
    ACTIVITIES = "rabbit_farm_activities"
    USERS = "rabbit_farm_users"

    @property
    def key(self) -> str:
        return self.value

    @property
    def short_name(self) -> str:
        """Name without the storage prefix, e.g. ``health_records``."""
        return self.value.removeprefix("rabbit_farm_")

    @property
    def model(self) -> type[Record]:
        return RECORD_TYPES[self]

    @classmethod
    def from_key(cls, key: str) -> "Collection | None":
        try:
            return cls(key)
        except ValueError:
            return None

    @classmethod
    def from_name(cls, name: str) -> "Collection":
        """Look up a collection by short name or storage key."""
        normalized = name.strip().lower().replace("-", "_")
        for collection in cls:
            if normalized in (collection.short_name, collection.key):
                return collection
        names = ", ".join(c.short_name for c in cls)
        raise ValueError(f"Unknown collection: '{name}'. Expected one of: {names}")


RECORD_TYPES: dict[Collection, type[Record]] = {
    Collection.RABBITS: Rabbit,
    Collection.BREEDING_RECORDS: BreedingRecord,
    Collection.HEALTH_RECORDS: HealthRecord,
    Collection.FEED_INVENTORY: FeedInventory,
    Collection.FEED_CONSUMPTION: FeedConsumption,
    Collection.TASKS: Task,
    Collection.ACTIVITIES: Activity,
    Collection.USERS: User,
}


@dataclass
class CollectionReport:
    """Outcome of importing one collection."""

    received: int
    written: int
    dropped: int = 0


@dataclass
class ImportReport:
    """Outcome of a replace or merge import."""

    mode: str
    collections: dict[str, CollectionReport] = field(default_factory=dict)

    @property
    def total_written(self) -> int:
        return sum(report.written for report in self.collections.values())
