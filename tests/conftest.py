"""Shared fixtures for rabbitry tests."""

from typing import Any

import pytest

from rabbitry.backends import MemoryStorage
from rabbitry.farm import Farm


def rabbit_dict(record_id: int, tag_id: str, **overrides: Any) -> dict[str, Any]:
    """Build a wire-format rabbit record."""
    record = {
        "id": record_id,
        "tagId": tag_id,
        "breed": "Rex",
        "gender": "female",
        "acquiredDate": "2024-01-05T00:00:00Z",
        "status": "active",
        "createdBy": 1,
    }
    record.update(overrides)
    return record


@pytest.fixture
def storage() -> MemoryStorage:
    """Create an empty in-memory storage."""
    return MemoryStorage()


@pytest.fixture
def farm(storage: MemoryStorage) -> Farm:
    """Create a farm over in-memory storage, acting as the seeded default admin."""
    farm = Farm(storage, acting_user_id=1)
    farm.ensure_default_admin()
    return farm
