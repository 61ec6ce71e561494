"""In-memory storage backend."""

import copy
from typing import Any

import structlog

from rabbitry.storage import Storage

logger = structlog.get_logger()


class MemoryStorage(Storage):
    """Process-memory storage. Contents are lost when the process exits."""

    def __init__(self, initial: dict[str, list[dict[str, Any]]] | None = None) -> None:
        self._data: dict[str, list[dict[str, Any]]] = copy.deepcopy(initial) if initial else {}
        logger.debug("Memory storage initialized", keys=list(self._data))

    def read(self, key: str) -> list[dict[str, Any]]:
        # Callers get a copy so in-place edits never leak into the store.
        return copy.deepcopy(self._data.get(key, []))

    def write(self, key: str, records: list[dict[str, Any]]) -> None:
        logger.debug("Writing key", key=key, count=len(records))
        self._data[key] = copy.deepcopy(records)

    def has(self, key: str) -> bool:
        return key in self._data

    def keys(self) -> list[str]:
        return list(self._data)
