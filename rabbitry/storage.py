"""Storage interface for persisted collections."""

from abc import ABC, abstractmethod
from typing import Any


class Storage(ABC):
    """Abstract base class for key-value stores of JSON record lists.

    Every key maps to a list of JSON-compatible dicts. Consumers receive a
    storage instance explicitly; there is no module-level default store.
    """

    @abstractmethod
    def read(self, key: str) -> list[dict[str, Any]]:
        """Read the records stored under a key. Returns an empty list for an absent key."""
        pass

    @abstractmethod
    def write(self, key: str, records: list[dict[str, Any]]) -> None:
        """Replace the records stored under a key."""
        pass

    @abstractmethod
    def has(self, key: str) -> bool:
        """Return True if the key has ever been written."""
        pass

    @abstractmethod
    def keys(self) -> list[str]:
        """List every key held by the store."""
        pass
