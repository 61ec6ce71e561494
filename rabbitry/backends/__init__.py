"""Storage backend implementations."""

from rabbitry.backends.json_file import JsonFileStorage
from rabbitry.backends.memory import MemoryStorage

__all__ = ["JsonFileStorage", "MemoryStorage"]
