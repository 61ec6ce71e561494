"""Storage backend keeping one JSON file per key in a directory."""

import json
import os
import tempfile
from pathlib import Path
from typing import Any

import structlog

from rabbitry.errors import StorageError
from rabbitry.storage import Storage

logger = structlog.get_logger()


class JsonFileStorage(Storage):
    """Directory-backed storage writing ``<key>.json`` for every key."""

    def __init__(self, path: str | Path) -> None:
        """Initialize JSON file storage.

        Args:
            path: Directory holding the data files (created if missing)
        """
        self.path = Path(path).expanduser()
        self.path.mkdir(parents=True, exist_ok=True)
        logger.debug("JSON file storage initialized", path=str(self.path))

    def _file_for(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key.startswith("."):
            raise StorageError(f"Invalid storage key: '{key}'")
        return self.path / f"{key}.json"

    def read(self, key: str) -> list[dict[str, Any]]:
        file = self._file_for(key)
        if not file.exists():
            return []

        try:
            with open(file, "r", encoding="utf-8") as f:
                records = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Failed to read storage file", file=str(file), error=str(e))
            raise StorageError(f"Failed to read {file}: {e}") from e

        if not isinstance(records, list):
            logger.error("Storage file does not hold a list", file=str(file))
            raise StorageError(f"Expected a JSON list in {file}")

        logger.debug("Read storage file", key=key, count=len(records))
        return records

    def write(self, key: str, records: list[dict[str, Any]]) -> None:
        file = self._file_for(key)
        # Write to a sibling temp file first so a failed write never truncates the old data.
        fd, tmp_name = tempfile.mkstemp(prefix=f".{key}.", suffix=".tmp", dir=self.path)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(records, f, ensure_ascii=False, indent=2)
            os.replace(tmp_name, file)
        except (OSError, TypeError, ValueError) as e:
            Path(tmp_name).unlink(missing_ok=True)
            logger.error("Failed to write storage file", file=str(file), error=str(e))
            raise StorageError(f"Failed to write {file}: {e}") from e

        logger.debug("Wrote storage file", key=key, count=len(records))

    def has(self, key: str) -> bool:
        return self._file_for(key).exists()

    def keys(self) -> list[str]:
        return sorted(file.stem for file in self.path.glob("*.json"))
