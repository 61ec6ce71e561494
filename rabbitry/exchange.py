"""JSON export, replace-import and merge-import of farm data."""

import csv
import json
from collections.abc import Mapping
from datetime import date
from pathlib import Path
from typing import Any

import structlog
from pydantic import ValidationError

from rabbitry.errors import (
    MalformedDocumentError,
    NoValidDataError,
    RecordValidationError,
    UnreadableFileError,
)
from rabbitry.models import Collection, CollectionReport, ImportReport
from rabbitry.repository import Repository
from rabbitry.storage import Storage

logger = structlog.get_logger()

DEFAULT_EXPORT_PREFIX = "rabbit_farm_data"

Source = str | Path | Mapping[str, Any]


def _strip_credentials(collection: Collection, item: dict[str, Any]) -> dict[str, Any]:
    for name in collection.model.credential_fields:
        item.pop(name, None)
    return item


def export_data(storage: Storage) -> dict[str, list[dict[str, Any]]]:
    """Collect every written collection into one document keyed by storage key.

    Session keys are never included and credential fields are stripped.
    """
    data: dict[str, list[dict[str, Any]]] = {}
    for collection in Collection:
        if not storage.has(collection.key):
            continue
        data[collection.key] = [_strip_credentials(collection, item) for item in storage.read(collection.key)]
    logger.info("Data exported", collections=list(data), records=sum(len(v) for v in data.values()))
    return data


def export_filename(prefix: str = DEFAULT_EXPORT_PREFIX, today: date | None = None) -> str:
    today = today or date.today()
    return f"{prefix}_{today.isoformat()}.json"


def write_export(
    storage: Storage,
    directory: str | Path = ".",
    prefix: str = DEFAULT_EXPORT_PREFIX,
    today: date | None = None,
) -> Path:
    """Write the export document to ``<directory>/<prefix>_<YYYY-MM-DD>.json``.

    Returns:
        Path of the written file
    """
    path = Path(directory) / export_filename(prefix, today)
    path.parent.mkdir(parents=True, exist_ok=True)
    document = export_data(storage)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(document, f, ensure_ascii=False, indent=2)
    logger.info("Export written", path=str(path))
    return path


def _csv_cell(value: Any) -> Any:
    # Numbers stay bare; everything else is written as a quoted string.
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def export_csv(records: list[dict[str, Any]], path: str | Path) -> bool:
    """Write records as CSV using the first record's keys as header.

    Returns:
        False, without writing anything, when there are no records
    """
    if not records:
        logger.warning("Nothing to export as CSV", path=str(path))
        return False

    headers = list(records[0].keys())
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f, quoting=csv.QUOTE_NONNUMERIC)
        writer.writerow(headers)
        for record in records:
            writer.writerow([_csv_cell(record.get(header)) for header in headers])

    logger.info("CSV export written", path=str(path), rows=len(records))
    return True


def _read_document(source: Source) -> Mapping[str, Any]:
    if isinstance(source, Mapping):
        return source

    path = Path(source)
    logger.debug("Reading import file", path=str(path))
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.error("Failed to read import file", path=str(path), error=str(e))
        raise UnreadableFileError(f"Error reading file {path}: {e}") from e

    try:
        document = json.loads(text)
    except json.JSONDecodeError as e:
        logger.error("Import file is not valid JSON", path=str(path), error=str(e))
        raise MalformedDocumentError(f"Error processing file {path}: {e}") from e

    if not isinstance(document, dict):
        logger.error("Import file is not a JSON object", path=str(path), type=type(document).__name__)
        raise MalformedDocumentError(f"Error processing file {path}: expected a JSON object")
    return document


def _validate_document(document: Mapping[str, Any], mode: str) -> dict[Collection, list[dict[str, Any]]]:
    """Validate every recognized collection before anything is written.

    Returns the credential-stripped records as given, keyed by collection.
    """
    sections: dict[Collection, list[dict[str, Any]]] = {}
    for key, value in document.items():
        collection = Collection.from_key(key)
        if collection is None or not isinstance(value, list):
            logger.debug("Ignoring document key", key=key)
            continue

        records = []
        seen_ids = set()
        for index, item in enumerate(value):
            if not isinstance(item, dict):
                raise RecordValidationError(collection.short_name, index, "expected an object")
            item = _strip_credentials(collection, dict(item))
            try:
                record = collection.model.from_dict(item)
            except ValidationError as e:
                logger.error("Import record failed validation", collection=collection.short_name, index=index)
                raise RecordValidationError(collection.short_name, index, str(e)) from e
            if mode == "replace" and record.id in seen_ids:
                raise RecordValidationError(collection.short_name, index, f"duplicate id {record.id}")
            seen_ids.add(record.id)
            item["id"] = record.id
            records.append(item)
        sections[collection] = records

    if not sections:
        verb = "merge" if mode == "merge" else "import"
        logger.error("No valid data in document", mode=mode, keys=list(document))
        raise NoValidDataError(f"Invalid file: no valid data to {verb}")
    return sections


def _carry_credentials(
    storage: Storage, collection: Collection, records: list[dict[str, Any]]
) -> list[dict[str, Any]]:
    """Keep stored credential values for records whose id is already stored."""
    fields = collection.model.credential_fields
    if not fields:
        return records
    stored = {item.get("id"): item for item in storage.read(collection.key)}
    carried = []
    for record in records:
        previous = stored.get(record["id"])
        if previous is not None:
            kept = {name: previous[name] for name in fields if name in previous}
            record = {**record, **kept}
        carried.append(record)
    return carried


def import_data(storage: Storage, source: Source) -> ImportReport:
    """Replace every collection present in the document with its contents.

    Collections missing from the document are left untouched. Raises a
    DataExchangeError subclass, with nothing written, when the document is
    unreadable, malformed, holds no recognized collection or holds an invalid record.
    """
    logger.info("Importing data", mode="replace")
    sections = _validate_document(_read_document(source), mode="replace")

    report = ImportReport(mode="replace")
    for collection, records in sections.items():
        records = _carry_credentials(storage, collection, records)
        written = Repository(storage, collection).replace(records)
        report.collections[collection.short_name] = CollectionReport(received=len(records), written=written)

    logger.info("Data imported", mode="replace", collections=list(report.collections), records=report.total_written)
    return report


def merge_data(storage: Storage, source: Source) -> ImportReport:
    """Add document records whose id is not stored yet. Stored records always win.

    Fails under the same conditions as import_data.
    """
    logger.info("Importing data", mode="merge")
    sections = _validate_document(_read_document(source), mode="merge")

    report = ImportReport(mode="merge")
    for collection, records in sections.items():
        added = Repository(storage, collection).merge(records)
        report.collections[collection.short_name] = CollectionReport(
            received=len(records), written=added, dropped=len(records) - added
        )

    logger.info("Data imported", mode="merge", collections=list(report.collections), records=report.total_written)
    return report
