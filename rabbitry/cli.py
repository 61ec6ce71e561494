"""CLI for rabbitry."""

import sys
from datetime import date
from pathlib import Path
from typing import Annotated, Literal

import structlog
from cyclopts import App, Parameter

from rabbitry.backends import JsonFileStorage, MemoryStorage
from rabbitry.config import get_config
from rabbitry.config_commands import config_app
from rabbitry.exchange import export_csv, import_data, merge_data, write_export
from rabbitry.farm import Farm
from rabbitry.models import Collection, ImportReport
from rabbitry.rabbit_commands import rabbit_app
from rabbitry.record_commands import record_app
from rabbitry.stats import age_percentages, dashboard_stats, top_breeds
from rabbitry.storage import Storage
from rabbitry.task_commands import task_app
from rabbitry.user_commands import user_app

logger = structlog.get_logger()

app = App(
    help="Rabbitry - record keeping for a rabbit farm",
)

app.command(rabbit_app)
app.command(record_app)
app.command(task_app)
app.command(user_app)
app.command(config_app)


def configure_logging(log_level: str) -> None:
    """Configure structlog with the specified log level."""
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(min_level=log_level.lower()))


def get_storage() -> Storage:
    """Get the configured storage backend."""
    config = get_config()
    backend_type = config.get("storage.backend")

    if backend_type == "file":
        return JsonFileStorage(config.get("storage.path"))
    elif backend_type == "memory":
        return MemoryStorage()
    else:
        raise ValueError(f"Unknown storage backend: {backend_type}")


def get_farm() -> Farm:
    """Get a farm over the configured storage, acting as the configured user."""
    config = get_config()
    user_id = config.get("user.id")
    try:
        acting_user_id = int(user_id)
    except (TypeError, ValueError) as e:
        raise ValueError(f"user.id must be an integer, got {user_id!r}") from e

    farm = Farm(get_storage(), acting_user_id=acting_user_id)
    farm.ensure_default_admin()
    return farm


def _print_report(report: ImportReport) -> None:
    for name, summary in report.collections.items():
        line = f"  {name}: {summary.written} of {summary.received} written"
        if summary.dropped:
            line += f", {summary.dropped} existing kept"
        print(line)


@app.command
def export(directory: Path = Path("."), prefix: str | None = None) -> None:
    """Export every collection to a dated JSON file."""
    prefix = prefix or get_config().get("export.prefix")
    path = write_export(get_storage(), directory, prefix)
    print(f"Exported data to {path}")


@app.command(name="import")
def import_(file: Path) -> None:
    """Replace collections with the contents of an exported JSON file."""
    report = import_data(get_storage(), file)
    print(f"Imported {report.total_written} record(s) from {file}:")
    _print_report(report)


@app.command
def merge(file: Path) -> None:
    """Add records from an exported JSON file, keeping existing records on id collision."""
    report = merge_data(get_storage(), file)
    print(f"Merged {report.total_written} new record(s) from {file}:")
    _print_report(report)


@app.command(name="export-csv")
def export_csv_command(collection: str, directory: Path = Path(".")) -> None:
    """Export one collection as a dated CSV file."""
    target = Collection.from_name(collection)
    records = get_storage().read(target.key)
    for name in target.model.credential_fields:
        for record in records:
            record.pop(name, None)

    path = directory / f"{target.short_name}_{date.today().isoformat()}.csv"
    if export_csv(records, path):
        print(f"Exported {len(records)} record(s) to {path}")
    else:
        print(f"No {target.short_name} to export")


@app.command
def activities(limit: int = 10) -> None:
    """Show the most recent activities."""
    farm = get_farm()
    entries = farm.recent_activities(limit)
    if not entries:
        print("No activities recorded")
        return
    for entry in entries:
        stamp = entry.timestamp.strftime("%Y-%m-%d %H:%M") if entry.timestamp else "-"
        print(f"{stamp}  [{entry.activity_type}] {entry.description}")


@app.command
def stats() -> None:
    """Show dashboard statistics."""
    figures = dashboard_stats(get_farm())

    print(f"Total rabbits:     {figures.total_rabbits}")
    print(f"Pending breedings: {figures.active_breeding}")
    print(f"Under care:        {figures.active_medical}")
    print(f"Feed stock:        {figures.feed_stock_kg:.1f} kg")

    ages = age_percentages(figures.age_distribution)
    print("\nAge distribution:")
    print(f"  young  {figures.age_distribution.young:>4} ({ages['young']}%)")
    print(f"  adult  {figures.age_distribution.adult:>4} ({ages['adult']}%)")
    print(f"  senior {figures.age_distribution.senior:>4} ({ages['senior']}%)")

    breeds = top_breeds(figures)
    if breeds:
        print("\nBreeds:")
        for breed, percentage in breeds:
            print(f"  {breed}: {percentage}%")

    quick = figures.quick_stats
    print("\nBreeding:")
    print(f"  successful births:   {quick.births}")
    print(f"  average litter size: {quick.average_litter_size}")
    print(f"  mortality rate:      {quick.mortality_rate}%")
    print(f"  rabbits for sale:    {quick.rabbits_for_sale}")


@app.meta.default
def main(
    *tokens: Annotated[str, Parameter(show=False, allow_leading_hyphen=True)],
    log_level: Literal["debug", "info", "warning", "error", "critical"] = "critical",
) -> None:
    """Main entry point with global options."""
    configure_logging(log_level)
    try:
        app(tokens)
    except ValueError as e:
        # Covers RabbitryError and record validation failures.
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    app.meta()
