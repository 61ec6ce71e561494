"""Breeding, health and feed record commands for the rabbitry CLI."""

from datetime import date

from cyclopts import App

from rabbitry.models import Collection

record_app = App(name="record", help="Record breeding, health and feed events")


def _today() -> str:
    return date.today().isoformat()


@record_app.command
def health(
    tag_id: str,
    record_type: str,
    on: str | None = None,
    diagnosis: str | None = None,
    treatment: str | None = None,
    notes: str | None = None,
) -> None:
    """Add a health record for a rabbit.

    Args:
        tag_id: Tag id of the rabbit (not checked against the inventory)
        record_type: vaccination, medication, checkup, illness, injury or other
        on: Record date (ISO format, defaults to today)
    """
    from rabbitry.cli import get_farm

    record = get_farm().add_health_record(
        rabbit_id=tag_id,
        record_type=record_type,
        record_date=on or _today(),
        diagnosis=diagnosis,
        treatment=treatment,
        notes=notes,
    )
    print(f"Added health record {record.id} for {record.rabbit_id}")


@record_app.command
def breeding(
    male_id: str,
    female_id: str,
    mated: str | None = None,
    expected: str | None = None,
    notes: str | None = None,
) -> None:
    """Add a breeding record.

    Args:
        male_id: Tag id of the buck
        female_id: Tag id of the doe
        mated: Mating date (ISO format, defaults to today)
        expected: Expected birth date (ISO format)
    """
    from rabbitry.cli import get_farm

    record = get_farm().add_breeding_record(
        male_id=male_id,
        female_id=female_id,
        mating_date=mated or _today(),
        expected_birth_date=expected,
        notes=notes,
    )
    print(f"Added breeding record {record.id}: {record.male_id} x {record.female_id}")


@record_app.command
def birth(record_id: int, litter_size: int, alive: int, on: str | None = None) -> None:
    """Record the outcome of a breeding as a successful birth."""
    from rabbitry.cli import get_farm

    if alive > litter_size:
        raise ValueError("alive cannot exceed litter_size")
    record = get_farm().update_breeding_record(
        record_id,
        status="successful",
        litter_size=litter_size,
        litter_alive=alive,
        actual_birth_date=on or _today(),
    )
    print(f"Recorded litter of {record.litter_size} ({record.litter_alive} alive) for breeding {record.id}")


@record_app.command
def feed(
    feed_type: str,
    quantity: int,
    acquired: str | None = None,
    expires: str | None = None,
    supplier: str | None = None,
    cost: int | None = None,
) -> None:
    """Add feed to the inventory.

    Args:
        feed_type: Kind of feed
        quantity: Quantity in grams
        acquired: Acquisition date (ISO format, defaults to today)
        expires: Expiration date (ISO format)
        supplier: Supplier information
        cost: Cost in cents
    """
    from rabbitry.cli import get_farm

    item = get_farm().add_feed(
        feed_type=feed_type,
        quantity=quantity,
        acquired=acquired or _today(),
        expiration_date=expires,
        supplier_info=supplier,
        cost=cost,
    )
    print(f"Added feed {item.id}: {item.quantity} g of {item.feed_type}")


@record_app.command
def consume(feed_id: int, quantity: int, on: str | None = None, group: str | None = None, notes: str | None = None) -> None:
    """Record feed consumption.

    Args:
        feed_id: Id of the feed inventory entry
        quantity: Quantity in grams
        on: Consumption date (ISO format, defaults to today)
        group: Cage or group identifier
    """
    from rabbitry.cli import get_farm

    consumption = get_farm().record_consumption(
        feed_id=feed_id,
        quantity=quantity,
        consumption_date=on or _today(),
        group_id=group,
        notes=notes,
    )
    print(f"Recorded consumption {consumption.id}: {consumption.quantity} g of feed {consumption.feed_id}")


@record_app.command(name="list")
def list_records(collection: str, limit: int | None = None) -> None:
    """List the raw records of a collection.

    Args:
        collection: Collection name, e.g. health_records or feed_inventory
        limit: Show at most this many records
    """
    from rabbitry.cli import get_storage

    target = Collection.from_name(collection)
    records = [target.model.from_dict(item) for item in get_storage().read(target.key)]
    if limit:
        records = records[:limit]

    print(f"Found {len(records)} {target.short_name} record(s):\n")
    for record in records:
        data = record.model_dump(exclude={"id", *target.model.credential_fields}, exclude_none=True)
        fields = ", ".join(f"{k}={v}" for k, v in data.items())
        print(f"{record.id}: {fields}")
