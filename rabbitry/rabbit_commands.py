"""Rabbit inventory commands for the rabbitry CLI."""

from datetime import date

from cyclopts import App

from rabbitry.errors import RabbitryError
from rabbitry.farm import Farm
from rabbitry.models import Rabbit

rabbit_app = App(name="rabbit", help="Manage the rabbit inventory")


def _require(farm: Farm, tag_id: str) -> Rabbit:
    rabbit = farm.rabbit_by_tag(tag_id)
    if rabbit is None:
        raise RabbitryError(f"No rabbit with tag id {tag_id}")
    return rabbit


@rabbit_app.command
def add(
    tag_id: str,
    breed: str,
    gender: str,
    acquired: str | None = None,
    birth: str | None = None,
    cage: str | None = None,
    weight: int | None = None,
    father: str | None = None,
    mother: str | None = None,
    notes: str | None = None,
) -> None:
    """Add a rabbit.

    Args:
        tag_id: Tag identifier, unique per rabbit
        breed: Breed name
        gender: male or female
        acquired: Acquisition date (ISO format, defaults to today)
        birth: Birth date (ISO format)
        cage: Cage number
        weight: Weight in grams
        father: Tag id of the father
        mother: Tag id of the mother
        notes: Free-form notes
    """
    from rabbitry.cli import get_farm

    rabbit = get_farm().add_rabbit(
        tag_id=tag_id,
        breed=breed,
        gender=gender,
        acquired_date=acquired or date.today().isoformat(),
        birth_date=birth,
        cage_number=cage,
        weight=weight,
        parent_male_id=father,
        parent_female_id=mother,
        notes=notes,
    )
    print(f"Added rabbit {rabbit.id}: {rabbit.tag_id}")


@rabbit_app.command(name="list")
def list_rabbits(status: str | None = None, breed: str | None = None, as_user: str | None = None) -> None:
    """List rabbits.

    Args:
        status: Only show rabbits with this status
        breed: Only show rabbits of this breed
        as_user: Show what this username may see (workers see assigned rabbits only)
    """
    from rabbitry.cli import get_farm

    farm = get_farm()
    if as_user:
        user = farm.user_by_username(as_user)
        if user is None:
            raise RabbitryError(f"No user named {as_user}")
        rabbits = farm.rabbits_visible_to(user)
    else:
        rabbits = farm.rabbits.all()

    if status:
        rabbits = [r for r in rabbits if r.status == status]
    if breed:
        rabbits = [r for r in rabbits if r.breed == breed]

    print(f"Found {len(rabbits)} rabbit(s):\n")
    for rabbit in rabbits:
        marker = "○" if rabbit.status == "deceased" else "●"
        cage = f" cage {rabbit.cage_number}" if rabbit.cage_number else ""
        print(f"{marker} {rabbit.tag_id}: {rabbit.breed}, {rabbit.gender}, {rabbit.status}{cage}")


@rabbit_app.command
def show(tag_id: str) -> None:
    """Show a rabbit and its health history."""
    from rabbitry.cli import get_farm

    farm = get_farm()
    rabbit = _require(farm, tag_id)
    print(f"Rabbit: {rabbit.id}")
    print(f"Tag: {rabbit.tag_id}")
    print(f"Breed: {rabbit.breed}")
    print(f"Gender: {rabbit.gender}")
    print(f"Status: {rabbit.status}")
    print(f"Health: {rabbit.health_status}")
    if rabbit.birth_date:
        print(f"Born: {rabbit.birth_date.date().isoformat()}")
    print(f"Acquired: {rabbit.acquired_date.date().isoformat()}")
    if rabbit.weight is not None:
        print(f"Weight: {rabbit.weight} g")
    if rabbit.cage_number:
        print(f"Cage: {rabbit.cage_number}")
    if rabbit.parent_male_id or rabbit.parent_female_id:
        print(f"Parents: {rabbit.parent_male_id or '?'} x {rabbit.parent_female_id or '?'}")
    if rabbit.notes:
        print(f"Notes: {rabbit.notes}")

    records = farm.health_records_for(rabbit.tag_id)
    if records:
        print("\nHealth records:")
        for record in records:
            detail = record.diagnosis or record.treatment or ""
            print(f"  {record.record_date.date().isoformat()} {record.record_type} {detail}".rstrip())


@rabbit_app.command
def update(
    tag_id: str,
    status: str | None = None,
    health: str | None = None,
    weight: int | None = None,
    cage: str | None = None,
    notes: str | None = None,
) -> None:
    """Update a rabbit's fields."""
    from rabbitry.cli import get_farm

    changes = {
        "status": status,
        "health_status": health,
        "weight": weight,
        "cage_number": cage,
        "notes": notes,
    }
    changes = {k: v for k, v in changes.items() if v is not None}
    if not changes:
        print("Nothing to update")
        return

    farm = get_farm()
    rabbit = farm.update_rabbit(_require(farm, tag_id).id, **changes)
    print(f"Updated rabbit {rabbit.tag_id}")


@rabbit_app.command
def deceased(tag_id: str) -> None:
    """Mark a rabbit as deceased."""
    from rabbitry.cli import get_farm

    farm = get_farm()
    rabbit = farm.mark_deceased(_require(farm, tag_id).id)
    print(f"Marked rabbit {rabbit.tag_id} as deceased")
