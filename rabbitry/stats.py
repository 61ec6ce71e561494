"""Dashboard statistics computed from the farm collections."""

import math
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone

import structlog

from rabbitry.farm import Farm

logger = structlog.get_logger()

DAYS_PER_MONTH = 30
YOUNG_MAX_MONTHS = 3
ADULT_MAX_MONTHS = 12
OTHER_BREEDS = "other"


@dataclass
class AgeDistribution:
    young: int = 0
    adult: int = 0
    senior: int = 0

    @property
    def total(self) -> int:
        return self.young + self.adult + self.senior


@dataclass
class QuickStats:
    births: int = 0
    average_litter_size: float = 0.0
    mortality_rate: float = 0.0
    rabbits_for_sale: int = 0


@dataclass
class DashboardStats:
    """Aggregate figures shown on the farm dashboard."""

    total_rabbits: int = 0
    active_breeding: int = 0
    active_medical: int = 0
    feed_stock_kg: float = 0.0
    age_distribution: AgeDistribution = field(default_factory=AgeDistribution)
    breed_distribution: dict[str, int] = field(default_factory=dict)
    quick_stats: QuickStats = field(default_factory=QuickStats)


def _percent(count: int, total: int) -> int:
    # Half-up rounding, not banker's rounding.
    return math.floor(count / total * 100 + 0.5) if total > 0 else 0


def _age_in_months(birth_date: datetime, now: datetime) -> float:
    if birth_date.tzinfo is None:
        birth_date = birth_date.replace(tzinfo=timezone.utc)
    return (now - birth_date).total_seconds() / (60 * 60 * 24 * DAYS_PER_MONTH)


def dashboard_stats(farm: Farm, now: datetime | None = None) -> DashboardStats:
    """Compute the dashboard figures.

    Args:
        farm: Farm to read from
        now: Reference time for ages (defaults to the current UTC time)
    """
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    rabbits = farm.rabbits.all()
    breeding = farm.breeding_records.all()
    feed = farm.feed_inventory.all()

    ages = AgeDistribution()
    for rabbit in rabbits:
        if rabbit.birth_date is None:
            continue
        months = _age_in_months(rabbit.birth_date, now)
        if months <= YOUNG_MAX_MONTHS:
            ages.young += 1
        elif months <= ADULT_MAX_MONTHS:
            ages.adult += 1
        else:
            ages.senior += 1

    successful = [record for record in breeding if record.status == "successful"]
    born = sum(record.litter_size or 0 for record in successful)
    alive = sum(record.litter_alive or 0 for record in successful)
    average_litter = born / len(successful) if successful else 0.0
    mortality = (born - alive) / born * 100 if born > 0 else 0.0

    stats = DashboardStats(
        total_rabbits=len(rabbits),
        active_breeding=sum(1 for record in breeding if record.status == "pending"),
        active_medical=sum(1 for rabbit in rabbits if rabbit.health_status != "healthy"),
        feed_stock_kg=sum(item.quantity for item in feed) / 1000,
        age_distribution=ages,
        breed_distribution=dict(Counter(rabbit.breed for rabbit in rabbits)),
        quick_stats=QuickStats(
            births=len(successful),
            average_litter_size=round(average_litter, 1),
            mortality_rate=round(mortality, 1),
            rabbits_for_sale=sum(1 for rabbit in rabbits if rabbit.status == "for_sale"),
        ),
    )
    logger.debug("Dashboard stats computed", total_rabbits=stats.total_rabbits)
    return stats


def age_percentages(ages: AgeDistribution) -> dict[str, int]:
    total = ages.total
    return {
        "young": _percent(ages.young, total),
        "adult": _percent(ages.adult, total),
        "senior": _percent(ages.senior, total),
    }


def top_breeds(stats: DashboardStats, limit: int = 4) -> list[tuple[str, int]]:
    """Return the most common breeds as percentages, with the rest under ``other``."""
    total = stats.total_rabbits
    ranked = sorted(stats.breed_distribution.items(), key=lambda item: item[1], reverse=True)[:limit]
    result = [(breed, _percent(count, total)) for breed, count in ranked]
    others = total - sum(count for _, count in ranked)
    if others > 0:
        result.append((OTHER_BREEDS, _percent(others, total)))
    return result
