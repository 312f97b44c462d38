"""
Summary Builders Module
Dataset-specific summaries for inventory and incentives, built on the
generic aggregator.
"""

from typing import Any, Dict, List, Sequence

from .aggregator import SumField, SummarySpec, aggregate, aggregate_by
from .config import Config, default_config, INCENTIVE_STATUSES
from .records import Incentive, Vehicle


# =============================================================================
# AGGREGATION SPECS
# =============================================================================

def _vehicle_view(vehicle: Vehicle) -> Dict[str, Any]:
    return {
        "make": vehicle.make,
        "aging": vehicle.aging_category,
        "days_on_lot": vehicle.days_on_lot,
        "msrp": vehicle.msrp,
    }


def _incentive_view(incentive: Incentive) -> Dict[str, Any]:
    return {
        "make": incentive.make,
        "type": incentive.incentive_type,
        "status": incentive.status,
        "value": incentive.value,
    }


INVENTORY_SPEC = SummarySpec(
    total_key="total_vehicles",
    group_by=("make", "aging"),
    sum_fields=(
        SumField("days_on_lot", "total_days_on_lot"),
        SumField("msrp", "total_msrp_value", average=False),
    ),
    item_transform=_vehicle_view,
)

VEHICLE_LINE_SPEC = SummarySpec(
    total_key="count",
    sum_fields=(
        SumField("days_on_lot", "total_days"),
        SumField("msrp", "total_value", average=False),
    ),
    item_transform=_vehicle_view,
    average_prefix="avg_",
)

INCENTIVE_SPEC = SummarySpec(
    total_key="total_incentives",
    group_by=("make", "type", "status"),
    sum_fields=(SumField("value", "total_value"),),
    item_transform=_incentive_view,
)

INCENTIVE_LINE_SPEC = SummarySpec(
    total_key="count",
    sum_fields=(SumField("value", "total_value", average=False),),
    max_fields=(("value", "max_value"),),
    distinct_fields=(("type", "types"),),
    item_transform=_incentive_view,
)


# =============================================================================
# INVENTORY
# =============================================================================

def calculate_inventory_summary(vehicles: Sequence[Vehicle], config: Config = None) -> Dict[str, Any]:
    """
    Summarize inventory.

    Returns dict with:
    - total_vehicles
    - by_make: make -> count
    - by_aging: every aging bucket -> count (zero-filled)
    - average_days_on_lot: rounded
    - total_msrp_value
    - vehicle_lines: line -> {count, total_days, avg_days, total_value}
    """
    config = config or default_config
    base = aggregate(vehicles, INVENTORY_SPEC)

    by_aging = {category: 0 for category in config.aging_categories}
    for category, count in base["by_aging"].items():
        by_aging[category] = by_aging.get(category, 0) + count

    return {
        "total_vehicles": base["total_vehicles"],
        "by_make": base["by_make"],
        "by_aging": by_aging,
        "average_days_on_lot": base["average_days_on_lot"],
        "total_msrp_value": base["total_msrp_value"],
        "vehicle_lines": aggregate_by(vehicles, "vehicle_line", VEHICLE_LINE_SPEC),
    }


# =============================================================================
# INCENTIVES
# =============================================================================

def filter_incentives(
    incentives: Sequence[Incentive],
    filter_active_only: bool = True,
    include_expired: bool = False
) -> List[Incentive]:
    """
    Apply the status filters; both conditions must hold for an incentive to stay.

    - filter_active_only: keep only Active
    - include_expired=False: drop Expired
    """
    kept = []
    for incentive in incentives:
        if filter_active_only and incentive.status != "Active":
            continue
        if not include_expired and incentive.status == "Expired":
            continue
        kept.append(incentive)
    return kept


def find_high_value_incentives(incentives: Sequence[Incentive], threshold: float) -> List[Dict[str, Any]]:
    """Incentives worth strictly more than ``threshold``."""
    return [
        {
            "vehicle_line": incentive.vehicle_line,
            "value": incentive.value,
            "type": incentive.incentive_type,
        }
        for incentive in incentives
        if incentive.value > threshold
    ]


def find_expiring_soon(incentives: Sequence[Incentive], window_days: int) -> List[Dict[str, Any]]:
    """Active incentives ending within ``window_days``."""
    return [
        {
            "vehicle_line": incentive.vehicle_line,
            "days_remaining": incentive.days_remaining,
            "value": incentive.value,
        }
        for incentive in incentives
        if incentive.status == "Active"
        and incentive.days_remaining is not None
        and incentive.days_remaining <= window_days
    ]


def calculate_incentive_summary(incentives: Sequence[Incentive], config: Config = None) -> Dict[str, Any]:
    """
    Summarize (already filtered) incentives.

    Returns dict with:
    - total_incentives, by_make, by_type
    - by_status: Active/Upcoming/Expired -> count (zero-filled)
    - total_value, average_value (rounded)
    - vehicle_lines: line -> {count, total_value, max_value, types}
    - high_value_incentives, expiring_soon
    """
    config = config or default_config
    base = aggregate(incentives, INCENTIVE_SPEC)

    by_status = {status: 0 for status in INCENTIVE_STATUSES}
    by_status.update(base["by_status"])

    return {
        "total_incentives": base["total_incentives"],
        "by_make": base["by_make"],
        "by_type": base["by_type"],
        "by_status": by_status,
        "total_value": base["total_value"],
        "average_value": base["average_value"],
        "vehicle_lines": aggregate_by(incentives, "vehicle_line", INCENTIVE_LINE_SPEC),
        "high_value_incentives": find_high_value_incentives(incentives, config.high_value_threshold),
        "expiring_soon": find_expiring_soon(incentives, config.expiring_soon_days),
    }
