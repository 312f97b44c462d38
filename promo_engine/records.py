"""
Record Normalizers
Build canonical Vehicle and Incentive records from raw CSV rows and JSON
objects, deriving aging, status and vehicle-line fields.
"""

import math
import re
from dataclasses import dataclass, field, fields as dataclass_fields
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Tuple

from .config import Config, default_config
from .errors import RecordError
from .parsing import (
    INCENTIVE_FIELD_ALIASES,
    VEHICLE_FIELD_ALIASES,
    clean_text,
    format_vehicle_line,
    parse_bool,
    parse_date,
    parse_int,
    parse_number,
    resolve_fields,
)

SECONDS_PER_DAY = 24 * 60 * 60
REQUIRED_VEHICLE_FIELDS = ("make", "model", "year", "date_received")


def utc_now() -> datetime:
    """Current time as naive UTC, the clock every parsed date is compared against."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _to_naive_utc(moment: datetime) -> datetime:
    if moment.tzinfo is not None:
        return moment.astimezone(timezone.utc).replace(tzinfo=None)
    return moment


def _serialize(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, tuple):
        return list(value)
    return value


class _RecordMixin:
    """Shared dictionary conversion for record dataclasses."""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-friendly dict; unset derived fields are omitted."""
        result = {}
        for f in dataclass_fields(self):
            value = getattr(self, f.name)
            if value is None and f.metadata.get("derived"):
                continue
            result[f.name] = _serialize(value)
        return result


# =============================================================================
# VEHICLES
# =============================================================================

@dataclass(frozen=True)
class Vehicle(_RecordMixin):
    """One inventory unit."""

    vin: Optional[str]
    make: str
    model: str
    year: int
    trim: Optional[str]
    color: Optional[str]
    msrp: float
    invoice: float
    stock_number: Optional[str]
    date_received: datetime
    status: str
    location: str

    # Derived (only when metrics are requested)
    days_on_lot: Optional[int] = field(default=None, metadata={"derived": True})
    aging_category: Optional[str] = field(default=None, metadata={"derived": True})
    vehicle_line: Optional[str] = field(default=None, metadata={"derived": True})


def calculate_days_on_lot(date_received: datetime, now: datetime) -> int:
    """Whole days since receipt; negative for future-dated receipts."""
    elapsed = _to_naive_utc(now) - _to_naive_utc(date_received)
    return math.floor(elapsed.total_seconds() / SECONDS_PER_DAY)


def get_aging_category(days_on_lot: int, config: Config = None) -> str:
    """Fresh (<=30), Aging (<=60), Stale (<=90), else Critical."""
    config = config or default_config
    return config.get_aging_category(days_on_lot)


def build_vehicle(
    row: Mapping[str, Any],
    now: datetime,
    calculate_metrics: bool = True,
    config: Config = None
) -> Vehicle:
    """
    Normalize one raw inventory row.

    Raises:
        RecordError: required field missing/unparseable or negative currency
    """
    config = config or default_config
    raw = resolve_fields(row, VEHICLE_FIELD_ALIASES)

    missing = [name for name in REQUIRED_VEHICLE_FIELDS if raw[name] is None]
    if missing:
        raise RecordError(f"Missing required field(s): {', '.join(missing)}")

    year = parse_int(raw["year"])
    if year is None:
        raise RecordError(f"Unparseable year: {raw['year']!r}")

    date_received = parse_date(raw["date_received"])
    if date_received is None:
        raise RecordError(f"Unparseable date received: {raw['date_received']!r}")

    msrp = float(parse_number(raw["msrp"], 0))
    invoice = float(parse_number(raw["invoice"], 0))
    if msrp < 0 or invoice < 0:
        raise RecordError(f"Negative price (msrp={msrp}, invoice={invoice})")

    make = clean_text(raw["make"])
    model = clean_text(raw["model"])

    derived = {}
    if calculate_metrics:
        days_on_lot = calculate_days_on_lot(date_received, now)
        derived = {
            "days_on_lot": days_on_lot,
            "aging_category": get_aging_category(days_on_lot, config),
            "vehicle_line": format_vehicle_line(year, raw["make"], raw["model"]),
        }

    return Vehicle(
        vin=clean_text(raw["vin"]),
        make=make,
        model=model,
        year=year,
        trim=clean_text(raw["trim"]),
        color=clean_text(raw["color"]),
        msrp=msrp,
        invoice=invoice,
        stock_number=clean_text(raw["stock_number"]),
        date_received=date_received,
        status=clean_text(raw["status"], config.default_vehicle_status),
        location=clean_text(raw["location"], config.default_vehicle_location),
        **derived
    )


# =============================================================================
# INCENTIVES
# =============================================================================

@dataclass(frozen=True)
class Incentive(_RecordMixin):
    """One OEM incentive program entry."""

    id: str
    program_name: Optional[str]
    make: Optional[str]
    model: Optional[str]
    year: Optional[int]
    trim: Optional[str]
    incentive_type: Optional[str]
    value: float
    description: Optional[str]
    start_date: Optional[datetime]
    end_date: Optional[datetime]
    eligibility: Tuple[Any, ...]
    stackable: bool
    customer_type: str
    region: str
    dealer_cash: bool
    customer_cash: bool
    financing_rate: Optional[float]
    lease_rate: Optional[float]

    # Derived
    status: str
    days_remaining: Optional[int]
    vehicle_line: str


def generate_incentive_id(make: Any, model: Any, incentive_type: Any) -> str:
    """Derive "{make}_{model}_{type}" lowercased with whitespace runs as underscores."""
    parts = ["" if part is None else str(part) for part in (make, model)]
    base = f"{parts[0]}_{parts[1]}_{incentive_type or 'incentive'}"
    return re.sub(r"\s+", "_", base.lower())


def get_incentive_status(
    start_date: Optional[datetime],
    end_date: Optional[datetime],
    now: datetime
) -> str:
    """
    Upcoming before start, Expired after end, otherwise Active.

    Both boundaries count as Active. A missing date leaves that side open.
    """
    now = _to_naive_utc(now)
    if start_date is not None and now < _to_naive_utc(start_date):
        return "Upcoming"
    if end_date is not None and now > _to_naive_utc(end_date):
        return "Expired"
    return "Active"


def calculate_days_remaining(end_date: Optional[datetime], now: datetime) -> Optional[int]:
    """Days until end, rounded up; None for open-ended programs."""
    if end_date is None:
        return None
    remaining = _to_naive_utc(end_date) - _to_naive_utc(now)
    return math.ceil(remaining.total_seconds() / SECONDS_PER_DAY)


def _parse_optional_date(raw: Any, name: str) -> Optional[datetime]:
    if raw is None:
        return None
    parsed = parse_date(raw)
    if parsed is None:
        raise RecordError(f"Unparseable {name}: {raw!r}")
    return parsed


def _parse_eligibility(raw: Any) -> Tuple[Any, ...]:
    if raw is None:
        return ()
    if isinstance(raw, (list, tuple)):
        return tuple(raw)
    return (raw,)


def build_incentive(raw_incentive: Any, now: datetime, config: Config = None) -> Incentive:
    """
    Normalize one raw incentive object.

    Raises:
        RecordError: not an object, a present date is unparseable, or the
            value is negative
    """
    config = config or default_config
    if not isinstance(raw_incentive, Mapping):
        raise RecordError(f"Incentive entry must be an object, got {type(raw_incentive).__name__}")

    raw = resolve_fields(raw_incentive, INCENTIVE_FIELD_ALIASES)

    start_date = _parse_optional_date(raw["start_date"], "start date")
    end_date = _parse_optional_date(raw["end_date"], "end date")

    value = float(parse_number(raw["value"], 0))
    if value < 0:
        raise RecordError(f"Negative incentive value: {value}")

    make = clean_text(raw["make"])
    model = clean_text(raw["model"])
    year = parse_int(raw["year"])
    incentive_type = clean_text(raw["incentive_type"])
    incentive_id = clean_text(raw["id"]) or generate_incentive_id(make, model, incentive_type)

    return Incentive(
        id=incentive_id,
        program_name=clean_text(raw["program_name"]),
        make=make,
        model=model,
        year=year,
        trim=clean_text(raw["trim"]),
        incentive_type=incentive_type,
        value=value,
        description=clean_text(raw["description"]),
        start_date=start_date,
        end_date=end_date,
        eligibility=_parse_eligibility(raw["eligibility"]),
        stackable=parse_bool(raw["stackable"]),
        customer_type=clean_text(raw["customer_type"], config.default_customer_type),
        region=clean_text(raw["region"], config.default_region),
        dealer_cash=parse_bool(raw["dealer_cash"]),
        customer_cash=parse_bool(raw["customer_cash"]),
        financing_rate=parse_number(raw["financing_rate"], None),
        lease_rate=parse_number(raw["lease_rate"], None),
        status=get_incentive_status(start_date, end_date, now),
        days_remaining=calculate_days_remaining(end_date, now),
        vehicle_line=format_vehicle_line(year, raw["make"], raw["model"]),
    )
