"""
Field Parsers
Convert untrusted raw field values into typed values with safe fallbacks,
and resolve the accepted column/field aliases for each logical field.
"""

import math
import re
from datetime import date, datetime
from typing import Any, Dict, Mapping, Optional, Sequence

import pandas as pd

# =============================================================================
# FIELD ALIASES (first match wins, exact name before case-insensitive)
# =============================================================================

VEHICLE_FIELD_ALIASES: Dict[str, Sequence[str]] = {
    "vin": ("VIN", "vin"),
    "make": ("Make", "make"),
    "model": ("Model", "model"),
    "year": ("Year", "year"),
    "trim": ("Trim", "trim"),
    "color": ("Color", "color"),
    "msrp": ("MSRP", "msrp"),
    "invoice": ("Invoice", "invoice"),
    "stock_number": ("StockNumber", "stock_number"),
    "date_received": ("DateReceived", "date_received"),
    "status": ("Status", "status"),
    "location": ("Location", "location"),
}

INCENTIVE_FIELD_ALIASES: Dict[str, Sequence[str]] = {
    "id": ("id",),
    "program_name": ("program_name", "name"),
    "make": ("make",),
    "model": ("model",),
    "year": ("year",),
    "trim": ("trim",),
    "incentive_type": ("type", "incentive_type"),
    "value": ("value", "amount"),
    "description": ("description",),
    "start_date": ("start_date", "startDate"),
    "end_date": ("end_date", "endDate"),
    "eligibility": ("eligibility",),
    "stackable": ("stackable",),
    "customer_type": ("customer_type",),
    "region": ("region",),
    "dealer_cash": ("dealer_cash",),
    "customer_cash": ("customer_cash",),
    "financing_rate": ("financing_rate",),
    "lease_rate": ("lease_rate",),
}

_NUMBER_DECORATIONS = re.compile(r"[$,\s]")
_TRUE_STRINGS = {"true", "yes", "y", "1"}
_FALSE_STRINGS = {"false", "no", "n", "0"}


def _is_present(value: Any) -> bool:
    """A field is present unless it is None, NaN, or a blank string."""
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip() != ""
    if isinstance(value, float) and math.isnan(value):
        return False
    return True


def resolve_fields(row: Mapping[str, Any], aliases: Mapping[str, Sequence[str]]) -> Dict[str, Any]:
    """
    Resolve every logical field of a raw row through its alias list.

    Args:
        row: Raw CSV row or JSON object
        aliases: Logical field name -> ordered accepted source names

    Returns:
        Dict keyed by logical field name; absent fields map to None
    """
    folded = {}
    for key in row:
        if isinstance(key, str):
            folded.setdefault(key.strip().lower(), key)

    resolved = {}
    for name, candidates in aliases.items():
        resolved[name] = None
        for alias in candidates:
            key = alias if alias in row else folded.get(alias.lower())
            if key is None:
                continue
            if _is_present(row[key]):
                resolved[name] = row[key]
                break
    return resolved


# =============================================================================
# SCALAR PARSERS
# =============================================================================

def parse_number(raw: Any, fallback: Any = 0) -> Any:
    """
    Numeric interpretation of ``raw``, or ``fallback`` when there is none.

    Currency decorations (``$``, thousands separators, spaces) are ignored,
    so ``"$25,000"`` parses as 25000. Never raises.
    """
    if raw is None or isinstance(raw, bool):
        return fallback
    if isinstance(raw, str):
        raw = _NUMBER_DECORATIONS.sub("", raw)
        if not raw:
            return fallback
    try:
        value = pd.to_numeric(raw, errors="coerce")
    except (TypeError, ValueError):
        return fallback
    if pd.isna(value):
        return fallback
    value = value.item() if hasattr(value, "item") else value
    if isinstance(value, float) and not math.isfinite(value):
        return fallback
    return value


def parse_int(raw: Any, fallback: Optional[int] = None) -> Optional[int]:
    """Integer view of parse_number; non-integral values truncate toward zero."""
    value = parse_number(raw, None)
    if value is None:
        return fallback
    return int(value)


def parse_date(raw: Any) -> Optional[datetime]:
    """
    Parse a date/datetime value.

    Returns None for anything that is not a recognizable date; callers decide
    whether that is fatal. Timezone-aware values are converted to naive UTC.
    """
    if raw is None or isinstance(raw, (bool, int, float)):
        return None
    if isinstance(raw, str):
        raw = raw.strip()
        if not raw:
            return None
    elif not isinstance(raw, (date, datetime, pd.Timestamp)):
        return None

    try:
        ts = pd.to_datetime(raw, errors="coerce")
    except (TypeError, ValueError, OverflowError):
        return None
    if pd.isna(ts):
        return None
    if ts.tzinfo is not None:
        ts = ts.tz_convert("UTC").tz_localize(None)
    return ts.to_pydatetime()


def parse_bool(raw: Any, default: bool = False) -> bool:
    """Interpret booleans and yes/no style strings."""
    if isinstance(raw, bool):
        return raw
    if raw is None:
        return default
    if isinstance(raw, (int, float)):
        return bool(raw)
    text = str(raw).strip().lower()
    if text in _TRUE_STRINGS:
        return True
    if text in _FALSE_STRINGS:
        return False
    return default


def clean_text(raw: Any, default: Optional[str] = None) -> Optional[str]:
    """Strip outer whitespace; blank or missing values give ``default``."""
    if not _is_present(raw):
        return default
    return str(raw).strip()


# =============================================================================
# FORMATTING
# =============================================================================

def format_vehicle_line(year: Any, make: Any, model: Any) -> str:
    """
    Build the "{year} {make} {model}" grouping key.

    Only outer whitespace is trimmed; interior spacing is kept verbatim.
    """
    parts = ["" if part is None else str(part) for part in (year, make, model)]
    return f"{parts[0]} {parts[1]} {parts[2]}".strip()


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves rounding up (52.5 -> 53)."""
    return int(math.floor(value + 0.5))
