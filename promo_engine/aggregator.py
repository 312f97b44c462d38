"""
Generic Aggregator
==================
Declarative summary computation shared by every dataset.

A SummarySpec names the total-count key, the fields to count by, the fields
to sum (with companion averages for ``total_*`` keys), maxima and distinct
value lists. ``aggregate`` turns any sequence of records (mappings or
objects) into a plain-dict summary; ``aggregate_by`` applies the same spec
per partition for rollups such as vehicle lines.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from .parsing import parse_number, round_half_up


@dataclass(frozen=True)
class SumField:
    """Sum ``field`` across records into ``key``."""
    field: str
    key: str
    average: bool = True


@dataclass(frozen=True)
class SummarySpec:
    """Declarative description of a summary."""
    total_key: str
    group_by: Sequence[str] = ()
    sum_fields: Sequence[SumField] = ()
    max_fields: Sequence[tuple] = ()           # (field, key)
    distinct_fields: Sequence[tuple] = ()      # (field, key)
    item_transform: Optional[Callable[[Any], Any]] = None
    average_prefix: str = "average_"

    def average_key(self, sum_field: SumField) -> Optional[str]:
        """Companion average key for a sum, or None when it has none."""
        if not sum_field.average or not sum_field.key.startswith("total_"):
            return None
        return self.average_prefix + sum_field.key[len("total_"):]


def get_field(record: Any, name: str) -> Any:
    """Read a field from a mapping or an object."""
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def aggregate(records: Iterable[Any], spec: SummarySpec) -> Dict[str, Any]:
    """
    Summarize records according to ``spec``.

    Returns a dict with the total count, one ``by_<field>`` count map per
    group-by field, each sum, the companion averages, maxima and distinct
    lists. An empty input gives zeros and empty maps.
    """
    items = list(records)
    if spec.item_transform is not None:
        items = [spec.item_transform(item) for item in items]

    count = len(items)
    summary: Dict[str, Any] = {spec.total_key: count}

    for group_field in spec.group_by:
        counts: Dict[Any, int] = {}
        for item in items:
            value = get_field(item, group_field)
            if value is not None:
                counts[value] = counts.get(value, 0) + 1
        summary[f"by_{group_field}"] = counts

    for sum_field in spec.sum_fields:
        total = 0
        for item in items:
            total += parse_number(get_field(item, sum_field.field), 0)
        summary[sum_field.key] = total

        average_key = spec.average_key(sum_field)
        if average_key:
            summary[average_key] = round_half_up(total / count) if count else 0

    for max_field, key in spec.max_fields:
        values = [parse_number(get_field(item, max_field), 0) for item in items]
        summary[key] = max(values) if values else 0

    for distinct_field, key in spec.distinct_fields:
        seen: List[Any] = []
        for item in items:
            value = get_field(item, distinct_field)
            if value is not None and value not in seen:
                seen.append(value)
        summary[key] = seen

    return summary


def aggregate_by(records: Iterable[Any], key_field: str, spec: SummarySpec) -> Dict[Any, Dict[str, Any]]:
    """
    Partition records by ``key_field`` and aggregate each partition.

    Records whose key is None are left out. The key is read before
    ``spec.item_transform`` is applied.
    """
    partitions: Dict[Any, List[Any]] = defaultdict(list)
    for record in records:
        key = get_field(record, key_field)
        if key is not None:
            partitions[key].append(record)
    return {key: aggregate(group, spec) for key, group in partitions.items()}


def top_n(
    items: Union[Mapping[Any, Mapping[str, Any]], Sequence[Mapping[str, Any]]],
    key: str,
    n: int,
    reverse: bool = True,
    name_key: str = "name"
) -> List[Dict[str, Any]]:
    """
    Extract the top ``n`` entries ranked by ``key``.

    Accepts either a mapping of name -> stats (each result gets the name
    under ``name_key``) or a list of dicts. Ties keep input order.
    """
    if isinstance(items, Mapping):
        rows = [{name_key: name, **stats} for name, stats in items.items()]
    else:
        rows = [dict(row) for row in items]
    rows.sort(key=lambda row: parse_number(row.get(key), 0), reverse=reverse)
    return rows[:max(n, 0)]
