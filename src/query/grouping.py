"""Group records by field value.

Groups are returned as ordinary dicts in first-seen order. ``None`` is the
group of records without a value. Sequence fields place a record under every
distinct element it holds.
"""
from __future__ import annotations

from functools import cmp_to_key
from typing import Callable, Dict, Hashable, Iterable, List, Optional, TypeVar

from catalog.errors import QueryError
from catalog.record import CatalogRecord
from catalog.schema import CatalogSchema
from catalog.values import FieldValue, is_date

from .fields import check_key, member_values
from .sorting import compare_values

K = TypeVar("K", bound=Hashable)

Groups = Dict[FieldValue, List[CatalogRecord]]

DATE_PERIODS = ("year", "month")


def group_by_field(
    records: Iterable[CatalogRecord], key: str, schema: Optional[CatalogSchema] = None
) -> Groups:
    """Map each value of ``key`` to the records holding it.

    Group keys are dict keys, where ``True`` and ``1`` are the same key: an
    undeclared field holding both booleans and numbers puts them in one
    group. :func:`query.aggregates.unique_values` keeps them apart.
    """

    check_key(key, schema)
    groups: Dict = {}
    for record in records:
        for value in member_values(record, key):
            groups.setdefault(value, []).append(record)
    return groups


def group_by_custom(records: Iterable[CatalogRecord], key_fn: Callable[[CatalogRecord], K]) -> Dict[K, List[CatalogRecord]]:
    groups: Dict[K, List[CatalogRecord]] = {}
    for record in records:
        groups.setdefault(key_fn(record), []).append(record)
    return groups


def group_by_status(records: Iterable[CatalogRecord], schema: CatalogSchema) -> Groups:
    """Group by the schema's status field; one ``None`` group when it has none."""

    records = list(records)
    if schema.status_field_key is None:
        return {None: records} if records else {}
    return group_by_field(records, schema.status_field_key, schema)


def _period_label(value: FieldValue, period: str) -> Optional[str]:
    if not is_date(value):
        return None
    if period == "year":
        return f"{value.year:04d}"
    return f"{value.year:04d}-{value.month:02d}"


def group_by_date_period(
    records: Iterable[CatalogRecord],
    key: str,
    period: str = "month",
    schema: Optional[CatalogSchema] = None,
) -> Dict[Optional[str], List[CatalogRecord]]:
    """Bucket records by the year (``YYYY``) or month (``YYYY-MM``) of a date.

    Buckets are ordered newest first; records without a date land in a final
    ``None`` bucket.
    """

    if period not in DATE_PERIODS:
        raise QueryError(f"period must be one of {DATE_PERIODS}, got {period!r}")
    check_key(key, schema)
    buckets = group_by_custom(records, lambda record: _period_label(record.get_field(key), period))
    ordered: Dict[Optional[str], List[CatalogRecord]] = {
        label: buckets[label] for label in sorted((label for label in buckets if label is not None), reverse=True)
    }
    if None in buckets:
        ordered[None] = buckets[None]
    return ordered


def sorted_group_keys(groups: Dict, descending: bool = False) -> List:
    """Group keys in value order, the ``None`` group last."""

    present = [key for key in groups if key is not None]
    present.sort(key=cmp_to_key(compare_values), reverse=descending)
    if None in groups:
        present.append(None)
    return present


def flatten_groups(groups: Dict, keys: Optional[Iterable] = None) -> List[CatalogRecord]:
    """Concatenate groups in key order, keeping only the first occurrence of each record."""

    seen = set()
    flattened: List[CatalogRecord] = []
    for key in groups if keys is None else keys:
        for record in groups.get(key, []):
            if id(record) in seen:
                continue
            seen.add(id(record))
            flattened.append(record)
    return flattened
