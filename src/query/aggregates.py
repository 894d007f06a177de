"""Aggregations over catalog records.

Absent values are excluded from every computation. Over zero eligible values
:func:`sum_field` returns ``0`` and :func:`average_field` returns ``None``.
"""
from __future__ import annotations

from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple, Union

from pydantic import BaseModel

from catalog.errors import QueryError
from catalog.record import CatalogRecord
from catalog.schema import CatalogSchema
from catalog.values import FieldType, FieldValue, is_date, is_number

from .fields import check_key, identity, member_values
from .grouping import group_by_field

Number = Union[int, float]

AGGREGATE_OPERATIONS = ("sum", "avg", "min", "max", "count")


class ValueCounts(dict):
    """Counts per present value, with the absent bucket kept apart in :attr:`absent`."""

    def __init__(self, *args, absent: int = 0, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.absent = absent

    @property
    def present_total(self) -> int:
        return sum(self.values())

    @property
    def total(self) -> int:
        return self.present_total + self.absent

    def most_common(self, n: Optional[int] = None) -> List[Tuple[FieldValue, int]]:
        """Values by descending count; ties keep first-seen order."""

        ranked = sorted(self.items(), key=lambda item: -item[1])
        return ranked if n is None else ranked[:n]

    def __repr__(self) -> str:
        return f"ValueCounts({dict.__repr__(self)}, absent={self.absent})"


def count_by_field(
    records: Iterable[CatalogRecord], key: str, schema: Optional[CatalogSchema] = None
) -> ValueCounts:
    """Count records per value of ``key``.

    A record holding a sequence counts once under each distinct element.
    Records without a value (or with an empty sequence) go to ``absent``.
    Like :func:`~query.grouping.group_by_field` this counts ``True`` and ``1``
    under one key.
    """

    check_key(key, schema)
    counts = ValueCounts()
    for record in records:
        for value in member_values(record, key):
            if value is None:
                counts.absent += 1
            else:
                counts[value] = counts.get(value, 0) + 1
    return counts


def _numbers(records: Iterable[CatalogRecord], key: str) -> List[Number]:
    values = (record.get_field(key) for record in records)
    return [value for value in values if is_number(value)]  # type: ignore[misc]


def sum_field(records: Iterable[CatalogRecord], key: str, schema: Optional[CatalogSchema] = None) -> Number:
    check_key(key, schema)
    return sum(_numbers(records, key))


def average_field(
    records: Iterable[CatalogRecord], key: str, schema: Optional[CatalogSchema] = None
) -> Optional[float]:
    check_key(key, schema)
    numbers = _numbers(records, key)
    if not numbers:
        return None
    return sum(numbers) / len(numbers)


def most_common_value(
    records: Iterable[CatalogRecord], key: str, schema: Optional[CatalogSchema] = None
) -> FieldValue:
    """The most frequent present value, ``None`` when every record lacks one."""

    ranked = count_by_field(records, key, schema).most_common(1)
    return ranked[0][0] if ranked else None


def _range_kind(key: str, schema: Optional[CatalogSchema]) -> Optional[FieldType]:
    if schema is None:
        return None
    field_type = schema.require_field(key).type
    if field_type not in (FieldType.NUMBER, FieldType.DATE):
        raise QueryError(f"value_range needs a number or date field; {key!r} is {field_type.value}")
    return field_type


def value_range(
    records: Iterable[CatalogRecord], key: str, schema: Optional[CatalogSchema] = None
) -> Optional[Tuple[Union[Number, date], Union[Number, date]]]:
    """Return ``(minimum, maximum)`` of a number or date field, ``None`` when empty.

    Without a schema the kind is taken from the first number or date found.
    """

    check_key(key)
    kind = _range_kind(key, schema)
    minimum = maximum = None
    for record in records:
        value = record.get_field(key)
        if is_number(value):
            value_kind = FieldType.NUMBER
        elif is_date(value):
            value_kind = FieldType.DATE
        else:
            continue
        if kind is None:
            kind = value_kind
        elif value_kind is not kind:
            continue
        if minimum is None or value < minimum:
            minimum = value
        if maximum is None or value > maximum:
            maximum = value
    if minimum is None:
        return None
    return minimum, maximum


def unique_values(
    records: Iterable[CatalogRecord], key: str, schema: Optional[CatalogSchema] = None
) -> List[FieldValue]:
    """Distinct present values in first-seen order; sequences contribute elements."""

    check_key(key, schema)
    seen = set()
    values: List[FieldValue] = []
    for record in records:
        for value in member_values(record, key):
            if value is None or identity(value) in seen:
                continue
            seen.add(identity(value))
            values.append(value)
    return values


class NumericStats(BaseModel):
    """Summary of the numeric values held by one field."""

    count: int
    total: float
    mean: float
    minimum: float
    maximum: float


def numeric_stats(
    records: Iterable[CatalogRecord], key: str, schema: Optional[CatalogSchema] = None
) -> Optional[NumericStats]:
    check_key(key, schema)
    numbers = _numbers(records, key)
    if not numbers:
        return None
    total = sum(numbers)
    return NumericStats(
        count=len(numbers),
        total=total,
        mean=total / len(numbers),
        minimum=min(numbers),
        maximum=max(numbers),
    )


def aggregate_by_field(
    records: Iterable[CatalogRecord],
    group_key: str,
    value_key: str,
    operation: str,
    schema: Optional[CatalogSchema] = None,
) -> Dict[FieldValue, Optional[Number]]:
    """Group by ``group_key`` and reduce the numbers under ``value_key`` per group.

    ``operation`` is one of ``sum``, ``avg``, ``min``, ``max`` or ``count``.
    ``count`` is the number of numeric values in the group. A group without
    numbers sums to ``0`` and has ``None`` for ``avg``, ``min`` and ``max``.
    """

    if operation not in AGGREGATE_OPERATIONS:
        raise QueryError(f"operation must be one of {AGGREGATE_OPERATIONS}, got {operation!r}")
    check_key(value_key, schema)
    results: Dict[FieldValue, Optional[Number]] = {}
    for group, members in group_by_field(records, group_key, schema).items():
        numbers = _numbers(members, value_key)
        if operation == "sum":
            results[group] = sum(numbers)
        elif operation == "count":
            results[group] = len(numbers)
        elif not numbers:
            results[group] = None
        elif operation == "avg":
            results[group] = sum(numbers) / len(numbers)
        elif operation == "min":
            results[group] = min(numbers)
        else:
            results[group] = max(numbers)
    return results


class CatalogSummary(BaseModel):
    """Aggregate summary information of a catalog."""

    schema_name: str
    total_records: int
    status_counts: Dict[str, int]
    without_status: int = 0
    numeric_fields: Dict[str, NumericStats]

    @classmethod
    def from_records(cls, records: Iterable[CatalogRecord], schema: CatalogSchema) -> "CatalogSummary":
        records = list(records)
        status_counts: Dict[str, int] = {}
        without_status = 0
        if schema.status_field_key is not None:
            counts = count_by_field(records, schema.status_field_key, schema)
            status_counts = {str(value): count for value, count in counts.items()}
            without_status = counts.absent
        numeric_fields: Dict[str, NumericStats] = {}
        for definition in schema.ordered_fields():
            if definition.type is not FieldType.NUMBER:
                continue
            stats = numeric_stats(records, definition.key)
            if stats is not None:
                numeric_fields[definition.key] = stats
        return cls(
            schema_name=schema.name,
            total_records=len(records),
            status_counts=status_counts,
            without_status=without_status,
            numeric_fields=numeric_fields,
        )


def catalog_statistics(records: Iterable[CatalogRecord], schema: CatalogSchema) -> CatalogSummary:
    return CatalogSummary.from_records(records, schema)
