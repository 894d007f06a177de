"""Stable sorting of catalog records.

Absent values always sort after present ones, in both directions; the
direction only reorders the present values. Sequence values need an
extractor that reduces them to a comparable scalar.
"""
from __future__ import annotations

from dataclasses import dataclass
from functools import cmp_to_key
from typing import Callable, Iterable, List, Optional, Sequence, Tuple, Union

from catalog.errors import MissingExtractorError, QueryError
from catalog.record import CatalogRecord
from catalog.schema import CatalogSchema
from catalog.values import FieldType, FieldValue, link_target, variant_of

from .fields import check_key

Extractor = Callable[[List[str]], FieldValue]

# Order between values of different kinds, so any mix of values still sorts.
VARIANT_RANK = {
    FieldType.BOOLEAN: 0,
    FieldType.NUMBER: 1,
    FieldType.DATE: 2,
    FieldType.STRING: 3,
}


def compare_values(left: FieldValue, right: FieldValue) -> int:
    """Three-way comparison of two present scalar values.

    Numbers and dates compare naturally, strings by code point and booleans
    with ``False`` first. Values of different kinds order by kind.
    """

    left_kind = variant_of(left)
    right_kind = variant_of(right)
    if left_kind is FieldType.ARRAY or right_kind is FieldType.ARRAY:
        raise MissingExtractorError("sequence values need an extractor to be compared")
    if left_kind is not right_kind:
        return VARIANT_RANK[left_kind] - VARIANT_RANK[right_kind]  # type: ignore[index]
    if left < right:  # type: ignore[operator]
        return -1
    if left > right:  # type: ignore[operator]
        return 1
    return 0


def first_element(values: List[str]) -> Optional[str]:
    """Extractor: the link target of the first element, ``None`` when empty."""

    return link_target(values[0]) if values else None


def element_count(values: List[str]) -> int:
    return len(values)


@dataclass(frozen=True)
class SortKey:
    key: str
    descending: bool = False
    extractor: Optional[Extractor] = None

    def __post_init__(self) -> None:
        check_key(self.key)

    def validate(self, schema: CatalogSchema) -> None:
        definition = schema.require_field(self.key)
        if not definition.sortable:
            raise QueryError(f"field {self.key!r} is not sortable in schema {schema.name!r}")
        if definition.is_sequence and self.extractor is None:
            raise MissingExtractorError(
                f"field {self.key!r} is a {definition.type.value} field; pass an extractor to sort by it"
            )

    def value_for(self, record: CatalogRecord) -> FieldValue:
        value = record.get_field(self.key)
        if isinstance(value, list):
            if self.extractor is None:
                raise MissingExtractorError(
                    f"record {record.id!r} holds a sequence under {self.key!r}; pass an extractor to sort by it"
                )
            value = self.extractor(list(value))
        return value


def _compare_column(left: FieldValue, right: FieldValue, descending: bool) -> int:
    if left is None or right is None:
        # absent last regardless of direction
        return (left is None) - (right is None)
    result = compare_values(left, right)
    return -result if descending else result


def _sort(records: Iterable[CatalogRecord], sort_keys: Sequence[SortKey]) -> List[CatalogRecord]:
    rows: List[Tuple[Tuple[FieldValue, ...], CatalogRecord]] = [
        (tuple(sort_key.value_for(record) for sort_key in sort_keys), record) for record in records
    ]

    def compare(left: Tuple[Tuple[FieldValue, ...], CatalogRecord], right: Tuple[Tuple[FieldValue, ...], CatalogRecord]) -> int:
        for index, sort_key in enumerate(sort_keys):
            result = _compare_column(left[0][index], right[0][index], sort_key.descending)
            if result:
                return result
        return 0

    # list.sort is stable, so ties keep their input order
    rows.sort(key=cmp_to_key(compare))
    return [record for _, record in rows]


def sort_by_field(
    records: Iterable[CatalogRecord],
    key: str,
    descending: bool = False,
    *,
    extractor: Optional[Extractor] = None,
    schema: Optional[CatalogSchema] = None,
) -> List[CatalogRecord]:
    """Return a new list of ``records`` sorted by the value under ``key``."""

    sort_key = SortKey(key, descending, extractor)
    if schema is not None:
        sort_key.validate(schema)
    return _sort(records, [sort_key])


def sort_by_fields(
    records: Iterable[CatalogRecord],
    keys: Sequence[Union[SortKey, str, Tuple[str, bool]]],
    schema: Optional[CatalogSchema] = None,
) -> List[CatalogRecord]:
    """Sort by several keys in priority order, falling through on ties.

    Each entry is a :class:`SortKey`, a field key (ascending) or a
    ``(key, descending)`` pair.
    """

    sort_keys: List[SortKey] = []
    for entry in keys:
        if isinstance(entry, SortKey):
            sort_keys.append(entry)
        elif isinstance(entry, str):
            sort_keys.append(SortKey(entry))
        elif isinstance(entry, tuple) and len(entry) == 2:
            sort_keys.append(SortKey(entry[0], bool(entry[1])))
        else:
            raise QueryError(f"cannot interpret {entry!r} as a sort key")
    if not sort_keys:
        raise QueryError("sort_by_fields needs at least one key")
    if schema is not None:
        for sort_key in sort_keys:
            sort_key.validate(schema)
    return _sort(records, sort_keys)
