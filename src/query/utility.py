"""Small combinators built on the filter, sort and aggregate primitives."""
from __future__ import annotations

import math
from functools import cmp_to_key
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from pydantic import BaseModel, ConfigDict

from catalog.errors import InvalidPredicateError, QueryError
from catalog.record import CatalogRecord
from catalog.schema import CatalogSchema
from catalog.values import FieldValue

from .aggregates import unique_values
from .filters import (
    Absent,
    AnyOf,
    CompoundFilter,
    Contains,
    Equals,
    FieldFilter,
    Includes,
    Present,
    Range,
    ValuePredicate,
)
from .sorting import compare_values

FILTER_TYPES = ("equals", "contains", "text", "includes", "range", "present", "absent")


class Page(BaseModel):
    """One page of records plus the numbers needed to render a pager."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    items: List[CatalogRecord]
    page_index: int
    page_size: int
    total_items: int

    @property
    def total_pages(self) -> int:
        return max(1, math.ceil(self.total_items / self.page_size))

    @property
    def has_previous(self) -> bool:
        return self.page_index > 0

    @property
    def has_next(self) -> bool:
        return self.page_index < self.total_pages - 1


def paginate(records: Sequence[CatalogRecord], page_index: int, page_size: int) -> Page:
    """Return page ``page_index`` (zero based) of ``records``.

    An index past either end is clamped to the first or last page.
    """

    if page_size < 1:
        raise QueryError(f"page_size must be at least 1, got {page_size}")
    records = list(records)
    last_page = max(0, math.ceil(len(records) / page_size) - 1)
    page_index = min(max(page_index, 0), last_page)
    start = page_index * page_size
    return Page(
        items=records[start : start + page_size],
        page_index=page_index,
        page_size=page_size,
        total_items=len(records),
    )


def unique_values_for_field(
    records: Iterable[CatalogRecord], key: str, schema: Optional[CatalogSchema] = None
) -> List[FieldValue]:
    """Distinct present values of ``key`` in sorted order, for filter pickers."""

    values = unique_values(records, key, schema)
    return sorted(values, key=cmp_to_key(compare_values))


def _predicate_from_spec(kind: str, value: Any) -> ValuePredicate:
    if kind == "equals":
        return Equals(value)
    if kind == "text":
        return Contains(value)
    if kind == "contains":
        # matches a substring of a string field or an element of a sequence field
        return AnyOf((Contains(value), Includes(value)))
    if kind == "includes":
        return Includes(value)
    if kind == "range":
        if not isinstance(value, (list, tuple)) or len(value) != 2:
            raise InvalidPredicateError(f"range filters take a [minimum, maximum] pair, got {value!r}")
        return Range(value[0], value[1])
    if kind == "present":
        return Present()
    return Absent()


def create_compound_filter(
    specs: Iterable[Mapping[str, Any]],
    mode: str = "and",
    schema: Optional[CatalogSchema] = None,
) -> CompoundFilter:
    """Build a record filter from ``{"field", "type", "value"}`` mappings.

    ``type`` is one of ``equals``, ``contains``, ``text``, ``includes``,
    ``range``, ``present`` or ``absent``. The filters are joined with ``mode``.
    """

    filters: List[FieldFilter] = []
    for spec in specs:
        if not isinstance(spec, Mapping) or "field" not in spec or "type" not in spec:
            raise InvalidPredicateError(f"filter spec needs 'field' and 'type' keys, got {spec!r}")
        kind = spec["type"]
        if kind not in FILTER_TYPES:
            raise InvalidPredicateError(f"unknown filter type {kind!r}; expected one of {FILTER_TYPES}")
        if kind not in ("present", "absent") and "value" not in spec:
            raise InvalidPredicateError(f"{kind} filter on {spec['field']!r} needs a 'value'")
        filters.append(FieldFilter(spec["field"], _predicate_from_spec(kind, spec.get("value"))))
    compound = CompoundFilter(tuple(filters), mode)
    if schema is not None:
        compound.validate(schema)
    return compound
