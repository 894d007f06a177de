from __future__ import annotations

from typing import Callable, List

import pytest

from catalog.errors import InvalidPredicateError, QueryError, UnknownFieldError
from catalog.record import CatalogRecord
from catalog.schema import CatalogSchema
from query.filters import filter_records
from query.utility import create_compound_filter, paginate, unique_values_for_field

RecordFactory = Callable[..., CatalogRecord]


def _ids(records: List[CatalogRecord]) -> List[str]:
    return [record.id for record in records]


@pytest.fixture
def records(make_record: RecordFactory) -> List[CatalogRecord]:
    return [make_record(f"r{index}", year=1900 + index) for index in range(7)]


def test_paginate(records: List[CatalogRecord]) -> None:
    page = paginate(records, 1, 3)
    assert _ids(page.items) == ["r3", "r4", "r5"]
    assert page.total_pages == 3
    assert page.has_previous and page.has_next


def test_paginate_clamps_index(records: List[CatalogRecord]) -> None:
    assert _ids(paginate(records, 10, 3).items) == ["r6"]
    assert paginate(records, 10, 3).page_index == 2
    assert _ids(paginate(records, -4, 3).items) == ["r0", "r1", "r2"]
    empty = paginate([], 3, 5)
    assert empty.items == [] and empty.page_index == 0 and empty.total_pages == 1


def test_paginate_rejects_bad_size(records: List[CatalogRecord]) -> None:
    with pytest.raises(QueryError):
        paginate(records, 0, 0)


def test_unique_values_for_field_sorted(make_record: RecordFactory) -> None:
    records = [make_record("a", tags=["b", "a"]), make_record("b", tags=["c", "a"]), make_record("c")]
    assert unique_values_for_field(records, "tags") == ["a", "b", "c"]


def test_create_compound_filter(make_record: RecordFactory, schema: CatalogSchema) -> None:
    records = [
        make_record("a", status="approved", word_count=8000, title="The Call of Cthulhu", tags=["sea"]),
        make_record("b", status="approved", word_count=90000, title="Cthulhu Rising"),
        make_record("c", status="draft", word_count=6000, title="Dagon", tags=["sea"]),
    ]
    predicate = create_compound_filter(
        [
            {"field": "status", "type": "equals", "value": "approved"},
            {"field": "word-count", "type": "range", "value": [5000, 50000]},
            {"field": "title", "type": "text", "value": "cthulhu"},
        ],
        schema=schema,
    )
    assert _ids(filter_records(records, predicate)) == ["a"]
    either = create_compound_filter(
        [
            {"field": "tags", "type": "contains", "value": "sea"},
            {"field": "title", "type": "contains", "value": "rising"},
        ],
        mode="or",
    )
    assert _ids(filter_records(records, either)) == ["a", "b", "c"]
    missing = create_compound_filter([{"field": "tags", "type": "absent"}])
    assert _ids(filter_records(records, missing)) == ["b"]


@pytest.mark.parametrize(
    "spec",
    [
        {"field": "status", "type": "like", "value": "x"},
        {"type": "equals", "value": "x"},
        {"field": "status", "type": "equals"},
        {"field": "year", "type": "range", "value": 5},
    ],
)
def test_create_compound_filter_rejects_bad_specs(spec: dict) -> None:
    with pytest.raises(InvalidPredicateError):
        create_compound_filter([spec])


def test_create_compound_filter_checks_schema(schema: CatalogSchema) -> None:
    with pytest.raises(UnknownFieldError):
        create_compound_filter([{"field": "colour", "type": "equals", "value": "red"}], schema=schema)
