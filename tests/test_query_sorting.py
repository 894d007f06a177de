from __future__ import annotations

from datetime import date
from typing import Callable, List

import pytest

from catalog.errors import MissingExtractorError, QueryError, UnknownFieldError
from catalog.record import CatalogRecord
from catalog.schema import CatalogSchema
from query.sorting import (
    SortKey,
    compare_values,
    element_count,
    first_element,
    sort_by_field,
    sort_by_fields,
)

RecordFactory = Callable[..., CatalogRecord]


def _ids(records: List[CatalogRecord]) -> List[str]:
    return [record.id for record in records]


def test_numbers_sort_with_absent_last(make_record: RecordFactory) -> None:
    records = [
        make_record("a", year=2020),
        make_record("b"),
        make_record("c", year=1999),
        make_record("d", year=2005.5),
    ]
    assert _ids(sort_by_field(records, "year")) == ["c", "d", "a", "b"]
    assert _ids(sort_by_field(records, "year", descending=True)) == ["a", "d", "c", "b"]


def test_sort_is_stable(make_record: RecordFactory) -> None:
    records = [make_record(name, status=status) for name, status in [("a", "x"), ("b", "y"), ("c", "x"), ("d", "y")]]
    assert _ids(sort_by_field(records, "status")) == ["a", "c", "b", "d"]
    assert _ids(sort_by_field(records, "status", True)) == ["b", "d", "a", "c"]


def test_strings_compare_by_code_point(make_record: RecordFactory) -> None:
    records = [make_record("a", title="banana"), make_record("b", title="Zebra"), make_record("c", title="apple")]
    assert _ids(sort_by_field(records, "title")) == ["b", "c", "a"]


def test_booleans_and_dates(make_record: RecordFactory) -> None:
    records = [make_record("a", approved=True), make_record("b", approved=False)]
    assert _ids(sort_by_field(records, "approved")) == ["b", "a"]
    dated = [make_record("a", date_read=date(2024, 1, 2)), make_record("b", date_read=date(2023, 5, 1))]
    assert _ids(sort_by_field(dated, "date-read")) == ["b", "a"]


def test_mixed_variants_have_a_total_order() -> None:
    assert compare_values(True, 0) < 0
    assert compare_values(5, date(2020, 1, 1)) < 0
    assert compare_values(date(2020, 1, 1), "a") < 0
    assert compare_values("a", "a") == 0


def test_sequence_needs_extractor(make_record: RecordFactory, schema: CatalogSchema) -> None:
    records = [make_record("a", tags=["x", "y"]), make_record("b", tags=["w"])]
    with pytest.raises(MissingExtractorError):
        sort_by_field(records, "tags")
    with pytest.raises(MissingExtractorError):
        sort_by_field([], "tags", schema=schema)
    assert _ids(sort_by_field(records, "tags", extractor=first_element)) == ["b", "a"]
    assert _ids(sort_by_field(records, "tags", extractor=element_count)) == ["b", "a"]


def test_first_element_uses_link_target(make_record: RecordFactory) -> None:
    records = [
        make_record("a", authors=["[[Smith]]"]),
        make_record("b", authors=[]),
        make_record("c", authors=["[[Howard]]", "[[Smith]]"]),
    ]
    assert _ids(sort_by_field(records, "authors", extractor=first_element)) == ["c", "a", "b"]


def test_schema_checks(make_record: RecordFactory, schema: CatalogSchema) -> None:
    with pytest.raises(UnknownFieldError):
        sort_by_field([], "colour", schema=schema)
    with pytest.raises(QueryError, match="not sortable"):
        sort_by_field([], "synopsis", schema=schema)


def test_multi_key_falls_through_on_ties(make_record: RecordFactory) -> None:
    records = [
        make_record("a", status="draft", year=2001),
        make_record("b", status="final", year=1990),
        make_record("c", status="draft", year=1995),
        make_record("d", status="draft"),
    ]
    assert _ids(sort_by_fields(records, ["status", ("year", True)])) == ["a", "c", "d", "b"]
    assert _ids(sort_by_fields(records, [SortKey("year"), SortKey("status")])) == ["b", "c", "a", "d"]


def test_multi_key_rejects_garbage() -> None:
    with pytest.raises(QueryError):
        sort_by_fields([], [])
    with pytest.raises(QueryError):
        sort_by_fields([], [42])  # type: ignore[list-item]


def test_input_is_not_mutated(make_record: RecordFactory) -> None:
    records = [make_record("a", year=3), make_record("b", year=1)]
    sort_by_field(records, "year")
    assert _ids(records) == ["a", "b"]
