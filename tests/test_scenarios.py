"""End-to-end runs from raw documents through the query functions."""
from __future__ import annotations

import pytest

from catalog.parser import parse_batch
from catalog.schema import CatalogSchema, build_schema
from query import average_field, count_by_field, group_by_field, sort_by_field


@pytest.fixture
def status_year_schema() -> CatalogSchema:
    return build_schema(
        "Scenario",
        [
            {"key": "title", "type": "string"},
            {"key": "status", "type": "string", "filterable": True},
            {"key": "year", "type": "number", "sortable": True},
            {"key": "word-count", "type": "number"},
        ],
        title_field_key="title",
        status_field_key="status",
    )


def test_group_and_sort_three_documents(status_year_schema: CatalogSchema) -> None:
    batch = parse_batch(
        [
            ("doc1.md", "---\nstatus: draft\nyear: 2020\n---\n"),
            ("doc2.md", "---\nstatus: final\nyear: 1999\n---\n"),
            ("doc3.md", "---\nstatus: draft\n---\n"),
        ],
        status_year_schema,
    )
    records = batch.records

    groups = group_by_field(records, "status", status_year_schema)
    assert {key: [record.id for record in members] for key, members in groups.items()} == {
        "draft": ["doc1.md", "doc3.md"],
        "final": ["doc2.md"],
    }

    ordered = sort_by_field(records, "year", False, schema=status_year_schema)
    assert [record.id for record in ordered] == ["doc2.md", "doc1.md", "doc3.md"]

    counts = count_by_field(records, "year", status_year_schema)
    assert counts.present_total == 2 and counts.absent == 1


def test_malformed_header_does_not_stop_batch(status_year_schema: CatalogSchema) -> None:
    batch = parse_batch(
        [
            ("good.md", "---\ntitle: Good\nstatus: final\n---\nbody"),
            ("Broken Story.md", "---\ntitle: Broken\nstatus: draft\nno closing marker"),
        ],
        status_year_schema,
    )
    assert batch.ok
    broken = batch.records[1]
    assert broken.get_field("title") == "Broken Story"
    assert broken.get_field("status") is None
    assert len(broken.diagnostics) == 1
    assert batch.records[0].get_field("status") == "final"


def test_average_excludes_absent(status_year_schema: CatalogSchema) -> None:
    batch = parse_batch(
        [
            ("a.md", "---\nword-count: 1000\n---\n"),
            ("b.md", "---\ntitle: B\n---\n"),
            ("c.md", "---\nword-count: 3000\n---\n"),
        ],
        status_year_schema,
    )
    assert average_field(batch.records, "word-count", status_year_schema) == 2000
