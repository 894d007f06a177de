from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Callable, Dict

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = PROJECT_ROOT / "src"
CLI_ROOT = PROJECT_ROOT / "cli"
for extra in (SRC_ROOT, CLI_ROOT):
    if str(extra) not in sys.path:
        sys.path.insert(0, str(extra))

from catalog.record import CatalogRecord  # noqa: E402
from catalog.schema import CatalogSchema, build_schema  # noqa: E402


@pytest.fixture(autouse=True)
def _configure_test_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RICH_PROGRESS_BAR", "0")


@pytest.fixture
def schema() -> CatalogSchema:
    return build_schema(
        "Test Library",
        [
            {"key": "title", "label": "Title", "type": "string", "order": 1},
            {"key": "status", "label": "Status", "type": "string", "category": "status", "order": 2},
            {"key": "year", "label": "Year", "type": "number", "order": 3},
            {"key": "word-count", "label": "Word Count", "type": "number", "order": 4},
            {"key": "date-read", "label": "Date Read", "type": "date", "order": 5},
            {"key": "approved", "label": "Approved", "type": "boolean", "order": 6},
            {"key": "tags", "label": "Tags", "type": "array", "order": 7},
            {"key": "authors", "label": "Authors", "type": "linked-array", "order": 8},
            {"key": "synopsis", "type": "string", "visible": False, "sortable": False, "order": 9},
        ],
        title_field_key="title",
        status_field_key="status",
    )


@pytest.fixture
def make_record() -> Callable[..., CatalogRecord]:
    def factory(record_id: str, **fields: Any) -> CatalogRecord:
        values: Dict[str, Any] = {key.replace("_", "-"): value for key, value in fields.items()}
        return CatalogRecord(record_id, f"works/{record_id}.md", values)

    return factory
