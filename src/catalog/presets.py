"""Ready-made schemas for common kinds of catalog."""
from __future__ import annotations

from typing import Any, Callable, Dict, List

from .errors import SchemaError
from .schema import CatalogSchema, build_schema


def _field(key: str, label: str, type_: str, category: str, order: int, **flags: Any) -> Dict[str, Any]:
    spec: Dict[str, Any] = {
        "key": key,
        "label": label,
        "type": type_,
        "category": category,
        "order": order,
    }
    spec.update(flags)
    return spec


def general_library() -> CatalogSchema:
    return build_schema(
        "General Library",
        [
            _field("title", "Title", "string", "metadata", 1),
            _field("author", "Author", "string", "metadata", 2),
            _field("genre", "Genre", "string", "metadata", 3),
            _field("status", "Reading Status", "string", "status", 4),
            _field("year", "Published Year", "number", "metadata", 5),
            _field("rating", "Rating", "number", "content", 6),
            _field("date-read", "Date Read", "date", "workflow", 7),
            _field("tags", "Tags", "array", "metadata", 8, sortable=False),
        ],
        title_field_key="title",
        status_field_key="status",
    )


def pulp_fiction() -> CatalogSchema:
    """Anthology of short fiction with authors and publications as links."""

    return build_schema(
        "Pulp Fiction Library",
        [
            _field("title", "Title", "string", "metadata", 1),
            _field("authors", "Authors", "linked-array", "metadata", 2),
            _field("year", "Year", "number", "metadata", 3),
            _field("publications", "Publications", "linked-array", "metadata", 4),
            _field("catalog-status", "Status", "string", "status", 5),
            _field("bp-candidate", "BP Candidate", "boolean", "workflow", 6),
            _field("bp-approved", "BP Approved", "boolean", "workflow", 7),
            _field("date-read", "Date Read", "date", "workflow", 8),
            _field("word-count", "Word Count", "number", "content", 9),
            _field("synopsis", "Synopsis", "string", "content", 10, visible=False, sortable=False),
            _field("keywords", "Keywords", "array", "content", 11, visible=False, sortable=False),
            _field("content-warnings", "Content Warnings", "array", "content", 12, visible=False, sortable=False),
        ],
        title_field_key="title",
        status_field_key="catalog-status",
    )


def manuscripts() -> CatalogSchema:
    return build_schema(
        "Manuscript Tracker",
        [
            _field("title", "Title", "string", "metadata", 1),
            _field("author", "Author", "string", "metadata", 2),
            _field("genre", "Genre", "string", "metadata", 3),
            _field("status", "Status", "string", "status", 4),
            _field("word-count", "Word Count", "number", "metadata", 5),
            _field("draft-date", "Draft Date", "date", "workflow", 6),
            _field("query-date", "Query Date", "date", "workflow", 7),
            _field("agent", "Agent", "string", "workflow", 8),
            _field("publisher", "Publisher", "string", "workflow", 9),
        ],
        title_field_key="title",
        status_field_key="status",
    )


PRESETS: Dict[str, Callable[[], CatalogSchema]] = {
    "general-library": general_library,
    "pulp-fiction": pulp_fiction,
    "manuscripts": manuscripts,
}


def preset_names() -> List[str]:
    return sorted(PRESETS)


def get_preset(name: str) -> CatalogSchema:
    try:
        factory = PRESETS[name]
    except KeyError:
        raise SchemaError(f"unknown preset {name!r}; choose from {preset_names()}") from None
    return factory()
