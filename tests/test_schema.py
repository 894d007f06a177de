from __future__ import annotations

from pathlib import Path

import pytest

from catalog.errors import SchemaError, UnknownFieldError
from catalog.presets import get_preset, preset_names
from catalog.schema import CatalogSchema, build_schema, load_schema
from catalog.values import FieldType


def test_lookup_and_capabilities(schema: CatalogSchema) -> None:
    assert schema.get_field("year").type is FieldType.NUMBER
    assert schema.get_field("missing") is None
    assert schema.has_field("tags")
    assert schema.id_field_key == "title"
    assert schema.status_field.key == "status"
    assert "synopsis" not in [definition.key for definition in schema.visible_fields()]
    assert "synopsis" not in [definition.key for definition in schema.sortable_fields()]
    assert "synopsis" in [definition.key for definition in schema.filterable_fields()]
    assert schema.fields_by_category("status")[0].key == "status"


def test_label_defaults_to_key(schema: CatalogSchema) -> None:
    assert schema.get_field("synopsis").label == "synopsis"


def test_fields_ordered_by_order_then_declaration() -> None:
    schema = build_schema(
        "Ordering",
        [
            {"key": "c", "order": 2},
            {"key": "a", "order": 1},
            {"key": "b", "order": 1},
        ],
        title_field_key="a",
    )
    assert schema.field_keys() == ("a", "b", "c")


def test_require_field_raises_unknown_field(schema: CatalogSchema) -> None:
    with pytest.raises(UnknownFieldError) as excinfo:
        schema.require_field("nope")
    assert "nope" in str(excinfo.value)
    assert isinstance(excinfo.value, KeyError)


def test_duplicate_key_rejected() -> None:
    with pytest.raises(SchemaError, match="duplicate"):
        build_schema("Dupes", [{"key": "title"}, {"key": "title"}], title_field_key="title")


def test_model_validate_raises_schema_error() -> None:
    dupes = {"name": "Dupes", "fields": [{"key": "title"}, {"key": "title"}], "title_field_key": "title"}
    with pytest.raises(SchemaError, match="duplicate"):
        CatalogSchema.model_validate(dupes)
    with pytest.raises(SchemaError):
        CatalogSchema.model_validate_json('{"name": "Untitled", "fields": []}')
    schema = CatalogSchema.model_validate({"name": "Ok", "fields": [{"key": "title"}], "title_field_key": "title"})
    assert schema.id_field_key == "title"


@pytest.mark.parametrize(
    "overrides",
    [
        {"title_field_key": "name"},
        {"title_field_key": "title", "id_field_key": "slug"},
        {"title_field_key": "title", "status_field_key": "state"},
    ],
)
def test_dangling_core_keys_rejected(overrides: dict) -> None:
    with pytest.raises(SchemaError):
        build_schema("Dangling", [{"key": "title"}], **overrides)


def test_unknown_type_rejected() -> None:
    with pytest.raises(SchemaError):
        build_schema("Bad", [{"key": "title", "type": "colour"}], title_field_key="title")


def test_schema_is_immutable(schema: CatalogSchema) -> None:
    with pytest.raises(Exception):
        schema.name = "Other"  # type: ignore[misc]


def test_from_mapping_accepts_exported_settings_layout() -> None:
    schema = CatalogSchema.from_mapping(
        {
            "catalogName": "Pulp",
            "fields": [
                {"key": "title", "type": "string", "sortOrder": 2},
                {"key": "authors", "type": "wikilink-array", "sortOrder": 1},
                {"key": "catalog-status", "type": "string"},
            ],
            "coreFields": {"titleField": "title", "statusField": "catalog-status"},
        }
    )
    assert schema.name == "Pulp"
    assert schema.field_type("authors") is FieldType.LINKED_ARRAY
    assert schema.id_field_key == "title"
    assert schema.status_field_key == "catalog-status"
    assert schema.field_keys()[:2] == ("catalog-status", "authors")


def test_load_schema_from_yaml(tmp_path: Path) -> None:
    path = tmp_path / "schema.yml"
    path.write_text(
        "name: Reading\n"
        "title_field_key: title\n"
        "fields:\n"
        "  - {key: title, type: string}\n"
        "  - {key: pages, type: number}\n",
        encoding="utf-8",
    )
    schema = load_schema(path)
    assert schema.field_type("pages") is FieldType.NUMBER


def test_load_schema_rejects_bad_yaml(tmp_path: Path) -> None:
    path = tmp_path / "schema.yml"
    path.write_text("name: [unterminated\n", encoding="utf-8")
    with pytest.raises(SchemaError):
        load_schema(path)


def test_presets_are_valid() -> None:
    for name in preset_names():
        schema = get_preset(name)
        assert schema.has_field(schema.title_field_key)
    assert get_preset("pulp-fiction").field_type("publications") is FieldType.LINKED_ARRAY


def test_unknown_preset() -> None:
    with pytest.raises(SchemaError, match="unknown preset"):
        get_preset("zines")
