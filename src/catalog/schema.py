"""Pydantic models describing a catalog schema and its field capabilities."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Tuple

import yaml
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, PrivateAttr, ValidationError, field_validator, model_validator

from .errors import SchemaError, UnknownFieldError
from .values import FieldType

LEGACY_TYPE_NAMES = {"wikilink-array": FieldType.LINKED_ARRAY.value}


class FieldDefinition(BaseModel):
    """One declared field: its key, display label, type and capabilities."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    key: str = Field(min_length=1)
    label: str = ""
    type: FieldType = FieldType.STRING
    category: str = "custom"
    visible: bool = True
    filterable: bool = True
    sortable: bool = True
    order: int = Field(default=0, validation_alias=AliasChoices("order", "sortOrder"))
    description: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def default_label(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("label") and data.get("key"):
            data = {**data, "label": str(data["key"])}
        return data

    @field_validator("type", mode="before")
    @classmethod
    def normalise_type(cls, value: Any) -> Any:
        if isinstance(value, str):
            return LEGACY_TYPE_NAMES.get(value.strip().lower(), value.strip().lower())
        return value

    @property
    def is_sequence(self) -> bool:
        return self.type.is_sequence


class CatalogSchema(BaseModel):
    """The declared field set of one catalog.

    Construction validates that field keys are unique and that the title, id and
    optional status keys resolve to declared fields; any problem raises
    :class:`~catalog.errors.SchemaError`. Instances are immutable.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(validation_alias=AliasChoices("name", "catalogName", "catalog_name"))
    fields: Tuple[FieldDefinition, ...] = ()
    title_field_key: str
    id_field_key: str
    status_field_key: Optional[str] = None

    _index: Dict[str, FieldDefinition] = PrivateAttr(default_factory=dict)
    _ordered: Tuple[FieldDefinition, ...] = PrivateAttr(default=())

    def __init__(self, **data: Any) -> None:
        try:
            super().__init__(**data)
        except ValidationError as exc:
            raise SchemaError(f"invalid catalog schema: {exc}") from exc

    @classmethod
    def model_validate(cls, obj: Any, *args: Any, **kwargs: Any) -> "CatalogSchema":
        try:
            return super().model_validate(obj, *args, **kwargs)
        except ValidationError as exc:
            raise SchemaError(f"invalid catalog schema: {exc}") from exc

    @classmethod
    def model_validate_json(cls, json_data: Any, *args: Any, **kwargs: Any) -> "CatalogSchema":
        try:
            return super().model_validate_json(json_data, *args, **kwargs)
        except ValidationError as exc:
            raise SchemaError(f"invalid catalog schema: {exc}") from exc

    @model_validator(mode="before")
    @classmethod
    def flatten_core_fields(cls, data: Any) -> Any:
        """Accept the ``coreFields`` block used by exported plugin settings."""

        if not isinstance(data, dict):
            return data
        data = dict(data)
        core = data.pop("coreFields", None) or data.pop("core_fields", None) or {}
        for source, target in (
            ("titleField", "title_field_key"),
            ("idField", "id_field_key"),
            ("statusField", "status_field_key"),
        ):
            if core.get(source) and target not in data:
                data[target] = core[source]
        if "id_field_key" not in data and "title_field_key" in data:
            data["id_field_key"] = data["title_field_key"]
        return data

    @model_validator(mode="after")
    def check_references(self) -> "CatalogSchema":
        seen: set = set()
        for definition in self.fields:
            if definition.key in seen:
                raise ValueError(f"duplicate field key {definition.key!r}")
            seen.add(definition.key)
        for role, key in (
            ("title", self.title_field_key),
            ("id", self.id_field_key),
            ("status", self.status_field_key),
        ):
            if key is not None and key not in seen:
                raise ValueError(f"{role} field {key!r} is not declared")
        return self

    def model_post_init(self, __context: Any) -> None:
        self._index = {definition.key: definition for definition in self.fields}
        self._ordered = tuple(sorted(self.fields, key=lambda definition: definition.order))

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> "CatalogSchema":
        if not isinstance(data, dict):
            raise SchemaError(f"schema definition must be a mapping, got {type(data).__name__}")
        return cls(**data)

    # --- lookups ------------------------------------------------------------

    def get_field(self, key: str) -> Optional[FieldDefinition]:
        return self._index.get(key)

    def has_field(self, key: str) -> bool:
        return key in self._index

    def require_field(self, key: str) -> FieldDefinition:
        """Return the definition for ``key`` or raise :class:`UnknownFieldError`."""

        try:
            return self._index[key]
        except KeyError:
            raise UnknownFieldError(key, self.name) from None

    def field_type(self, key: str) -> Optional[FieldType]:
        definition = self._index.get(key)
        return definition.type if definition is not None else None

    def field_keys(self) -> Tuple[str, ...]:
        return tuple(definition.key for definition in self._ordered)

    def ordered_fields(self) -> Tuple[FieldDefinition, ...]:
        return self._ordered

    def visible_fields(self) -> Tuple[FieldDefinition, ...]:
        return tuple(definition for definition in self._ordered if definition.visible)

    def filterable_fields(self) -> Tuple[FieldDefinition, ...]:
        return tuple(definition for definition in self._ordered if definition.filterable)

    def sortable_fields(self) -> Tuple[FieldDefinition, ...]:
        return tuple(definition for definition in self._ordered if definition.sortable)

    def fields_by_category(self, category: str) -> Tuple[FieldDefinition, ...]:
        return tuple(definition for definition in self._ordered if definition.category == category)

    @property
    def title_field(self) -> FieldDefinition:
        return self._index[self.title_field_key]

    @property
    def id_field(self) -> FieldDefinition:
        return self._index[self.id_field_key]

    @property
    def status_field(self) -> Optional[FieldDefinition]:
        if self.status_field_key is None:
            return None
        return self._index[self.status_field_key]


def build_schema(
    name: str,
    fields: Iterable[Dict[str, Any]],
    *,
    title_field_key: str,
    id_field_key: Optional[str] = None,
    status_field_key: Optional[str] = None,
) -> CatalogSchema:
    """Convenience constructor taking plain field mappings."""

    return CatalogSchema(
        name=name,
        fields=tuple(fields),
        title_field_key=title_field_key,
        id_field_key=id_field_key or title_field_key,
        status_field_key=status_field_key,
    )


def load_schema(path: Path) -> CatalogSchema:
    """Load a schema definition from a YAML file."""

    try:
        data = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise SchemaError(f"schema file {path} is not valid YAML: {exc}") from exc
    return CatalogSchema.from_mapping(data or {})
