"""The schema-conformant catalog record built from one source document."""
from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING, Any, Dict, Iterable, Iterator, List, Optional, Tuple, Type, Union

from .errors import FieldTypeError
from .values import FieldValue, is_date, is_number

if TYPE_CHECKING:  # pragma: no cover
    from .schema import CatalogSchema

ExpectedShape = Union[Type[Any], Tuple[Type[Any], ...]]


def _copy_value(value: FieldValue) -> FieldValue:
    return list(value) if isinstance(value, list) else value


def _matches_shape(value: FieldValue, expected: ExpectedShape) -> bool:
    shapes = expected if isinstance(expected, tuple) else (expected,)
    for shape in shapes:
        if shape is bool:
            if isinstance(value, bool):
                return True
        elif shape in (int, float):
            if is_number(value) and (shape is float or isinstance(value, int)):
                return True
        elif shape is list:
            if isinstance(value, list):
                return True
        elif shape is date:
            if is_date(value):
                return True
        elif isinstance(value, shape):
            return True
    return False


class CatalogRecord:
    """A typed key/value store for one catalog item.

    Field values are always one of the shapes in :data:`catalog.values.FieldValue`;
    ``None`` is never stored, an absent field simply has no key.
    """

    __slots__ = ("id", "source_location", "_fields", "diagnostics")

    def __init__(
        self,
        id: str,
        source_location: str,
        fields: Optional[Dict[str, FieldValue]] = None,
        diagnostics: Iterable[str] = (),
    ) -> None:
        self.id = id
        self.source_location = source_location
        self._fields: Dict[str, FieldValue] = {}
        self.diagnostics: Tuple[str, ...] = tuple(diagnostics)
        for key, value in (fields or {}).items():
            self.set_field(key, value)

    def get_field(self, key: str, expected: Optional[ExpectedShape] = None) -> FieldValue:
        """Return the value stored under ``key`` or ``None``.

        When ``expected`` is given (``str``, ``int``, ``float``, ``bool``, ``list``,
        ``date`` or a tuple of them) a present value of another shape raises
        :class:`~catalog.errors.FieldTypeError`. ``float`` accepts any number.
        """

        value = self._fields.get(key)
        if value is not None and expected is not None and not _matches_shape(value, expected):
            raise FieldTypeError(
                f"field {key!r} of record {self.id!r} holds {type(value).__name__}, "
                f"not {expected!r}"
            )
        return _copy_value(value)

    def has_field(self, key: str) -> bool:
        return key in self._fields

    def set_field(self, key: str, value: FieldValue) -> None:
        """Store ``value`` under ``key``; ``None`` removes the field.

        Reserved for parsing and enrichment; query functions never call it.
        """

        if value is None:
            self._fields.pop(key, None)
        else:
            self._fields[key] = _copy_value(value)

    def keys(self) -> List[str]:
        return list(self._fields)

    def to_mapping(self) -> Dict[str, FieldValue]:
        """Return a snapshot of all present fields."""

        return {key: _copy_value(value) for key, value in self._fields.items()}

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "source_location": self.source_location, **self.to_mapping()}

    def clone(self) -> "CatalogRecord":
        return CatalogRecord(self.id, self.source_location, self._fields, self.diagnostics)

    def __iter__(self) -> Iterator[Tuple[str, FieldValue]]:
        return iter(self.to_mapping().items())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CatalogRecord):
            return NotImplemented
        return (
            self.id == other.id
            and self.source_location == other.source_location
            and self._fields == other._fields
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"CatalogRecord(id={self.id!r}, source_location={self.source_location!r}, fields={self._fields!r})"


def merge_records(*records: CatalogRecord) -> CatalogRecord:
    """Merge records left to right; later present values override earlier ones."""

    if not records:
        return CatalogRecord("", "")
    merged = records[0].clone()
    for record in records[1:]:
        for key, value in record.to_mapping().items():
            merged.set_field(key, value)
    return merged


def record_to_row(record: CatalogRecord, schema: "CatalogSchema") -> Dict[str, Any]:
    """Return ``id``, ``source_location`` and every schema field, absent as ``None``."""

    row: Dict[str, Any] = {"id": record.id, "source_location": record.source_location}
    for definition in schema.ordered_fields():
        row[definition.key] = record.get_field(definition.key)
    return row
