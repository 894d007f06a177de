"""Filter primitives over sequences of catalog records.

Value predicates (:class:`Equals`, :class:`Range`, :class:`Contains`,
:class:`Includes`, :class:`Present`, :class:`Absent` and the combinators
:class:`AllOf`, :class:`AnyOf`, :class:`Not`) decide on a single field value.
:class:`FieldFilter` binds a predicate to a field key and :class:`CompoundFilter`
joins record filters with ``and``/``or``. Absent values never satisfy
``Equals``, ``Range``, ``Contains`` or ``Includes``.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple, Union

from catalog.errors import InvalidPredicateError
from catalog.record import CatalogRecord
from catalog.schema import CatalogSchema
from catalog.values import FieldType, FieldValue, is_date, is_number, link_target, same_variant, variant_of

from .fields import check_key

RecordFilter = Callable[[CatalogRecord], bool]

__all__ = [
    "ValuePredicate",
    "Equals",
    "Range",
    "Contains",
    "Includes",
    "Present",
    "Absent",
    "Not",
    "AllOf",
    "AnyOf",
    "FieldFilter",
    "CompoundFilter",
    "RecordFilter",
    "filter_by_field",
    "filter_records",
    "exclude_where",
    "apply_filters",
    "filter_by_status",
]


def _normalise_operand(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, tuple):
        return list(value)
    return value


class ValuePredicate(ABC):
    """Decides whether one field value is selected."""

    @abstractmethod
    def matches(self, value: FieldValue) -> bool:
        """Return ``True`` if ``value`` satisfies the predicate."""

    def check_type(self, field_type: FieldType) -> None:
        """Raise :class:`InvalidPredicateError` if unusable on ``field_type``."""

    def __call__(self, value: FieldValue) -> bool:
        return self.matches(value)

    def __and__(self, other: "ValuePredicate") -> "AllOf":
        return AllOf((self, other))

    def __or__(self, other: "ValuePredicate") -> "AnyOf":
        return AnyOf((self, other))

    def __invert__(self) -> "Not":
        return Not(self)


def _require_type(predicate: ValuePredicate, field_type: FieldType, allowed: Iterable[FieldType]) -> None:
    allowed = tuple(allowed)
    if field_type not in allowed:
        names = ", ".join(item.value for item in allowed)
        raise InvalidPredicateError(
            f"{type(predicate).__name__} applies to {names} fields, not {field_type.value}"
        )


@dataclass(frozen=True)
class Equals(ValuePredicate):
    value: Any

    def __post_init__(self) -> None:
        operand = _normalise_operand(self.value)
        if operand is None:
            raise InvalidPredicateError("Equals needs a value; use Absent() to select missing fields")
        object.__setattr__(self, "value", operand)

    def matches(self, value: FieldValue) -> bool:
        if value is None or not same_variant(value, self.value):
            return False
        return value == self.value

    def check_type(self, field_type: FieldType) -> None:
        variant = variant_of(self.value)
        if field_type.is_sequence and variant is FieldType.ARRAY:
            return
        if variant is not field_type:
            raise InvalidPredicateError(
                f"cannot compare a {field_type.value} field with {self.value!r}"
            )


@dataclass(frozen=True)
class Range(ValuePredicate):
    """Inclusive range over numbers or dates; a ``None`` bound is open."""

    minimum: Any = None
    maximum: Any = None

    def __post_init__(self) -> None:
        minimum = _normalise_operand(self.minimum)
        maximum = _normalise_operand(self.maximum)
        if minimum is None and maximum is None:
            raise InvalidPredicateError("Range needs at least one bound")
        kinds = {self._kind(bound) for bound in (minimum, maximum) if bound is not None}
        if None in kinds or len(kinds) != 1:
            raise InvalidPredicateError(
                f"Range bounds must both be numbers or both dates, got {minimum!r} and {maximum!r}"
            )
        object.__setattr__(self, "minimum", minimum)
        object.__setattr__(self, "maximum", maximum)

    @staticmethod
    def _kind(value: Any) -> Optional[FieldType]:
        if is_number(value):
            return FieldType.NUMBER
        if is_date(value):
            return FieldType.DATE
        return None

    @property
    def kind(self) -> FieldType:
        bound = self.minimum if self.minimum is not None else self.maximum
        return self._kind(bound)  # type: ignore[return-value]

    def matches(self, value: FieldValue) -> bool:
        if value is None or self._kind(value) is not self.kind:
            return False
        if self.minimum is not None and value < self.minimum:
            return False
        if self.maximum is not None and value > self.maximum:
            return False
        return True

    def check_type(self, field_type: FieldType) -> None:
        _require_type(self, field_type, (self.kind,))


@dataclass(frozen=True)
class Contains(ValuePredicate):
    """Substring match on string values, case-insensitive by default."""

    text: str
    case_sensitive: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.text, str):
            raise InvalidPredicateError(f"Contains needs a string, got {self.text!r}")

    def matches(self, value: FieldValue) -> bool:
        if not isinstance(value, str):
            return False
        if self.case_sensitive:
            return self.text in value
        return self.text.casefold() in value.casefold()

    def check_type(self, field_type: FieldType) -> None:
        _require_type(self, field_type, (FieldType.STRING,))


@dataclass(frozen=True)
class Includes(ValuePredicate):
    """True when any element of a sequence value matches.

    ``element`` is either a string, compared literally and by link target (so
    ``"Weird Tales"`` finds ``"[[Weird Tales]]"``), or a value predicate applied
    to each element.
    """

    element: Union[str, ValuePredicate]

    def __post_init__(self) -> None:
        if not isinstance(self.element, (str, ValuePredicate)):
            raise InvalidPredicateError(
                f"Includes needs a string or a predicate, got {self.element!r}"
            )

    def _element_matches(self, candidate: str) -> bool:
        if isinstance(self.element, ValuePredicate):
            return self.element.matches(candidate)
        return candidate == self.element or link_target(candidate) == link_target(self.element)

    def matches(self, value: FieldValue) -> bool:
        if not isinstance(value, list):
            return False
        return any(self._element_matches(candidate) for candidate in value)

    def check_type(self, field_type: FieldType) -> None:
        _require_type(self, field_type, (FieldType.ARRAY, FieldType.LINKED_ARRAY))


@dataclass(frozen=True)
class Present(ValuePredicate):
    """Selects values that are not absent."""

    def matches(self, value: FieldValue) -> bool:
        return value is not None


@dataclass(frozen=True)
class Absent(ValuePredicate):
    def matches(self, value: FieldValue) -> bool:
        return value is None


@dataclass(frozen=True)
class Not(ValuePredicate):
    predicate: ValuePredicate

    def matches(self, value: FieldValue) -> bool:
        return not self.predicate.matches(value)

    def check_type(self, field_type: FieldType) -> None:
        self.predicate.check_type(field_type)


def _as_predicates(predicates: Iterable[Any]) -> Tuple[ValuePredicate, ...]:
    items = tuple(predicates)
    for item in items:
        if not isinstance(item, ValuePredicate):
            raise InvalidPredicateError(f"expected a value predicate, got {item!r}")
    return items


@dataclass(frozen=True)
class AllOf(ValuePredicate):
    predicates: Tuple[ValuePredicate, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "predicates", _as_predicates(self.predicates))

    def matches(self, value: FieldValue) -> bool:
        return all(predicate.matches(value) for predicate in self.predicates)

    def check_type(self, field_type: FieldType) -> None:
        for predicate in self.predicates:
            predicate.check_type(field_type)


@dataclass(frozen=True)
class AnyOf(ValuePredicate):
    predicates: Tuple[ValuePredicate, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "predicates", _as_predicates(self.predicates))

    def matches(self, value: FieldValue) -> bool:
        return any(predicate.matches(value) for predicate in self.predicates)

    def check_type(self, field_type: FieldType) -> None:
        errors: List[InvalidPredicateError] = []
        for predicate in self.predicates:
            try:
                predicate.check_type(field_type)
            except InvalidPredicateError as exc:
                errors.append(exc)
        if self.predicates and len(errors) == len(self.predicates):
            raise errors[0]


# --- record filters ---------------------------------------------------------


@dataclass(frozen=True)
class FieldFilter:
    """A value predicate applied to one field of each record."""

    key: str
    predicate: ValuePredicate

    def __post_init__(self) -> None:
        check_key(self.key)
        if not isinstance(self.predicate, ValuePredicate):
            raise InvalidPredicateError(f"expected a value predicate, got {self.predicate!r}")

    def validate(self, schema: CatalogSchema) -> None:
        definition = schema.require_field(self.key)
        self.predicate.check_type(definition.type)

    def __call__(self, record: CatalogRecord) -> bool:
        return self.predicate.matches(record.get_field(self.key))


@dataclass(frozen=True)
class CompoundFilter:
    """Combine record filters: ``and`` needs all of them, ``or`` any of them."""

    filters: Tuple[RecordFilter, ...]
    mode: str = "and"

    def __post_init__(self) -> None:
        mode = str(self.mode).lower()
        if mode not in ("and", "or"):
            raise InvalidPredicateError(f"compound mode must be 'and' or 'or', got {self.mode!r}")
        filters = tuple(self.filters)
        for item in filters:
            if not callable(item):
                raise InvalidPredicateError(f"expected a record filter, got {item!r}")
        object.__setattr__(self, "mode", mode)
        object.__setattr__(self, "filters", filters)

    def validate(self, schema: CatalogSchema) -> None:
        for item in self.filters:
            if isinstance(item, (FieldFilter, CompoundFilter)):
                item.validate(schema)

    def __call__(self, record: CatalogRecord) -> bool:
        if self.mode == "and":
            return all(item(record) for item in self.filters)
        return any(item(record) for item in self.filters)


# --- functions --------------------------------------------------------------


def filter_by_field(
    records: Iterable[CatalogRecord],
    key: str,
    predicate: ValuePredicate,
    schema: Optional[CatalogSchema] = None,
) -> List[CatalogRecord]:
    """Return the records whose ``key`` value satisfies ``predicate``.

    With a schema, the key must be declared and the predicate must suit the
    field's type.
    """

    record_filter = FieldFilter(key, predicate)
    if schema is not None:
        record_filter.validate(schema)
    return [record for record in records if record_filter(record)]


def filter_records(
    records: Iterable[CatalogRecord],
    record_filter: RecordFilter,
    schema: Optional[CatalogSchema] = None,
) -> List[CatalogRecord]:
    if not callable(record_filter):
        raise InvalidPredicateError(f"expected a record filter, got {record_filter!r}")
    if schema is not None and isinstance(record_filter, (FieldFilter, CompoundFilter)):
        record_filter.validate(schema)
    return [record for record in records if record_filter(record)]


def exclude_where(records: Iterable[CatalogRecord], should_exclude: RecordFilter) -> List[CatalogRecord]:
    return [record for record in records if not should_exclude(record)]


def apply_filters(
    records: Iterable[CatalogRecord],
    steps: Sequence[Callable[[List[CatalogRecord]], List[CatalogRecord]]],
) -> List[CatalogRecord]:
    """Feed the output of each step into the next one."""

    result = list(records)
    for step in steps:
        result = list(step(result))
    return result


def filter_by_status(
    records: Iterable[CatalogRecord], status: Any, schema: CatalogSchema
) -> List[CatalogRecord]:
    """Records whose status field equals ``status``; empty without a status field."""

    if schema.status_field_key is None:
        return []
    return filter_by_field(records, schema.status_field_key, Equals(status), schema)
