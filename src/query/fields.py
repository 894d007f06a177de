"""Field access helpers shared by the query functions."""
from __future__ import annotations

from typing import Hashable, List, Optional, Tuple

from catalog.errors import QueryError
from catalog.record import CatalogRecord
from catalog.schema import CatalogSchema, FieldDefinition
from catalog.values import FieldValue, variant_of


def check_key(key: str, schema: Optional[CatalogSchema] = None) -> Optional[FieldDefinition]:
    """Validate ``key``; with a schema the key must also be declared."""

    if not isinstance(key, str) or not key:
        raise QueryError(f"field key must be a non-empty string, got {key!r}")
    if schema is None:
        return None
    return schema.require_field(key)


def identity(value: FieldValue) -> Tuple[object, Hashable]:
    """Hashable identity that keeps ``True`` and ``1`` apart."""

    return variant_of(value), value  # type: ignore[return-value]


def member_values(record: CatalogRecord, key: str) -> List[FieldValue]:
    """Values a record contributes when grouping or counting by ``key``.

    Scalars contribute themselves, sequences each distinct element, and an
    absent field or empty sequence contributes a single ``None``.
    """

    value = record.get_field(key)
    if not isinstance(value, list):
        return [value]
    if not value:
        return [None]
    members: List[FieldValue] = []
    seen = set()
    for element in value:
        if identity(element) not in seen:
            seen.add(identity(element))
            members.append(element)
    return members
