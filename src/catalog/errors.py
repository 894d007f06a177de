"""Exception hierarchy shared by the schema, record and query layers."""
from __future__ import annotations

from typing import Optional


class CatalogError(Exception):
    """Base class for all catalog errors."""


class SchemaError(CatalogError, ValueError):
    """Raised when a schema definition is inconsistent."""


class QueryError(CatalogError, ValueError):
    """Raised when a query primitive is called with invalid arguments."""


class UnknownFieldError(QueryError, KeyError):
    """Raised when a field key does not exist in the schema."""

    def __init__(self, key: str, schema_name: Optional[str] = None) -> None:
        self.key = key
        self.schema_name = schema_name
        where = f" in schema {schema_name!r}" if schema_name else ""
        super().__init__(f"unknown field {key!r}{where}")

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]


class MissingExtractorError(QueryError):
    """Raised when sorting by a sequence field without a key extractor."""


class InvalidPredicateError(QueryError):
    """Raised when a filter predicate is malformed."""


class FieldTypeError(CatalogError, TypeError):
    """Raised when a typed accessor finds a value of another shape."""
