"""Catalog package: schemas, typed records and the document parser."""

from .errors import (
    CatalogError,
    FieldTypeError,
    InvalidPredicateError,
    MissingExtractorError,
    QueryError,
    SchemaError,
    UnknownFieldError,
)
from .parser import BatchResult, Document, ParseDiagnostic, ParseFailure, load_catalog, parse_batch, parse_document
from .presets import get_preset, preset_names
from .record import CatalogRecord, merge_records, record_to_row
from .schema import CatalogSchema, FieldDefinition, build_schema, load_schema
from .source import DocumentHandle, DocumentSource, FileSystemDocumentSource
from .values import FieldType, FieldValue

__all__ = [
    "BatchResult",
    "CatalogError",
    "CatalogRecord",
    "CatalogSchema",
    "Document",
    "DocumentHandle",
    "DocumentSource",
    "FieldDefinition",
    "FieldType",
    "FieldTypeError",
    "FieldValue",
    "FileSystemDocumentSource",
    "InvalidPredicateError",
    "MissingExtractorError",
    "ParseDiagnostic",
    "ParseFailure",
    "QueryError",
    "SchemaError",
    "UnknownFieldError",
    "build_schema",
    "get_preset",
    "load_catalog",
    "load_schema",
    "merge_records",
    "parse_batch",
    "parse_document",
    "preset_names",
    "record_to_row",
]
