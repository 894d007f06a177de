"""Turn raw documents with a ``---`` delimited header into catalog records.

The header block is read with PyYAML's base loader so that every scalar reaches
:func:`catalog.values.coerce_value` as the literal text the author wrote. Field
level problems never abort parsing: the field is left absent and a diagnostic is
attached to the record. Only a document that cannot be read as text at all is
reported as a :class:`ParseFailure`.
"""
from __future__ import annotations

import re
from concurrent.futures import ThreadPoolExecutor
from pathlib import PurePosixPath
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field

from utils.logging import get_logger

from .record import CatalogRecord
from .schema import CatalogSchema
from .values import coerce_value, infer_value, to_header_text

if TYPE_CHECKING:  # pragma: no cover
    from .source import DocumentSource


LOGGER = get_logger(__name__)
HEADER_DELIMITER = "---"
ENTRY_START = re.compile(r"^[^\s#-][^:]*:(?:\s|$)")


class ParseFailure(BaseModel):
    """A document that could not be turned into a record at all."""

    model_config = ConfigDict(frozen=True)

    source_location: str
    reason: str


class ParseDiagnostic(BaseModel):
    """A recoverable data-quality problem found while parsing a document."""

    model_config = ConfigDict(frozen=True)

    source_location: str
    message: str


class Document(BaseModel):
    """Raw document text together with where it came from."""

    model_config = ConfigDict(frozen=True)

    source_location: str
    text: Union[str, bytes]


class BatchResult(BaseModel):
    """Outcome of parsing many documents: records plus per-document failures."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    records: List[CatalogRecord] = Field(default_factory=list)
    failures: List[ParseFailure] = Field(default_factory=list)

    @property
    def diagnostics(self) -> List[ParseDiagnostic]:
        return [
            ParseDiagnostic(source_location=record.source_location, message=message)
            for record in self.records
            for message in record.diagnostics
        ]

    @property
    def ok(self) -> bool:
        return not self.failures


def extract_header(text: str) -> Optional[str]:
    """Return the text between the opening and closing delimiter lines.

    ``None`` means there is no well-formed header: the document does not start
    with a delimiter line or the header is never closed.
    """

    lines = text.lstrip("\ufeff").splitlines()
    if not lines or lines[0].rstrip() != HEADER_DELIMITER:
        return None
    for index in range(1, len(lines)):
        if lines[index].rstrip() == HEADER_DELIMITER:
            return "\n".join(lines[1:index])
    return None


def read_header(header_text: str) -> Optional[Dict[str, Any]]:
    """Load header text into raw values; ``None`` if it is not a key/value block."""

    try:
        data = yaml.load(header_text, Loader=yaml.BaseLoader)
    except yaml.YAMLError as exc:
        LOGGER.debug("Header is not valid YAML: %s", exc)
        return None
    if data is None or data == "":
        return {}
    if not isinstance(data, dict):
        return None
    return {str(key): value for key, value in data.items()}


def split_header_entries(header_text: str) -> List[str]:
    """Split header text into top-level ``key:`` entries.

    Indented and ``- `` lines stay with the entry above them. Lines before the
    first entry are dropped.
    """

    entries: List[List[str]] = []
    for line in header_text.splitlines():
        if ENTRY_START.match(line):
            entries.append([line])
        elif entries:
            entries[-1].append(line)
    return ["\n".join(lines) for lines in entries]


def read_header_entries(header_text: str) -> Tuple[Dict[str, Any], List[str]]:
    """Load each top-level entry on its own, keeping the ones that load.

    Used when the header as a whole is not valid YAML, so that one bad line
    only costs its own field.
    """

    data: Dict[str, Any] = {}
    problems: List[str] = []
    for entry in split_header_entries(header_text):
        loaded = read_header(entry)
        if not loaded:
            key = entry.split(":", 1)[0].strip()
            problems.append(f"field {key!r}: header entry is not valid YAML")
            continue
        data.update(loaded)
    return data, problems


def _has_content(raw: Any) -> bool:
    if raw is None:
        return False
    if isinstance(raw, str):
        return bool(raw.strip())
    return True


def _source_name(source_location: str) -> PurePosixPath:
    return PurePosixPath(source_location.replace("\\", "/"))


def _coerce_header(data: Dict[str, Any], schema: CatalogSchema) -> Tuple[Dict[str, Any], List[str]]:
    fields: Dict[str, Any] = {}
    problems: List[str] = []
    for key, raw in data.items():
        definition = schema.get_field(key)
        if definition is not None:
            value = coerce_value(raw, definition.type)
            if value is None and _has_content(raw):
                problems.append(f"field {key!r}: cannot read {raw!r} as {definition.type.value}")
        else:
            value = infer_value(raw)
            if value is None and isinstance(raw, dict):
                problems.append(f"field {key!r}: nested mappings are not supported")
        if value is not None:
            fields[key] = value
    return fields, problems


def parse_document(
    raw_text: Union[str, bytes], schema: CatalogSchema, source_location: str
) -> Union[CatalogRecord, ParseFailure]:
    """Parse one document into a :class:`CatalogRecord`.

    Returns a :class:`ParseFailure` only when ``raw_text`` is not decodable text.
    """

    if isinstance(raw_text, bytes):
        try:
            raw_text = raw_text.decode("utf-8")
        except UnicodeDecodeError as exc:
            LOGGER.warning("Unable to decode %s: %s", source_location, exc)
            return ParseFailure(source_location=source_location, reason=f"not valid UTF-8: {exc}")
    if not isinstance(raw_text, str):
        return ParseFailure(
            source_location=source_location,
            reason=f"expected text, got {type(raw_text).__name__}",
        )

    diagnostics: List[str] = []
    fields: Dict[str, Any] = {}
    header_text = extract_header(raw_text)
    if header_text is None:
        diagnostics.append("no well-formed header block found")
    else:
        data = read_header(header_text)
        if data is None:
            data, problems = read_header_entries(header_text)
            if not data and not problems:
                diagnostics.append("header block is not a key/value mapping")
            diagnostics.extend(problems)
        fields, problems = _coerce_header(data, schema)
        diagnostics.extend(problems)

    name = _source_name(source_location)
    id_value = fields.get(schema.id_field_key)
    record_id = to_header_text(id_value) if id_value is not None else name.name
    record = CatalogRecord(record_id, source_location, fields)
    if not record.has_field(schema.title_field_key):
        title = schema.require_field(schema.title_field_key)
        record.set_field(schema.title_field_key, coerce_value(name.stem or name.name, title.type))
    record.diagnostics = tuple(diagnostics)

    for message in diagnostics:
        LOGGER.debug("%s: %s", source_location, message)
    return record


DocumentLike = Union[Document, Tuple[str, Union[str, bytes]]]


def _as_document(item: DocumentLike) -> Document:
    if isinstance(item, Document):
        return item
    if isinstance(item, tuple) and len(item) == 2:
        return Document(source_location=item[0], text=item[1])
    return Document(source_location=item.source_location, text=item.text)  # type: ignore[union-attr]


def parse_batch(
    documents: Iterable[DocumentLike], schema: CatalogSchema, *, workers: int = 1
) -> BatchResult:
    """Parse many documents; failures are collected, never raised.

    With ``workers > 1`` documents are parsed on a thread pool. Output order
    always follows input order.
    """

    if workers < 1:
        raise ValueError("workers must be >= 1")
    batch: Sequence[Document] = [_as_document(item) for item in documents]

    def parse(document: Document) -> Union[CatalogRecord, ParseFailure]:
        return parse_document(document.text, schema, document.source_location)

    if workers > 1 and len(batch) > 1:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            outcomes = list(executor.map(parse, batch))
    else:
        outcomes = [parse(document) for document in batch]

    result = BatchResult()
    for outcome in outcomes:
        if isinstance(outcome, ParseFailure):
            result.failures.append(outcome)
        else:
            result.records.append(outcome)
    LOGGER.info(
        "Parsed %d documents for %s: %d records, %d failures",
        len(batch),
        schema.name,
        len(result.records),
        len(result.failures),
    )
    return result


def load_catalog(
    source: "DocumentSource", path_prefix: str, schema: CatalogSchema, *, workers: int = 1
) -> BatchResult:
    """Read every document under ``path_prefix`` from ``source`` and parse it."""

    documents: List[Document] = []
    read_failures: List[ParseFailure] = []
    for handle in source.list(path_prefix):
        try:
            documents.append(Document(source_location=handle.location, text=source.read(handle)))
        except (OSError, UnicodeDecodeError) as exc:
            LOGGER.warning("Unable to read %s: %s", handle.location, exc)
            read_failures.append(ParseFailure(source_location=handle.location, reason=f"unreadable: {exc}"))
    result = parse_batch(documents, schema, workers=workers)
    return BatchResult(records=result.records, failures=read_failures + result.failures)


def validate_required(record: CatalogRecord, keys: Iterable[str]) -> List[str]:
    """Return the keys from ``keys`` that ``record`` has no value for."""

    return [key for key in keys if not record.has_field(key)]
