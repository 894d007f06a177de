"""Field value shapes and the coercion rules that produce them.

Every value stored on a :class:`~catalog.record.CatalogRecord` is one of
``str``, ``int``/``float``, ``bool``, ``list[str]``, :class:`datetime.date` or
``None`` (absent). Header values reach this module as raw text (or lists and
mappings of raw text) and are coerced according to the declared
:class:`FieldType`. Coercion never raises: a value that cannot be represented
becomes ``None``.
"""
from __future__ import annotations

import math
import re
from datetime import date, datetime
from enum import Enum
from typing import Any, List, Optional, Union

FieldValue = Union[str, int, float, bool, List[str], date, None]

_DECIMAL_RE = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?$")
_INTEGER_RE = re.compile(r"^[+-]?\d+$")
_LINK_RE = re.compile(r"^\[\[(.*?)\]\]$")

ABSENT_DISPLAY = "-"


class FieldType(str, Enum):
    """Closed set of field types a schema may declare."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    ARRAY = "array"
    LINKED_ARRAY = "linked-array"

    @property
    def is_sequence(self) -> bool:
        return self in (FieldType.ARRAY, FieldType.LINKED_ARRAY)


def is_number(value: Any) -> bool:
    """Return ``True`` for ints and floats, excluding booleans."""

    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_date(value: Any) -> bool:
    return isinstance(value, date) and not isinstance(value, datetime)


def variant_of(value: FieldValue) -> Optional[FieldType]:
    """Return the field type a stored value belongs to, ``None`` when absent."""

    if value is None:
        return None
    if isinstance(value, bool):
        return FieldType.BOOLEAN
    if is_number(value):
        return FieldType.NUMBER
    if isinstance(value, date):
        return FieldType.DATE
    if isinstance(value, list):
        return FieldType.ARRAY
    return FieldType.STRING


def same_variant(left: FieldValue, right: FieldValue) -> bool:
    return variant_of(left) == variant_of(right)


# --- Raw header text -> typed values -----------------------------------------


def _restore_link(raw: Any) -> Any:
    # YAML reads an unquoted [[Name]] as a sequence holding a sequence
    if (
        isinstance(raw, list)
        and len(raw) == 1
        and isinstance(raw[0], list)
        and len(raw[0]) == 1
        and isinstance(raw[0][0], str)
    ):
        return f"[[{raw[0][0]}]]"
    return raw


def parse_number(text: str) -> Union[int, float, None]:
    text = text.strip()
    if not _DECIMAL_RE.match(text):
        return None
    if _INTEGER_RE.match(text):
        return int(text)
    number = float(text)
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def parse_boolean(text: str) -> Optional[bool]:
    lowered = text.strip().lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    return None


def parse_date(text: str) -> Optional[date]:
    text = text.strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def _coerce_sequence(raw: Any) -> Optional[List[str]]:
    raw = _restore_link(raw)
    if isinstance(raw, str):
        return [raw.strip()] if raw.strip() else None
    if not isinstance(raw, list):
        return None
    items: List[str] = []
    for element in raw:
        element = _restore_link(element)
        if not isinstance(element, str):
            return None
        items.append(element.strip())
    return items


def coerce_value(raw: Any, field_type: Union[FieldType, str]) -> FieldValue:
    """Coerce a raw header value to ``field_type``; failures become ``None``.

    ``raw`` is the base-loader YAML output for one header key: a string, a list,
    a mapping, or ``None``. Sequence types keep their element tokens verbatim.
    """

    field_type = FieldType(field_type)
    if raw is None:
        return None
    if field_type.is_sequence:
        return _coerce_sequence(raw)

    raw = _restore_link(raw)
    if not isinstance(raw, str):
        return None
    if field_type is FieldType.STRING:
        return raw.strip() or None
    if field_type is FieldType.NUMBER:
        return parse_number(raw)
    if field_type is FieldType.BOOLEAN:
        return parse_boolean(raw)
    return parse_date(raw)


def infer_value(raw: Any) -> FieldValue:
    """Best-effort coercion for header keys that the schema does not declare."""

    if raw is None or isinstance(raw, dict):
        return None
    if isinstance(raw, list) and _restore_link(raw) is raw:
        return _coerce_sequence(raw)
    raw = _restore_link(raw)
    if not isinstance(raw, str):
        return None
    text = raw.strip()
    if not text:
        return None
    flag = parse_boolean(text)
    if flag is not None:
        return flag
    number = parse_number(text)
    if number is not None:
        return number
    return text


# --- Typed values -> text -----------------------------------------------------


def link_target(token: str) -> str:
    """Return the target of a ``[[Target|alias]]`` token, or ``token`` itself."""

    match = _LINK_RE.match(token.strip())
    if not match:
        return token
    return match.group(1).split("|", 1)[0].strip()


def to_header_text(value: FieldValue) -> str:
    """Render ``value`` as header text that coerces back to the same value."""

    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return repr(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, list):
        return "[" + ", ".join(_quote(item) for item in value) + "]"
    return str(value)


def _quote(item: str) -> str:
    return '"' + item.replace("\\", "\\\\").replace('"', '\\"') + '"'


def display_value(value: FieldValue, field_type: Union[FieldType, str, None] = None) -> str:
    """Human readable rendering used by tables and summaries."""

    if value is None:
        return ABSENT_DISPLAY
    if isinstance(value, list):
        if not value:
            return ABSENT_DISPLAY
        if field_type is not None and FieldType(field_type) is FieldType.LINKED_ARRAY:
            return ", ".join(link_target(item) for item in value)
        return ", ".join(value)
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, date):
        return value.isoformat()
    return str(value)
