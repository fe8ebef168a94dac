"""Bidirectional conversion between CSL records and canonical items.

Both directions walk the field taxonomy: a key is converted according to the
set it belongs to and silently dropped when it belongs to none. Neither
function raises on malformed values; dropped keys are reported through an
optional diagnostics emitter instead.
"""

from __future__ import annotations

from collections.abc import Mapping
import re
from typing import Any

from .diagnostics import DiagnosticEmitter, NullEmitter
from .models import DEFAULT_ITEM_TYPE, BibliographicDate, BibliographicName, BibliographyItem
from .taxonomy import STRING_FIELDS, FieldKind, field_kind


__all__ = ["coerce_number", "fix_csl_data", "to_csl", "to_item"]


_INTEGER_RE = re.compile(r"^[+-]?\d+$")


def coerce_number(value: Any) -> int | str:
    """Return ``value`` as an integer when it is one, otherwise as a string.

    Non-integral values are never rounded: ``"12a"`` and ``3.5`` keep their
    textual form so labels such as ``"Suppl 2"`` survive untouched.
    """
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    text = str(value).strip()
    if _INTEGER_RE.match(text):
        return int(text)
    return str(value)


def _coerce_string(value: Any) -> str | None:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, int | float):
        return str(value)
    return None


def _dropped(emitter: DiagnosticEmitter, name: str, reason: str) -> None:
    emitter.event("field_dropped", {"field": name, "reason": reason})


def to_item(
    data: Mapping[str, Any],
    *,
    emitter: DiagnosticEmitter | None = None,
) -> BibliographyItem:
    """Convert a raw CSL record into a canonical item.

    The record's ``type`` is copied verbatim; no default type is applied in
    this direction.
    """
    emitter = emitter or NullEmitter()
    item = BibliographyItem()

    for key, value in data.items():
        if key == "id":
            if isinstance(value, str) and value:
                item.id = value
            continue
        if key == "type":
            if isinstance(value, str) and value:
                item.type = value
            continue

        kind = field_kind(key)
        if kind is None:
            _dropped(emitter, key, "unclassified")
            continue
        if value is None:
            _dropped(emitter, key, "empty")
            continue

        if kind is FieldKind.NUMBER:
            if isinstance(value, Mapping | list):
                _dropped(emitter, key, "not a scalar")
                continue
            item.fields[key] = coerce_number(value)
        elif kind is FieldKind.STRING:
            text = _coerce_string(value)
            if text is None:
                _dropped(emitter, key, "not a scalar")
                continue
            item.fields[key] = text
        elif kind is FieldKind.PERSON:
            if not isinstance(value, list):
                _dropped(emitter, key, "not a list of names")
                continue
            item.fields[key] = [
                BibliographicName.from_csl(entry) for entry in value if isinstance(entry, Mapping)
            ]
        else:
            if not isinstance(value, Mapping):
                _dropped(emitter, key, "not a date object")
                continue
            item.fields[key] = BibliographicDate.from_csl(value)

    return item


def to_csl(item: BibliographyItem) -> dict[str, Any]:
    """Convert a canonical item into a raw CSL record.

    The record always carries a ``type``, defaulting to ``article-journal``.
    Internal identifiers of names and dates are stripped.
    """
    output: dict[str, Any] = {}
    if item.id is not None:
        output["id"] = item.id
    output["type"] = item.type or DEFAULT_ITEM_TYPE

    for key, value in item.fields.items():
        kind = field_kind(key)
        if kind is None or value is None:
            continue
        if kind is FieldKind.NUMBER:
            output[key] = value
        elif kind is FieldKind.STRING:
            output[key] = str(value)
        elif kind is FieldKind.PERSON:
            output[key] = [_name_to_csl(name) for name in value]
        else:
            output[key] = _date_to_csl(value)

    return output


def _name_to_csl(name: BibliographicName | Mapping[str, Any]) -> dict[str, Any]:
    if isinstance(name, BibliographicName):
        return name.to_csl()
    return BibliographicName.from_csl(name).to_csl()


def _date_to_csl(date: BibliographicDate | Mapping[str, Any]) -> dict[str, Any]:
    if isinstance(date, BibliographicDate):
        return date.to_csl()
    return BibliographicDate.from_csl(date).to_csl()


def fix_csl_data(data: Mapping[str, Any]) -> dict[str, Any]:
    """Return a copy of ``data`` where string fields never hold arrays.

    An array is replaced by its first element; an empty array removes the key.
    """
    output = dict(data)
    for key in STRING_FIELDS:
        value = output.get(key)
        if not isinstance(value, list | tuple):
            continue
        if value:
            output[key] = value[0]
        else:
            del output[key]
    return output
