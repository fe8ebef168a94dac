"""Passthrough reader for CSL-JSON payloads."""

from __future__ import annotations

from collections.abc import Mapping
import json
from typing import Any

from ..exceptions import ImportParseError


def parse(payload: str) -> list[dict[str, Any]]:
    """Decode a CSL-JSON array; a single record is wrapped in a list."""
    try:
        decoded = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise ImportParseError("citeproc+json", str(exc)) from exc

    if isinstance(decoded, Mapping):
        decoded = [decoded]
    if not isinstance(decoded, list):
        raise ImportParseError("citeproc+json", "expected an array of records")
    return [dict(record) for record in decoded if isinstance(record, Mapping)]
