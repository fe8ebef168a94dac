"""Bundles declare which citation style a document uses."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..exceptions import CitebridgeError


__all__ = ["Bundle", "BundleCSL", "BundleTable"]


class BundleCSL(BaseModel):
    """Citation settings carried by a bundle."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    csl_identifier: str | None = Field(default=None, alias="cslIdentifier")


class Bundle(BaseModel):
    """A named bundle, optionally naming a citation style."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str = Field(alias="_id")
    csl: BundleCSL | None = None

    @property
    def csl_identifier(self) -> str | None:
        return self.csl.csl_identifier if self.csl is not None else None


class BundleTable(Mapping[str, Bundle]):
    """Read-only bundle lookup keyed by bundle id."""

    def __init__(self, bundles: Iterable[Bundle] = ()) -> None:
        self._bundles: dict[str, Bundle] = {bundle.id: bundle for bundle in bundles}

    def __getitem__(self, key: str) -> Bundle:
        return self._bundles[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._bundles)

    def __len__(self) -> int:
        return len(self._bundles)

    @classmethod
    def from_records(cls, records: Iterable[Mapping[str, Any]]) -> BundleTable:
        try:
            return cls(Bundle.model_validate(record) for record in records)
        except ValidationError as exc:
            raise CitebridgeError(f"Invalid bundle definition: {exc}") from exc

    @classmethod
    def from_file(cls, path: Path | str) -> BundleTable:
        """Load bundles from a JSON list or an object keyed by bundle id."""
        source = Path(path)
        try:
            payload = json.loads(source.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise CitebridgeError(f"Failed to read bundles from '{source}': {exc}") from exc
        if isinstance(payload, dict):
            payload = [
                {"_id": key, **(value if isinstance(value, dict) else {})}
                for key, value in payload.items()
            ]
        if not isinstance(payload, list):
            raise CitebridgeError(f"Bundles file '{source}' must hold a list or an object.")
        return cls.from_records(payload)

    def find(self, bundle_id: str | None) -> Bundle | None:
        if bundle_id is None:
            return None
        return self._bundles.get(bundle_id)
