"""Canonical bibliographic records handled by citebridge.

Architecture
: `BibliographyItem` is the internal record. Its classified fields live in a
  single dictionary keyed by CSL field names, so the taxonomy tables remain the
  only place that decides which names exist.
: `BibliographicName` and `BibliographicDate` carry an internal identifier
  that never leaves the layer; `to_csl` strips it and `from_csl` mints a fresh
  one, mirroring how the records are stored next to other models.

Usage Example

```pycon
>>> from citebridge.models import BibliographyItem, BibliographicName
>>> item = BibliographyItem(id="item-1", type="book")
>>> item["title"] = "A Minimal Example"
>>> item["author"] = [BibliographicName(family="Doe", given="Jane")]
>>> item.get("title")
'A Minimal Example'
>>> "DOI" in item
False
```
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any
import uuid

from .exceptions import UnknownFieldError
from .taxonomy import field_kind


__all__ = [
    "DEFAULT_ITEM_TYPE",
    "ITEM_TYPE_LABELS",
    "BibliographicDate",
    "BibliographicName",
    "BibliographyItem",
    "generate_id",
]


DEFAULT_ITEM_TYPE = "article-journal"

ITEM_TYPE_LABELS: dict[str, str] = {
    "article": "Article",
    "article-journal": "Journal Article",
    "article-magazine": "Magazine Article",
    "article-newspaper": "Newspaper Article",
    "bill": "Bill",
    "book": "Book",
    "broadcast": "Broadcast",
    "chapter": "Chapter",
    "dataset": "Dataset",
    "entry": "Entry",
    "entry-dictionary": "Dictionary Entry",
    "entry-encyclopedia": "Encyclopedia Entry",
    "figure": "Figure",
    "graphic": "Graphic",
    "interview": "Interview",
    "legal_case": "Legal Case",
    "legislation": "Legislation",
    "manuscript": "Manuscript",
    "map": "Map",
    "motion_picture": "Motion Picture",
    "musical_score": "Musical Score",
    "pamphlet": "Pamphlet",
    "paper-conference": "Conference Paper",
    "patent": "Patent",
    "personal_communication": "Personal Communication",
    "post": "Post",
    "post-weblog": "Blog Post",
    "report": "Report",
    "review": "Review",
    "review-book": "Book Review",
    "song": "Song",
    "speech": "Speech",
    "thesis": "Thesis",
    "treaty": "Treaty",
    "webpage": "Web Page",
}


def generate_id(object_type: str) -> str:
    """Return a fresh identifier namespaced by ``object_type``."""
    return f"{object_type}:{str(uuid.uuid4()).upper()}"


# CSL name part -> attribute
_NAME_PARTS: tuple[tuple[str, str], ...] = (
    ("family", "family"),
    ("given", "given"),
    ("literal", "literal"),
    ("suffix", "suffix"),
    ("dropping-particle", "dropping_particle"),
    ("non-dropping-particle", "non_dropping_particle"),
)


@dataclass(slots=True)
class BibliographicName:
    """A person (or organisation) listed in a role field such as ``author``."""

    family: str | None = None
    given: str | None = None
    literal: str | None = None
    suffix: str | None = None
    dropping_particle: str | None = None
    non_dropping_particle: str | None = None
    id: str = field(default_factory=lambda: generate_id("BibliographicName"))

    @classmethod
    def from_csl(cls, payload: Mapping[str, Any]) -> BibliographicName:
        """Build a name from a CSL name object, ignoring unknown keys."""
        values: dict[str, str] = {}
        for csl_key, attribute in _NAME_PARTS:
            value = payload.get(csl_key)
            if value is None or isinstance(value, Mapping | list):
                continue
            values[attribute] = str(value)
        return cls(**values)

    def to_csl(self) -> dict[str, str]:
        """Return the CSL name object without the internal identifier."""
        payload: dict[str, str] = {}
        for csl_key, attribute in _NAME_PARTS:
            value = getattr(self, attribute)
            if value is not None:
                payload[csl_key] = value
        return payload

    @property
    def primary_name(self) -> str | None:
        """Return the family name, falling back to the literal then given name."""
        return self.family or self.literal or self.given


@dataclass(slots=True)
class BibliographicDate:
    """A structured CSL date: ``date-parts`` or a free-text ``literal``."""

    date_parts: list[list[Any]] | None = None
    literal: str | None = None
    raw: str | None = None
    season: str | int | None = None
    circa: bool | str | int | None = None
    id: str = field(default_factory=lambda: generate_id("BibliographicDate"))

    @classmethod
    def from_csl(cls, payload: Mapping[str, Any]) -> BibliographicDate:
        """Build a date from a CSL date object, ignoring unknown keys."""
        date_parts = payload.get("date-parts")
        parts: list[list[Any]] | None = None
        if isinstance(date_parts, list):
            parts = [list(part) for part in date_parts if isinstance(part, list | tuple)]
        literal = payload.get("literal")
        raw = payload.get("raw")
        return cls(
            date_parts=parts,
            literal=str(literal) if literal is not None else None,
            raw=str(raw) if raw is not None else None,
            season=payload.get("season"),
            circa=payload.get("circa"),
        )

    def to_csl(self) -> dict[str, Any]:
        """Return the CSL date object without the internal identifier."""
        payload: dict[str, Any] = {}
        if self.date_parts is not None:
            payload["date-parts"] = [list(part) for part in self.date_parts]
        for key in ("literal", "raw", "season", "circa"):
            value = getattr(self, key)
            if value is not None:
                payload[key] = value
        return payload

    @property
    def year(self) -> Any:
        """Return the first component of the first date part, if any."""
        if not self.date_parts or not self.date_parts[0]:
            return None
        return self.date_parts[0][0]


@dataclass(slots=True)
class BibliographyItem:
    """The canonical bibliographic record."""

    id: str | None = None
    type: str | None = None
    fields: dict[str, Any] = field(default_factory=dict)

    def __getitem__(self, name: str) -> Any:
        if name == "id":
            return self.id
        if name == "type":
            return self.type
        return self.fields[name]

    def __setitem__(self, name: str, value: Any) -> None:
        if name == "id":
            self.id = value
            return
        if name == "type":
            self.type = value
            return
        if field_kind(name) is None:
            raise UnknownFieldError(f"Field '{name}' is not a recognised bibliographic field.")
        self.fields[name] = value

    def __contains__(self, name: object) -> bool:
        if name == "id":
            return self.id is not None
        if name == "type":
            return self.type is not None
        return name in self.fields

    def __iter__(self) -> Iterator[str]:
        if self.id is not None:
            yield "id"
        if self.type is not None:
            yield "type"
        yield from self.fields

    def get(self, name: str, default: Any = None) -> Any:
        """Return a field value, or ``default`` when the field is absent."""
        if name not in self:
            return default
        return self[name]

    @property
    def type_label(self) -> str | None:
        """Return the human label for the item type, if the type is known."""
        if self.type is None:
            return None
        return ITEM_TYPE_LABELS.get(self.type)
