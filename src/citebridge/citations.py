"""Citation requests handed to the rendering engine."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import Literal

from .models import BibliographyItem


__all__ = [
    "CitationMarker",
    "CitationProperties",
    "CitationRequest",
    "CitationRequestItem",
    "DisplayScheme",
    "GetLibraryItem",
    "build_citations",
    "choose_mode",
]


DisplayScheme = Literal["show-all", "author-only", "suppress-author", "composite"]
GetLibraryItem = Callable[[str], BibliographyItem | None]


@dataclass(slots=True)
class CitationMarker:
    """A citation located in a document by the caller."""

    id: str
    item_ids: Sequence[str]
    display_scheme: DisplayScheme | None = None
    prefix: str | None = None
    suffix: str | None = None
    infix: str | None = None


@dataclass(slots=True)
class CitationRequestItem:
    id: str
    data: BibliographyItem | None = None


@dataclass(slots=True)
class CitationProperties:
    note_index: int = 0
    mode: str | None = None
    prefix: str | None = None
    suffix: str | None = None
    infix: str | None = None


@dataclass(slots=True)
class CitationRequest:
    """One citation as the engine expects it."""

    citation_id: str
    items: list[CitationRequestItem] = field(default_factory=list)
    properties: CitationProperties = field(default_factory=CitationProperties)

    @property
    def item_ids(self) -> list[str]:
        return [item.id for item in self.items]


def choose_mode(display_scheme: str | None) -> str | None:
    """Return the engine mode for a display scheme; ``show-all`` is the default."""
    if display_scheme == "show-all":
        return None
    return display_scheme


def build_citations(
    markers: Iterable[CitationMarker],
    get_library_item: GetLibraryItem,
) -> list[CitationRequest]:
    """Turn document markers into engine citation requests, keeping their order."""
    requests: list[CitationRequest] = []
    for marker in markers:
        requests.append(
            CitationRequest(
                citation_id=marker.id,
                items=[
                    CitationRequestItem(id=item_id, data=get_library_item(item_id))
                    for item_id in marker.item_ids
                ],
                properties=CitationProperties(
                    note_index=0,
                    mode=choose_mode(marker.display_scheme),
                    prefix=marker.prefix,
                    suffix=marker.suffix,
                    infix=marker.infix if marker.display_scheme == "composite" else None,
                ),
            )
        )
    return requests
