"""In-memory keyed collection of canonical items."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence
import copy
from dataclasses import dataclass
import logging
from typing import Any

from .convert import to_csl
from .library import estimate_id, match_library_item_by_identifier
from .models import BibliographyItem


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class LibraryIssue:
    """Represents a problem encountered while merging items into a library."""

    message: str
    key: str | None = None
    source: str | None = None


class Library(Mapping[str, BibliographyItem]):
    """Aggregate canonical items keyed by id, deduplicating by identifier."""

    def __init__(self, items: Iterable[BibliographyItem] = ()) -> None:
        self._entries: dict[str, BibliographyItem] = {}
        self._sources: dict[str, set[str]] = {}
        self._issues: list[LibraryIssue] = []
        self.merge(items)

    def __getitem__(self, key: str) -> BibliographyItem:
        return self._entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def issues(self) -> Sequence[LibraryIssue]:
        """Return the issues discovered while merging items."""
        return tuple(self._issues)

    def sources(self, key: str) -> Sequence[str]:
        """Return the sources an entry was seen in, sorted."""
        return tuple(sorted(self._sources.get(key, ())))

    def merge(self, items: Iterable[BibliographyItem], *, source: str | None = None) -> list[str]:
        """Merge items into the library and return the key of each one."""
        return [self.add(item, source=source) for item in items]

    def add(self, item: BibliographyItem, *, source: str | None = None) -> str:
        """Add an item unless an equivalent one is already known.

        Items without an id receive one from `estimate_id`. When an existing
        entry matches by identifier or by key, the existing entry is kept; a
        differing payload is recorded as an issue.
        """
        existing = match_library_item_by_identifier(item, self._entries)
        if existing is None:
            key = item.id or estimate_id(item)
            existing = self._entries.get(key)
            if existing is None:
                stored = copy.deepcopy(item)
                stored.id = key
                self._entries[key] = stored
                self._sources[key] = {source} if source else set()
                return key
        else:
            key = existing.id or ""

        if source:
            self._sources.setdefault(key, set()).add(source)
        if not self._entries_equivalent(existing, item):
            logger.debug("Ignoring conflicting duplicate of %s", key)
            self._issues.append(
                LibraryIssue(
                    message=(
                        "Duplicate item conflicts with an existing "
                        "entry; ignoring the newer definition."
                    ),
                    key=key,
                    source=source,
                )
            )
        return key

    def find(self, key: str) -> BibliographyItem | None:
        """Return the entry stored under ``key``."""
        return self._entries.get(key)

    def to_csl(self, *, keys: Iterable[str] | None = None) -> list[dict[str, Any]]:
        """Return the selected entries as CSL records sorted by key."""
        selected = sorted(self._entries) if keys is None else sorted(
            key for key in set(keys) if key in self._entries
        )
        return [to_csl(self._entries[key]) for key in selected]

    def clone(self) -> Library:
        """Return a deep copy of the library."""
        cloned = Library()
        cloned._entries = copy.deepcopy(self._entries)
        cloned._sources = copy.deepcopy(self._sources)
        cloned._issues = list(self._issues)
        return cloned

    def _entries_equivalent(self, first: BibliographyItem, second: BibliographyItem) -> bool:
        return self._signature(first) == self._signature(second)

    def _signature(self, item: BibliographyItem) -> dict[str, Any]:
        payload = to_csl(item)
        payload.pop("id", None)
        return payload


__all__ = ["Library", "LibraryIssue"]
