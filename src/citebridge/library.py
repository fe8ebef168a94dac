"""Identifier matching and display helpers for library items."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
import json
from typing import Any

from .models import BibliographicDate, BibliographicName, BibliographyItem


__all__ = [
    "authors_string",
    "estimate_id",
    "full_authors_string",
    "full_library_item_metadata",
    "issued_year",
    "match_library_item_by_identifier",
    "short_authors_string",
    "short_library_item_metadata",
]


def match_library_item_by_identifier(
    item: BibliographyItem,
    library: Mapping[str, BibliographyItem],
) -> BibliographyItem | None:
    """Return the library entry describing the same work as ``item``.

    Identifiers are tried in decreasing order of confidence and the first hit
    wins: the item id, then the DOI (case-insensitive), the PMID (exact), and
    finally the URL (case-insensitive).
    """
    if item.id is not None and item.id in library:
        return library[item.id]

    doi = _text(item.get("DOI"))
    if doi:
        wanted = doi.lower()
        for model in library.values():
            candidate = _text(model.get("DOI"))
            if candidate and candidate.lower() == wanted:
                return model

    pmid = _text(item.get("PMID"))
    if pmid:
        for model in library.values():
            candidate = _text(model.get("PMID"))
            if candidate and candidate == pmid:
                return model

    url = _text(item.get("URL"))
    if url:
        wanted = url.lower()
        for model in library.values():
            candidate = _text(model.get("URL"))
            if candidate and candidate.lower() == wanted:
                return model

    return None


def _text(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def issued_year(item: BibliographyItem) -> str | None:
    """Return the issued year as text, or ``None`` when it is unknown."""
    issued = item.get("issued")
    if isinstance(issued, Mapping):
        issued = BibliographicDate.from_csl(issued)
    if not isinstance(issued, BibliographicDate):
        return None
    year = issued.year
    if not year:
        return None
    return f"{year}"


def _names(item: BibliographyItem) -> list[BibliographicName]:
    names: list[BibliographicName] = []
    for entry in item.get("author") or ():
        if isinstance(entry, BibliographicName):
            names.append(entry)
        elif isinstance(entry, Mapping):
            names.append(BibliographicName.from_csl(entry))
    return names


def _first_author_name(item: BibliographyItem) -> tuple[bool, str | None]:
    authors = _names(item)
    if not authors:
        return False, None
    return True, authors[0].primary_name


def estimate_id(item: BibliographyItem) -> str:
    """Return a stable identifier for an item that lacks one.

    The DOI (uppercased) wins, then the PMID; otherwise the id is a JSON
    fingerprint of the title, first author, and issued year.
    """
    doi = _text(item.get("DOI"))
    if doi:
        return doi.upper()

    pmid = _text(item.get("PMID"))
    if pmid:
        return pmid

    fingerprint: dict[str, Any] = {}
    title = item.get("title")
    if title is not None:
        fingerprint["title"] = title
    has_authors, author = _first_author_name(item)
    # An author without any usable name part is left out entirely.
    if not has_authors or author is not None:
        fingerprint["author"] = author
    fingerprint["year"] = issued_year(item)
    return json.dumps(fingerprint, ensure_ascii=False, separators=(",", ":"))


def authors_string(authors: Sequence[str]) -> str:
    """Join names with commas, using an ampersand between the last two."""
    names = list(authors)
    if len(names) > 1:
        names[-2:] = [" & ".join(names[-2:])]
    return ", ".join(names)


def short_authors_string(item: BibliographyItem) -> str:
    """Return the primary names of the item authors."""
    return authors_string(_filled(name.primary_name for name in _names(item)))


def full_authors_string(item: BibliographyItem) -> str:
    """Return ``given family`` for each of the item authors."""
    return authors_string(
        _filled(" ".join([name.given or "", name.family or ""]).strip() for name in _names(item))
    )


def _filled(values: Iterable[str | None]) -> list[str]:
    return [value for value in values if value]


def short_library_item_metadata(item: BibliographyItem) -> str:
    """Return ``authors, container, year`` using short author names."""
    return _metadata_line(short_authors_string(item), item)


def full_library_item_metadata(item: BibliographyItem) -> str:
    """Return ``authors, container, year`` using full author names."""
    return _metadata_line(full_authors_string(item), item)


def _metadata_line(authors: str, item: BibliographyItem) -> str:
    parts = [authors, item.get("container-title"), issued_year(item)]
    return ", ".join(str(part) for part in parts if part)
