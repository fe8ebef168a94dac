"""Reader for the Papers citation XML export.

Scalar fields come from a table of child paths; fields needing custom logic
come from a table of transforms. The two tables address disjoint CSL fields.
"""

from __future__ import annotations

from collections.abc import Callable
import re
from typing import Any

from bs4 import BeautifulSoup, Tag


__all__ = ["FIELD_MAPS", "FIELD_TRANSFORMS", "parse", "parse_publication_date"]


PUBLICATIONS_PATH = "citation/publications/publication"

# child path -> CSL field
FIELD_MAPS: dict[str, str] = {
    "title": "title",
    "publisher": "publisher",
    "url": "URL",
    "volume": "volume",
    "number": "issue",
    "doi": "DOI",
    "bundle/publication/title": "container-title",
}

TYPE_MAP: dict[int, str] = {
    0: "book",
    400: "article-journal",
}


def _select(node: Tag, path: str) -> list[Tag]:
    matches = [node]
    for segment in path.split("/"):
        matches = [
            child for parent in matches for child in parent.find_all(segment, recursive=False)
        ]
    return matches


def _select_text(node: Tag, path: str) -> str:
    matches = _select(node, path)
    if not matches:
        return ""
    return matches[0].get_text().strip()


def _extract_type(node: Tag) -> str | None:
    value = _select_text(node, "type")
    if value == "":
        return None
    try:
        code = int(value)
    except ValueError:
        return None
    return TYPE_MAP.get(code)


def _extract_authors(node: Tag) -> list[dict[str, str]] | None:
    author_nodes = _select(node, "authors/author")
    if not author_nodes:
        return None

    authors: list[dict[str, str]] = []
    for author_node in author_nodes:
        given_parts = [
            _select_text(author_node, "firstName"),
            _select_text(author_node, "middleNames"),
        ]
        authors.append(
            {
                "given": " ".join(part for part in given_parts if part),
                "family": _select_text(author_node, "lastName"),
            }
        )
    return authors


def _extract_page(node: Tag) -> str | None:
    start_page = _select_text(node, "startpage")
    if start_page == "":
        return None
    parts = [start_page]
    end_page = _select_text(node, "endpage")
    if end_page != "":
        parts.append(end_page)
    return "-".join(parts)


_PUBLICATION_DATE_RE = re.compile(r"^99(\d{4})(\d{2})(\d{2})")


def parse_publication_date(value: str) -> dict[str, Any] | None:
    """Decode a ``99YYYYMMDD...`` publication stamp into a CSL date.

    Out-of-range months and days are left out; a stamp without the ``99``
    prefix yields no date at all.
    """
    match = _PUBLICATION_DATE_RE.match(value)
    if match is None:
        return None

    year, month, day = (int(group) for group in match.groups())
    parts: list[int] = []
    if year:
        parts.append(year)
    if 1 <= month <= 12:
        parts.append(month)
    if 1 <= day <= 31:
        parts.append(day)
    return {"date-parts": [parts]}


def _extract_issued(node: Tag) -> dict[str, Any] | None:
    return parse_publication_date(_select_text(node, "publication_date"))


# CSL field -> transform
FIELD_TRANSFORMS: dict[str, Callable[[Tag], Any]] = {
    "type": _extract_type,
    "author": _extract_authors,
    "page": _extract_page,
    "issued": _extract_issued,
}


def parse_publication(node: Tag) -> dict[str, Any]:
    """Extract one CSL record from a ``publication`` node."""
    output: dict[str, Any] = {}

    for key, transform in FIELD_TRANSFORMS.items():
        result = transform(node)
        if result is not None:
            output[key] = result

    for path, key in FIELD_MAPS.items():
        result = _select_text(node, path)
        if result != "":
            output[key] = result

    return output


def parse(payload: str) -> list[dict[str, Any]]:
    """Return one CSL record per publication, in document order."""
    soup = BeautifulSoup(payload, "xml")
    return [parse_publication(node) for node in _select(soup, PUBLICATIONS_PATH)]
