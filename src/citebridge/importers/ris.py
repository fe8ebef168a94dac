"""RIS reader built on rispy.

RIS exports in the wild contain stray continuation lines, empty tags, and
carriage returns inside values. `filter_lines` keeps only well-formed tag
lines before the text reaches the parser.
"""

from __future__ import annotations

from collections.abc import Mapping
import re
from typing import Any

import rispy

from ..exceptions import ImportParseError


__all__ = ["filter_lines", "parse", "record_to_csl"]


_LINE_SPLIT_RE = re.compile(r"[\n\r]+")
_VALID_LINE_RE = re.compile(r"^(\w{2}\s{2}-\s.+|ER\s{2}-\s*)$")


def filter_lines(payload: str) -> str:
    """Drop every line that is neither a tagged value nor an end-of-record tag."""
    lines = _LINE_SPLIT_RE.split(payload)
    return "\n".join(line for line in lines if _VALID_LINE_RE.match(line))


def parse(payload: str) -> list[dict[str, Any]]:
    """Parse RIS text into CSL records, preserving record order."""
    try:
        entries = rispy.loads(payload)
    except (OSError, ValueError) as exc:
        raise ImportParseError("ris", str(exc)) from exc
    return [record_to_csl(entry) for entry in entries]


_TYPES: dict[str, str] = {
    "ABST": "article",
    "ART": "graphic",
    "BILL": "bill",
    "BLOG": "post-weblog",
    "BOOK": "book",
    "CASE": "legal_case",
    "CHAP": "chapter",
    "CONF": "paper-conference",
    "CPAPER": "paper-conference",
    "DATA": "dataset",
    "DBASE": "dataset",
    "DICT": "entry-dictionary",
    "EBOOK": "book",
    "ECHAP": "chapter",
    "EJOUR": "article-journal",
    "ELEC": "webpage",
    "ENCYC": "entry-encyclopedia",
    "FIGURE": "figure",
    "GEN": "article",
    "JFULL": "article-journal",
    "JOUR": "article-journal",
    "MAP": "map",
    "MGZN": "article-magazine",
    "MPCT": "motion_picture",
    "MUSIC": "musical_score",
    "NEWS": "article-newspaper",
    "PAMP": "pamphlet",
    "PAT": "patent",
    "PCOMM": "personal_communication",
    "RPRT": "report",
    "SOUND": "song",
    "STAT": "legislation",
    "THES": "thesis",
    "UNPB": "manuscript",
    "VIDEO": "motion_picture",
    "WEB": "webpage",
}

# rispy key -> CSL field; the first rispy key present wins.
_FIELD_MAP: tuple[tuple[str, str], ...] = (
    ("primary_title", "title"),
    ("title", "title"),
    ("short_title", "title-short"),
    ("journal_name", "container-title"),
    ("secondary_title", "container-title"),
    ("alternate_title3", "container-title"),
    ("alternate_title1", "container-title-short"),
    ("alternate_title2", "container-title-short"),
    ("tertiary_title", "collection-title"),
    ("volume", "volume"),
    ("number", "issue"),
    ("edition", "edition"),
    ("number_of_volumes", "number-of-volumes"),
    ("section", "section"),
    ("publisher", "publisher"),
    ("place_published", "publisher-place"),
    ("doi", "DOI"),
    ("abstract", "abstract"),
    ("notes_abstract", "abstract"),
    ("language", "language"),
    ("call_number", "call-number"),
    ("name_of_database", "archive"),
    ("type_of_work", "genre"),
)

_PERSON_KEYS: tuple[tuple[str, str], ...] = (
    ("authors", "author"),
    ("first_authors", "author"),
    ("secondary_authors", "editor"),
    ("tertiary_authors", "collection-editor"),
    ("translated_author", "translator"),
)

_DATE_KEYS: tuple[tuple[str, str], ...] = (
    ("year", "issued"),
    ("publication_year", "issued"),
    ("date", "issued"),
    ("access_date", "accessed"),
)


def record_to_csl(entry: Mapping[str, Any]) -> dict[str, Any]:
    """Map a rispy record onto a CSL record."""
    record: dict[str, Any] = {}

    ris_type = _first_text(entry.get("type_of_reference"))
    if ris_type:
        csl_type = _TYPES.get(ris_type.upper())
        if csl_type is not None:
            record["type"] = csl_type

    identifier = _first_text(entry.get("id"))
    if identifier:
        record["id"] = identifier

    for source, target in _FIELD_MAP:
        if target in record:
            continue
        text = _first_text(entry.get(source))
        if text:
            record[target] = text

    for source, target in _PERSON_KEYS:
        if target in record:
            continue
        names = [_name_to_csl(value) for value in _as_list(entry.get(source))]
        names = [name for name in names if name]
        if names:
            record[target] = names

    for source, target in _DATE_KEYS:
        if target in record:
            continue
        date = _parse_ris_date(_first_text(entry.get(source)))
        if date is not None:
            record[target] = date

    page = _page_range(_first_text(entry.get("start_page")), _first_text(entry.get("end_page")))
    if page:
        record["page"] = page

    urls = [text for text in (_first_text(url) for url in _as_list(entry.get("urls"))) if text]
    if urls:
        record["URL"] = urls[0]

    serial = _first_text(entry.get("issn"))
    if serial:
        record["ISBN" if record.get("type") in {"book", "chapter"} else "ISSN"] = serial

    keywords = [text for text in (_first_text(k) for k in _as_list(entry.get("keywords"))) if text]
    if keywords:
        record["keyword"] = ", ".join(keywords)

    notes = [text for text in (_first_text(n) for n in _as_list(entry.get("notes"))) if text]
    if notes:
        record["note"] = "\n".join(notes)

    return record


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, list | tuple):
        return list(value)
    return [value]


def _first_text(value: Any) -> str | None:
    values = _as_list(value)
    if not values or values[0] is None:
        return None
    text = str(values[0]).strip()
    return text or None


def _name_to_csl(value: Any) -> dict[str, str]:
    text = _first_text(value)
    if not text:
        return {}
    if "," not in text:
        return {"literal": text}
    family, _, rest = text.partition(",")
    given, _, suffix = rest.partition(",")
    payload = {"family": family.strip()}
    if given.strip():
        payload["given"] = given.strip()
    if suffix.strip():
        payload["suffix"] = suffix.strip()
    return payload


_RIS_DATE_RE = re.compile(r"^(\d{4})(?:[/-](\d{1,2})?)?(?:[/-](\d{1,2})?)?")


def _parse_ris_date(value: str | None) -> dict[str, Any] | None:
    """Parse ``YYYY/MM/DD/other`` dates, keeping only the valid leading parts."""
    if not value:
        return None
    match = _RIS_DATE_RE.match(value)
    if match is None:
        return {"literal": value}
    year, month, day = match.groups()
    parts = [int(year)]
    if month and 1 <= int(month) <= 12:
        parts.append(int(month))
        if day and 1 <= int(day) <= 31:
            parts.append(int(day))
    return {"date-parts": [parts]}


def _page_range(start: str | None, end: str | None) -> str | None:
    if not start:
        return None
    if end and end != start:
        return f"{start}-{end}"
    return start
