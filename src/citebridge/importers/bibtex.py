"""BibTeX reader built on pybtex."""

from __future__ import annotations

from collections.abc import Iterable
import html
import io
import re
from typing import Any

from pybtex.database import BibliographyData, Entry, Person
from pybtex.database.input import bibtex
from pybtex.exceptions import PybtexError

from ..exceptions import ImportParseError


__all__ = ["entry_to_csl", "parse"]


_ENTRY_TYPES: dict[str, str] = {
    "article": "article-journal",
    "book": "book",
    "booklet": "pamphlet",
    "conference": "paper-conference",
    "dataset": "dataset",
    "electronic": "webpage",
    "inbook": "chapter",
    "incollection": "chapter",
    "inproceedings": "paper-conference",
    "manual": "report",
    "mastersthesis": "thesis",
    "misc": "article",
    "online": "webpage",
    "patent": "patent",
    "phdthesis": "thesis",
    "proceedings": "book",
    "report": "report",
    "techreport": "report",
    "thesis": "thesis",
    "unpublished": "manuscript",
    "www": "webpage",
}

# BibTeX field -> CSL field; the first BibTeX field present wins.
_FIELD_MAP: tuple[tuple[str, str], ...] = (
    ("title", "title"),
    ("shorttitle", "title-short"),
    ("journal", "container-title"),
    ("journaltitle", "container-title"),
    ("booktitle", "container-title"),
    ("series", "collection-title"),
    ("volume", "volume"),
    ("edition", "edition"),
    ("chapter", "chapter-number"),
    ("pages", "page"),
    ("publisher", "publisher"),
    ("school", "publisher"),
    ("institution", "publisher"),
    ("organization", "publisher"),
    ("address", "publisher-place"),
    ("location", "publisher-place"),
    ("doi", "DOI"),
    ("url", "URL"),
    ("isbn", "ISBN"),
    ("issn", "ISSN"),
    ("pmid", "PMID"),
    ("pmcid", "PMCID"),
    ("abstract", "abstract"),
    ("note", "note"),
    ("annote", "annote"),
    ("keywords", "keyword"),
    ("language", "language"),
    ("howpublished", "medium"),
    ("type", "genre"),
)

_PERSON_ROLES: dict[str, str] = {
    "author": "author",
    "editor": "editor",
    "translator": "translator",
}

_HTML_TAG_RE = re.compile(r"<[^>]+?>")
_LATEX_ESCAPE_RE = re.compile(r"\\([&%$#_{}])")
_WHITESPACE_RE = re.compile(r"\s+")


def parse(payload: str) -> list[dict[str, Any]]:
    """Parse BibTeX text into CSL records, preserving entry order."""
    parser = bibtex.Parser()
    try:
        data: BibliographyData = parser.parse_stream(io.StringIO(payload))
    except PybtexError as exc:
        raise ImportParseError("bibtex", str(exc)) from exc
    return [entry_to_csl(key, entry) for key, entry in data.entries.items()]


def entry_to_csl(key: str, entry: Entry) -> dict[str, Any]:
    """Map a pybtex entry onto a CSL record."""
    entry_type = entry.type.lower()
    fields = {name.lower(): value for name, value in entry.fields.items()}
    record: dict[str, Any] = {"id": key}

    csl_type = _ENTRY_TYPES.get(entry_type)
    if csl_type is not None:
        record["type"] = csl_type

    for source, target in _FIELD_MAP:
        if target in record:
            continue
        value = fields.get(source)
        if value is None:
            continue
        text = _sanitize_field_text(str(value), field=source)
        if text:
            record[target] = text

    # BibTeX "number" is the issue of a periodical and the report number elsewhere.
    number = fields.get("number")
    if number is not None:
        text = _sanitize_field_text(str(number))
        if text:
            record["issue" if entry_type == "article" else "number"] = text

    if "page" in record:
        record["page"] = re.sub(r"\s*-+\s*", "-", record["page"])

    for role, target in _PERSON_ROLES.items():
        persons = entry.persons.get(role)
        if persons:
            record[target] = [_person_to_csl(person) for person in persons]

    issued = _issued_from_fields(fields)
    if issued is not None:
        record["issued"] = issued

    accessed = _date_parts_from_iso(fields.get("urldate"))
    if accessed is not None:
        record["accessed"] = accessed

    return record


def _person_to_csl(person: Person) -> dict[str, str]:
    family = _join(person.last_names)
    given = _join([*person.first_names, *person.middle_names])
    particle = _join(person.prelast_names)
    suffix = _join(person.lineage_names)

    payload: dict[str, str] = {}
    if family and not given and not particle and _is_literal(person):
        payload["literal"] = family
        return payload
    if family:
        payload["family"] = family
    if given:
        payload["given"] = given
    if particle:
        payload["non-dropping-particle"] = particle
    if suffix:
        payload["suffix"] = suffix
    return payload


def _is_literal(person: Person) -> bool:
    # Corporate names are protected by braces: {World Health Organization}.
    names = list(person.last_names)
    return len(names) == 1 and names[0].startswith("{") and names[0].endswith("}")


def _join(parts: Iterable[str]) -> str:
    return " ".join(_sanitize_field_text(str(part)) for part in parts if part).strip()


def _sanitize_field_text(value: str, *, field: str | None = None) -> str:
    """Strip braces, lightweight markup, and escapes from a field value."""
    if "<" in value and ">" in value:
        value = _HTML_TAG_RE.sub("", value)
    value = html.unescape(value)
    value = _LATEX_ESCAPE_RE.sub(r"\1", value)
    if field not in {"url", "doi"}:
        value = value.replace("{", "").replace("}", "")
    return _WHITESPACE_RE.sub(" ", value).strip()


def _issued_from_fields(fields: dict[str, Any]) -> dict[str, Any] | None:
    date = _date_parts_from_iso(fields.get("date"))
    if date is not None:
        return date

    year = fields.get("year")
    if year is None:
        return None
    year_text = _sanitize_field_text(str(year))
    match = re.match(r"^(\d{1,4})", year_text)
    if match is None:
        return {"literal": year_text} if year_text else None

    parts = [int(match.group(1))]
    month = _normalise_month_field(str(fields.get("month", "")))
    if month is not None:
        parts.append(month)
        day = str(fields.get("day", "")).strip()
        if day.isdigit() and 1 <= int(day) <= 31:
            parts.append(int(day))
    return {"date-parts": [parts]}


_ISO_DATE_RE = re.compile(r"^(\d{4})(?:-(\d{1,2}))?(?:-(\d{1,2}))?")


def _date_parts_from_iso(value: Any) -> dict[str, Any] | None:
    if value is None:
        return None
    text = _sanitize_field_text(str(value))
    # Ranges such as 2019/2020 only keep their start.
    match = _ISO_DATE_RE.match(text.split("/", 1)[0])
    if match is None:
        return {"literal": text} if text else None
    parts = [int(group) for group in match.groups() if group is not None]
    return {"date-parts": [parts]}


_MONTH_NAME_TO_INT: dict[str, int] = {
    "jan": 1,
    "january": 1,
    "feb": 2,
    "february": 2,
    "mar": 3,
    "march": 3,
    "apr": 4,
    "april": 4,
    "may": 5,
    "jun": 6,
    "june": 6,
    "jul": 7,
    "july": 7,
    "aug": 8,
    "august": 8,
    "sep": 9,
    "sept": 9,
    "september": 9,
    "oct": 10,
    "october": 10,
    "nov": 11,
    "november": 11,
    "dec": 12,
    "december": 12,
}


def _normalise_month_field(value: str) -> int | None:
    """Convert month names, abbreviations, or digits to a month number."""
    candidate = value.strip().strip("{}\"'.").lower()
    if not candidate:
        return None

    if candidate.isdigit():
        month_int = int(candidate)
        if 1 <= month_int <= 12:
            return month_int
        return None

    return _MONTH_NAME_TO_INT.get(candidate)
