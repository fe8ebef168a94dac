"""Closed classification of the CSL fields round-tripped by citebridge.

Every field name recognised by the converters belongs to exactly one of the
four sets below. Membership is checked by exact, case-sensitive name so the
tables follow CSL naming (``DOI``, ``container-title``). Names outside the
tables are inert: they are dropped in both conversion directions.
"""

from __future__ import annotations

from enum import Enum


__all__ = [
    "DATE_FIELDS",
    "NUMBER_FIELDS",
    "PERSON_FIELDS",
    "STRING_FIELDS",
    "FieldKind",
    "field_kind",
]


class FieldKind(Enum):
    """Kinds of values a classified field may hold."""

    STRING = "string"
    NUMBER = "number"
    PERSON = "person"
    DATE = "date"


PERSON_FIELDS: frozenset[str] = frozenset(
    {
        "author",
        "collection-editor",
        "composer",
        "container-author",
        "director",
        "editor",
        "editorial-director",
        "interviewer",
        "illustrator",
        "original-author",
        "recipient",
        "reviewed-author",
        "translator",
    }
)

DATE_FIELDS: frozenset[str] = frozenset(
    {
        "accessed",
        "container",
        "event-date",
        "issued",
        "original-date",
        "submitted",
    }
)

NUMBER_FIELDS: frozenset[str] = frozenset(
    {
        "chapter-number",
        "citation-number",
        "collection-number",
        "issue",
        "number",
        "number-of-pages",
        "number-of-volumes",
        "volume",
    }
)

STRING_FIELDS: frozenset[str] = frozenset(
    {
        "abstract",
        "annote",
        "archive",
        "archive-place",
        "archive_location",
        "authority",
        "call-number",
        "categories",
        "citation-label",
        "collection-title",
        "container-title",
        "container-title-short",
        "dimensions",
        "DOI",
        "edition",
        "event",
        "event-place",
        "first-reference-note-number",
        "genre",
        "ISBN",
        "ISSN",
        "journalAbbreviation",
        "jurisdiction",
        "keyword",
        "language",
        "locator",
        "medium",
        "note",
        "original-publisher",
        "original-publisher-place",
        "original-title",
        "page",
        "page-first",
        "PMCID",
        "PMID",
        "publisher",
        "publisher-place",
        "references",
        "reviewed-title",
        "scale",
        "section",
        "shortTitle",
        "source",
        "status",
        "title",
        "title-short",
        "URL",
        "version",
        "year-suffix",
    }
)

_KIND_BY_FIELD: dict[str, FieldKind] = {
    **{name: FieldKind.STRING for name in STRING_FIELDS},
    **{name: FieldKind.NUMBER for name in NUMBER_FIELDS},
    **{name: FieldKind.PERSON for name in PERSON_FIELDS},
    **{name: FieldKind.DATE for name in DATE_FIELDS},
}

if len(_KIND_BY_FIELD) != (
    len(STRING_FIELDS) + len(NUMBER_FIELDS) + len(PERSON_FIELDS) + len(DATE_FIELDS)
):  # pragma: no cover - guards edits to the tables above
    raise RuntimeError("Field taxonomy sets must be disjoint.")


def field_kind(name: str) -> FieldKind | None:
    """Return the kind of a field, or ``None`` when the field is unclassified."""
    return _KIND_BY_FIELD.get(name)
