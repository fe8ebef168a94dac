from pathlib import Path

import pytest

from citebridge.importers import transform_bibliography
from citebridge.importers.papers_xml import parse, parse_publication_date


FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def records() -> list[dict]:
    return parse((FIXTURES / "papers.xml").read_text(encoding="utf-8"))


def test_one_record_per_publication(records: list[dict]) -> None:
    assert [record["title"] for record in records] == [
        "Rate of tree carbon accumulation increases continuously with tree size",
        "The TeXbook",
        "Untyped",
    ]


def test_type_codes(records: list[dict]) -> None:
    assert records[0]["type"] == "article-journal"
    assert records[1]["type"] == "book"
    assert "type" not in records[2]


def test_authors_join_first_and_middle_names(records: list[dict]) -> None:
    assert records[0]["author"] == [
        {"given": "Nathan L.", "family": "Stephenson"},
        {"given": "Adrian", "family": "Das"},
    ]
    assert "author" not in records[1]


def test_page_range(records: list[dict]) -> None:
    assert records[0]["page"] == "90-93"
    assert records[1]["page"] == "1"
    assert "page" not in records[2]


def test_scalar_fields(records: list[dict]) -> None:
    first = records[0]
    assert first["container-title"] == "Nature"
    assert first["volume"] == "507"
    assert first["issue"] == "7490"
    assert first["DOI"] == "10.1038/nature12914"
    assert first["URL"] == "https://doi.org/10.1038/nature12914"
    assert records[1]["publisher"] == "Addison-Wesley"
    assert "container-title" not in records[1]


def test_issued_dates(records: list[dict]) -> None:
    assert records[0]["issued"] == {"date-parts": [[2014, 1, 15]]}
    assert "issued" not in records[1]
    assert records[2]["issued"] == {"date-parts": [[1984]]}


@pytest.mark.parametrize(
    ("stamp", "expected"),
    [
        ("99201401151200000000222000", [[2014, 1, 15]]),
        ("9920140132", [[2014, 1]]),
        ("9920140700", [[2014, 7]]),
    ],
)
def test_publication_date_stamp(stamp: str, expected: list[list[int]]) -> None:
    assert parse_publication_date(stamp) == {"date-parts": expected}


@pytest.mark.parametrize("stamp", ["", "2014", "19201401151200", "99-2014-01-15", "992014"])
def test_malformed_stamps_yield_no_date(stamp: str) -> None:
    assert parse_publication_date(stamp) is None


def test_transform_bibliography_reads_papers_xml() -> None:
    payload = (FIXTURES / "papers.xml").read_text(encoding="utf-8")

    items = transform_bibliography(payload, "papers-citations-xml")

    assert len(items) == 3
    assert items[0].type == "article-journal"
    assert items[0]["volume"] == 507
    assert items[0]["issued"].date_parts == [[2014, 1, 15]]
    assert items[0]["author"][0].given == "Nathan L."
    assert items[2].type is None


def test_empty_document() -> None:
    assert parse("<citation><publications/></citation>") == []
