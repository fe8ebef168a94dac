import json

from citebridge.convert import to_item
from citebridge.library import (
    authors_string,
    estimate_id,
    full_library_item_metadata,
    issued_year,
    match_library_item_by_identifier,
    short_authors_string,
    short_library_item_metadata,
)
from citebridge.models import BibliographicDate, BibliographicName, BibliographyItem


def _item(**fields) -> BibliographyItem:
    item_id = fields.pop("id", None)
    return BibliographyItem(id=item_id, fields=fields)


def test_issued_year() -> None:
    item = _item(issued=BibliographicDate(date_parts=[["2019"]]))

    assert issued_year(item) == "2019"
    assert issued_year(_item()) is None


def test_estimate_id_prefers_uppercased_doi() -> None:
    assert estimate_id(_item(DOI="valid-doi")) == "VALID-DOI"
    assert estimate_id(_item(DOI="foo", PMID="1234567")) == "FOO"


def test_estimate_id_falls_back_to_pmid() -> None:
    item = _item(title="title", PMID="1234567", issued=BibliographicDate(date_parts=[["2019"]]))

    assert estimate_id(item) == "1234567"


def test_estimate_id_fingerprint() -> None:
    issued = BibliographicDate(date_parts=[["2019"]])

    assert estimate_id(_item(title="title", issued=issued)) == json.dumps(
        {"title": "title", "author": None, "year": "2019"}, separators=(",", ":")
    )
    assert estimate_id(_item(title="title", author=[], issued=issued)) == json.dumps(
        {"title": "title", "author": None, "year": "2019"}, separators=(",", ":")
    )

    author = [BibliographicName(family="family", literal="L", given="given")]
    assert estimate_id(_item(title="title", author=author, issued=issued)) == (
        '{"title":"title","author":"family","year":"2019"}'
    )


def test_estimate_id_author_fallbacks() -> None:
    issued = BibliographicDate(date_parts=[["2019"]])
    literal = [BibliographicName(literal="L", given="given")]
    given = [BibliographicName(given="given")]

    assert json.loads(estimate_id(_item(title="t", author=literal, issued=issued)))["author"] == "L"
    assert json.loads(estimate_id(_item(title="t", author=given, issued=issued)))["author"] == "given"


def test_estimate_id_keeps_blank_author_name() -> None:
    item = to_item({"title": "t", "author": [{"family": "", "given": ""}]})

    assert estimate_id(item) == '{"title":"t","author":"","year":null}'
    assert estimate_id(_item(title="t", author=[BibliographicName()])) == (
        '{"title":"t","year":null}'
    )


def test_estimate_id_matches_imported_record() -> None:
    item = to_item({"title": "t", "author": [{"family": "f"}], "issued": {"date-parts": [["2019"]]}})

    assert estimate_id(item) == '{"title":"t","author":"f","year":"2019"}'


def test_match_by_id_first() -> None:
    by_id = _item(id="a", DOI="10.1/other")
    by_doi = _item(id="b", DOI="10.1/x")
    library = {"a": by_id, "b": by_doi}

    assert match_library_item_by_identifier(_item(id="a", DOI="10.1/X"), library) is by_id


def test_match_by_doi_ignores_case() -> None:
    stored = _item(id="stored", DOI="10.1/X")
    library = {"stored": stored}

    assert match_library_item_by_identifier(_item(id="query", DOI="10.1/x"), library) is stored


def test_match_by_pmid_is_exact() -> None:
    stored = _item(id="stored", PMID="123")
    library = {"stored": stored}

    assert match_library_item_by_identifier(_item(PMID="123"), library) is stored
    assert match_library_item_by_identifier(_item(PMID="0123"), library) is None


def test_match_by_url_ignores_case() -> None:
    stored = _item(id="stored", URL="https://Example.org/Paper")
    library = {"stored": stored}

    assert match_library_item_by_identifier(_item(URL="https://example.org/paper"), library) is stored


def test_match_tiers_are_ordered() -> None:
    by_pmid = _item(id="pmid", PMID="42")
    by_doi = _item(id="doi", DOI="10.1/y")
    library = {"pmid": by_pmid, "doi": by_doi}

    query = _item(PMID="42", DOI="10.1/Y")

    assert match_library_item_by_identifier(query, library) is by_doi


def test_no_match_returns_none() -> None:
    library = {"a": _item(id="a", DOI="10.1/a")}

    assert match_library_item_by_identifier(_item(title="unrelated"), library) is None
    assert match_library_item_by_identifier(_item(DOI="10.1/b"), {}) is None


def test_authors_string() -> None:
    assert authors_string([]) == ""
    assert authors_string(["given-1"]) == "given-1"
    assert authors_string(["given-1", "given-2"]) == "given-1 & given-2"
    assert authors_string(["given-1", "given-2", "given-3"]) == "given-1, given-2 & given-3"
    assert (
        authors_string(["given-1", "given-2", "given-3", "given-4"])
        == "given-1, given-2, given-3 & given-4"
    )


def test_short_authors_string() -> None:
    item = _item(
        author=[
            BibliographicName(family="family"),
            BibliographicName(literal="L"),
            BibliographicName(given="given"),
            BibliographicName(family="family2"),
        ]
    )

    assert short_authors_string(item) == "family, L, given & family2"


def test_library_item_metadata() -> None:
    issued = BibliographicDate(date_parts=[["2019"]])
    two_authors = [BibliographicName(given="given-1"), BibliographicName(given="given-2")]

    missing_authors = _item(issued=issued, **{"container-title": "journal name"})
    assert full_library_item_metadata(missing_authors) == "journal name, 2019"
    assert short_library_item_metadata(missing_authors) == "journal name, 2019"

    only_authors = _item(author=two_authors)
    assert full_library_item_metadata(only_authors) == "given-1 & given-2"

    complete = _item(author=two_authors, issued=issued, **{"container-title": "journal name"})
    assert full_library_item_metadata(complete) == "given-1 & given-2, journal name, 2019"
    assert short_library_item_metadata(complete) == "given-1 & given-2, journal name, 2019"

    nameless = _item(author=[BibliographicName(given="given-1"), BibliographicName()], issued=issued)
    assert full_library_item_metadata(nameless) == "given-1, 2019"
    assert short_library_item_metadata(nameless) == "given-1, 2019"
