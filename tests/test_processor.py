import json
import logging
from pathlib import Path

import pytest

from citebridge.citations import CitationMarker, build_citations
from citebridge.config import load_config
from citebridge.exceptions import MissingLibraryItem, MissingStyleData, StyleNotFound
from citebridge.models import BibliographicDate, BibliographicName, BibliographyItem
from citebridge.processor import (
    BibliographyMeta,
    CiteprocEngine,
    bibliography_meta,
    create_processor,
    variable_wrapper,
)
from citebridge.styles import (
    Bundle,
    BundleTable,
    MappingStyleLoader,
    StyleRepository,
    configure_styles,
    get_bundle_table,
    get_default_language,
    reset_styles,
)


STYLES = Path(__file__).parent / "fixtures" / "styles"
PARENT_ID = "http://www.zotero.org/styles/author-date"
CHILD_ID = "http://www.zotero.org/styles/dependent-journal"


def _read(name: str) -> str:
    return (STYLES / name).read_text(encoding="utf-8")


class FakeEngine:
    def __init__(self, style_data: str, locale: str, retrieve_item) -> None:
        self.style_data = style_data
        self.locale = locale
        self.retrieve_item = retrieve_item

    def rebuild_processor_state(self, citations):
        return [
            (
                citation.citation_id,
                citation.properties.note_index,
                "; ".join(self.retrieve_item(item_id)["title"] for item_id in citation.item_ids),
            )
            for citation in citations
        ]

    def make_bibliography(self):
        return BibliographyMeta(), []


LIBRARY = {
    "doe2020": BibliographyItem(
        id="doe2020",
        fields={
            "title": "A study of trees",
            "DOI": "10.1/abc",
            "author": [BibliographicName(family="Doe", given="Jane")],
            "issued": BibliographicDate(date_parts=[[2020]]),
        },
    ),
    "roe2018": BibliographyItem(
        id="roe2018",
        type="book",
        fields={
            "title": "Forests",
            "author": [BibliographicName(family="Roe", given="Rick")],
            "issued": BibliographicDate(date_parts=[[2018]]),
        },
    ),
}


@pytest.fixture
def repository() -> StyleRepository:
    return StyleRepository(
        [
            MappingStyleLoader(
                {
                    PARENT_ID: _read("author-date.csl"),
                    CHILD_ID: _read("dependent.csl"),
                    "http://www.zotero.org/styles/bundle-style": "<style>bundle</style>",
                }
            )
        ]
    )


def test_missing_style_data(repository: StyleRepository) -> None:
    with pytest.raises(MissingStyleData):
        create_processor("en", LIBRARY.get, repository=repository, engine_factory=FakeEngine)


def test_inline_style_wins(repository: StyleRepository) -> None:
    bundle = Bundle.model_validate(
        {"_id": "MPBundle:b", "csl": {"cslIdentifier": "http://www.zotero.org/styles/bundle-style"}}
    )

    processor = create_processor(
        "en",
        LIBRARY.get,
        citation_style_data=_read("author-date.csl"),
        bundle=bundle,
        repository=repository,
        engine_factory=FakeEngine,
    )

    assert processor.style_data == _read("author-date.csl")


def test_bundle_style_before_bundle_id(repository: StyleRepository) -> None:
    bundle = Bundle.model_validate(
        {"_id": "MPBundle:b", "csl": {"cslIdentifier": "http://www.zotero.org/styles/bundle-style"}}
    )
    bundles = BundleTable([Bundle.model_validate({"_id": "MPBundle:other", "csl": {"cslIdentifier": PARENT_ID}})])

    processor = create_processor(
        "en",
        LIBRARY.get,
        bundle=bundle,
        bundle_id="MPBundle:other",
        bundles=bundles,
        repository=repository,
        engine_factory=FakeEngine,
    )

    assert processor.style_data == "<style>bundle</style>"


def test_bundle_id_lookup(repository: StyleRepository) -> None:
    bundles = BundleTable([Bundle.model_validate({"_id": "MPBundle:other", "csl": {"cslIdentifier": PARENT_ID}})])

    processor = create_processor(
        "de",
        LIBRARY.get,
        bundle_id="MPBundle:other",
        bundles=bundles,
        repository=repository,
        engine_factory=FakeEngine,
    )

    assert processor.style_data == _read("author-date.csl")
    assert processor.locale == "de-DE"
    assert processor.engine.locale == "de-DE"


def test_bundle_without_style_falls_through(repository: StyleRepository) -> None:
    with pytest.raises(MissingStyleData):
        create_processor(
            "en",
            LIBRARY.get,
            bundle=Bundle.model_validate({"_id": "MPBundle:plain"}),
            bundle_id="MPBundle:unknown",
            bundles=BundleTable(),
            repository=repository,
            engine_factory=FakeEngine,
        )


def test_unknown_bundle_style_is_fatal(repository: StyleRepository) -> None:
    bundle = Bundle.model_validate(
        {"_id": "MPBundle:b", "csl": {"cslIdentifier": "http://www.zotero.org/styles/unknown"}}
    )

    with pytest.raises(StyleNotFound):
        create_processor("en", LIBRARY.get, bundle=bundle, repository=repository, engine_factory=FakeEngine)


def test_dependent_style_is_replaced_by_parent(repository: StyleRepository) -> None:
    processor = create_processor(
        "en-US",
        LIBRARY.get,
        citation_style_data=_read("dependent.csl"),
        repository=repository,
        engine_factory=FakeEngine,
    )

    assert processor.style_data == _read("author-date.csl")
    assert processor.engine.style_data == _read("author-date.csl")


def test_retrieve_item_converts_to_csl(repository: StyleRepository) -> None:
    processor = create_processor(
        "en",
        LIBRARY.get,
        citation_style_data=_read("author-date.csl"),
        repository=repository,
        engine_factory=FakeEngine,
    )

    record = processor.engine.retrieve_item("doe2020")

    assert record == {
        "id": "doe2020",
        "type": "article-journal",
        "title": "A study of trees",
        "DOI": "10.1/abc",
        "author": [{"family": "Doe", "given": "Jane"}],
        "issued": {"date-parts": [[2020]]},
    }


def test_missing_library_item(repository: StyleRepository) -> None:
    processor = create_processor(
        "en",
        LIBRARY.get,
        citation_style_data=_read("author-date.csl"),
        repository=repository,
        engine_factory=FakeEngine,
    )
    citations = build_citations([CitationMarker(id="c1", item_ids=["ghost"])], LIBRARY.get)

    with pytest.raises(MissingLibraryItem) as excinfo:
        processor.rebuild_processor_state(citations)

    assert excinfo.value.item_id == "ghost"
    assert str(excinfo.value) == "Library item ghost is missing"


def test_rebuild_processor_state_with_fake_engine(repository: StyleRepository) -> None:
    processor = create_processor(
        "en",
        LIBRARY.get,
        citation_style_data=_read("author-date.csl"),
        repository=repository,
        engine_factory=FakeEngine,
    )
    citations = build_citations(
        [
            CitationMarker(id="c1", item_ids=["doe2020"]),
            CitationMarker(id="c2", item_ids=["roe2018", "doe2020"]),
        ],
        LIBRARY.get,
    )

    assert processor.rebuild_processor_state(citations) == [
        ("c1", 0, "A study of trees"),
        ("c2", 0, "Forests; A study of trees"),
    ]


def test_variable_wrapper() -> None:
    assert variable_wrapper("DOI", "10.1/abc") == '<a href="https://doi.org/10.1/abc">10.1/abc</a>'
    assert variable_wrapper("URL", "https://example.org") == (
        '<a href="https://example.org">https://example.org</a>'
    )
    assert variable_wrapper("title", "A study") == "A study"
    assert variable_wrapper("DOI", "10.1/abc", context="citation") == "10.1/abc"


def test_bibliography_meta() -> None:
    meta = bibliography_meta(_read("author-date.csl"))

    assert meta.entry_spacing == 0
    assert meta.line_spacing == 1
    assert meta.hanging_indent is True
    assert bibliography_meta("<style/>") == BibliographyMeta()


def test_citeproc_engine_renders_citations_and_bibliography(repository: StyleRepository) -> None:
    processor = create_processor(
        "en-US",
        LIBRARY.get,
        citation_style_data=_read("author-date.csl"),
        repository=repository,
    )
    assert isinstance(processor.engine, CiteprocEngine)

    citations = build_citations(
        [
            CitationMarker(id="c1", item_ids=["doe2020"]),
            CitationMarker(id="c2", item_ids=["roe2018"], prefix="see ", display_scheme="show-all"),
        ],
        LIBRARY.get,
    )
    rendered = processor.rebuild_processor_state(citations)

    assert [citation_id for citation_id, _, _ in rendered] == ["c1", "c2"]
    assert "Doe" in rendered[0][2]
    assert "2020" in rendered[0][2]
    assert rendered[1][2].startswith("see ")
    assert "Roe" in rendered[1][2]

    meta, entries = processor.make_bibliography()
    assert meta.hanging_indent is True
    assert len(entries) == 2
    assert "A study of trees" in " ".join(entries)
    assert "Forests" in " ".join(entries)


def test_citeproc_engine_links_identifiers() -> None:
    engine = CiteprocEngine(_read("author-date.csl"), "en-US", lambda item_id: {})
    engine._records = {
        "doe2020": {"id": "doe2020", "DOI": "10.1/abc", "URL": "https://example.org/a?b=1&c=2"},
    }

    entry = engine._link_variables("A study of trees. 10.1/abc. https://example.org/a?b=1&amp;c=2.")

    assert '<a href="https://doi.org/10.1/abc">10.1/abc</a>' in entry
    assert '<a href="https://example.org/a?b=1&amp;c=2">https://example.org/a?b=1&amp;c=2</a>' in entry


def test_make_bibliography_before_rendering() -> None:
    engine = CiteprocEngine(_read("author-date.csl"), "en-US", lambda item_id: {})

    meta, entries = engine.make_bibliography()

    assert entries == []
    assert meta.hanging_indent is True


def test_composite_infix_is_reported(
    repository: StyleRepository, caplog: pytest.LogCaptureFixture
) -> None:
    processor = create_processor(
        "en-US",
        LIBRARY.get,
        citation_style_data=_read("author-date.csl"),
        repository=repository,
    )
    citations = build_citations(
        [CitationMarker(id="c1", item_ids=["doe2020"], display_scheme="composite", infix=" argues")],
        LIBRARY.get,
    )
    assert citations[0].properties.infix == " argues"

    with caplog.at_level(logging.DEBUG, logger="citebridge.processor"):
        rendered = processor.rebuild_processor_state(citations)

    assert "Doe" in rendered[0][2]
    assert any(
        "composite" in record.getMessage() and "' argues'" in record.getMessage()
        for record in caplog.records
    )


def test_bundle_id_resolves_through_configured_defaults(tmp_path: Path) -> None:
    (tmp_path / "styles").mkdir()
    (tmp_path / "styles" / "author-date.csl").write_text(_read("author-date.csl"), encoding="utf-8")
    (tmp_path / "bundles.json").write_text(
        json.dumps({"MPBundle:journal": {"csl": {"cslIdentifier": PARENT_ID}}}),
        encoding="utf-8",
    )
    (tmp_path / "citebridge.yml").write_text(
        "language: en_GB\nbundles_file: bundles.json\nstyles:\n  styles_dir: styles\n",
        encoding="utf-8",
    )

    configure_styles(load_config(tmp_path / "citebridge.yml"))
    try:
        assert get_default_language() == "en-GB"
        processor = create_processor(
            None, LIBRARY.get, bundle_id="MPBundle:journal", engine_factory=FakeEngine
        )
    finally:
        reset_styles()

    assert processor.style_data == _read("author-date.csl")
    assert processor.locale == "en-GB"
    assert get_default_language() == "en-US"
    assert len(get_bundle_table()) == 0


def test_bundle_id_without_configured_bundles(repository: StyleRepository) -> None:
    reset_styles()

    with pytest.raises(MissingStyleData):
        create_processor(
            "en",
            LIBRARY.get,
            bundle_id="MPBundle:journal",
            repository=repository,
            engine_factory=FakeEngine,
        )
