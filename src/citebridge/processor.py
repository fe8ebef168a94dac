"""Resolve a citation style and configure the rendering engine around it.

The rendering itself is delegated to ``citeproc-py``. This module picks the
style document (inline data, a bundle's declared style, or the style of a
bundle looked up by id), swaps in its independent parent when it has one,
maps the requested language to an available locale, and feeds the engine
with CSL records pulled from the caller's library on demand.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
import copy
from dataclasses import dataclass
import html
import io
import logging
from typing import Any, Protocol

from bs4 import BeautifulSoup
from citeproc import (
    Citation,
    CitationItem,
    CitationStylesBibliography,
    CitationStylesStyle,
    formatter,
)
from citeproc.source.json import CiteProcJSON

from .citations import CitationRequest, GetLibraryItem
from .convert import to_csl
from .diagnostics import DiagnosticEmitter, NullEmitter
from .exceptions import MissingLibraryItem, MissingStyleData
from .models import BibliographyItem
from .styles import (
    Bundle,
    BundleTable,
    LocaleTable,
    StyleRepository,
    find_parent_style,
    get_bundle_table,
    get_default_language,
    get_style_repository,
)
from .taxonomy import DATE_FIELDS, NUMBER_FIELDS


__all__ = [
    "BibliographyMeta",
    "CitationEngine",
    "CitationProcessor",
    "CiteprocEngine",
    "EngineFactory",
    "RenderedCitation",
    "bibliography_meta",
    "create_processor",
    "variable_wrapper",
]


logger = logging.getLogger(__name__)

RenderedCitation = tuple[str, int, str]
RetrieveItem = Callable[[str], dict[str, Any]]
VariableWrapper = Callable[[str, str, str], str]


def variable_wrapper(variable: str, value: str, context: str = "bibliography") -> str:
    """Render ``DOI`` and ``URL`` values in bibliographies as links.

    ``value`` is expected to be HTML-escaped already.
    """
    if context != "bibliography" or not value:
        return value
    if variable == "DOI":
        target = value if value.startswith(("http://", "https://")) else f"https://doi.org/{value}"
        return f'<a href="{target}">{value}</a>'
    if variable == "URL":
        return f'<a href="{value}">{value}</a>'
    return value


@dataclass(slots=True)
class BibliographyMeta:
    """Layout hints accompanying rendered bibliography entries."""

    entry_spacing: int = 1
    line_spacing: int = 1
    hanging_indent: bool = False
    second_field_align: str | None = None
    bibstart: str = '<div class="csl-bib-body">\n'
    bibend: str = "</div>"


def bibliography_meta(style_data: str) -> BibliographyMeta:
    """Read layout hints from the ``bibliography`` element of a style."""
    soup = BeautifulSoup(style_data, "xml")
    node = soup.find("bibliography")
    if node is None:
        return BibliographyMeta()

    def _int(name: str) -> int:
        raw = node.get(name)
        try:
            return int(raw) if raw is not None else 1
        except ValueError:
            return 1

    return BibliographyMeta(
        entry_spacing=_int("entry-spacing"),
        line_spacing=_int("line-spacing"),
        hanging_indent=node.get("hanging-indent") == "true",
        second_field_align=node.get("second-field-align") or None,
    )


class CitationEngine(Protocol):
    """What the processor needs from a rendering engine."""

    def rebuild_processor_state(
        self, citations: Sequence[CitationRequest]
    ) -> list[RenderedCitation]: ...

    def make_bibliography(self) -> tuple[BibliographyMeta, list[str]]: ...


EngineFactory = Callable[[str, str, RetrieveItem], CitationEngine]


def _engine_record(record: dict[str, Any]) -> dict[str, Any]:
    """Shape a CSL record the way citeproc-py's JSON source reads it."""
    payload = copy.deepcopy(record)
    for key, value in list(payload.items()):
        if key in NUMBER_FIELDS and not isinstance(value, str):
            payload[key] = str(value)
        elif key in DATE_FIELDS and isinstance(value, dict):
            parts = value.get("date-parts")
            if isinstance(parts, list):
                value["date-parts"] = [
                    [int(part) if str(part).lstrip("-").isdigit() else part for part in group]
                    for group in parts
                    if isinstance(group, list)
                ]
    return payload


class CiteprocEngine:
    """Rendering engine backed by ``citeproc-py`` with HTML output."""

    def __init__(
        self,
        style_data: str,
        locale: str,
        retrieve_item: RetrieveItem,
        *,
        wrap_variable: VariableWrapper = variable_wrapper,
    ) -> None:
        self.style_data = style_data
        self.locale = locale
        self._retrieve_item = retrieve_item
        self._wrap_variable = wrap_variable
        self._style = CitationStylesStyle(
            io.BytesIO(style_data.encode("utf-8")), locale=locale, validate=False
        )
        self._records: dict[str, dict[str, Any]] = {}
        self._bibliography: CitationStylesBibliography | None = None

    def rebuild_processor_state(
        self, citations: Sequence[CitationRequest]
    ) -> list[RenderedCitation]:
        """Register every citation, then render each one in document order."""
        self._records = {}
        for request in citations:
            for item_id in request.item_ids:
                if item_id not in self._records:
                    self._records[item_id] = self._retrieve_item(item_id)

        source = CiteProcJSON([_engine_record(record) for record in self._records.values()])
        bibliography = CitationStylesBibliography(self._style, source, formatter.html)
        prepared: list[tuple[CitationRequest, Citation]] = []
        for request in citations:
            citation = Citation([CitationItem(item_id) for item_id in request.item_ids])
            bibliography.register(citation)
            prepared.append((request, citation))
        self._bibliography = bibliography

        rendered: list[RenderedCitation] = []
        for request, citation in prepared:
            properties = request.properties
            if properties.mode is not None:
                logger.debug(
                    "Citation mode '%s' (infix %r) is not supported by citeproc-py; "
                    "rendering %s in full.",
                    properties.mode,
                    properties.infix,
                    request.citation_id,
                )
            text = str(bibliography.cite(citation, self._warn_missing))
            text = f"{properties.prefix or ''}{text}{properties.suffix or ''}"
            rendered.append((request.citation_id, properties.note_index, text))
        return rendered

    def make_bibliography(self) -> tuple[BibliographyMeta, list[str]]:
        meta = bibliography_meta(self.style_data)
        if self._bibliography is None or not self._bibliography.items:
            return meta, []
        self._bibliography.sort()
        entries = [self._link_variables(str(entry)) for entry in self._bibliography.bibliography()]
        return meta, entries

    def _link_variables(self, entry: str) -> str:
        for record in self._records.values():
            for variable in ("DOI", "URL"):
                value = record.get(variable)
                if not isinstance(value, str) or not value:
                    continue
                escaped = html.escape(value, quote=False)
                if escaped in entry and f'href="{escaped}"' not in entry:
                    entry = entry.replace(
                        escaped, self._wrap_variable(variable, escaped, "bibliography"), 1
                    )
        return entry

    @staticmethod
    def _warn_missing(citation_item: Any) -> None:
        logger.warning("Reference with key '%s' not found in the bibliography.", citation_item.key)


class CitationProcessor:
    """Engine handle returned by :func:`create_processor`."""

    def __init__(self, engine: CitationEngine, *, style_data: str, locale: str) -> None:
        self.engine = engine
        self.style_data = style_data
        self.locale = locale

    def rebuild_processor_state(
        self, citations: Sequence[CitationRequest]
    ) -> list[RenderedCitation]:
        """Render all citations; returns ``(citation_id, note_index, text)`` triples."""
        return self.engine.rebuild_processor_state(citations)

    def make_bibliography(self) -> tuple[BibliographyMeta, list[str]]:
        return self.engine.make_bibliography()


def _style_from_bundle(bundle: Bundle | None, repository: StyleRepository) -> str | None:
    if bundle is None or not bundle.csl_identifier:
        return None
    return repository.load_style(bundle.csl_identifier)


def create_processor(
    language_code: str | None,
    get_library_item: GetLibraryItem,
    *,
    bundle_id: str | None = None,
    bundle: Bundle | None = None,
    citation_style_data: str | None = None,
    repository: StyleRepository | None = None,
    bundles: BundleTable | None = None,
    locales: LocaleTable | None = None,
    engine_factory: EngineFactory | None = None,
    emitter: DiagnosticEmitter | None = None,
) -> CitationProcessor:
    """Resolve the style for a document and build a configured processor.

    The style comes from ``citation_style_data`` when given, otherwise from
    the style declared by ``bundle``, otherwise from the bundle registered
    under ``bundle_id``. :class:`MissingStyleData` is raised when none of
    them yields a style.
    """
    repository = repository or get_style_repository()
    emitter = emitter or NullEmitter()

    style_data = (
        citation_style_data
        or _style_from_bundle(bundle, repository)
        or _style_from_bundle(
            (bundles if bundles is not None else get_bundle_table()).find(bundle_id), repository
        )
    )
    if not style_data:
        raise MissingStyleData()

    parent_style = find_parent_style(style_data, repository, emitter=emitter)
    resolved_style = parent_style or style_data

    locale = (locales or LocaleTable()).retrieve(language_code or get_default_language())

    def retrieve_item(item_id: str) -> dict[str, Any]:
        item: BibliographyItem | None = get_library_item(item_id)
        if item is None:
            raise MissingLibraryItem(item_id)
        record = to_csl(item)
        record["id"] = item_id
        return record

    factory = engine_factory or CiteprocEngine
    engine = factory(resolved_style, locale, retrieve_item)
    return CitationProcessor(engine, style_data=resolved_style, locale=locale)
