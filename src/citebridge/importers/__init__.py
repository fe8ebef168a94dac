"""Import normalisation for external bibliography formats.

Architecture
: A process-wide registry maps normalised format names to
  ``module:attribute`` entrypoints. Parser modules are imported on first use
  so callers only pay for the formats they actually read.
: Every parser yields raw CSL records. `transform_bibliography` sanitises
  them with `fix_csl_data` and converts them with `to_item`, so the result is
  an ordered list of partial canonical items.

Usage Example

```pycon
>>> from citebridge.importers import transform_bibliography
>>> items = transform_bibliography('[{"id": "x", "title": "Hello"}]', "application/citeproc+json")
>>> items[0]["title"]
'Hello'
```
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
import importlib
import logging
import re
from typing import Any

from ..convert import fix_csl_data, to_item
from ..diagnostics import DiagnosticEmitter
from ..exceptions import UnknownFormat
from ..models import BibliographyItem


__all__ = [
    "ParserSpec",
    "choose_parser",
    "normalise_format_name",
    "register_parser",
    "transform_bibliography",
]


logger = logging.getLogger(__name__)

CSLParser = Callable[[str], list[dict[str, Any]]]
TextFilter = Callable[[str], str]


@dataclass(frozen=True, slots=True)
class ParserSpec:
    """Entrypoints used to read one import format."""

    format: str
    parse: str
    prepare: str | None = None

    def load_parser(self) -> CSLParser:
        """Import and return the parse callable."""
        return _load_entrypoint(self.parse)

    def load_prepare(self) -> TextFilter | None:
        """Import and return the text pre-filter, if the format declares one."""
        if self.prepare is None:
            return None
        return _load_entrypoint(self.prepare)


def _load_entrypoint(entrypoint: str) -> Any:
    module_name, _, attr = entrypoint.partition(":")
    if not module_name or not attr:
        raise ValueError(f"Parser entrypoint must be in the form 'module:attribute': {entrypoint}")
    module = importlib.import_module(module_name)
    return getattr(module, attr)


_REGISTRY: dict[str, ParserSpec] = {}


def register_parser(names: tuple[str, ...] | str, spec: ParserSpec) -> None:
    """Map one or more format names to a parser specification."""
    if isinstance(names, str):
        names = (names,)
    for name in names:
        _REGISTRY[normalise_format_name(name)] = spec


_FORMAT_PREFIX_RE = re.compile(r"^application/(x-)?")


def normalise_format_name(value: str) -> str:
    """Strip MIME prefixes and leading dots from a format hint."""
    candidate = value.strip().lower()
    candidate = _FORMAT_PREFIX_RE.sub("", candidate)
    if candidate.startswith("."):
        candidate = candidate[1:]
    return candidate


def choose_parser(format_hint: str) -> ParserSpec:
    """Return the parser specification registered for ``format_hint``."""
    spec = _REGISTRY.get(normalise_format_name(format_hint))
    if spec is None:
        raise UnknownFormat(format_hint)
    return spec


def transform_bibliography(
    data: str,
    format_hint: str,
    *,
    emitter: DiagnosticEmitter | None = None,
) -> list[BibliographyItem]:
    """Parse ``data`` in the hinted format and return canonical items."""
    spec = choose_parser(format_hint)
    parse = spec.load_parser()
    prepare = spec.load_prepare()
    if prepare is not None:
        data = prepare(data)

    records = parse(data)
    logger.debug("Parsed %d %s record(s)", len(records), spec.format)
    return [to_item(fix_csl_data(record), emitter=emitter) for record in records]


register_parser(
    ("bib", "bibtex"),
    ParserSpec(format="bibtex", parse="citebridge.importers.bibtex:parse"),
)
register_parser(
    ("ris", "research-info-systems"),
    ParserSpec(
        format="ris",
        parse="citebridge.importers.ris:parse",
        prepare="citebridge.importers.ris:filter_lines",
    ),
)
register_parser(
    "papers-citations-xml",
    ParserSpec(format="papers-citations-xml", parse="citebridge.importers.papers_xml:parse"),
)
register_parser(
    "citeproc+json",
    ParserSpec(format="citeproc+json", parse="citebridge.importers.csljson:parse"),
)
