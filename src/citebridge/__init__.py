"""Normalise bibliographic data and resolve it against citation styles."""

from __future__ import annotations

from citebridge.citations import CitationMarker, CitationRequest, build_citations
from citebridge.collection import Library, LibraryIssue
from citebridge.config import CitebridgeConfig, StyleConfig, load_config
from citebridge.convert import fix_csl_data, to_csl, to_item
from citebridge.exceptions import (
    CitebridgeError,
    ImportParseError,
    MissingLibraryItem,
    MissingStyleData,
    NoStyleName,
    StyleFetchError,
    StyleNotFound,
    UnknownFormat,
)
from citebridge.importers import choose_parser, transform_bibliography
from citebridge.library import estimate_id, match_library_item_by_identifier
from citebridge.models import BibliographicDate, BibliographicName, BibliographyItem
from citebridge.processor import CitationProcessor, create_processor
from citebridge.styles import StyleRepository, configure_styles, find_parent_style, load_style
from citebridge.version import get_version


__version__ = get_version()

__all__ = [
    "BibliographicDate",
    "BibliographicName",
    "BibliographyItem",
    "CitationMarker",
    "CitationProcessor",
    "CitationRequest",
    "CitebridgeConfig",
    "CitebridgeError",
    "ImportParseError",
    "Library",
    "LibraryIssue",
    "MissingLibraryItem",
    "MissingStyleData",
    "NoStyleName",
    "StyleConfig",
    "StyleFetchError",
    "StyleNotFound",
    "StyleRepository",
    "UnknownFormat",
    "__version__",
    "build_citations",
    "choose_parser",
    "configure_styles",
    "create_processor",
    "estimate_id",
    "find_parent_style",
    "fix_csl_data",
    "load_config",
    "load_style",
    "match_library_item_by_identifier",
    "to_csl",
    "to_item",
    "transform_bibliography",
]
