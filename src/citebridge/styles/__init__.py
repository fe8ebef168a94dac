"""Citation style resolution: repositories, parents, bundles and locales."""

from __future__ import annotations

from threading import Lock

import requests

from ..config import CitebridgeConfig
from ..diagnostics import DiagnosticEmitter
from .bundles import Bundle, BundleCSL, BundleTable
from .locales import AVAILABLE_LOCALES, DEFAULT_LOCALE, PRIMARY_DIALECTS, LocaleTable
from .parent import find_parent_style, independent_parent_link
from .repository import (
    DirectoryStyleLoader,
    MappingStyleLoader,
    RemoteStyleLoader,
    StyleLoader,
    StyleRepository,
    style_basename,
)


__all__ = [
    "AVAILABLE_LOCALES",
    "DEFAULT_LOCALE",
    "PRIMARY_DIALECTS",
    "Bundle",
    "BundleCSL",
    "BundleTable",
    "DirectoryStyleLoader",
    "LocaleTable",
    "MappingStyleLoader",
    "RemoteStyleLoader",
    "StyleLoader",
    "StyleRepository",
    "configure_styles",
    "find_parent_style",
    "get_bundle_table",
    "get_default_language",
    "get_style_repository",
    "independent_parent_link",
    "load_style",
    "reset_styles",
    "set_bundle_table",
    "set_style_repository",
    "style_basename",
]

_REPOSITORY: StyleRepository | None = None
_BUNDLES: BundleTable | None = None
_LANGUAGE: str = DEFAULT_LOCALE
_LOCK = Lock()


def get_style_repository() -> StyleRepository:
    """Return the process-wide repository, built from default settings."""
    global _REPOSITORY
    with _LOCK:
        if _REPOSITORY is None:
            _REPOSITORY = StyleRepository.from_config()
        return _REPOSITORY


def set_style_repository(repository: StyleRepository | None) -> None:
    """Replace the process-wide repository; ``None`` restores the default."""
    global _REPOSITORY
    with _LOCK:
        _REPOSITORY = repository


def get_bundle_table() -> BundleTable:
    """Return the process-wide bundle table, empty until configured."""
    global _BUNDLES
    with _LOCK:
        if _BUNDLES is None:
            _BUNDLES = BundleTable()
        return _BUNDLES


def set_bundle_table(bundles: BundleTable | None) -> None:
    """Replace the process-wide bundle table; ``None`` restores an empty one."""
    global _BUNDLES
    with _LOCK:
        _BUNDLES = bundles


def get_default_language() -> str:
    """Return the language used when a processor is created without one."""
    with _LOCK:
        return _LANGUAGE


def configure_styles(
    config: CitebridgeConfig,
    *,
    session: requests.Session | None = None,
    emitter: DiagnosticEmitter | None = None,
) -> StyleRepository:
    """Install the repository, bundle table and language described by ``config``."""
    global _BUNDLES, _LANGUAGE, _REPOSITORY
    repository = StyleRepository.from_config(config.styles, session=session, emitter=emitter)
    bundles = (
        BundleTable.from_file(config.bundles_file)
        if config.bundles_file is not None
        else BundleTable()
    )
    with _LOCK:
        _REPOSITORY = repository
        _BUNDLES = bundles
        _LANGUAGE = config.language
    return repository


def reset_styles() -> None:
    """Forget every configured default."""
    global _BUNDLES, _LANGUAGE, _REPOSITORY
    with _LOCK:
        _REPOSITORY = None
        _BUNDLES = None
        _LANGUAGE = DEFAULT_LOCALE


def load_style(identifier: str, repository: StyleRepository | None = None) -> str:
    """Load a style document by identifier."""
    return (repository or get_style_repository()).load_style(identifier)
