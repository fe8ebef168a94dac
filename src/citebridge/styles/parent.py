"""Dependent style handling."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from bs4 import BeautifulSoup

from ..diagnostics import DiagnosticEmitter, NullEmitter


if TYPE_CHECKING:  # pragma: no cover - typing only
    from .repository import StyleRepository


__all__ = ["find_parent_style", "independent_parent_link"]


logger = logging.getLogger(__name__)


def independent_parent_link(style_data: str) -> str | None:
    """Return the ``independent-parent`` href declared in a style's info block."""
    soup = BeautifulSoup(style_data, "xml")
    info = soup.find("info")
    if info is None:
        return None
    link = info.find("link", attrs={"rel": "independent-parent"})
    if link is None:
        return None
    href = link.get("href")
    if not href:
        return None
    return str(href).strip() or None


def find_parent_style(
    style_data: str,
    repository: StyleRepository,
    *,
    prefix: str | None = None,
    emitter: DiagnosticEmitter | None = None,
) -> str | None:
    """Load the parent of a dependent style, if it lives in the repository.

    Only links under ``prefix`` (the repository prefix by default) are
    followed, and only one level deep.
    """
    href = independent_parent_link(style_data)
    if href is None:
        return None
    expected = prefix if prefix is not None else repository.repository_prefix
    if not href.startswith(expected):
        logger.debug("Ignoring parent style outside of %s: %s", expected, href)
        return None
    (emitter or NullEmitter()).event("parent_style", {"identifier": href})
    return repository.load_style(href)
