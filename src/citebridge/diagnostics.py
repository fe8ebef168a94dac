"""Diagnostic abstractions shared by the conversion and resolution layers."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
import logging
from typing import Any, Protocol, runtime_checkable


logger = logging.getLogger(__name__)


@runtime_checkable
class DiagnosticEmitter(Protocol):
    """Interface used to surface warnings and structured events."""

    def warning(self, message: str, exc: BaseException | None = None) -> None: ...

    def event(self, name: str, payload: Mapping[str, Any]) -> None: ...


class NullEmitter:
    """Emitter that ignores every diagnostic."""

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        return

    def event(self, name: str, payload: Mapping[str, Any]) -> None:
        return


class LoggingEmitter:
    """Emitter that forwards diagnostics to the standard logging module."""

    def __init__(self, *, logger_obj: logging.Logger | None = None) -> None:
        self._logger = logger_obj or logger

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        if exc is not None:
            self._logger.warning(message, exc_info=exc)
        else:
            self._logger.warning(message)

    def event(self, name: str, payload: Mapping[str, Any]) -> None:
        message = format_event_message(name, payload)
        if message:
            self._logger.info(message)
            return
        self._logger.debug("diagnostic event %s: %s", name, dict(payload))


@dataclass(slots=True)
class CollectingEmitter:
    """Emitter that records diagnostics so callers can inspect them afterwards."""

    warnings: list[str] = field(default_factory=list)
    events: list[tuple[str, dict[str, Any]]] = field(default_factory=list)

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        self.warnings.append(message)

    def event(self, name: str, payload: Mapping[str, Any]) -> None:
        self.events.append((name, dict(payload)))

    def events_named(self, name: str) -> list[dict[str, Any]]:
        """Return the payloads of every recorded event called ``name``."""
        return [payload for event_name, payload in self.events if event_name == name]


def format_event_message(name: str, payload: Mapping[str, Any]) -> str | None:
    """Return a human-friendly summary for selected diagnostic events."""
    data = dict(payload)

    if name == "field_dropped":
        field_name = data.get("field") or "<unknown>"
        reason = data.get("reason")
        suffix = f" ({reason})" if reason else ""
        return f"Dropped field '{field_name}'{suffix}"

    if name == "style_fetch":
        identifier = data.get("identifier") or "<unknown>"
        url = data.get("url")
        suffix = f" from {url}" if url and url != identifier else ""
        return f"Fetching citation style {identifier}{suffix}"

    if name == "style_fetch_cached":
        identifier = data.get("identifier") or "<unknown>"
        return f"Reusing cached citation style: {identifier}"

    if name == "parent_style":
        identifier = data.get("identifier") or "<unknown>"
        return f"Substituting independent parent style {identifier}"

    return None


__all__ = [
    "CollectingEmitter",
    "DiagnosticEmitter",
    "LoggingEmitter",
    "NullEmitter",
    "format_event_message",
]
