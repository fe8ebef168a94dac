"""Custom exception hierarchy for the citation data layer."""

from __future__ import annotations


class CitebridgeError(RuntimeError):
    """Base exception for citebridge failures."""


class UnknownFormat(CitebridgeError):
    """Raised when an import format hint does not map to a parser."""

    def __init__(self, format_name: str) -> None:
        self.format = format_name
        super().__init__(f"Unknown citation format {format_name}")


class ImportParseError(CitebridgeError):
    """Raised when a format parser rejects its input outright."""

    def __init__(self, format_name: str, detail: str) -> None:
        self.format = format_name
        super().__init__(f"Failed to parse {format_name} data: {detail}")


class StyleResolutionError(CitebridgeError):
    """Base exception for citation styles that cannot be resolved."""


class MissingStyleData(StyleResolutionError):
    """Raised when neither inline data nor a bundle provides a citation style."""

    def __init__(self) -> None:
        super().__init__("Missing citation style data")


class NoStyleName(StyleResolutionError):
    """Raised when a style identifier has no basename to look up."""

    def __init__(self, identifier: str) -> None:
        self.identifier = identifier
        super().__init__(f"No style name in identifier '{identifier}'")


class StyleNotFound(StyleResolutionError):
    """Raised when no style loader knows the requested identifier."""

    def __init__(self, identifier: str) -> None:
        self.identifier = identifier
        super().__init__(f"Citation style '{identifier}' not found")


class StyleFetchError(StyleResolutionError):
    """Raised when a remote style repository cannot deliver a style."""

    def __init__(self, identifier: str, detail: str) -> None:
        self.identifier = identifier
        super().__init__(f"Unable to fetch citation style '{identifier}': {detail}")


class MissingLibraryItem(CitebridgeError):
    """Raised when the rendering engine requests an id absent from the library."""

    def __init__(self, item_id: str) -> None:
        self.item_id = item_id
        super().__init__(f"Library item {item_id} is missing")


class UnknownFieldError(KeyError):
    """Raised when assigning a field that is not part of the taxonomy."""


__all__ = [
    "CitebridgeError",
    "ImportParseError",
    "MissingLibraryItem",
    "MissingStyleData",
    "NoStyleName",
    "StyleFetchError",
    "StyleNotFound",
    "StyleResolutionError",
    "UnknownFieldError",
    "UnknownFormat",
]
