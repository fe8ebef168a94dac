"""Configuration models for style, locale, and bundle resolution.

StyleConfig

`repository_prefix` (`str`)
: URL prefix a style identifier must start with for an
  ``independent-parent`` link to be followed. Defaults to the Zotero style
  repository.

`styles_dir` (`Path | None`)
: Directory holding ``*.csl`` files or first-letter JSON shards
  (``a.json``, ``b.json``...) mapping style identifiers to documents.

`remote` (`bool`)
: Fetch styles that are not available locally from the repository over HTTP.

`timeout` (`float`)
: Seconds to wait for a remote style before giving up.

`user_agent` (`str | None`)
: User agent sent with remote style requests.

`enable_cache` (`bool`)
: Persist remote styles below the user cache directory.

`cache_dir` (`Path | None`)
: Override for the remote style cache directory.

CitebridgeConfig

`language` (`str`)
: Locale identifier used when rendering citations, e.g. ``en-GB``.

`bundles_file` (`Path | None`)
: JSON document listing bundles and the citation style each declares.

`styles` (`StyleConfig`)
: Nested configuration controlling where styles come from.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
import yaml

from .exceptions import CitebridgeError


__all__ = [
    "ZOTERO_STYLE_PREFIX",
    "CitebridgeConfig",
    "ConfigError",
    "StyleConfig",
    "load_config",
]


ZOTERO_STYLE_PREFIX = "http://www.zotero.org/styles/"


class ConfigError(CitebridgeError):
    """Raised when a configuration file cannot be loaded."""


class StyleConfig(BaseModel):
    """Where citation styles are looked up."""

    model_config = ConfigDict(extra="forbid")

    repository_prefix: str = ZOTERO_STYLE_PREFIX
    styles_dir: Path | None = None
    remote: bool = False
    timeout: float = Field(default=10.0, gt=0)
    user_agent: str | None = None
    enable_cache: bool = True
    cache_dir: Path | None = None


class CitebridgeConfig(BaseModel):
    """Top-level configuration for the citation layer."""

    model_config = ConfigDict(extra="forbid")

    language: str = "en-US"
    bundles_file: Path | None = None
    styles: StyleConfig = Field(default_factory=StyleConfig)

    @field_validator("language", mode="before")
    @classmethod
    def _coerce_language(cls, value: Any) -> str:
        if value is None:
            return "en-US"
        candidate = str(value).strip().replace("_", "-")
        return candidate or "en-US"


def load_config(path: Path | str) -> CitebridgeConfig:
    """Load a YAML configuration file, resolving paths against its folder."""
    config_path = Path(path)
    try:
        payload = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Failed to read configuration '{config_path}': {exc}") from exc
    if not isinstance(payload, dict):
        raise ConfigError(f"Configuration '{config_path}' must be a mapping.")

    try:
        config = CitebridgeConfig.model_validate(payload)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration '{config_path}': {exc}") from exc

    base_dir = config_path.parent
    if config.bundles_file is not None and not config.bundles_file.is_absolute():
        config.bundles_file = base_dir / config.bundles_file
    for attribute in ("styles_dir", "cache_dir"):
        value = getattr(config.styles, attribute)
        if value is not None and not value.is_absolute():
            setattr(config.styles, attribute, base_dir / value)
    return config
