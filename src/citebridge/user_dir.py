"""Resolution of the citebridge cache directory."""

from __future__ import annotations

import os
from pathlib import Path


__all__ = ["get_cache_dir", "resolve_cache_root"]


def resolve_cache_root() -> Path:
    """Return the cache root selected by the environment.

    ``CITEBRIDGE_CACHE_DIR`` wins, then ``$XDG_CACHE_HOME/citebridge``, then
    ``$CITEBRIDGE_HOME/cache``, then ``~/.cache/citebridge``.
    """
    env_cache = os.environ.get("CITEBRIDGE_CACHE_DIR")
    if env_cache:
        return Path(env_cache).expanduser()
    xdg_cache = os.environ.get("XDG_CACHE_HOME")
    if xdg_cache:
        return Path(xdg_cache).expanduser() / "citebridge"
    env_root = os.environ.get("CITEBRIDGE_HOME")
    if env_root:
        return Path(env_root).expanduser() / "cache"
    return Path.home() / ".cache" / "citebridge"


def get_cache_dir(*parts: str | Path, create: bool = True) -> Path:
    """Return a directory under the cache root, creating it when requested."""
    target = resolve_cache_root().joinpath(*parts)
    if create:
        target.mkdir(parents=True, exist_ok=True)
    return target
