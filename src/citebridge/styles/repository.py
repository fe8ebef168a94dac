"""Citation style lookup across local tables and the remote repository."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, MutableMapping, Sequence
from hashlib import sha256
import json
import logging
from pathlib import Path
from threading import Lock
from typing import Protocol

import requests

from ..config import StyleConfig
from ..diagnostics import DiagnosticEmitter, LoggingEmitter
from ..exceptions import NoStyleName, StyleFetchError, StyleNotFound
from ..user_dir import get_cache_dir


__all__ = [
    "DirectoryStyleLoader",
    "MappingStyleLoader",
    "RemoteStyleLoader",
    "StyleLoader",
    "StyleRepository",
    "style_basename",
]


logger = logging.getLogger(__name__)


def style_basename(identifier: str) -> str:
    """Return the last path segment of a style identifier."""
    basename = identifier.split("/")[-1]
    if not basename:
        raise NoStyleName(identifier)
    return basename


class StyleLoader(Protocol):
    """Source of style documents keyed by style identifier."""

    def load(self, identifier: str, basename: str) -> str | None: ...


class MappingStyleLoader:
    """Serve styles from an in-memory ``identifier -> document`` table."""

    def __init__(self, styles: Mapping[str, str]) -> None:
        self._styles = dict(styles)

    def load(self, identifier: str, basename: str) -> str | None:
        return self._styles.get(identifier)


class DirectoryStyleLoader:
    """Serve styles from a directory of shards or ``.csl`` files.

    A shard is a JSON object named after the first letter of the style
    basename (``n.json`` holds ``.../styles/nature``) mapping identifiers to
    documents. A ``<basename>.csl`` file is used when no shard knows the style.
    """

    def __init__(self, directory: Path | str, *, emitter: DiagnosticEmitter | None = None) -> None:
        self._directory = Path(directory)
        self._shards: dict[str, dict[str, str]] = {}
        self._lock = Lock()
        self._emitter = emitter or LoggingEmitter(logger_obj=logger)

    def load(self, identifier: str, basename: str) -> str | None:
        shard = self._shard(basename[0])
        if identifier in shard:
            return shard[identifier]

        candidate = self._directory / f"{basename}.csl"
        if not candidate.is_file():
            return None
        return candidate.read_text(encoding="utf-8")

    def _shard(self, letter: str) -> dict[str, str]:
        with self._lock:
            if letter not in self._shards:
                self._shards[letter] = self._read_shard(self._directory / f"{letter}.json")
            return self._shards[letter]

    def _read_shard(self, path: Path) -> dict[str, str]:
        if not path.is_file():
            return {}
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            self._emitter.warning(f"Ignoring unreadable style shard {path}", exc)
            return {}
        if not isinstance(payload, dict):
            self._emitter.warning(f"Ignoring style shard {path}: expected a JSON object")
            return {}
        return {str(key): value for key, value in payload.items() if isinstance(value, str)}


class RemoteStyleLoader:
    """Fetch styles from the style repository over HTTP, with a disk cache."""

    _DEFAULT_USER_AGENT = "citebridge-style-fetcher"
    _CSL_ACCEPT = "application/vnd.citationstyles.style+xml, application/xml;q=0.9"
    _CACHE_NAMESPACE = "styles"

    def __init__(
        self,
        *,
        repository_prefix: str,
        session: requests.Session | None = None,
        timeout: float = 10.0,
        user_agent: str | None = None,
        cache: MutableMapping[str, str] | None = None,
        cache_dir: Path | None = None,
        enable_cache: bool = True,
        emitter: DiagnosticEmitter | None = None,
    ) -> None:
        self._prefix = repository_prefix
        self._session_lock = Lock()
        self._session = session
        self._timeout = timeout
        self._user_agent = user_agent or self._DEFAULT_USER_AGENT
        self._cache: MutableMapping[str, str] = cache if cache is not None else {}
        self._enable_cache = enable_cache
        self._emitter = emitter or LoggingEmitter(logger_obj=logger)
        self._cache_dir = self._resolve_cache_dir(cache_dir) if enable_cache else None

    def load(self, identifier: str, basename: str) -> str | None:
        url = self._style_url(identifier, basename)
        cached = self._read_cache(url)
        if cached is not None:
            self._emitter.event("style_fetch_cached", {"identifier": identifier})
            return cached

        self._emitter.event("style_fetch", {"identifier": identifier, "url": url})
        headers = {"User-Agent": self._user_agent, "Accept": self._CSL_ACCEPT}
        try:
            response = self._ensure_session().get(url, headers=headers, timeout=self._timeout)
        except requests.RequestException as exc:
            raise StyleFetchError(identifier, str(exc)) from exc
        if response.status_code == 404:
            return None
        if response.status_code >= 400:
            raise StyleFetchError(identifier, f"HTTP {response.status_code}")

        content = response.text.strip()
        if not content:
            raise StyleFetchError(identifier, "empty response")
        self._write_cache(url, content)
        return content

    def _style_url(self, identifier: str, basename: str) -> str:
        if identifier.startswith(("http://", "https://")):
            return identifier
        return f"{self._prefix}{basename}"

    # ------------------------------------------------------------------ caching

    def _read_cache(self, url: str) -> str | None:
        if not self._enable_cache:
            return None
        if url in self._cache:
            return self._cache[url]
        path = self._disk_cache_path(url)
        if path is None or not path.exists():
            return None
        try:
            payload = path.read_text(encoding="utf-8")
        except OSError:
            return None
        self._cache[url] = payload
        return payload

    def _write_cache(self, url: str, payload: str) -> None:
        if not self._enable_cache:
            return
        self._cache[url] = payload
        path = self._disk_cache_path(url)
        if path is None:
            return
        try:
            path.write_text(payload, encoding="utf-8")
        except OSError as exc:
            self._emitter.warning(f"Unable to cache style {url}", exc)

    def _disk_cache_path(self, url: str) -> Path | None:
        if self._cache_dir is None:
            return None
        digest = sha256(url.encode("utf-8")).hexdigest()
        return self._cache_dir / f"{digest}.csl"

    def _resolve_cache_dir(self, override: Path | None) -> Path | None:
        if override is not None:
            override.mkdir(parents=True, exist_ok=True)
            return override
        try:
            return get_cache_dir(self._CACHE_NAMESPACE)
        except OSError:
            return None

    # ------------------------------------------------------------------ requests

    def _ensure_session(self) -> requests.Session:
        if self._session is not None:
            return self._session
        with self._session_lock:
            if self._session is None:
                self._session = requests.Session()
            return self._session


class StyleRepository:
    """Resolve style identifiers by asking each loader in turn."""

    def __init__(
        self,
        loaders: Iterable[StyleLoader] = (),
        *,
        repository_prefix: str | None = None,
    ) -> None:
        self._loaders: tuple[StyleLoader, ...] = tuple(loaders)
        self.repository_prefix = repository_prefix or StyleConfig().repository_prefix

    @classmethod
    def from_config(
        cls,
        config: StyleConfig | None = None,
        *,
        session: requests.Session | None = None,
        emitter: DiagnosticEmitter | None = None,
    ) -> StyleRepository:
        """Build a repository from configuration."""
        config = config or StyleConfig()
        loaders: list[StyleLoader] = []
        if config.styles_dir is not None:
            loaders.append(DirectoryStyleLoader(config.styles_dir, emitter=emitter))
        if config.remote:
            loaders.append(
                RemoteStyleLoader(
                    repository_prefix=config.repository_prefix,
                    session=session,
                    timeout=config.timeout,
                    user_agent=config.user_agent,
                    cache_dir=config.cache_dir,
                    enable_cache=config.enable_cache,
                    emitter=emitter,
                )
            )
        return cls(loaders, repository_prefix=config.repository_prefix)

    @property
    def loaders(self) -> Sequence[StyleLoader]:
        """Return the loaders in lookup order."""
        return self._loaders

    def load_style(self, identifier: str) -> str:
        """Return the style document registered under ``identifier``."""
        basename = style_basename(identifier)
        for loader in self._loaders:
            document = loader.load(identifier, basename)
            if document is not None:
                return document
        raise StyleNotFound(identifier)
