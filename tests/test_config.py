from pathlib import Path
import textwrap

import pytest

from citebridge.config import ZOTERO_STYLE_PREFIX, CitebridgeConfig, ConfigError, load_config


def _write(tmp_path: Path, payload: str) -> Path:
    path = tmp_path / "citebridge.yml"
    path.write_text(textwrap.dedent(payload).strip() + "\n", encoding="utf-8")
    return path


def test_defaults() -> None:
    config = CitebridgeConfig()

    assert config.language == "en-US"
    assert config.bundles_file is None
    assert config.styles.repository_prefix == ZOTERO_STYLE_PREFIX
    assert config.styles.remote is False


def test_load_config_resolves_relative_paths(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        """
        language: en_GB
        bundles_file: data/bundles.json
        styles:
          styles_dir: styles
          remote: true
          timeout: 2.5
        """,
    )

    config = load_config(path)

    assert config.language == "en-GB"
    assert config.bundles_file == tmp_path / "data" / "bundles.json"
    assert config.styles.styles_dir == tmp_path / "styles"
    assert config.styles.remote is True
    assert config.styles.timeout == 2.5


def test_empty_file_uses_defaults(tmp_path: Path) -> None:
    assert load_config(_write(tmp_path, "")) == CitebridgeConfig()


def test_unknown_keys_are_rejected(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="Invalid configuration"):
        load_config(_write(tmp_path, "styles:\n  unexpected: 1"))


def test_invalid_timeout(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        load_config(_write(tmp_path, "styles:\n  timeout: 0"))


def test_non_mapping_and_missing_files(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="must be a mapping"):
        load_config(_write(tmp_path, "- a\n- b"))
    with pytest.raises(ConfigError, match="Failed to read"):
        load_config(tmp_path / "missing.yml")
