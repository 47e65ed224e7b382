"""Unit tests for loading ``metamon.yaml``."""

from __future__ import annotations

import typing as typ
from pathlib import Path
from textwrap import dedent

import pytest

from metamon.config import CompilerConfig, ConfigError, load_compiler_config


def _write_config(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "metamon.yaml"
    path.write_text(dedent(text), encoding="utf-8")
    return path


def test_missing_file_returns_defaults(tmp_path: Path) -> None:
    """An absent configuration file yields default settings."""
    config = load_compiler_config(tmp_path / "missing.yaml")
    assert config.extension == ".mtm"
    assert config.pages_dir == "src/pages"
    assert config.alias == {}
    assert config.batch_delay == 0.0
    assert config.require_frontmatter


def test_values_are_parsed_and_paths_resolved(tmp_path: Path) -> None:
    """Relative directories resolve against the configuration file."""
    path = _write_config(
        tmp_path,
        """\
        root: app
        out_dir: build/web
        pages_dir: /routes/
        extension: mtm
        alias:
          "@components/": src/components/
          "@lib/": src/lib/
        runtime:
          batch_delay: 0.25
        logging:
          level: debug
        require_frontmatter: false
        """,
    )
    config = load_compiler_config(path)
    base = tmp_path.resolve()

    assert config.root == base / "app"
    assert config.out_dir == base / "build" / "web"
    assert config.pages_dir == "routes"
    assert config.extension == ".mtm"
    assert list(config.alias) == ["@components/", "@lib/"]
    assert config.batch_delay == 0.25
    assert config.log_level == "DEBUG"
    assert config.require_frontmatter is False


def test_top_level_must_be_mapping(tmp_path: Path) -> None:
    """A YAML list at the top level is rejected."""
    path = _write_config(tmp_path, "- root\n")
    with pytest.raises(TypeError, match="mapping"):
        load_compiler_config(path)


@pytest.mark.parametrize(
    ("text", "message"),
    [
        ("alias: [src]\n", "alias"),
        ("alias:\n  '@x/':\n", "Alias entry"),
        ("runtime:\n  batch_delay: soon\n", "must be a number"),
        ("runtime:\n  batch_delay: -1\n", "must not be negative"),
        ("runtime: fast\n", "'runtime' must be a mapping"),
    ],
)
def test_invalid_values_raise_config_error(tmp_path: Path, text: str, message: str) -> None:
    """Malformed sections raise ``ConfigError`` naming the problem."""
    path = _write_config(tmp_path, text)
    with pytest.raises(ConfigError, match=message):
        load_compiler_config(path)


def test_with_overrides_ignores_none() -> None:
    """Only provided overrides replace configured values."""
    config = CompilerConfig(out_dir=Path("dist"))
    updated = config.with_overrides(out_dir=Path("public"), batch_delay=None)
    assert updated.out_dir == Path("public")
    assert updated.batch_delay == config.batch_delay
    changes: dict[str, typ.Any] = {}
    assert config.with_overrides(**changes) == config
