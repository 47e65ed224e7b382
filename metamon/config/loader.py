"""Load compiler configuration YAML into typed dataclasses."""

from __future__ import annotations

import typing as typ
from pathlib import Path

from ruamel.yaml import YAML

from metamon._constants import DEFAULT_PAGES_DIR, SOURCE_EXTENSION
from metamon.errors import ConfigError

from .models import CompilerConfig


def load_compiler_config(path: Path | None = None) -> CompilerConfig:
    """Load the YAML configuration describing a metamon project.

    Parameters
    ----------
    path : Path, optional
        Filesystem path to ``metamon.yaml``. When ``None`` or when the file
        does not exist, defaults rooted at the current directory are returned.

    Returns
    -------
    CompilerConfig
        Parsed configuration with ``root`` and ``out_dir`` resolved against the
        configuration file's directory.

    Raises
    ------
    TypeError
        If the top-level YAML structure is not a mapping.
    ConfigError
        If a recognised key holds a value of the wrong shape (for example, an
        ``alias`` that is not a mapping or a negative batch delay).
    YAMLError
        If the YAML content cannot be parsed by the underlying loader.

    Examples
    --------
    >>> from pathlib import Path
    >>> config = load_compiler_config(Path("metamon.yaml"))  # doctest: +SKIP
    >>> config.extension  # doctest: +SKIP
    '.mtm'
    """
    if path is None or not path.exists():
        return CompilerConfig(root=Path.cwd().resolve())

    loader = YAML(typ="safe")
    loader.version = (1, 2)
    with path.open("r", encoding="utf-8") as handle:
        loaded = loader.load(handle) or {}
    if not isinstance(loaded, dict):
        msg = "Top-level YAML structure must be a mapping."
        raise TypeError(msg)
    raw: dict[str, typ.Any] = dict(loaded)
    base_dir = path.resolve().parent

    runtime = _mapping(raw.get("runtime"), "runtime")
    logging_raw = _mapping(raw.get("logging"), "logging")

    root = _resolve_dir(base_dir, raw.get("root", "."))
    out_dir = _resolve_dir(base_dir, raw.get("out_dir", "dist"))
    extension = str(raw.get("extension", SOURCE_EXTENSION))
    if not extension.startswith("."):
        extension = f".{extension}"

    return CompilerConfig(
        root=root,
        pages_dir=str(raw.get("pages_dir", DEFAULT_PAGES_DIR)).strip("/"),
        extension=extension,
        alias=_build_alias_table(raw.get("alias")),
        out_dir=out_dir,
        batch_delay=_parse_batch_delay(runtime.get("batch_delay", 0)),
        log_level=str(logging_raw.get("level", "INFO")).upper(),
        require_frontmatter=bool(raw.get("require_frontmatter", True)),
    )


def _mapping(value: object, key: str) -> typ.Mapping[str, typ.Any]:
    """Return ``value`` as a mapping, treating ``None`` as empty."""
    match value:
        case None:
            return {}
        case dict():
            return value
        case _:
            msg = f"'{key}' must be a mapping."
            raise ConfigError(msg)


def _resolve_dir(base_dir: Path, value: object) -> Path:
    """Resolve ``value`` against ``base_dir`` unless it is already absolute."""
    candidate = Path(str(value))
    if candidate.is_absolute():
        return candidate
    return (base_dir / candidate).resolve()


def _build_alias_table(value: object) -> dict[str, str]:
    """Normalise the alias section into a prefix to path mapping."""
    if value is None:
        return {}
    if not isinstance(value, dict):
        msg = "'alias' must be a mapping of import prefixes to paths."
        raise ConfigError(msg)
    table: dict[str, str] = {}
    for prefix, target in value.items():
        if not prefix or target is None:
            msg = f"Alias entry '{prefix}' must map a prefix to a path."
            raise ConfigError(msg)
        table[str(prefix)] = str(target)
    return table


def _parse_batch_delay(value: object) -> float:
    """Return a non-negative batch delay in seconds."""
    try:
        delay = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        msg = f"'runtime.batch_delay' must be a number, got {value!r}."
        raise ConfigError(msg) from exc
    if delay < 0:
        msg = "'runtime.batch_delay' must not be negative."
        raise ConfigError(msg)
    return delay


__all__ = ["load_compiler_config"]
