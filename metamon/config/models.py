"""Typed dataclasses describing metamon compiler configuration."""

from __future__ import annotations

import dataclasses as dc
from pathlib import Path

from metamon._constants import DEFAULT_PAGES_DIR, SOURCE_EXTENSION


@dc.dataclass(frozen=True, slots=True)
class CompilerConfig:
    """Project-wide settings shared by the resolver, compiler, and runtime.

    Attributes
    ----------
    root : Path
        Absolute project root; root-relative and aliased imports resolve
        against it.
    pages_dir : str
        Root-relative directory whose units are classified as pages.
    extension : str
        Source unit extension tried when an import omits it.
    alias : dict[str, str]
        Import prefix substitutions, for example ``{"@components/":
        "src/components/"}``.
    out_dir : Path
        Directory the CLI writes compiled output into.
    batch_delay : float
        Seconds the event bus waits before flushing a batch of emissions.
    log_level : str
        Logging level name applied by the CLI.
    require_frontmatter : bool
        Whether a unit without a frontmatter block is a syntax error.
    """

    root: Path = dc.field(default_factory=Path.cwd)
    pages_dir: str = DEFAULT_PAGES_DIR
    extension: str = SOURCE_EXTENSION
    alias: dict[str, str] = dc.field(default_factory=dict)
    out_dir: Path = Path("dist")
    batch_delay: float = 0.0
    log_level: str = "INFO"
    require_frontmatter: bool = True

    def with_overrides(self, **changes: object) -> CompilerConfig:
        """Return a copy with the non-``None`` overrides applied."""
        applied = {key: value for key, value in changes.items() if value is not None}
        return dc.replace(self, **applied)  # type: ignore[arg-type]


__all__ = ["CompilerConfig"]
