"""Single-unit compilation: parse, validate, then emit."""

from __future__ import annotations

import dataclasses as dc
import logging
from pathlib import Path

from metamon.config import CompilerConfig
from metamon.errors import FrameworkError, error_from_diagnostics
from metamon.parser import parse, suggest_targets
from metamon.validator import ValidationReport, validate

from .emitter import EMITTERS, CompilationResult, get_emitter

logger = logging.getLogger(__name__)


@dc.dataclass(frozen=True, slots=True)
class CompiledUnit:
    """Compilation output together with the validation report that allowed it."""

    result: CompilationResult
    report: ValidationReport
    target: str
    file_path: str = ""


def compile_source(
    source: str,
    file_path: str | Path = "",
    target: str | None = None,
    config: CompilerConfig | None = None,
) -> CompiledUnit:
    """Compile unit text for its declared target, or for ``target`` when given.

    Parameters
    ----------
    source : str
        Full text of the unit.
    file_path : str | Path, optional
        Path recorded in diagnostics.
    target : str, optional
        Emitter to use. A value different from the unit's frontmatter target
        fails with :class:`~metamon.errors.FrameworkError`.
    config : CompilerConfig, optional
        Supplies ``require_frontmatter``; defaults apply when omitted.

    Returns
    -------
    CompiledUnit
        The emitted code and the validation report, whose warnings the
        caller may surface.

    Raises
    ------
    MetamonError
        The error class of the first validation error, carrying every error
        finding in ``diagnostics``; or a parse or emission error.
    """
    config = config or CompilerConfig()
    path = str(file_path)
    unit = parse(source, path, require_frontmatter=config.require_frontmatter)
    report = validate(unit)
    if not report.is_valid:
        raise error_from_diagnostics(report.errors, file=path)
    for warning in report.warnings:
        logger.warning("%s: %s", path or "<memory>", warning.message)
    declared = unit.frontmatter.target
    requested = target or declared
    if requested not in EMITTERS:
        msg = (
            f"No emitter is available for target '{requested}'; "
            f"the unit targets '{declared}'."
        )
        raise FrameworkError(
            msg,
            file=path,
            actual_target=declared,
            expected_target=requested,
            suggestions=suggest_targets(requested),
        )
    emitter = get_emitter(requested)
    result = emitter.compile(unit, report.component)
    return CompiledUnit(result=result, report=report, target=emitter.target, file_path=path)


def output_path_for(source_path: Path, config: CompilerConfig, target: str) -> Path:
    """Return where the compiled module for ``source_path`` is written.

    The path mirrors the unit's location under the project root inside the
    output directory, with the target's module extension.
    """
    emitter = get_emitter(target)
    try:
        relative = source_path.resolve().relative_to(Path(config.root).resolve())
    except ValueError:
        relative = Path(source_path.name)
    return Path(config.out_dir) / relative.with_suffix(emitter.file_extension)


__all__ = ["CompiledUnit", "compile_source", "output_path_for"]
