"""Compile every unit of a project in dependency order.

:class:`ProjectBuilder` discovers units under the project root, builds the
dependency graph, and compiles each unit in build order. A failing unit is
recorded and the build moves on to its siblings. Nothing is written to disk;
callers decide what to do with the compiled code.
"""

from __future__ import annotations

import dataclasses as dc
import logging
import typing as typ
from pathlib import Path

from metamon.codegen import CompiledUnit, compile_source
from metamon.errors import Diagnostic, MetamonError, MTMSyntaxError
from metamon.resolver import DependencyGraph, ImportResolver

if typ.TYPE_CHECKING:
    from metamon.config import CompilerConfig

logger = logging.getLogger(__name__)

SKIPPED_DIRECTORIES = frozenset({"node_modules", ".git", "dist", "build", ".venv"})


@dc.dataclass(frozen=True, slots=True)
class BuildFailure:
    """A unit that could not be compiled and the findings explaining why."""

    file_path: Path
    diagnostics: tuple[Diagnostic, ...]

    @classmethod
    def from_error(cls, file_path: Path, error: MetamonError) -> BuildFailure:
        """Return the failure for ``error``, expanding attached findings."""
        diagnostics = error.diagnostics or (error.to_diagnostic(),)
        return cls(file_path=file_path, diagnostics=tuple(diagnostics))


@dc.dataclass(slots=True)
class BuildReport:
    """Everything a project build produced.

    Attributes
    ----------
    graph : DependencyGraph
        Graph the build order came from.
    results : dict[Path, CompiledUnit]
        Compiled units keyed by source path, in build order.
    failures : list[BuildFailure]
        Units that failed, in build order.
    """

    graph: DependencyGraph
    results: dict[Path, CompiledUnit] = dc.field(default_factory=dict)
    failures: list[BuildFailure] = dc.field(default_factory=list)

    @property
    def ok(self) -> bool:
        """Return ``True`` when every unit compiled."""
        return not self.failures

    @property
    def build_order(self) -> list[Path]:
        """Return the order units were compiled in."""
        return self.graph.build_order

    @property
    def cycles(self) -> list[list[Path]]:
        """Return the import cycles found in the project."""
        return self.graph.circular_dependencies


class ProjectBuilder:
    """Discover, order, and compile a project's units.

    Parameters
    ----------
    config : CompilerConfig
        Project settings; ``root`` and ``extension`` drive discovery.
    """

    def __init__(self, config: CompilerConfig) -> None:
        self.config = config
        self.resolver = ImportResolver(config)

    def discover(self) -> list[Path]:
        """Return every unit under the project root, sorted by path.

        Dependency, VCS, and output directories are skipped.
        """
        root = Path(self.config.root)
        out_dir = Path(self.config.out_dir).resolve()
        found: list[Path] = []
        for path in root.rglob(f"*{self.config.extension}"):
            relative_parts = path.relative_to(root).parts[:-1]
            if SKIPPED_DIRECTORIES.intersection(relative_parts):
                continue
            if path.resolve().is_relative_to(out_dir):
                continue
            if path.is_file():
                found.append(path)
        return sorted(found)

    def graph(self, files: typ.Iterable[Path] | None = None) -> DependencyGraph:
        """Return the dependency graph for ``files`` (default: discovered units)."""
        return self.resolver.build_dependency_graph(
            self.discover() if files is None else files
        )

    def build(self, files: typ.Iterable[Path] | None = None) -> BuildReport:
        """Compile units in build order and collect results and failures."""
        report = BuildReport(graph=self.graph(files))
        for path in report.graph.build_order:
            try:
                source = read_unit(path)
                report.results[path] = compile_source(source, path, config=self.config)
            except MetamonError as exc:
                logger.error("failed to compile %s: %s", path, exc.message)
                report.failures.append(BuildFailure.from_error(path, exc))
        logger.info(
            "compiled %d unit(s), %d failure(s)", len(report.results), len(report.failures)
        )
        return report


def read_unit(path: Path) -> str:
    """Return the unit text, turning unreadable files into syntax errors."""
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        msg = f"Unit is not valid UTF-8 (byte {exc.start})."
        raise MTMSyntaxError(
            msg, file=str(path), suggestions=["Save the unit with UTF-8 encoding."]
        ) from exc
    except OSError as exc:
        msg = f"Unit cannot be read: {exc.strerror or exc}."
        raise MTMSyntaxError(msg, file=str(path)) from exc


__all__ = ["BuildFailure", "BuildReport", "ProjectBuilder", "read_unit"]
