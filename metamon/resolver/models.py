"""Dataclasses describing project dependencies between source units."""

from __future__ import annotations

import dataclasses as dc
import enum
from pathlib import Path


class FileType(enum.StrEnum):
    """Role of a unit within the project."""

    PAGE = "page"
    COMPONENT = "component"


@dc.dataclass(frozen=True, slots=True)
class Dependency:
    """An import edge from ``importer`` to the unit it resolved to.

    ``importee`` and ``resolved_path`` both hold the absolute path of the
    imported unit; ``specifier`` keeps the import text as written.
    """

    importer: Path
    importee: Path
    specifier: str
    resolved_path: Path
    is_dynamic: bool = False


@dc.dataclass(slots=True)
class FileInfo:
    """Graph node for one unit.

    ``dependents`` is filled in after every node exists, so it only lists
    files that are part of the same graph.
    """

    file_path: Path
    relative_path: Path
    type: FileType
    framework: str
    dependencies: list[Dependency] = dc.field(default_factory=list)
    dependents: list[Path] = dc.field(default_factory=list)


@dc.dataclass(slots=True)
class DependencyGraph:
    """Whole-project dependency graph with build order and detected cycles.

    Attributes
    ----------
    files : dict[Path, FileInfo]
        Nodes keyed by absolute path, in discovery order.
    build_order : list[Path]
        Every node exactly once; for edges outside any cycle the imported unit
        precedes its importer.
    circular_dependencies : list[list[Path]]
        Each cycle as the chain of paths that import one another; the closing
        edge leads from the last path back to the first.
    """

    files: dict[Path, FileInfo] = dc.field(default_factory=dict)
    build_order: list[Path] = dc.field(default_factory=list)
    circular_dependencies: list[list[Path]] = dc.field(default_factory=list)

    def pages(self) -> list[FileInfo]:
        """Return nodes classified as pages."""
        return [info for info in self.files.values() if info.type is FileType.PAGE]

    def components(self) -> list[FileInfo]:
        """Return nodes classified as components."""
        return [info for info in self.files.values() if info.type is FileType.COMPONENT]

    def by_framework(self) -> dict[str, list[FileInfo]]:
        """Group nodes by the target their frontmatter declares."""
        grouped: dict[str, list[FileInfo]] = {}
        for info in self.files.values():
            grouped.setdefault(info.framework, []).append(info)
        return grouped


__all__ = ["Dependency", "DependencyGraph", "FileInfo", "FileType"]
