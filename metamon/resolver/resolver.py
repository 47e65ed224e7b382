"""Resolve imports between units and build the project dependency graph."""

from __future__ import annotations

import logging
import os
import re
import typing as typ
from pathlib import Path

from metamon.config import CompilerConfig
from metamon.parser import read_target

from .models import Dependency, DependencyGraph, FileInfo, FileType

logger = logging.getLogger(__name__)

STATIC_IMPORT_PATTERN = re.compile(
    r"""import\s+(?:(?:\{[^}]*\}|\*\s+as\s+\w+|\w+)"""
    r"""(?:\s*,\s*(?:\{[^}]*\}|\*\s+as\s+\w+|\w+))*\s+from\s+)?['"]([^'"]+)['"];?"""
)
DYNAMIC_IMPORT_PATTERN = re.compile(r"""import\s*\(\s*['"]([^'"]+)['"]\s*\)""")
REQUIRE_PATTERN = re.compile(r"""require\s*\(\s*['"]([^'"]+)['"]\s*\)""")

_IMPORT_PASSES: tuple[tuple[re.Pattern[str], bool], ...] = (
    (STATIC_IMPORT_PATTERN, False),
    (DYNAMIC_IMPORT_PATTERN, True),
    (REQUIRE_PATTERN, False),
)


def _normalise(path: str | os.PathLike[str]) -> Path:
    return Path(os.path.normpath(os.path.abspath(path)))


def _is_relative(specifier: str) -> bool:
    return specifier.startswith(("./", "../"))


class ImportResolver:
    """Resolve import specifiers and build a :class:`DependencyGraph`.

    Parameters
    ----------
    config : CompilerConfig
        Supplies the project root, pages directory, source extension, and
        alias table.

    Examples
    --------
    >>> from metamon.config import CompilerConfig
    >>> resolver = ImportResolver(CompilerConfig(root=Path("/project")))
    >>> resolver.resolve("./Missing.mtm", Path("/project/src/App.mtm")) is None
    True
    """

    def __init__(self, config: CompilerConfig) -> None:
        self.config = config
        self.root = _normalise(config.root)

    def resolve(self, specifier: str, importer_path: str | Path) -> Path | None:
        """Resolve ``specifier`` as imported from ``importer_path``.

        Relative specifiers are tried against the importer's directory, then
        alias prefixes against the project root, then the specifier itself
        against the project root. Each attempt checks the literal path before
        appending the source extension. Returns ``None`` when nothing
        matches; this never raises.
        """
        if _is_relative(specifier):
            base = _normalise(importer_path).parent
            return self._existing(base / specifier)

        for prefix, target in self.config.alias.items():
            if specifier.startswith(prefix):
                substituted = target + specifier[len(prefix) :]
                if found := self._existing(self.root / substituted):
                    return found

        return self._existing(self.root / specifier.lstrip("/"))

    def extract_dependencies(
        self, file_path: str | Path, content: str
    ) -> list[Dependency]:
        """Return the resolvable intra-project imports found in ``content``.

        Three independent passes look for static imports, dynamic
        ``import()`` calls, and ``require()`` calls. Only specifiers ending in
        the source extension or starting with ``./``/``../`` are considered.
        A ``(specifier, is_dynamic)`` pair is reported once; unresolved
        specifiers are skipped.
        """
        importer = _normalise(file_path)
        seen: set[tuple[str, bool]] = set()
        dependencies: list[Dependency] = []
        for pattern, is_dynamic in _IMPORT_PASSES:
            for match in pattern.finditer(content):
                specifier = match.group(1)
                if (specifier, is_dynamic) in seen:
                    continue
                if not (specifier.endswith(self.config.extension) or _is_relative(specifier)):
                    continue
                seen.add((specifier, is_dynamic))
                resolved = self.resolve(specifier, importer)
                if resolved is None:
                    logger.debug("unresolved import %r in %s", specifier, importer)
                    continue
                dependencies.append(
                    Dependency(
                        importer=importer,
                        importee=resolved,
                        specifier=specifier,
                        resolved_path=resolved,
                        is_dynamic=is_dynamic,
                    )
                )
        return dependencies

    def get_file_type(self, file_path: str | Path) -> FileType:
        """Classify ``file_path`` as a page when it lives under the pages directory."""
        relative = Path(os.path.relpath(_normalise(file_path), self.root))
        pages = Path(self.config.pages_dir).parts
        if pages and relative.parts[: len(pages)] == pages:
            return FileType.PAGE
        return FileType.COMPONENT

    def build_dependency_graph(self, files: typ.Iterable[str | Path]) -> DependencyGraph:
        """Build the graph for ``files``, then its build order and cycles.

        Files that do not exist or cannot be read are skipped; undecodable
        bytes are replaced rather than failing the graph. The first pass
        creates a node per file; the second pass back-fills ``dependents``
        for edges whose target is part of the graph.
        """
        graph = DependencyGraph()
        for raw_path in files:
            path = _normalise(raw_path)
            if path in graph.files or not _is_file(path):
                continue
            try:
                content = path.read_text(encoding="utf-8", errors="replace")
            except OSError as exc:
                logger.warning("skipping unreadable unit %s: %s", path, exc)
                continue
            graph.files[path] = FileInfo(
                file_path=path,
                relative_path=Path(os.path.relpath(path, self.root)),
                type=self.get_file_type(path),
                framework=read_target(content),
                dependencies=self.extract_dependencies(path, content),
            )

        for path, info in graph.files.items():
            for dependency in info.dependencies:
                target = graph.files.get(dependency.importee)
                if target is not None and path not in target.dependents:
                    target.dependents.append(path)

        graph.build_order = self.get_build_order(graph)
        graph.circular_dependencies = self.detect_circular_dependencies(graph)
        if graph.circular_dependencies:
            logger.warning(
                "found %d circular dependency chain(s)", len(graph.circular_dependencies)
            )
        return graph

    def get_build_order(self, graph: DependencyGraph) -> list[Path]:
        """Return every graph file with imported units before their importers.

        A depth-first post-order walk visits files in graph order. Reaching a
        file that is still in progress abandons the current branch, leaving
        the files involved for a second pass that places them in graph order
        while ignoring the edges that lead back into the walk.
        """
        visited: set[Path] = set()
        visiting: set[Path] = set()
        order: list[Path] = []

        def visit(path: Path) -> bool:
            if path in visiting:
                return False
            if path in visited or path not in graph.files:
                return True
            visiting.add(path)
            for dependency in graph.files[path].dependencies:
                if not visit(dependency.importee):
                    visiting.discard(path)
                    return False
            visiting.discard(path)
            visited.add(path)
            order.append(path)
            return True

        def place(path: Path) -> None:
            if path in visited or path in visiting or path not in graph.files:
                return
            visiting.add(path)
            for dependency in graph.files[path].dependencies:
                place(dependency.importee)
            visiting.discard(path)
            visited.add(path)
            order.append(path)

        for path in graph.files:
            if path not in visited:
                visit(path)
        for path in graph.files:
            place(path)
        return order

    def detect_circular_dependencies(self, graph: DependencyGraph) -> list[list[Path]]:
        """Return each distinct import cycle once.

        A cycle is the slice of the DFS stack from the re-entered file to the
        current file. Rotations of the same cycle are reported once.
        """
        visited: set[Path] = set()
        stack: list[Path] = []
        on_stack: set[Path] = set()
        cycles: list[list[Path]] = []
        seen: set[tuple[Path, ...]] = set()

        def dfs(path: Path) -> None:
            visited.add(path)
            stack.append(path)
            on_stack.add(path)
            for dependency in graph.files[path].dependencies:
                target = dependency.importee
                if target not in graph.files:
                    continue
                if target in on_stack:
                    cycle = stack[stack.index(target) :]
                    key = _canonical_rotation(cycle)
                    if key not in seen:
                        seen.add(key)
                        cycles.append(list(cycle))
                elif target not in visited:
                    dfs(target)
            stack.pop()
            on_stack.discard(path)

        for path in graph.files:
            if path not in visited:
                dfs(path)
        return cycles

    def _existing(self, candidate: Path) -> Path | None:
        path = _normalise(candidate)
        if _is_file(path):
            return path
        if not path.name.endswith(self.config.extension):
            with_extension = path.with_name(path.name + self.config.extension)
            if _is_file(with_extension):
                return with_extension
        return None


def _is_file(path: Path) -> bool:
    try:
        return path.is_file()
    except OSError:
        return False


def _canonical_rotation(cycle: list[Path]) -> tuple[Path, ...]:
    pivot = min(range(len(cycle)), key=lambda index: str(cycle[index]))
    return tuple(cycle[pivot:] + cycle[:pivot])


__all__ = ["ImportResolver"]
