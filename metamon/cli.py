"""Cyclopts CLI entrypoint for compiling metamon projects.

The ``mtm`` console script compiles single units, builds whole projects in
dependency order, prints the dependency graph, and validates units without
emitting code. Reporting commands accept ``--json`` for machine-readable
output.

Examples
--------
Compile one unit and print the generated module:

>>> from metamon.cli import app
>>> app.run(["compile", "src/pages/index.mtm"])  # doctest: +SKIP

Build the project described by ``metamon.yaml`` into ``dist``:

>>> app.run(["build", "--config", "metamon.yaml"])  # doctest: +SKIP
"""

from __future__ import annotations

import dataclasses as dc
import json
import sys
import typing as typ
from pathlib import Path

import cyclopts
from cyclopts import App, Parameter

from ._constants import DEFAULT_CONFIG_FILE
from .build import BuildFailure, BuildReport, ProjectBuilder, read_unit
from .codegen import compile_source, output_path_for
from .config import CompilerConfig, load_compiler_config
from .errors import Diagnostic, MetamonError, format_diagnostic
from .logging import configure_logging
from .parser import parse
from .validator import validate

DEFAULT_CONFIG = Path(DEFAULT_CONFIG_FILE)

app = App(name="mtm", config=cyclopts.config.Env("METAMON_", command=False))  # type: ignore[unknown-argument]


def _format_path(path: Path) -> str:
    """Return a cwd-relative path when possible, otherwise the absolute path."""
    if path.is_absolute():
        try:
            return str(path.relative_to(Path.cwd()))
        except ValueError:  # pragma: no cover - fallback for different roots
            return str(path)
    return str(path)


def _json_default(obj: object) -> object:
    if isinstance(obj, Path):
        return _format_path(obj)
    if dc.is_dataclass(obj) and not isinstance(obj, type):
        return dc.asdict(obj)
    msg = f"Cannot encode {type(obj).__name__} as JSON."
    raise TypeError(msg)


def _print_json(payload: object) -> None:
    print(json.dumps(payload, default=_json_default, indent=2))


def _load(config: Path) -> CompilerConfig:
    compiler_config = load_compiler_config(config)
    configure_logging(compiler_config.log_level)
    return compiler_config


def _print_failure(failure: BuildFailure) -> None:
    for diagnostic in failure.diagnostics:
        print(format_diagnostic(diagnostic), file=sys.stderr)


def _build_summary(report: BuildReport, written: dict[Path, Path]) -> dict[str, typ.Any]:
    return {
        "ok": report.ok,
        "build_order": report.build_order,
        "cycles": report.cycles,
        "results": [
            {
                "file": path,
                "target": unit.target,
                "output": written.get(path),
                "dependencies": unit.result.dependencies,
                "warnings": unit.report.warnings,
            }
            for path, unit in report.results.items()
        ],
        "failures": report.failures,
    }


@app.command(name="compile", help="Compile one unit and print or write the module.")
def compile_unit(
    file: typ.Annotated[Path, Parameter(help="Source unit to compile")],
    *,
    target: typ.Annotated[
        str | None,
        Parameter(help="Emitter to use; defaults to the unit's frontmatter target"),
    ] = None,
    output: typ.Annotated[
        Path | None, Parameter(help="Write the module here instead of stdout")
    ] = None,
    config: typ.Annotated[
        Path, Parameter(help="Path to project config", env_var="METAMON_CONFIG")
    ] = DEFAULT_CONFIG,
) -> None:
    """Compile ``file`` for its declared target.

    Parameters
    ----------
    file : Path
        Unit to compile.
    target : str or None, optional
        Emitter override. A value different from the unit's frontmatter
        target is reported as a framework error.
    output : Path or None, optional
        Destination file. When omitted the module is printed to stdout.
    config : Path, optional
        Project configuration; defaults apply when the file does not exist.

    Raises
    ------
    SystemExit
        With status 1 when compilation fails; the formatted error is printed
        to stderr.
    """
    compiler_config = _load(config)
    try:
        compiled = compile_source(
            read_unit(file), file, target=target, config=compiler_config
        )
    except MetamonError as exc:
        for diagnostic in exc.diagnostics or (exc.to_diagnostic(),):
            print(format_diagnostic(diagnostic), file=sys.stderr)
        raise SystemExit(1) from exc

    if output is None:
        print(compiled.result.code, end="")
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(compiled.result.code, encoding="utf-8")
    print(f"wrote {_format_path(output)}")


@app.command(help="Compile every unit in the project in dependency order.")
def build(
    *,
    config: typ.Annotated[
        Path, Parameter(help="Path to project config", env_var="METAMON_CONFIG")
    ] = DEFAULT_CONFIG,
    out_dir: typ.Annotated[
        Path | None, Parameter(help="Override the output folder")
    ] = None,
    json: typ.Annotated[bool, Parameter(help="Print a JSON summary")] = False,
) -> None:
    """Build the project and write one module per compiled unit.

    Units that fail are reported and skipped; their siblings still compile.

    Raises
    ------
    SystemExit
        With status 1 when any unit failed.
    """
    compiler_config = _load(config).with_overrides(out_dir=out_dir)
    report = ProjectBuilder(compiler_config).build()

    written: dict[Path, Path] = {}
    for path, unit in report.results.items():
        destination = output_path_for(path, compiler_config, unit.target)
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_text(unit.result.code, encoding="utf-8")
        written[path] = destination

    if json:
        _print_json(_build_summary(report, written))
    else:
        for destination in written.values():
            print(f"wrote {_format_path(destination)}")
        for cycle in report.cycles:
            chain = " -> ".join(_format_path(path) for path in [*cycle, cycle[0]])
            print(f"circular dependency: {chain}", file=sys.stderr)
        for failure in report.failures:
            _print_failure(failure)
    if not report.ok:
        raise SystemExit(1)


@app.command(help="Print the project's build order and import cycles.")
def graph(
    *,
    config: typ.Annotated[
        Path, Parameter(help="Path to project config", env_var="METAMON_CONFIG")
    ] = DEFAULT_CONFIG,
    json: typ.Annotated[bool, Parameter(help="Print the graph as JSON")] = False,
) -> None:
    """Print each unit with its target, role, and resolved imports."""
    compiler_config = _load(config)
    dependency_graph = ProjectBuilder(compiler_config).graph()
    if json:
        _print_json(
            {
                "files": {
                    _format_path(path): {
                        "relative_path": info.relative_path,
                        "type": info.type,
                        "framework": info.framework,
                        "dependencies": [dep.importee for dep in info.dependencies],
                        "dependents": info.dependents,
                    }
                    for path, info in dependency_graph.files.items()
                },
                "build_order": dependency_graph.build_order,
                "circular_dependencies": dependency_graph.circular_dependencies,
            }
        )
        return
    for index, path in enumerate(dependency_graph.build_order, start=1):
        info = dependency_graph.files[path]
        print(f"{index}. {info.relative_path} [{info.framework}, {info.type}]")
        for dependency in info.dependencies:
            print(f"     -> {dependency.specifier}")
    for cycle in dependency_graph.circular_dependencies:
        chain = " -> ".join(_format_path(path) for path in [*cycle, cycle[0]])
        print(f"circular dependency: {chain}")


@app.command(name="validate", help="Validate units and report every finding without emitting code.")
def validate_units(
    files: typ.Annotated[list[Path], Parameter(help="Source units to validate")],
    *,
    json: typ.Annotated[bool, Parameter(help="Print findings as JSON")] = False,
    config: typ.Annotated[
        Path, Parameter(help="Path to project config", env_var="METAMON_CONFIG")
    ] = DEFAULT_CONFIG,
) -> None:
    """Validate each unit and print its errors and warnings.

    Raises
    ------
    SystemExit
        With status 1 when any unit has an error finding.
    """
    compiler_config = _load(config)
    findings: dict[str, list[Diagnostic]] = {}
    failed = False
    for file in files:
        try:
            unit = parse(
                read_unit(file),
                file,
                require_frontmatter=compiler_config.require_frontmatter,
            )
        except MetamonError as exc:
            findings[_format_path(file)] = [exc.to_diagnostic()]
            failed = True
            continue
        report = validate(unit)
        findings[_format_path(file)] = [*report.errors, *report.warnings]
        failed = failed or not report.is_valid

    if json:
        _print_json(findings)
    else:
        for name, diagnostics in findings.items():
            if not diagnostics:
                print(f"{name}: ok")
            for diagnostic in diagnostics:
                print(format_diagnostic(diagnostic))
    if failed:
        raise SystemExit(1)


def main() -> None:
    """Invoke the Cyclopts application that powers the ``mtm`` console command.

    Examples
    --------
    >>> main()  # doctest: +SKIP
    """
    app()


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    main()
