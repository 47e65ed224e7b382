"""Check parsed source units and collect every finding in one pass.

:func:`validate` never raises. It inspects the frontmatter, parses the
component body (capturing syntax errors instead of propagating them), and
checks that every template binding, event handler, and block refers to a
declared name. Findings are returned as :class:`~metamon.errors.Diagnostic`
objects split into errors and warnings; only errors make a unit invalid.

Examples
--------
>>> from metamon.parser import parse
>>> unit = parse("---\\ntarget: vue\\n---\\n<template><p>{$missing}</p></template>\\n")
>>> report = validate(unit)
>>> report.is_valid
False
>>> report.errors[0].type
'syntax'
"""

from __future__ import annotations

import collections
import dataclasses as dc
import difflib
import re

from metamon._constants import IDENTIFIER_PATTERN, SUPPORTED_TARGETS
from metamon.errors import Diagnostic, DiagnosticType, MTMSyntaxError
from metamon.parser import ComponentAST, SourceUnit, parse_component, suggest_targets

_IDENTIFIER = re.compile(IDENTIFIER_PATTERN)
_EVENT_NAME = re.compile(r"^[A-Za-z][\w:.-]*$")


@dc.dataclass(frozen=True, slots=True)
class ValidationReport:
    """Outcome of validating one unit.

    Attributes
    ----------
    errors : tuple[Diagnostic, ...]
        Findings that make the unit invalid.
    warnings : tuple[Diagnostic, ...]
        Findings that do not block compilation.
    suggestions : tuple[str, ...]
        Every suggestion from every finding, de-duplicated, in report order.
    component : ComponentAST | None
        The parsed component when the body parsed cleanly.
    """

    errors: tuple[Diagnostic, ...] = ()
    warnings: tuple[Diagnostic, ...] = ()
    suggestions: tuple[str, ...] = ()
    component: ComponentAST | None = None

    @property
    def is_valid(self) -> bool:
        """Return ``True`` when there are no error findings."""
        return not self.errors


class _Collector:
    """Accumulate findings for one unit."""

    def __init__(self, file_path: str) -> None:
        self.file_path = file_path
        self.errors: list[Diagnostic] = []
        self.warnings: list[Diagnostic] = []

    def error(
        self,
        kind: DiagnosticType,
        message: str,
        *suggestions: str,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        self.errors.append(
            Diagnostic(
                type=kind,
                message=message,
                file=self.file_path,
                line=line,
                column=column,
                suggestions=suggestions,
            )
        )

    def warning(
        self,
        kind: DiagnosticType,
        message: str,
        *suggestions: str,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        self.warnings.append(
            Diagnostic(
                type=kind,
                message=message,
                file=self.file_path,
                line=line,
                column=column,
                suggestions=suggestions,
                severity="warning",
            )
        )

    def report(self, component: ComponentAST | None) -> ValidationReport:
        suggestions: dict[str, None] = {}
        for finding in [*self.errors, *self.warnings]:
            suggestions.update(dict.fromkeys(finding.suggestions))
        return ValidationReport(
            errors=tuple(self.errors),
            warnings=tuple(self.warnings),
            suggestions=tuple(suggestions),
            component=component,
        )


def validate(unit: SourceUnit) -> ValidationReport:
    """Validate ``unit`` and return every finding.

    Parameters
    ----------
    unit : SourceUnit
        Unit produced by :func:`metamon.parser.parse`.

    Returns
    -------
    ValidationReport
        Errors, warnings, merged suggestions, and the parsed component when
        the body parsed without syntax errors.
    """
    findings = _Collector(unit.file_path)
    _check_target(unit, findings)
    _check_channels(unit, findings)
    _check_frontmatter_shapes(unit, findings)

    if not unit.content.strip():
        findings.error(
            "syntax",
            "Component content is empty.",
            "Add a '<template>' block describing the component markup.",
            line=unit.content_line,
        )
        return findings.report(None)

    try:
        component = parse_component(unit)
    except MTMSyntaxError as exc:
        findings.errors.append(dc.replace(exc.to_diagnostic(), file=unit.file_path))
        return findings.report(None)

    _check_duplicates(component, findings)
    _check_references(component, findings)
    _check_emitter_collisions(unit, component, findings)
    if component.template is None:
        findings.warning(
            "syntax",
            f"Component '{component.name}' has no '<template>' block.",
            "Add '<template>...</template>' so the component renders markup.",
        )
    return findings.report(component)


def _check_target(unit: SourceUnit, findings: _Collector) -> None:
    target = unit.frontmatter.target
    if target not in SUPPORTED_TARGETS:
        findings.error(
            "frontmatter", f"Unsupported target '{target}'.", *suggest_targets(target)
        )


def _check_channels(unit: SourceUnit, findings: _Collector) -> None:
    events: collections.Counter[str] = collections.Counter()
    emitters: collections.Counter[str] = collections.Counter()
    for index, channel in enumerate(unit.frontmatter.channels):
        if not channel.event or not channel.emit:
            missing = "event" if not channel.event else "emit"
            findings.error(
                "frontmatter",
                f"Channel {index} is missing its '{missing}' field.",
                "Each channel needs both fields, for example: "
                "{event: 'userLogin', emit: 'onUserLogin'}",
            )
            continue
        if not _EVENT_NAME.match(channel.event):
            findings.error(
                "frontmatter",
                f"Channel {index} event '{channel.event}' is not a valid event name.",
                "Event names start with a letter and contain no spaces.",
            )
        if not _IDENTIFIER.match(channel.emit):
            findings.error(
                "frontmatter",
                f"Channel {index} emitter '{channel.emit}' is not a valid identifier.",
                "Emitter names start with a letter and contain only letters, digits "
                "and underscores.",
            )
        events[channel.event] += 1
        emitters[channel.emit] += 1

    for event, count in events.items():
        if count > 1:
            findings.error(
                "frontmatter",
                f"Event '{event}' is declared by {count} channels.",
                f"Declare '{event}' in a single channel entry.",
            )
    for emit, count in emitters.items():
        if count > 1:
            findings.error(
                "frontmatter",
                f"Emitter '{emit}' is used by {count} channels.",
                "Give each channel its own emitter function name.",
            )


def _check_frontmatter_shapes(unit: SourceUnit, findings: _Collector) -> None:
    props = unit.frontmatter.props
    if props is not None and not isinstance(props, dict | list):
        findings.warning(
            "frontmatter",
            "Frontmatter 'props' should be a mapping or a list; it is ignored.",
            "Declare props as a mapping of prop names to types.",
        )
    styles = unit.frontmatter.styles
    if styles is not None and not isinstance(styles, dict | list | str):
        findings.warning(
            "frontmatter",
            "Frontmatter 'styles' should be a mapping, a list, or a string; it is ignored.",
            "List stylesheet paths or map class names to style rules.",
        )


def _check_duplicates(component: ComponentAST, findings: _Collector) -> None:
    seen: dict[str, int] = {}
    declarations = [(var.name, var.line) for var in component.variables] + [
        (func.name, func.line) for func in component.functions
    ]
    for name, line in sorted(declarations, key=lambda item: item[1]):
        if name in seen:
            findings.error(
                "syntax",
                f"'${name}' is declared more than once (first on line {seen[name]}).",
                f"Rename or remove the second declaration of '${name}'.",
                line=line,
            )
        else:
            seen[name] = line


def _check_references(component: ComponentAST, findings: _Collector) -> None:
    template = component.template
    if template is None:
        return
    declared = component.declared_names
    function_names = {func.name for func in component.functions}

    def _undeclared(name: str, where: str, line: int, column: int) -> None:
        suggestions = [f"Declare '${name}' before using it, for example: ${name}! = 0"]
        close = difflib.get_close_matches(name, sorted(declared), n=1)
        if close:
            suggestions.insert(0, f"Did you mean '${close[0]}'?")
        findings.error(
            "syntax",
            f"{where} references undeclared '${name}'.",
            *suggestions,
            line=line,
            column=column,
        )

    for binding in template.bindings:
        for name in binding.references:
            if name not in declared:
                _undeclared(name, "Binding", binding.line, binding.column)
    for event in template.events:
        if event.handler not in declared:
            _undeclared(
                event.handler, f"Event handler for '{event.event}'", event.line, event.column
            )
        elif event.handler not in function_names:
            findings.warning(
                "syntax",
                f"Event handler '${event.handler}' for '{event.event}' is not a function.",
                f"Declare '${event.handler}' as '(event) => {{ ... }}'.",
                line=event.line,
                column=event.column,
            )
    for block in template.blocks:
        for name in block.references:
            if name not in declared:
                _undeclared(name, f"'{{#{block.kind}}}' block", block.line, block.column)


def _check_emitter_collisions(
    unit: SourceUnit, component: ComponentAST, findings: _Collector
) -> None:
    declared = component.declared_names
    for channel in unit.frontmatter.channels:
        if channel.emit and channel.emit in declared:
            findings.warning(
                "frontmatter",
                f"Emitter '{channel.emit}' shadows a declared variable or function.",
                f"Rename the emitter for event '{channel.event}'.",
            )


__all__ = ["ValidationReport", "validate"]
