"""Error taxonomy and structured diagnostics for metamon.

Every failure raised by the parser, validator, resolver, or code generator is a
:class:`MetamonError`. Each error knows its diagnostic ``type`` (``syntax``,
``frontmatter``, ``framework`` or ``runtime``), where it happened, and at least
one actionable suggestion, so CLI and editor collaborators can render it
without inspecting the exception class.

Examples
--------
>>> err = FrontmatterError("Missing 'target'", file="app.mtm")
>>> err.to_diagnostic().type
'frontmatter'
>>> bool(err.suggestions)
True
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

DiagnosticType = typ.Literal["syntax", "frontmatter", "framework", "runtime"]
Severity = typ.Literal["error", "warning"]


@dc.dataclass(frozen=True, slots=True)
class Diagnostic:
    """A single finding surfaced to users.

    Attributes
    ----------
    type : str
        One of ``syntax``, ``frontmatter``, ``framework`` or ``runtime``.
    message : str
        Human-readable description of the problem.
    file : str
        Path of the source unit the finding belongs to.
    line : int | None
        1-based line number when known.
    column : int | None
        1-based column number when known.
    suggestions : tuple[str, ...]
        Actionable hints for fixing the problem.
    severity : str
        ``error`` findings make a unit invalid; ``warning`` findings do not.
    """

    type: DiagnosticType
    message: str
    file: str = ""
    line: int | None = None
    column: int | None = None
    suggestions: tuple[str, ...] = ()
    severity: Severity = "error"


def format_diagnostic(diagnostic: Diagnostic) -> str:
    """Render a diagnostic as multi-line text with numbered suggestions.

    Examples
    --------
    >>> print(format_diagnostic(Diagnostic("syntax", "Boom", file="a.mtm", line=3)))
    [syntax] Boom
      File: a.mtm
      Line: 3
    """
    lines = [f"[{diagnostic.type}] {diagnostic.message}"]
    if diagnostic.file:
        lines.append(f"  File: {diagnostic.file}")
    if diagnostic.line is not None:
        lines.append(f"  Line: {diagnostic.line}")
    if diagnostic.column is not None:
        lines.append(f"  Column: {diagnostic.column}")
    if diagnostic.suggestions:
        lines.append("")
        lines.append("Suggestions:")
        lines.extend(
            f"  {index}. {suggestion}"
            for index, suggestion in enumerate(diagnostic.suggestions, start=1)
        )
    return "\n".join(lines)


class MetamonError(Exception):
    """Base class for compile-time and runtime errors raised by metamon."""

    type: typ.ClassVar[DiagnosticType] = "runtime"
    default_suggestions: typ.ClassVar[tuple[str, ...]] = (
        "Check the metamon documentation for the expected usage.",
    )

    def __init__(
        self,
        message: str,
        *,
        file: str = "",
        line: int | None = None,
        column: int | None = None,
        suggestions: typ.Iterable[str] | None = None,
        diagnostics: typ.Iterable[Diagnostic] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.file = str(file)
        self.line = line
        self.column = column
        self.suggestions = tuple(suggestions or ()) or self.default_suggestions
        self.diagnostics = tuple(diagnostics or ())

    def to_diagnostic(self) -> Diagnostic:
        """Return the structured form of this error."""
        return Diagnostic(
            type=self.type,
            message=self.message,
            file=self.file,
            line=self.line,
            column=self.column,
            suggestions=self.suggestions,
        )

    def format(self) -> str:
        """Return the formatted multi-line message used by the CLI."""
        return format_diagnostic(self.to_diagnostic())

    def __str__(self) -> str:
        location = self.file
        if location and self.line is not None:
            location = f"{location}:{self.line}"
            if self.column is not None:
                location = f"{location}:{self.column}"
        return f"{location}: {self.message}" if location else self.message


class MTMSyntaxError(MetamonError):
    """Raised when a source unit's text structure is malformed."""

    type = "syntax"
    default_suggestions = (
        "Check that every block opened in the unit is closed.",
        "Frontmatter must start and end with a '---' line.",
    )


class FrontmatterError(MetamonError):
    """Raised when frontmatter is missing a valid target or has bad channels."""

    type = "frontmatter"
    default_suggestions = (
        "Declare a supported target, for example: target: reactjs",
    )


class FrameworkError(MetamonError):
    """Raised when code generation for a target fails.

    ``actual_target`` holds the target declared by the unit and
    ``expected_target`` the emitter that was asked to generate code.
    """

    type = "framework"
    default_suggestions = (
        "Compile the unit with the emitter matching its 'target' frontmatter.",
    )

    def __init__(
        self,
        message: str,
        *,
        actual_target: str | None = None,
        expected_target: str | None = None,
        **kwargs: typ.Any,  # noqa: ANN401 - forwarded to MetamonError
    ) -> None:
        super().__init__(message, **kwargs)
        self.actual_target = actual_target
        self.expected_target = expected_target


class MTMRuntimeError(MetamonError):
    """Raised when the signal or pub/sub runtime is misused."""

    type = "runtime"
    default_suggestions = (
        "Pass a non-empty event name, a callable, and a component id.",
    )


class ConfigError(ValueError):
    """Raised when the compiler configuration is invalid or incomplete."""


_ERROR_TYPES: dict[str, type[MetamonError]] = {
    "syntax": MTMSyntaxError,
    "frontmatter": FrontmatterError,
    "framework": FrameworkError,
    "runtime": MTMRuntimeError,
}


def error_from_diagnostics(
    diagnostics: typ.Sequence[Diagnostic], *, file: str = ""
) -> MetamonError:
    """Build the error matching the first finding, attaching every finding.

    Parameters
    ----------
    diagnostics : Sequence[Diagnostic]
        Error-severity findings, in report order. Must not be empty.
    file : str, optional
        Source path recorded on the error when findings lack one.

    Returns
    -------
    MetamonError
        An instance of the class matching ``diagnostics[0].type``.
    """
    first = diagnostics[0]
    error_cls = _ERROR_TYPES[first.type]
    message = first.message
    if len(diagnostics) > 1:
        message = f"{message} (and {len(diagnostics) - 1} more problem(s))"
    suggestions: list[str] = []
    for diagnostic in diagnostics:
        suggestions.extend(s for s in diagnostic.suggestions if s not in suggestions)
    return error_cls(
        message,
        file=first.file or file,
        line=first.line,
        column=first.column,
        suggestions=suggestions,
        diagnostics=diagnostics,
    )


__all__ = [
    "ConfigError",
    "Diagnostic",
    "DiagnosticType",
    "FrameworkError",
    "FrontmatterError",
    "MTMRuntimeError",
    "MTMSyntaxError",
    "MetamonError",
    "Severity",
    "error_from_diagnostics",
    "format_diagnostic",
]
