r"""Split and parse the YAML frontmatter block of a source unit.

A unit opens with a ``---`` line, carries YAML metadata, and closes the block
with another ``---`` line. The body that follows is handed to the tokenizer.

Example
-------
>>> raw, body, line = split_frontmatter("---\ntarget: vue\n---\n<template/>\n")
>>> raw
'target: vue\n'
>>> line
4
"""

from __future__ import annotations

import difflib
import re
import typing as typ

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from metamon._constants import FRONTMATTER_DELIMITER, SUPPORTED_TARGETS
from metamon.errors import FrontmatterError, MTMSyntaxError

from .models import Channel, Frontmatter

MALFORMED_DELIMITER_PATTERN = re.compile(r"^\s*-{2,}.*$")
KNOWN_KEYS = frozenset({"target", "channels", "props", "styles"})
CHANNEL_EXAMPLE = 'channels: [{event: "userLogin", emit: "onUserLogin"}]'


def split_frontmatter(
    source: str, *, file_path: str = "", required: bool = True
) -> tuple[str | None, str, int]:
    """Separate the frontmatter block from the unit body.

    Parameters
    ----------
    source : str
        Full text of the unit.
    file_path : str, optional
        Path used in error messages.
    required : bool, optional
        Whether a unit without frontmatter is a syntax error.

    Returns
    -------
    tuple[str | None, str, int]
        Raw YAML text (``None`` when absent), the body, and the 1-based line on
        which the body starts.

    Raises
    ------
    MTMSyntaxError
        If the delimiter is malformed, the block is never closed, or the block
        is absent while ``required`` is set.
    """
    lines = source.splitlines(keepends=True)
    first = lines[0].strip() if lines else ""
    if first != FRONTMATTER_DELIMITER:
        if MALFORMED_DELIMITER_PATTERN.match(first):
            msg = f"Malformed frontmatter delimiter {first!r}; expected '---'."
            raise MTMSyntaxError(
                msg,
                file=file_path,
                line=1,
                column=1,
                suggestions=["Open and close frontmatter with a line containing only '---'."],
            )
        if required:
            msg = "Source unit is missing its frontmatter block."
            raise MTMSyntaxError(
                msg,
                file=file_path,
                line=1,
                column=1,
                suggestions=[
                    "Start the file with '---', a 'target:' line, and a closing '---'.",
                ],
            )
        return None, source, 1

    for index in range(1, len(lines)):
        stripped = lines[index].strip()
        if stripped == FRONTMATTER_DELIMITER:
            return "".join(lines[1:index]), "".join(lines[index + 1 :]), index + 2
        if MALFORMED_DELIMITER_PATTERN.match(stripped):
            msg = f"Malformed frontmatter delimiter {stripped!r}; expected '---'."
            raise MTMSyntaxError(
                msg,
                file=file_path,
                line=index + 1,
                column=1,
                suggestions=["Close the frontmatter with a line containing only '---'."],
            )

    msg = "Frontmatter opened on line 1 is never closed."
    raise MTMSyntaxError(
        msg,
        file=file_path,
        line=1,
        column=1,
        suggestions=["Add a closing '---' line after the frontmatter fields."],
    )


def parse_frontmatter(raw: str, *, file_path: str = "", first_line: int = 2) -> Frontmatter:
    """Parse raw frontmatter YAML into a :class:`Frontmatter`.

    Parameters
    ----------
    raw : str
        YAML between the delimiters.
    file_path : str, optional
        Path used in error messages.
    first_line : int, optional
        File line on which ``raw`` starts; used to report YAML error positions.

    Raises
    ------
    MTMSyntaxError
        If the YAML cannot be parsed.
    FrontmatterError
        If the block is not a mapping, ``target`` is missing or unsupported,
        or ``channels`` is not a list of mappings with string fields.
    """
    data = _load_yaml(raw, file_path=file_path, first_line=first_line)
    if not isinstance(data, dict):
        msg = "Frontmatter must be a mapping of keys to values."
        raise FrontmatterError(msg, file=file_path, line=first_line)

    target = _parse_target(data.get("target"), file_path=file_path, line=first_line)
    channels = _parse_channels(data.get("channels"), file_path=file_path, line=first_line)
    extra = {str(key): value for key, value in data.items() if key not in KNOWN_KEYS}
    return Frontmatter(
        target=target,
        channels=channels,
        props=data.get("props"),
        styles=data.get("styles"),
        extra=extra,
    )


def read_target(source: str) -> str:
    """Return the declared target of ``source`` or ``"unknown"``.

    Unlike :func:`parse_frontmatter` this never raises; it serves callers that
    only need a best-effort classification, such as the dependency graph.
    """
    try:
        raw, _body, first_line = split_frontmatter(source, required=False)
        if raw is None:
            return "unknown"
        data = _load_yaml(raw, file_path="", first_line=first_line)
    except MTMSyntaxError:
        return "unknown"
    if isinstance(data, dict):
        target = data.get("target")
        if isinstance(target, str) and target.strip():
            return target.strip()
    return "unknown"


def suggest_targets(value: str) -> list[str]:
    """Return suggestions listing supported targets and the closest match."""
    suggestions = [f"Supported targets are: {', '.join(SUPPORTED_TARGETS)}."]
    close = difflib.get_close_matches(value.lower(), SUPPORTED_TARGETS, n=1)
    if close:
        suggestions.insert(0, f"Did you mean '{close[0]}'?")
    return suggestions


def _load_yaml(raw: str, *, file_path: str, first_line: int) -> typ.Any:  # noqa: ANN401 - YAML payload
    loader = YAML(typ="safe")
    loader.version = (1, 2)
    try:
        return loader.load(raw) or {}
    except YAMLError as exc:
        mark = getattr(exc, "problem_mark", None)
        line = first_line + mark.line if mark is not None else first_line
        column = mark.column + 1 if mark is not None else None
        problem = getattr(exc, "problem", None) or str(exc)
        msg = f"Invalid frontmatter YAML: {problem}"
        raise MTMSyntaxError(
            msg,
            file=file_path,
            line=line,
            column=column,
            suggestions=["Check indentation and quoting in the frontmatter block."],
        ) from exc


def _parse_target(value: object, *, file_path: str, line: int) -> str:
    if value is None or (isinstance(value, str) and not value.strip()):
        msg = "Frontmatter is missing the required 'target' field."
        raise FrontmatterError(
            msg,
            file=file_path,
            line=line,
            suggestions=[
                "Add a target line, for example: target: reactjs",
                f"Supported targets are: {', '.join(SUPPORTED_TARGETS)}.",
            ],
        )
    target = str(value).strip()
    if target not in SUPPORTED_TARGETS:
        msg = f"Unsupported target '{target}'."
        raise FrontmatterError(
            msg, file=file_path, line=line, suggestions=suggest_targets(target)
        )
    return target


def _parse_channels(value: object, *, file_path: str, line: int) -> tuple[Channel, ...]:
    if value is None:
        return ()
    if not isinstance(value, list):
        msg = "Frontmatter 'channels' must be a list."
        raise FrontmatterError(
            msg, file=file_path, line=line, suggestions=[f"Use list syntax: {CHANNEL_EXAMPLE}"]
        )
    channels: list[Channel] = []
    for index, entry in enumerate(value):
        if not isinstance(entry, dict):
            msg = f"Channel {index} must be a mapping with 'event' and 'emit' keys."
            raise FrontmatterError(
                msg,
                file=file_path,
                line=line,
                suggestions=[f"Use mapping syntax: {CHANNEL_EXAMPLE}"],
            )
        channels.append(
            Channel(
                event=_channel_field(entry, "event", index, file_path=file_path, line=line),
                emit=_channel_field(entry, "emit", index, file_path=file_path, line=line),
            )
        )
    return tuple(channels)


def _channel_field(
    entry: typ.Mapping[str, typ.Any], field: str, index: int, *, file_path: str, line: int
) -> str:
    value = entry.get(field)
    if value is None:
        return ""
    if not isinstance(value, str):
        msg = f"Channel {index} field '{field}' must be a string."
        raise FrontmatterError(
            msg, file=file_path, line=line, suggestions=[f"Quote the {field} value."]
        )
    return value.strip()


__all__ = ["parse_frontmatter", "read_target", "split_frontmatter", "suggest_targets"]
