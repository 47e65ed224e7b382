"""Unit tests for frontmatter splitting and parsing.

These tests cover the ``---`` delimited metadata block that opens every unit:
delimiter handling, target validation with suggestions, channel shape checks,
and the best-effort ``read_target`` helper used by the dependency graph.
"""

from __future__ import annotations

import pytest

from metamon.errors import FrontmatterError, MTMSyntaxError
from metamon.parser import parse, read_target
from metamon.parser.frontmatter import parse_frontmatter, split_frontmatter


def test_split_reports_body_start_line() -> None:
    """The body line should follow the closing delimiter."""
    raw, body, line = split_frontmatter("---\ntarget: vue\ntitle: Home\n---\nbody\n")
    assert raw == "target: vue\ntitle: Home\n"
    assert body == "body\n"
    assert line == 5


def test_unclosed_frontmatter_is_a_syntax_error() -> None:
    """An opening delimiter without a closing one should be rejected."""
    with pytest.raises(MTMSyntaxError) as excinfo:
        parse("---\ntarget: reactjs\n<template></template>\n", "open.mtm")
    assert excinfo.value.type == "syntax"
    assert excinfo.value.line == 1
    assert excinfo.value.file == "open.mtm"


def test_missing_frontmatter_is_rejected_when_required() -> None:
    """Units without frontmatter are syntax errors by default."""
    with pytest.raises(MTMSyntaxError, match="missing its frontmatter"):
        parse("<template><p>hi</p></template>\n")


def test_missing_frontmatter_allowed_when_optional() -> None:
    """Optional frontmatter should leave the target unknown."""
    unit = parse("<template><p>hi</p></template>\n", require_frontmatter=False)
    assert unit.frontmatter.target == "unknown"
    assert unit.content_line == 1


def test_malformed_delimiter_reports_its_line() -> None:
    """A closing delimiter with the wrong dash count should be called out."""
    with pytest.raises(MTMSyntaxError) as excinfo:
        split_frontmatter("---\ntarget: vue\n----\n")
    assert excinfo.value.line == 3


def test_yaml_errors_report_file_line() -> None:
    """YAML parser positions should be translated to file lines."""
    with pytest.raises(MTMSyntaxError) as excinfo:
        parse("---\ntarget: vue\nchannels: [\n---\n")
    assert excinfo.value.line is not None
    assert excinfo.value.line >= 2


def test_missing_target_lists_supported_targets() -> None:
    """Frontmatter without a target should raise a frontmatter error."""
    with pytest.raises(FrontmatterError) as excinfo:
        parse_frontmatter("title: Home\n")
    assert excinfo.value.type == "frontmatter"
    assert any("reactjs" in suggestion for suggestion in excinfo.value.suggestions)


def test_unsupported_target_suggests_closest_match() -> None:
    """A misspelt target should suggest the nearest supported one."""
    with pytest.raises(FrontmatterError) as excinfo:
        parse_frontmatter("target: reactj\n")
    assert excinfo.value.suggestions[0] == "Did you mean 'reactjs'?"


def test_non_mapping_frontmatter_is_rejected() -> None:
    """A YAML list is not valid frontmatter."""
    with pytest.raises(FrontmatterError, match="mapping"):
        parse_frontmatter("- reactjs\n")


@pytest.mark.parametrize(
    "channels",
    [
        "channels: userLogin\n",
        "channels:\n  - userLogin\n",
        "channels:\n  - {event: 3, emit: onLogin}\n",
    ],
)
def test_malformed_channels_are_rejected(channels: str) -> None:
    """Channels must be a list of mappings with string fields."""
    with pytest.raises(FrontmatterError):
        parse_frontmatter(f"target: vue\n{channels}")


def test_channels_and_extra_keys_are_kept() -> None:
    """Known keys populate fields; unknown keys land in ``extra``."""
    frontmatter = parse_frontmatter(
        "target: solid\n"
        "channels:\n"
        "  - event: userLogin\n"
        "    emit: onUserLogin\n"
        "route: /profile\n"
        "props:\n"
        "  name: string\n"
    )
    assert frontmatter.target == "solid"
    assert [(c.event, c.emit) for c in frontmatter.channels] == [("userLogin", "onUserLogin")]
    assert frontmatter.extra == {"route": "/profile"}
    assert frontmatter.props == {"name": "string"}


@pytest.mark.parametrize(
    ("source", "expected"),
    [
        ("---\ntarget: svelte\n---\n", "svelte"),
        ("---\ntitle: none\n---\n", "unknown"),
        ("<template></template>\n", "unknown"),
        ("---\ntarget: [\n---\n", "unknown"),
    ],
)
def test_read_target_never_raises(source: str, expected: str) -> None:
    """``read_target`` should fall back to ``unknown`` on any problem."""
    assert read_target(source) == expected
