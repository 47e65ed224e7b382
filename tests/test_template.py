"""Unit tests for scanning template markup."""

from __future__ import annotations

import pytest

from metamon.errors import MTMSyntaxError
from metamon.parser import BlockKind
from metamon.parser.template import extract_references, parse_template


def test_bindings_events_and_elements_are_located() -> None:
    """Touch points should carry file-relative lines and 1-based columns."""
    template = parse_template(
        "\n  <button click={$add(1)}>{$count}</button>\n",
        first_line=10,
    )
    assert [element.tag for element in template.elements] == ["button"]
    (event,) = template.events
    assert (event.event, event.handler, event.arguments) == ("click", "add", "1")
    assert (event.line, event.column) == (11, 11)
    (binding,) = template.bindings
    assert binding.expression == "$count"
    assert binding.references == ("count",)
    assert binding.line == 11


def test_blocks_capture_headers_and_bodies() -> None:
    """Each block kind should record its header parts and raw body."""
    template = parse_template(
        "{#if $visible}<p>on</p>{:else}<p>off</p>{/if}"
        "{#each $items as item, i}<li>{item}</li>{/each}"
        "{#for n=1 to $limit}<b>{n}</b>{/for}"
    )
    conditional, each, loop = template.blocks
    assert conditional.kind is BlockKind.IF
    assert conditional.has_else
    assert conditional.references == ("visible",)
    assert conditional.body == "<p>on</p>{:else}<p>off</p>"

    assert each.kind is BlockKind.EACH
    assert (each.expression, each.item, each.index) == ("$items", "item", "i")

    assert loop.kind is BlockKind.FOR
    assert (loop.item, loop.range_start, loop.range_end) == ("n", "1", "$limit")
    assert loop.references == ("limit",)


def test_nested_blocks_are_listed_in_opening_order() -> None:
    """Blocks should be reported in the order they were opened."""
    template = parse_template("{#each $rows as row}{#if row.ok}<i/>{/if}{/each}")
    assert [block.kind for block in template.blocks] == [BlockKind.EACH, BlockKind.IF]


@pytest.mark.parametrize(
    ("markup", "message", "line"),
    [
        ("<p>\n{#if $a}\n<b/>\n", "never closed", 2),
        ("{#if $a}{/each}", "closes a", 1),
        ("<p>{/if}</p>", "Unexpected", 1),
        ("{:else}", "outside", 1),
        ("{#if $a}{:else}{:else}{/if}", "only one", 1),
        ("{#while $a}{/while}", "Unknown template block", 1),
        ("<p>\n\n{$count</p>", "never closed", 3),
    ],
)
def test_structural_errors(markup: str, message: str, line: int) -> None:
    """Unbalanced or unknown markup should raise with a position."""
    with pytest.raises(MTMSyntaxError, match=message) as excinfo:
        parse_template(markup)
    assert excinfo.value.line == line
    assert excinfo.value.column is not None


def test_extract_references_deduplicates() -> None:
    """References should be unique and in first-seen order."""
    assert extract_references("$b + $a + $b") == ("b", "a")
