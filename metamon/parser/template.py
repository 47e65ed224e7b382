"""Scan a component template for bindings, event handlers, and blocks.

The scanner walks the template once with a combined regular expression and
records every reactive touch point with its file position. Block tags are
matched with an explicit stack so unbalanced ``{#if}``/``{#each}``/``{#for}``
blocks are reported at the line where they were opened.
"""

from __future__ import annotations

import bisect
import dataclasses as dc
import re

from metamon.errors import MTMSyntaxError

from .models import (
    Binding,
    BlockKind,
    EventBinding,
    Template,
    TemplateBlock,
    TemplateElement,
)

REFERENCE_PATTERN = re.compile(r"\$([A-Za-z_]\w*)")

TEMPLATE_TOKEN_SPEC: tuple[tuple[str, str], ...] = (
    (
        "EVENT",
        r"(?P<event_name>[A-Za-z][\w:-]*)=\{\s*\$(?P<handler>\w+)"
        r"(?:\((?P<args>[^)]*)\))?\s*\}",
    ),
    ("IF_OPEN", r"\{#if\s+(?P<if_cond>[^}]+?)\s*\}"),
    ("ELSE", r"\{:else\}"),
    ("IF_CLOSE", r"\{/if\}"),
    (
        "EACH_OPEN",
        r"\{#each\s+(?P<each_expr>[^}]+?)\s+as\s+(?P<each_item>\w+)"
        r"(?:\s*,\s*(?P<each_index>\w+))?\s*\}",
    ),
    ("EACH_CLOSE", r"\{/each\}"),
    (
        "FOR_OPEN",
        r"\{#for\s+(?P<for_var>\w+)\s*=\s*(?P<for_start>[^\s}]+)\s+to\s+"
        r"(?P<for_end>[^}]+?)\s*\}",
    ),
    ("FOR_CLOSE", r"\{/for\}"),
    ("UNKNOWN_BLOCK", r"\{[#/:][^}]*\}"),
    ("INTERPOLATION", r"\{(?P<expr>[^{}]+)\}"),
    ("OPEN_BRACE", r"\{"),
    ("ELEMENT", r"<(?P<tag>[A-Za-z][\w.-]*)"),
)
TEMPLATE_TOKEN_PATTERN = re.compile(
    "|".join(f"(?P<{kind}>{pattern})" for kind, pattern in TEMPLATE_TOKEN_SPEC)
)

_CLOSERS = {
    "IF_CLOSE": BlockKind.IF,
    "EACH_CLOSE": BlockKind.EACH,
    "FOR_CLOSE": BlockKind.FOR,
}


def extract_references(expression: str) -> tuple[str, ...]:
    """Return ``$``-prefixed names used in ``expression``, in first-seen order.

    Examples
    --------
    >>> extract_references("$count * $step + $count")
    ('count', 'step')
    """
    return tuple(dict.fromkeys(REFERENCE_PATTERN.findall(expression)))


@dc.dataclass(slots=True)
class _OpenBlock:
    """Mutable record of a block whose closing tag has not been seen yet."""

    slot: int
    block: TemplateBlock
    body_start: int


class _Locator:
    """Translate string offsets into 1-based file line and column numbers."""

    def __init__(self, source: str, first_line: int) -> None:
        self._starts = [0] + [m.end() for m in re.finditer(r"\n", source)]
        self._first_line = first_line

    def __call__(self, offset: int) -> tuple[int, int]:
        row = bisect.bisect_right(self._starts, offset) - 1
        return self._first_line + row, offset - self._starts[row] + 1


def parse_template(source: str, *, file_path: str = "", first_line: int = 1) -> Template:
    """Parse template markup into a :class:`Template`.

    Parameters
    ----------
    source : str
        Markup between ``<template>`` and ``</template>``.
    file_path : str, optional
        Path used in error messages.
    first_line : int, optional
        File line on which ``source`` starts.

    Returns
    -------
    Template
        Elements, interpolation bindings, event bindings, and control-flow
        blocks found in the markup, each in source order.

    Raises
    ------
    MTMSyntaxError
        If a brace is never closed, a block tag is unknown, or blocks are
        unbalanced or interleaved.
    """
    locate = _Locator(source, first_line)
    elements: list[TemplateElement] = []
    bindings: list[Binding] = []
    events: list[EventBinding] = []
    blocks: list[TemplateBlock | None] = []
    stack: list[_OpenBlock] = []

    def _error(message: str, offset: int, suggestion: str) -> MTMSyntaxError:
        line, column = locate(offset)
        return MTMSyntaxError(
            message, file=file_path, line=line, column=column, suggestions=[suggestion]
        )

    def _open(block: TemplateBlock, end: int) -> None:
        blocks.append(None)
        stack.append(_OpenBlock(slot=len(blocks) - 1, block=block, body_start=end))

    for match in TEMPLATE_TOKEN_PATTERN.finditer(source):
        kind = match.lastgroup
        start = match.start()
        line, column = locate(start)
        match kind:
            case "ELEMENT":
                elements.append(TemplateElement(tag=match["tag"], line=line, column=column))
            case "EVENT":
                events.append(
                    EventBinding(
                        event=match["event_name"],
                        handler=match["handler"],
                        arguments=match["args"],
                        line=line,
                        column=column,
                    )
                )
            case "INTERPOLATION":
                expression = match["expr"].strip()
                bindings.append(
                    Binding(
                        expression=expression,
                        references=extract_references(expression),
                        line=line,
                        column=column,
                    )
                )
            case "IF_OPEN":
                condition = match["if_cond"]
                _open(
                    TemplateBlock(
                        kind=BlockKind.IF,
                        expression=condition,
                        references=extract_references(condition),
                        line=line,
                        column=column,
                    ),
                    match.end(),
                )
            case "EACH_OPEN":
                collection = match["each_expr"].strip()
                _open(
                    TemplateBlock(
                        kind=BlockKind.EACH,
                        expression=collection,
                        references=extract_references(collection),
                        line=line,
                        column=column,
                        item=match["each_item"],
                        index=match["each_index"],
                    ),
                    match.end(),
                )
            case "FOR_OPEN":
                bounds = f"{match['for_start']} {match['for_end']}"
                _open(
                    TemplateBlock(
                        kind=BlockKind.FOR,
                        expression=match["for_var"],
                        references=extract_references(bounds),
                        line=line,
                        column=column,
                        item=match["for_var"],
                        range_start=match["for_start"],
                        range_end=match["for_end"].strip(),
                    ),
                    match.end(),
                )
            case "ELSE":
                if not stack or stack[-1].block.kind is not BlockKind.IF:
                    raise _error(
                        "'{:else}' appears outside of an '{#if}' block.",
                        start,
                        "Place '{:else}' between '{#if ...}' and '{/if}'.",
                    )
                if stack[-1].block.has_else:
                    raise _error(
                        "An '{#if}' block may contain only one '{:else}'.",
                        start,
                        "Remove the extra '{:else}' or nest another '{#if}'.",
                    )
                stack[-1].block = dc.replace(stack[-1].block, has_else=True)
            case "IF_CLOSE" | "EACH_CLOSE" | "FOR_CLOSE":
                expected = _CLOSERS[kind]
                if not stack:
                    raise _error(
                        f"Unexpected '{{/{expected}}}' without a matching opening block.",
                        start,
                        f"Remove the stray '{{/{expected}}}' or add '{{#{expected} ...}}'.",
                    )
                opened = stack.pop()
                if opened.block.kind is not expected:
                    raise _error(
                        f"'{{/{expected}}}' closes a '{{#{opened.block.kind}}}' block "
                        f"opened on line {opened.block.line}.",
                        start,
                        f"Close the '{{#{opened.block.kind}}}' block with "
                        f"'{{/{opened.block.kind}}}' first.",
                    )
                blocks[opened.slot] = dc.replace(
                    opened.block, body=source[opened.body_start : start]
                )
            case "UNKNOWN_BLOCK":
                raise _error(
                    f"Unknown template block {match.group(0)!r}.",
                    start,
                    "Supported blocks are {#if}, {:else}, {#each ... as item} and "
                    "{#for i=0 to n}.",
                )
            case "OPEN_BRACE":
                if "}" not in source[start:]:
                    raise _error(
                        "Interpolation opened with '{' is never closed.",
                        start,
                        "Close the expression with '}'.",
                    )

    if stack:
        opened = stack[-1].block
        msg = f"'{{#{opened.kind}}}' block is never closed."
        raise MTMSyntaxError(
            msg,
            file=file_path,
            line=opened.line,
            column=opened.column,
            suggestions=[f"Add '{{/{opened.kind}}}' after the block body."],
        )

    return Template(
        source=source,
        line=first_line,
        elements=tuple(elements),
        bindings=tuple(bindings),
        events=tuple(events),
        blocks=tuple(block for block in blocks if block is not None),
    )


__all__ = ["TEMPLATE_TOKEN_PATTERN", "extract_references", "parse_template"]
