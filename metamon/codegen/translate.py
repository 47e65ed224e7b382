"""Rewrite unit expressions and template markup into target syntax.

Units refer to reactive state as ``$name``. Each target reads and writes
state differently (``count`` and ``setCount(...)`` for React, ``count()`` for
Solid, ``count.value`` in Vue scripts), so expressions are rewritten with a
mapping from declared names to their target spelling. Template markup is
rewritten token by token with the same scanner the parser uses; plain markup
between tokens is copied unchanged.
"""

from __future__ import annotations

import enum
import re
import typing as typ

from metamon.parser.template import TEMPLATE_TOKEN_PATTERN

REFERENCE = re.compile(r"\$([A-Za-z_]\w*)")
_STEP = re.compile(r"\$([A-Za-z_]\w*)\s*(\+\+|--)")
_ASSIGNMENT = re.compile(r"\$([A-Za-z_]\w*)\s*([-+*/%]?)=(?![=>])\s*([^;\n]+)")

_JSX_EVENT_NAMES = {
    "dblclick": "onDoubleClick",
    "mousedown": "onMouseDown",
    "mouseup": "onMouseUp",
    "mouseover": "onMouseOver",
    "mouseout": "onMouseOut",
    "mouseenter": "onMouseEnter",
    "mouseleave": "onMouseLeave",
    "keydown": "onKeyDown",
    "keyup": "onKeyUp",
    "keypress": "onKeyPress",
}


class MarkupDialect(enum.StrEnum):
    """Template flavours emitted by the supported targets."""

    JSX = "jsx"
    SOLID = "solid"
    VUE = "vue"
    SVELTE = "svelte"


def rewrite_references(expression: str, reads: typ.Mapping[str, str]) -> str:
    """Replace each ``$name`` with its target spelling from ``reads``.

    Names missing from ``reads`` lose their ``$`` prefix.

    Examples
    --------
    >>> rewrite_references("$count * 2", {"count": "count()"})
    'count() * 2'
    """
    return REFERENCE.sub(lambda match: reads.get(match[1], match[1]), expression)


def rewrite_script(
    text: str, reads: typ.Mapping[str, str], writes: typ.Mapping[str, str]
) -> str:
    """Rewrite a function body or expression for a target.

    ``writes`` maps each writable name to a format string with a ``{value}``
    placeholder. Assignments (``$x = v``, ``$x += v``) and steps (``$x++``)
    to those names become target writes; every other reference is read.

    Examples
    --------
    >>> rewrite_script("$count++", {"count": "count"}, {"count": "setCount({value})"})
    'setCount(count + 1)'
    """

    def _step(match: re.Match[str]) -> str:
        name, operator = match[1], match[2]
        if name not in writes:
            return match[0]
        value = f"{reads.get(name, name)} {operator[0]} 1"
        return writes[name].format(value=value)

    def _assign(match: re.Match[str]) -> str:
        name, operator, value = match[1], match[2], match[3].rstrip()
        if name not in writes:
            return match[0]
        value = rewrite_references(value, reads)
        if operator:
            value = f"{reads.get(name, name)} {operator} ({value})"
        return writes[name].format(value=value)

    text = _STEP.sub(_step, text)
    text = _ASSIGNMENT.sub(_assign, text)
    return rewrite_references(text, reads)


def translate_markup(
    source: str, dialect: MarkupDialect, reads: typ.Mapping[str, str]
) -> str:
    """Rewrite template markup for ``dialect``.

    Parameters
    ----------
    source : str
        Markup that already passed :func:`metamon.parser.template.parse_template`.
    dialect : MarkupDialect
        Target template flavour.
    reads : Mapping[str, str]
        Target spelling of each declared name inside markup.
    """
    translator = _MarkupTranslator(dialect, reads)
    pieces: list[str] = []
    position = 0
    for match in TEMPLATE_TOKEN_PATTERN.finditer(source):
        replacement = translator.token(match)
        if replacement is None:
            continue
        pieces.append(source[position : match.start()])
        pieces.append(replacement)
        position = match.end()
    pieces.append(source[position:])
    return "".join(pieces)


def range_expression(start: str, end: str) -> str:
    """Return a JavaScript expression listing the integers ``start..end`` inclusive."""
    return f"Array.from({{ length: ({end}) - ({start}) + 1 }}, (_, k) => ({start}) + k)"


class _MarkupTranslator:
    """Per-call state for :func:`translate_markup`.

    Block closers depend on how their block was opened (and, for JSX
    conditionals, on whether an ``{:else}`` was seen), so open blocks are
    kept on a stack of ``[closer, condition]`` pairs.
    """

    def __init__(self, dialect: MarkupDialect, reads: typ.Mapping[str, str]) -> None:
        self.dialect = dialect
        self.reads = reads
        self.stack: list[list[str]] = []

    def expr(self, text: str) -> str:
        return rewrite_references(text.strip(), self.reads)

    def token(self, match: re.Match[str]) -> str | None:
        match match.lastgroup:
            case "INTERPOLATION":
                return self.interpolation(self.expr(match["expr"]))
            case "EVENT":
                return self.event(match["event_name"], match["handler"], match["args"])
            case "IF_OPEN":
                return self.open_if(self.expr(match["if_cond"]))
            case "ELSE":
                return self.else_branch()
            case "EACH_OPEN":
                index = match["each_index"] or f"{match['each_item']}Index"
                return self.open_each(
                    self.expr(match["each_expr"]),
                    match["each_item"],
                    index,
                    explicit_index=match["each_index"] is not None,
                )
            case "FOR_OPEN":
                return self.open_for(
                    match["for_var"],
                    range_expression(self.expr(match["for_start"]), self.expr(match["for_end"])),
                )
            case "IF_CLOSE" | "EACH_CLOSE" | "FOR_CLOSE":
                return self.stack.pop()[0] if self.stack else match[0]
            case _:
                return None

    def interpolation(self, expression: str) -> str:
        if self.dialect is MarkupDialect.VUE:
            return f"{{{{ {expression} }}}}"
        return f"{{{expression}}}"

    def event(self, event: str, handler: str, arguments: str | None) -> str:
        target = self.reads.get(handler, handler)
        call = f"{target}({self.expr(arguments)})" if arguments is not None else None
        match self.dialect:
            case MarkupDialect.VUE:
                return f'@{event}="{call or target}"'
            case MarkupDialect.SVELTE:
                return f"on:{event}={{{f'() => {call}' if call else target}}}"
            case _:
                name = _JSX_EVENT_NAMES.get(event.lower(), f"on{event[:1].upper()}{event[1:]}")
                return f"{name}={{{f'() => {call}' if call else target}}}"

    def open_if(self, condition: str) -> str:
        match self.dialect:
            case MarkupDialect.JSX:
                self.stack.append(["</>) : null}", condition])
                return f"{{({condition}) ? (<>"
            case MarkupDialect.SOLID:
                self.stack.append(["</Show>", condition])
                return f"<Show when={{{condition}}}>"
            case MarkupDialect.VUE:
                self.stack.append(["</template>", condition])
                return f'<template v-if="{condition}">'
            case MarkupDialect.SVELTE:
                self.stack.append(["{/if}", condition])
                return f"{{#if {condition}}}"

    def else_branch(self) -> str:
        if not self.stack:
            return "{:else}"
        frame = self.stack[-1]
        match self.dialect:
            case MarkupDialect.JSX:
                frame[0] = "</>)}"
                return "</>) : (<>"
            case MarkupDialect.SOLID:
                return f"</Show><Show when={{!({frame[1]})}}>"
            case MarkupDialect.VUE:
                return "</template><template v-else>"
            case MarkupDialect.SVELTE:
                return "{:else}"

    def open_each(self, collection: str, item: str, index: str, *, explicit_index: bool) -> str:
        match self.dialect:
            case MarkupDialect.JSX:
                self.stack.append(["</React.Fragment>))}", collection])
                return (
                    f"{{({collection}).map(({item}, {index}) => "
                    f"(<React.Fragment key={{{index}}}>"
                )
            case MarkupDialect.SOLID:
                self.stack.append(["</>)}</For>", collection])
                return f"<For each={{{collection}}}>{{({item}, {index}) => (<>"
            case MarkupDialect.VUE:
                self.stack.append(["</template>", collection])
                return f'<template v-for="({item}, {index}) in {collection}" :key="{index}">'
            case MarkupDialect.SVELTE:
                self.stack.append(["{/each}", collection])
                suffix = f", {index}" if explicit_index else ""
                return f"{{#each {collection} as {item}{suffix}}}"

    def open_for(self, variable: str, values: str) -> str:
        match self.dialect:
            case MarkupDialect.JSX:
                self.stack.append(["</React.Fragment>))}", values])
                return f"{{{values}.map(({variable}) => (<React.Fragment key={{{variable}}}>"
            case MarkupDialect.SOLID:
                self.stack.append(["</>)}</For>", values])
                return f"<For each={{{values}}}>{{({variable}) => (<>"
            case MarkupDialect.VUE:
                self.stack.append(["</template>", values])
                return f'<template v-for="{variable} in {values}" :key="{variable}">'
            case MarkupDialect.SVELTE:
                self.stack.append(["{/each}", values])
                return f"{{#each {values} as {variable}}}"


__all__ = [
    "MarkupDialect",
    "range_expression",
    "rewrite_references",
    "rewrite_script",
    "translate_markup",
]
