"""Tokenize the script section of a unit body.

The body of a unit is a script section followed by a single
``<template>...</template>`` block. The script section is read line by line;
each recognised declaration becomes a :class:`Token`. Lines the tokenizer does
not recognise (plain statements, the closing brace of the component function)
are skipped, so the component body may contain ordinary target code.
"""

from __future__ import annotations

import dataclasses as dc
import enum
import re
import textwrap
import typing as typ

from metamon.errors import MTMSyntaxError


class TokenKind(enum.StrEnum):
    """Declarations recognised in the script section."""

    IMPORT = "import"
    COMPONENT = "component"
    REACTIVE = "reactive"
    COMPUTED = "computed"
    FUNCTION = "function"


@dc.dataclass(frozen=True, slots=True)
class Token:
    """A recognised declaration with its 1-based file position.

    ``value`` holds the declared name (or the import specifier) and ``data``
    carries the kind-specific parts, for example the ``params`` and ``body``
    of a function.
    """

    kind: TokenKind
    value: str
    line: int
    column: int
    data: typ.Mapping[str, typ.Any] = dc.field(default_factory=dict)


IMPORT_PATTERN = re.compile(
    r"""^\s*import\s+(?:(?P<clause>.+?)\s+from\s+)?["'](?P<specifier>[^"']+)["']\s*;?\s*$"""
)
COMPONENT_PATTERN = re.compile(r"^\s*export\s+default\s+function\s+(?P<name>[A-Za-z_]\w*)")
REACTIVE_PATTERN = re.compile(
    r"^\s*\$(?P<name>[A-Za-z_]\w*)\s*(?::\s*(?P<type>[^!=]+?))?\s*!\s*=\s*"
    r"(?P<value>.+?)\s*;?\s*$"
)
SIGNAL_CALL_PATTERN = re.compile(
    r"""^signal\(\s*(?P<quote>["'])(?P<key>[^"']+)(?P=quote)\s*,\s*(?P<initial>.+)\)$"""
)
FUNCTION_PATTERN = re.compile(
    r"^\s*\$(?P<name>[A-Za-z_]\w*)\s*=\s*(?P<async>async\s+)?"
    r"\((?P<params>[^)]*)\)\s*=>\s*(?P<rest>.*?)\s*$"
)
COMPUTED_PATTERN = re.compile(
    r"^\s*\$(?P<name>[A-Za-z_]\w*)\s*=(?![=>])\s*(?P<expression>.+?)\s*;?\s*$"
)
TEMPLATE_OPEN_PATTERN = re.compile(r"<template\s*>")
TEMPLATE_CLOSE_PATTERN = re.compile(r"</template\s*>")
_STRING_LITERAL = re.compile(r"""(["'`])(?:\\.|(?!\1).)*\1""")


def split_template(
    content: str, *, file_path: str = "", first_line: int = 1
) -> tuple[str, str | None, int]:
    """Split a unit body into its script text and template markup.

    Returns
    -------
    tuple[str, str | None, int]
        Script text, template markup (``None`` when the body has no
        template), and the file line on which the markup starts.

    Raises
    ------
    MTMSyntaxError
        If the template is never closed or a second template is declared.
    """
    opening = TEMPLATE_OPEN_PATTERN.search(content)
    if opening is None:
        return content, None, first_line
    open_line = first_line + content.count("\n", 0, opening.start())
    closing = TEMPLATE_CLOSE_PATTERN.search(content, opening.end())
    if closing is None:
        msg = "'<template>' is never closed."
        raise MTMSyntaxError(
            msg,
            file=file_path,
            line=open_line,
            column=_column(content, opening.start()),
            suggestions=["Add '</template>' after the component markup."],
        )
    second = TEMPLATE_OPEN_PATTERN.search(content, closing.end())
    if second is not None:
        msg = "A unit may declare only one '<template>' block."
        raise MTMSyntaxError(
            msg,
            file=file_path,
            line=first_line + content.count("\n", 0, second.start()),
            column=_column(content, second.start()),
            suggestions=["Merge the markup into the first '<template>' block."],
        )
    markup = content[opening.end() : closing.start()]
    return content[: opening.start()], markup, open_line


def tokenize(script: str, *, file_path: str = "", first_line: int = 1) -> list[Token]:
    """Tokenize script text into declaration tokens.

    Parameters
    ----------
    script : str
        Script section of a unit body, without the template.
    file_path : str, optional
        Path used in error messages.
    first_line : int, optional
        File line on which ``script`` starts.

    Raises
    ------
    MTMSyntaxError
        If a function body opened with ``{`` is never closed.
    """
    lines = script.splitlines()
    tokens: list[Token] = []
    index = 0
    while index < len(lines):
        text = lines[index]
        line = first_line + index
        index += 1

        if match := IMPORT_PATTERN.match(text):
            tokens.append(
                Token(
                    TokenKind.IMPORT,
                    match["specifier"],
                    line,
                    match.start("specifier") + 1,
                    {"clause": match["clause"]},
                )
            )
        elif match := COMPONENT_PATTERN.match(text):
            tokens.append(
                Token(TokenKind.COMPONENT, match["name"], line, match.start("name") + 1)
            )
        elif match := REACTIVE_PATTERN.match(text):
            tokens.append(_reactive_token(match, line))
        elif match := FUNCTION_PATTERN.match(text):
            rest = match["rest"]
            if rest.startswith("{"):
                body, consumed = _collect_block(
                    rest,
                    lines,
                    index,
                    file_path=file_path,
                    line=line,
                    column=match.start("name") + 1,
                )
                index += consumed
            else:
                body = rest.rstrip(";")
            tokens.append(
                Token(
                    TokenKind.FUNCTION,
                    match["name"],
                    line,
                    match.start("name") + 1,
                    {
                        "params": _split_params(match["params"]),
                        "body": body,
                        "is_async": match["async"] is not None,
                    },
                )
            )
        elif match := COMPUTED_PATTERN.match(text):
            tokens.append(
                Token(
                    TokenKind.COMPUTED,
                    match["name"],
                    line,
                    match.start("name") + 1,
                    {"expression": match["expression"]},
                )
            )
    return tokens


def _reactive_token(match: re.Match[str], line: int) -> Token:
    value = match["value"]
    data: dict[str, typ.Any] = {"initial": value, "type": match["type"], "key": None}
    if call := SIGNAL_CALL_PATTERN.match(value):
        data["key"] = call["key"]
        data["initial"] = call["initial"].strip()
    if data["type"] is not None:
        data["type"] = data["type"].strip()
    return Token(TokenKind.REACTIVE, match["name"], line, match.start("name") + 1, data)


def _collect_block(
    first: str,
    lines: list[str],
    start: int,
    *,
    file_path: str,
    line: int,
    column: int,
) -> tuple[str, int]:
    """Gather a brace-delimited body that may span several lines.

    Returns the body text without its outer braces and the number of extra
    lines consumed after the declaration line.
    """
    collected = [first]
    depth = _brace_delta(first)
    consumed = 0
    while depth > 0:
        if start + consumed >= len(lines):
            msg = "Function body is never closed."
            raise MTMSyntaxError(
                msg,
                file=file_path,
                line=line,
                column=column,
                suggestions=["Balance the '{' and '}' of the function body."],
            )
        text = lines[start + consumed]
        consumed += 1
        collected.append(text)
        depth += _brace_delta(text)

    block = "\n".join(collected).strip()
    block = block.removesuffix(";").rstrip()
    inner = block[1:]
    if inner.endswith("}"):
        inner = inner[:-1]
    return textwrap.dedent(inner.strip("\n")).strip(), consumed


def _brace_delta(text: str) -> int:
    stripped = _STRING_LITERAL.sub("", text).split("//", 1)[0]
    return stripped.count("{") - stripped.count("}")


def _split_params(raw: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in raw.split(",") if part.strip())


def _column(text: str, offset: int) -> int:
    return offset - (text.rfind("\n", 0, offset) + 1) + 1


__all__ = ["Token", "TokenKind", "split_template", "tokenize"]
