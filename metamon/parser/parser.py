"""Turn unit text into a :class:`SourceUnit` and a :class:`ComponentAST`."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from .frontmatter import parse_frontmatter, split_frontmatter
from .models import (
    ComponentAST,
    Frontmatter,
    Function,
    Import,
    SourceUnit,
    Variable,
    VariableKind,
)
from .template import parse_template
from .tokenizer import TokenKind, split_template, tokenize

logger = logging.getLogger(__name__)

DEFAULT_COMPONENT_NAME = "Component"


def parse(
    source_text: str, file_path: str | Path = "", *, require_frontmatter: bool = True
) -> SourceUnit:
    """Parse unit text into its frontmatter and raw component content.

    Parameters
    ----------
    source_text : str
        Full text of the unit.
    file_path : str | Path, optional
        Path recorded on the unit and used in error messages.
    require_frontmatter : bool, optional
        Whether a unit without frontmatter is rejected. When ``False`` and the
        block is absent, the unit's target is ``"unknown"`` and the validator
        reports it.

    Returns
    -------
    SourceUnit
        The parsed unit. Parsing reads nothing but ``source_text``.

    Raises
    ------
    MTMSyntaxError
        If the frontmatter block is malformed, unterminated, or missing while
        required.
    FrontmatterError
        If the target is missing or unsupported, or channels are malformed.
    """
    path = str(file_path)
    raw, body, body_line = split_frontmatter(
        source_text, file_path=path, required=require_frontmatter
    )
    if raw is None:
        return SourceUnit(
            frontmatter=Frontmatter(target="unknown"),
            content=body,
            file_path=path,
            content_line=body_line,
        )
    frontmatter = parse_frontmatter(raw, file_path=path, first_line=2)
    return SourceUnit(
        frontmatter=frontmatter, content=body, file_path=path, content_line=body_line
    )


def parse_component(unit: SourceUnit) -> ComponentAST:
    """Tokenize a unit's content and build its component description.

    Raises
    ------
    MTMSyntaxError
        If a function body, the template, or a template block is unterminated,
        or a template block is mismatched.
    """
    script, markup, markup_line = split_template(
        unit.content, file_path=unit.file_path, first_line=unit.content_line
    )
    name: str | None = None
    imports: list[Import] = []
    variables: list[Variable] = []
    functions: list[Function] = []

    for token in tokenize(script, file_path=unit.file_path, first_line=unit.content_line):
        match token.kind:
            case TokenKind.IMPORT:
                imports.append(
                    Import(specifier=token.value, clause=token.data["clause"], line=token.line)
                )
            case TokenKind.COMPONENT:
                name = name or token.value
            case TokenKind.REACTIVE:
                variables.append(
                    Variable(
                        name=token.value,
                        kind=VariableKind.REACTIVE,
                        initial_value=token.data["initial"],
                        data_type=token.data["type"],
                        signal_key=token.data["key"],
                        line=token.line,
                    )
                )
            case TokenKind.COMPUTED:
                variables.append(
                    Variable(
                        name=token.value,
                        kind=VariableKind.COMPUTED,
                        initial_value=token.data["expression"],
                        line=token.line,
                    )
                )
            case TokenKind.FUNCTION:
                functions.append(
                    Function(
                        name=token.value,
                        params=token.data["params"],
                        body=token.data["body"],
                        is_async=token.data["is_async"],
                        line=token.line,
                    )
                )

    template = None
    if markup is not None:
        template = parse_template(markup, file_path=unit.file_path, first_line=markup_line)

    component = ComponentAST(
        name=name or component_name_from_path(unit.file_path),
        imports=tuple(imports),
        variables=tuple(variables),
        functions=tuple(functions),
        template=template,
    )
    logger.debug(
        "parsed %s: %d variable(s), %d function(s)",
        unit.file_path or component.name,
        len(component.variables),
        len(component.functions),
    )
    return component


def component_name_from_path(file_path: str) -> str:
    """Derive a PascalCase component name from a unit's file name.

    Examples
    --------
    >>> component_name_from_path("src/components/user-card.mtm")
    'UserCard'
    >>> component_name_from_path("")
    'Component'
    """
    stem = Path(file_path).stem if file_path else ""
    parts = [part for part in re.split(r"[^A-Za-z0-9]+", stem) if part]
    name = "".join(part[:1].upper() + part[1:] for part in parts)
    if not name or not name[0].isalpha():
        return DEFAULT_COMPONENT_NAME
    return name


__all__ = ["component_name_from_path", "parse", "parse_component"]
