"""Parse ``.mtm`` source units.

:func:`parse` splits a unit into its frontmatter and body, and
:func:`parse_component` tokenizes the body into a :class:`ComponentAST`
describing reactive variables, functions, and the template's bindings and
blocks.

Examples
--------
>>> from metamon.parser import parse, parse_component
>>> unit = parse("---\\ntarget: reactjs\\n---\\n$count! = 0\\n")
>>> unit.frontmatter.target
'reactjs'
>>> parse_component(unit).variables[0].name
'count'
"""

from .frontmatter import read_target, suggest_targets
from .models import (
    Binding,
    BlockKind,
    Channel,
    ComponentAST,
    EventBinding,
    Frontmatter,
    Function,
    Import,
    SourceUnit,
    Template,
    TemplateBlock,
    TemplateElement,
    Variable,
    VariableKind,
)
from .parser import component_name_from_path, parse, parse_component
from .template import extract_references

__all__ = [
    "Binding",
    "BlockKind",
    "Channel",
    "ComponentAST",
    "EventBinding",
    "Frontmatter",
    "Function",
    "Import",
    "SourceUnit",
    "Template",
    "TemplateBlock",
    "TemplateElement",
    "Variable",
    "VariableKind",
    "component_name_from_path",
    "extract_references",
    "parse",
    "parse_component",
    "read_target",
    "suggest_targets",
]
