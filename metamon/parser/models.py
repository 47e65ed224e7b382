"""Dataclasses describing parsed source units and their component AST.

Every structure here is frozen: a unit is parsed once per compile pass and
never mutated afterwards, which keeps the parse step a pure function of the
source text.
"""

from __future__ import annotations

import dataclasses as dc
import enum
import typing as typ


@dc.dataclass(frozen=True, slots=True)
class Channel:
    """Pairing of an event-bus event with the local emitter function name."""

    event: str
    emit: str


@dc.dataclass(frozen=True, slots=True)
class Frontmatter:
    """Metadata block preceding a unit's body.

    Attributes
    ----------
    target : str
        Rendering target the unit compiles for.
    channels : tuple[Channel, ...]
        Pub/sub bindings declared by the unit.
    props : Any
        Optional prop declarations, passed through untouched.
    styles : Any
        Optional style declarations, passed through untouched.
    extra : Mapping[str, Any]
        Any other frontmatter keys (``route``, ``title`` and so on).
    """

    target: str
    channels: tuple[Channel, ...] = ()
    props: typ.Any = None
    styles: typ.Any = None
    extra: typ.Mapping[str, typ.Any] = dc.field(default_factory=dict)


@dc.dataclass(frozen=True, slots=True)
class SourceUnit:
    """One input file: frontmatter plus the raw component description.

    ``content_line`` is the 1-based file line on which ``content`` starts so
    later stages can report positions relative to the original file.
    """

    frontmatter: Frontmatter
    content: str
    file_path: str
    content_line: int = 1


class VariableKind(enum.StrEnum):
    """How a declared variable receives its value."""

    REACTIVE = "reactive"
    COMPUTED = "computed"


@dc.dataclass(frozen=True, slots=True)
class Variable:
    """A ``$name! = value`` or ``$name = expression`` declaration."""

    name: str
    kind: VariableKind
    initial_value: str
    data_type: str | None = None
    signal_key: str | None = None
    line: int = 0


@dc.dataclass(frozen=True, slots=True)
class Function:
    """A ``$name = (params) => { ... }`` declaration."""

    name: str
    params: tuple[str, ...]
    body: str
    is_async: bool = False
    line: int = 0


@dc.dataclass(frozen=True, slots=True)
class Import:
    """An ``import`` statement found in the unit body."""

    specifier: str
    clause: str | None
    line: int = 0


@dc.dataclass(frozen=True, slots=True)
class TemplateElement:
    """An opening markup tag inside the template."""

    tag: str
    line: int
    column: int


@dc.dataclass(frozen=True, slots=True)
class Binding:
    """An interpolation span such as ``{$count}`` or ``{item.name}``."""

    expression: str
    references: tuple[str, ...]
    line: int
    column: int


@dc.dataclass(frozen=True, slots=True)
class EventBinding:
    """An event-binding span such as ``click={$increment}``."""

    event: str
    handler: str
    arguments: str | None
    line: int
    column: int


class BlockKind(enum.StrEnum):
    """Control-flow block flavours supported in templates."""

    IF = "if"
    EACH = "each"
    FOR = "for"


@dc.dataclass(frozen=True, slots=True)
class TemplateBlock:
    """A conditional, collection-iteration, or bounded-range block.

    Attributes
    ----------
    kind : BlockKind
        ``if``, ``each`` or ``for``.
    expression : str
        Condition for ``if``, collection for ``each``, loop variable for
        ``for``.
    references : tuple[str, ...]
        ``$``-prefixed names the block header refers to.
    item : str | None
        Loop alias for ``each`` and loop variable for ``for``.
    index : str | None
        Optional index alias for ``each``.
    range_start, range_end : str | None
        Inclusive bounds for ``for`` blocks.
    has_else : bool
        Whether an ``if`` block carries an ``{:else}`` branch.
    body : str
        Raw template text between the block's opening and closing tags.
    """

    kind: BlockKind
    expression: str
    references: tuple[str, ...]
    line: int
    column: int
    item: str | None = None
    index: str | None = None
    range_start: str | None = None
    range_end: str | None = None
    has_else: bool = False
    body: str = ""


@dc.dataclass(frozen=True, slots=True)
class Template:
    """Markup section of a component with its reactive touch points."""

    source: str
    line: int
    elements: tuple[TemplateElement, ...] = ()
    bindings: tuple[Binding, ...] = ()
    events: tuple[EventBinding, ...] = ()
    blocks: tuple[TemplateBlock, ...] = ()


@dc.dataclass(frozen=True, slots=True)
class ComponentAST:
    """Structured description of a component extracted from a unit body."""

    name: str
    imports: tuple[Import, ...] = ()
    variables: tuple[Variable, ...] = ()
    functions: tuple[Function, ...] = ()
    template: Template | None = None

    @property
    def declared_names(self) -> frozenset[str]:
        """Return every variable and function name declared by the component."""
        return frozenset(
            [variable.name for variable in self.variables]
            + [function.name for function in self.functions]
        )

    def get_variable(self, name: str) -> Variable | None:
        """Return the variable called ``name`` if declared."""
        return next((var for var in self.variables if var.name == name), None)


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
]
