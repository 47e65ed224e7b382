"""Target emitters turning parsed units into framework modules.

Every supported target is served by one :class:`TargetEmitter` configured
with that target's :class:`~metamon.codegen.profiles.TargetProfile`. The
emitter renders the target's Jinja macros:

``component``
    State and function declarations.
``runtime``
    The declarations wrapped between the runtime section markers, together
    with channel emitters and subscriptions.
``definition``
    The component definition that follows the imports.
``module``
    The final module text.
"""

from __future__ import annotations

import dataclasses as dc
import logging
import textwrap
import types
import typing as typ
from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from metamon._constants import (
    RUNTIME_EVENT_BUS,
    RUNTIME_MODULE,
    RUNTIME_SECTION_END,
    RUNTIME_SECTION_START,
    RUNTIME_SIGNAL_MANAGER,
)
from metamon.errors import FrameworkError, MetamonError
from metamon.parser import (
    Channel,
    ComponentAST,
    Import,
    SourceUnit,
    VariableKind,
    extract_references,
    parse_component,
    suggest_targets,
)

from .profiles import PROFILES, TargetProfile
from .translate import rewrite_references, rewrite_script, translate_markup

logger = logging.getLogger(__name__)

RUNTIME_IMPORT = (
    f"import {{ {RUNTIME_SIGNAL_MANAGER}, {RUNTIME_EVENT_BUS} }} from '{RUNTIME_MODULE}';"
)


@dc.dataclass(frozen=True, slots=True)
class GeneratedModule:
    """Pieces of an emitted module before they are joined.

    ``component`` is the definition that follows ``imports``; for targets
    whose markup lives outside the script (Vue, Svelte) the translated markup
    is kept separately in ``markup``.
    """

    imports: str
    component: str
    exports: tuple[str, ...] = ("default",)
    markup: str = ""
    dependencies: tuple[str, ...] = ()


@dc.dataclass(frozen=True, slots=True)
class CompilationResult:
    """Output of compiling one unit for one target."""

    code: str
    dependencies: tuple[str, ...] = ()
    exports: tuple[str, ...] = ("default",)
    source_map: str | None = None


@dc.dataclass(frozen=True, slots=True)
class _VariableView:
    name: str
    kind: str
    value: str
    setter: str
    signal_key: str | None
    data_type: str | None
    deps: tuple[str, ...]


@dc.dataclass(frozen=True, slots=True)
class _FunctionView:
    name: str
    params: tuple[str, ...]
    body: str
    is_async: bool


@dc.dataclass(frozen=True, slots=True)
class _ChannelView:
    event: str
    emit: str
    listener: str


def setter_name(name: str) -> str:
    """Return the setter paired with a state variable.

    Examples
    --------
    >>> setter_name("count")
    'setCount'
    """
    return f"set{name[:1].upper()}{name[1:]}"


def extract_runtime_section(code: str) -> str:
    """Return the text between the runtime section markers of emitted code.

    Raises
    ------
    ValueError
        If the markers are missing.
    """
    start = code.find(RUNTIME_SECTION_START)
    end = code.find(RUNTIME_SECTION_END, start + 1)
    if start == -1 or end == -1:
        msg = "Generated code has no runtime section."
        raise ValueError(msg)
    return code[start + len(RUNTIME_SECTION_START) : end]


class TargetEmitter:
    """Emit modules for one target.

    Parameters
    ----------
    profile : TargetProfile
        Target settings.
    templates_dir : Path, optional
        Directory containing the emission templates. Defaults to the
        ``templates`` directory shipped beside this module.
    """

    def __init__(self, profile: TargetProfile, *, templates_dir: Path | None = None) -> None:
        self.profile = profile
        self.templates_dir = templates_dir or Path(__file__).parent / "templates"
        self.env = Environment(
            loader=FileSystemLoader(self.templates_dir),
            autoescape=False,  # noqa: S701 - emits JavaScript, not HTML
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.globals.update(
            runtime_start=RUNTIME_SECTION_START,
            runtime_end=RUNTIME_SECTION_END,
        )
        self._macros = self.env.get_template(profile.template_name).module

    def __repr__(self) -> str:
        return f"TargetEmitter(target={self.target!r})"

    @property
    def target(self) -> str:
        """Return the target this emitter serves."""
        return self.profile.target

    @property
    def file_extension(self) -> str:
        """Return the extension of emitted modules."""
        return self.profile.file_extension

    def generate_imports(self, imports: typ.Sequence[Import]) -> str:
        """Return the framework import lines followed by the unit's own imports."""
        lines = list(self.profile.framework_imports)
        for item in imports:
            if item.clause:
                lines.append(f"import {item.clause} from '{item.specifier}';")
            else:
                lines.append(f"import '{item.specifier}';")
        return "\n".join(lines)

    def inject_runtime(self, code: str) -> str:
        """Add the shared runtime import to ``code`` unless already present.

        The import is placed after the framework import lines when ``code``
        starts with them, otherwise at the top.
        """
        if RUNTIME_MODULE in code:
            return code
        framework = "\n".join(self.profile.framework_imports)
        if framework and code.startswith(framework):
            rest = code[len(framework) :].lstrip("\n")
            return "\n".join(part for part in (framework, RUNTIME_IMPORT, rest) if part)
        return f"{RUNTIME_IMPORT}\n{code}" if code else RUNTIME_IMPORT

    def generate_component(
        self, unit: SourceUnit, component: ComponentAST | None = None
    ) -> str:
        """Return the target declarations for the unit's variables and functions."""
        component = component or parse_component(unit)
        reads, writes = self._state_names(component)
        variables = [
            _VariableView(
                name=var.name,
                kind=str(var.kind),
                value=rewrite_references(var.initial_value, reads),
                setter=setter_name(var.name),
                signal_key=var.signal_key,
                data_type=var.data_type,
                deps=tuple(
                    name
                    for name in extract_references(var.initial_value)
                    if component.get_variable(name) is not None
                ),
            )
            for var in component.variables
        ]
        functions = [
            _FunctionView(
                name=func.name,
                params=func.params,
                body=rewrite_script(func.body, reads, writes),
                is_async=func.is_async,
            )
            for func in component.functions
        ]
        return str(self._macros.component(variables, functions)).strip()

    def wrap_with_runtime(
        self,
        component_body: str,
        channels: typ.Sequence[Channel],
        *,
        component: ComponentAST | None = None,
    ) -> str:
        """Wrap declarations in the runtime section and bind channels.

        Each channel gets an emitter function that publishes on the event bus
        and a subscription registered under a per-instance component id,
        removed when the instance is destroyed. A received payload is passed
        to the component's ``handle<Event>`` function when one is declared.
        """
        declared = component.declared_names if component is not None else frozenset()
        views = []
        for channel in channels:
            handler = f"handle{channel.event[:1].upper()}{channel.event[1:]}"
            listener = (
                f"(payload) => {handler}(payload)" if handler in declared else "() => {}"
            )
            views.append(_ChannelView(channel.event, channel.emit, listener))
        name = component.name if component is not None else "Component"
        return str(self._macros.runtime(component_body, views, name)).strip()

    def generate(
        self, unit: SourceUnit, component: ComponentAST | None = None
    ) -> GeneratedModule:
        """Generate the module pieces for ``unit``.

        Raises
        ------
        FrameworkError
            If the unit targets another framework, or emission fails
            unexpectedly (the original exception is chained).
        MTMSyntaxError
            If the unit's component cannot be parsed.
        """
        actual = unit.frontmatter.target
        if actual != self.target:
            msg = (
                f"Unit targets '{actual}' but the '{self.target}' emitter was requested."
            )
            raise FrameworkError(
                msg,
                file=unit.file_path,
                actual_target=actual,
                expected_target=self.target,
                suggestions=[
                    f"Compile the unit with the '{actual}' emitter, or change its "
                    f"frontmatter to 'target: {self.target}'.",
                ],
            )
        try:
            component = component or parse_component(unit)
            reads = self._markup_reads(component)
            markup = ""
            if component.template is not None:
                markup = translate_markup(
                    component.template.source, self.profile.dialect, reads
                )
                markup = _dedent_markup(markup)
            body = self.generate_component(unit, component)
            runtime = self.wrap_with_runtime(
                body, unit.frontmatter.channels, component=component
            )
            definition = str(
                self._macros.definition(component.name, runtime, markup)
            ).strip()
            imports = self.inject_runtime(self.generate_imports(component.imports))
        except MetamonError:
            raise
        except Exception as exc:
            msg = f"Code generation for '{self.target}' failed: {exc}"
            raise FrameworkError(
                msg,
                file=unit.file_path,
                actual_target=actual,
                expected_target=self.target,
            ) from exc
        logger.debug("generated %s module for %s", self.target, unit.file_path or "<memory>")
        return GeneratedModule(
            imports=imports,
            component=definition,
            markup=markup,
            dependencies=tuple(item.specifier for item in component.imports),
        )

    def compile(
        self, unit: SourceUnit, component: ComponentAST | None = None
    ) -> CompilationResult:
        """Compile ``unit`` into a :class:`CompilationResult`."""
        module = self.generate(unit, component)
        code = str(self._macros.module(module.imports, module.component, module.markup))
        return CompilationResult(
            code=code.strip() + "\n",
            dependencies=module.dependencies,
            exports=module.exports,
        )

    def _state_names(
        self, component: ComponentAST
    ) -> tuple[dict[str, str], dict[str, str]]:
        reads = {func.name: func.name for func in component.functions}
        writes: dict[str, str] = {}
        for var in component.variables:
            reads[var.name] = self.profile.read_format.format(name=var.name)
            if var.kind is VariableKind.REACTIVE:
                writes[var.name] = self.profile.write_format.format(
                    name=var.name, setter=setter_name(var.name)
                )
        return reads, writes

    def _markup_reads(self, component: ComponentAST) -> dict[str, str]:
        reads = {func.name: func.name for func in component.functions}
        for var in component.variables:
            reads[var.name] = self.profile.markup_read_format.format(name=var.name)
        return reads


def _dedent_markup(markup: str) -> str:
    return textwrap.dedent(markup.strip("\n")).strip()


EMITTERS: typ.Final[typ.Mapping[str, TargetEmitter]] = types.MappingProxyType(
    {target: TargetEmitter(profile) for target, profile in PROFILES.items()}
)


def get_emitter(target: str) -> TargetEmitter:
    """Return the emitter for ``target``.

    Raises
    ------
    FrameworkError
        If ``target`` is not one of the supported targets.
    """
    emitter = EMITTERS.get(target)
    if emitter is None:
        msg = f"No emitter is available for target '{target}'."
        raise FrameworkError(
            msg,
            expected_target=target,
            suggestions=suggest_targets(target),
        )
    return emitter


__all__ = [
    "EMITTERS",
    "CompilationResult",
    "GeneratedModule",
    "TargetEmitter",
    "extract_runtime_section",
    "get_emitter",
    "setter_name",
]
