"""Unit tests for target emitters and single-unit compilation.

The emitted JavaScript is never executed here. Assertions check the contract
every emitter shares: the runtime import, one declaration per name inside the
runtime section, channel wiring through ``pubSubSystem``, and the error
behaviour on target mismatch.
"""

from __future__ import annotations

import re
import typing as typ
from textwrap import dedent

import pytest

from metamon.codegen import (
    EMITTERS,
    compile_source,
    extract_runtime_section,
    get_emitter,
    output_path_for,
)
from metamon.codegen.translate import MarkupDialect, rewrite_script, translate_markup
from metamon.config import CompilerConfig
from metamon.errors import FrameworkError, FrontmatterError, MTMSyntaxError
from metamon.parser import parse, parse_component

if typ.TYPE_CHECKING:
    from pathlib import Path

RUNTIME_IMPORT = "import { signalManager, pubSubSystem } from '@metamon/core';"


def _unit_source(target: str) -> str:
    return dedent(
        f"""\
        ---
        target: {target}
        channels:
          - event: userLogin
            emit: onUserLogin
        ---
        $count! = 0
        $theme! = signal('theme', 'light')
        $double = $count * 2
        $increment = () => {{
          $count++
        }}
        $handleUserLogin = (payload) => {{
          $count = payload.visits
        }}

        <template>
          <section>
            <button click={{$increment}}>{{$count}} / {{$double}}</button>
            {{#if $count > 3}}<p>busy</p>{{:else}}<p>idle</p>{{/if}}
          </section>
        </template>
        """
    )


def _declarations(section: str, name: str) -> int:
    return len(re.findall(rf"(?:const|let)\s+\[?{name}\b", section))


@pytest.mark.parametrize("target", sorted(EMITTERS))
def test_runtime_section_declares_each_name_once(target: str) -> None:
    """Every variable, function, and channel emitter is declared exactly once."""
    compiled = compile_source(_unit_source(target), "src/components/Counter.mtm")
    section = extract_runtime_section(compiled.result.code)

    for name in ("count", "theme", "double", "increment", "handleUserLogin", "onUserLogin"):
        assert _declarations(section, name) == 1, f"{name} in {target}"
    assert "pubSubSystem.emit(\"userLogin\", payload)" in section
    listener = "(payload) => handleUserLogin(payload)"
    assert f"pubSubSystem.subscribe(\"userLogin\", {listener}, componentId)" in section
    assert "pubSubSystem.cleanup(componentId)" in section
    assert 'signalManager.getSignal("theme")' in section


@pytest.mark.parametrize("target", sorted(EMITTERS))
def test_result_metadata(target: str) -> None:
    """Results carry the runtime import, no source map, and a default export."""
    compiled = compile_source(_unit_source(target))
    result = compiled.result
    assert RUNTIME_IMPORT in result.code
    assert result.code.count(RUNTIME_IMPORT) == 1
    assert result.exports == ("default",)
    assert result.dependencies == ()
    assert result.source_map is None
    assert compiled.target == target


def test_react_output_uses_hooks_and_jsx() -> None:
    """React output should use state hooks and JSX control flow."""
    code = compile_source(_unit_source("reactjs"), "Counter.mtm").result.code
    assert code.startswith("import React, { useState")
    assert "const [count, setCount] = useState(0);" in code
    assert "setCount(count + 1)" in code
    assert "const double = useMemo(() => count * 2, [count]);" in code
    assert "onClick={increment}" in code
    assert "{(count > 3) ? (<>" in code
    assert "export default function Counter() {" in code


def test_solid_output_reads_signals_as_calls() -> None:
    """Solid output should read state through accessor calls."""
    code = compile_source(_unit_source("solid")).result.code
    assert "const [count, setCount] = createSignal(0);" in code
    assert "setCount(count() + 1)" in code
    assert "{count()}" in code
    assert "<Show when={count() > 3}>" in code
    assert "</Show><Show when={!(count() > 3)}>" in code


def test_vue_output_is_a_single_file_component() -> None:
    """Vue output should place markup in a template after the setup script."""
    code = compile_source(_unit_source("vue")).result.code
    assert code.startswith("<script setup>\nimport { ref, computed")
    assert "const count = ref(0);" in code
    assert "count.value = count.value + 1" in code
    assert '@click="increment"' in code
    assert "{{ count }}" in code
    assert '<template v-if="count > 3">' in code
    assert code.index("</script>") < code.index("<template>")


def test_svelte_output_uses_native_blocks() -> None:
    """Svelte output should keep block syntax and prefix event directives."""
    code = compile_source(_unit_source("svelte")).result.code
    assert code.startswith("<script>\n  import { onDestroy } from 'svelte';")
    assert "let count = 0;" in code
    assert "count = count + 1" in code
    assert "$: double = count * 2;" in code
    assert "on:click={increment}" in code
    assert "{#if count > 3}" in code


def test_dependencies_list_body_imports() -> None:
    """Import specifiers declared in the body are reported as dependencies."""
    compiled = compile_source(
        "---\ntarget: reactjs\n---\nimport Button from './Button.mtm';\n"
        "<template><Button/></template>\n"
    )
    assert compiled.result.dependencies == ("./Button.mtm",)
    assert "import Button from './Button.mtm';" in compiled.result.code


def test_target_mismatch_raises_framework_error() -> None:
    """Requesting another emitter fails immediately naming the declared target."""
    unit = parse(_unit_source("reactjs"))
    with pytest.raises(FrameworkError) as excinfo:
        get_emitter("vue").generate(unit)
    assert excinfo.value.actual_target == "reactjs"
    assert excinfo.value.expected_target == "vue"
    assert "reactjs" in excinfo.value.message


def test_unknown_emitter_suggests_targets() -> None:
    """Asking for an unsupported emitter should list what exists."""
    with pytest.raises(FrameworkError) as excinfo:
        get_emitter("angular")
    assert any("Supported targets" in hint for hint in excinfo.value.suggestions)


def test_compile_source_unknown_target_names_declared_target() -> None:
    """An unknown requested target still reports what the unit declares."""
    with pytest.raises(FrameworkError) as excinfo:
        compile_source(_unit_source("reactjs"), "Counter.mtm", target="beta")
    assert excinfo.value.actual_target == "reactjs"
    assert excinfo.value.expected_target == "beta"
    assert "'reactjs'" in excinfo.value.message
    assert excinfo.value.file == "Counter.mtm"


def test_unexpected_failures_are_wrapped(monkeypatch: pytest.MonkeyPatch) -> None:
    """Non-metamon errors raised during emission are chained into FrameworkError."""
    emitter = get_emitter("svelte")
    unit = parse("---\ntarget: svelte\n---\n$a! = 1\n")

    def _boom(*_args: object, **_kwargs: object) -> str:
        msg = "template exploded"
        raise KeyError(msg)

    monkeypatch.setattr(emitter, "generate_component", _boom)
    with pytest.raises(FrameworkError) as excinfo:
        emitter.compile(unit)
    assert isinstance(excinfo.value.__cause__, KeyError)


def test_compile_source_raises_first_finding_with_all_attached() -> None:
    """Validation failures raise the first finding's error class."""
    source = "---\ntarget: vue\n---\n<template>{$a}{$b}</template>\n"
    with pytest.raises(MTMSyntaxError) as excinfo:
        compile_source(source, "Broken.mtm")
    assert len(excinfo.value.diagnostics) == 2
    assert excinfo.value.file == "Broken.mtm"


def test_compile_source_propagates_frontmatter_errors() -> None:
    """Parse errors surface unchanged."""
    with pytest.raises(FrontmatterError):
        compile_source("---\ntarget: ember\n---\n<template/>\n")


def test_inject_runtime_is_idempotent() -> None:
    """The runtime import is added after framework imports, once."""
    emitter = get_emitter("solid")
    imports = emitter.generate_imports(())
    injected = emitter.inject_runtime(imports)
    assert injected.splitlines()[1] == RUNTIME_IMPORT
    assert emitter.inject_runtime(injected) == injected


def test_wrap_with_runtime_without_handler_uses_noop_listener() -> None:
    """Channels without a matching handler subscribe a no-op listener."""
    unit = parse(
        "---\ntarget: vue\nchannels: [{event: refresh, emit: sendRefresh}]\n---\n$a! = 1\n"
    )
    emitter = get_emitter("vue")
    component = parse_component(unit)
    body = emitter.generate_component(unit, component)
    wrapped = emitter.wrap_with_runtime(body, unit.frontmatter.channels, component=component)
    assert 'pubSubSystem.subscribe("refresh", () => {}, componentId);' in wrapped


def test_output_path_mirrors_source_tree(tmp_path: Path) -> None:
    """Output paths keep the unit's location and take the target extension."""
    config = CompilerConfig(root=tmp_path, out_dir=tmp_path / "dist")
    source = tmp_path / "src" / "pages" / "index.mtm"
    assert output_path_for(source, config, "vue") == tmp_path / "dist/src/pages/index.vue"
    assert output_path_for(source, config, "solid").suffix == ".jsx"


def test_rewrite_script_handles_compound_assignment() -> None:
    """Compound assignments become target writes."""
    assert (
        rewrite_script(
            "$total += $step;",
            {"total": "total", "step": "step"},
            {"total": "setTotal({value})"},
        )
        == "setTotal(total + (step));"
    )


def test_for_blocks_expand_to_ranges() -> None:
    """Bounded loops iterate an inclusive integer range."""
    markup = translate_markup("{#for i=1 to 3}<b>{i}</b>{/for}", MarkupDialect.SVELTE, {})
    assert markup.startswith("{#each Array.from({ length: (3) - (1) + 1 }")
    assert markup.endswith("{/each}")
