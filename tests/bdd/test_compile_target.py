"""Behaviour tests for compiling a unit for its declared target.

These pytest-bdd scenarios compile a small counter unit end-to-end and check
the emitter contract: an empty dependency list, the default export, and one
declaration per name inside the runtime section. A second scenario asks the
wrong emitter for the unit and expects a framework error.

Usage
-----
Run ``pytest tests/bdd/test_compile_target.py -v``. No fixtures beyond
``scenario_state`` are required.
"""

from __future__ import annotations

import re
import typing as typ
from pathlib import Path

import pytest
from pytest_bdd import given, parsers, scenarios, then, when

from metamon.codegen import CompilationResult, extract_runtime_section, get_emitter
from metamon.errors import FrameworkError
from metamon.parser import parse

FEATURE_FILE = Path(__file__).resolve().parents[2] / "features" / "compile_target.feature"
scenarios(FEATURE_FILE)

ScenarioState = dict[str, typ.Any]

COUNTER_UNIT = """\
---
target: reactjs
---
$count! = 0
$increment = () => {
  $count++
}
<template>
  <button click={$increment}>{$count}</button>
</template>
"""


@pytest.fixture
def scenario_state() -> ScenarioState:
    """Return a mutable dict used to share scenario state across BDD steps."""
    return {}


@given(
    "a reactjs counter unit with a count, an increment function, a binding and a "
    "click handler"
)
def given_counter_unit(scenario_state: ScenarioState) -> None:
    """Parse the counter unit used by both scenarios."""
    scenario_state["unit"] = parse(COUNTER_UNIT, "Counter.mtm")


@when("I compile the unit")
def when_compile(scenario_state: ScenarioState) -> None:
    """Compile the unit with the emitter its frontmatter names."""
    unit = scenario_state["unit"]
    scenario_state["result"] = get_emitter(unit.frontmatter.target).compile(unit)


@when(parsers.parse('I generate the unit with the "{target}" emitter'))
def when_generate_with(scenario_state: ScenarioState, target: str) -> None:
    """Ask a specific emitter for the unit and keep any framework error."""
    try:
        get_emitter(target).generate(scenario_state["unit"])
    except FrameworkError as exc:
        scenario_state["error"] = exc


@then("the result has no dependencies")
def then_no_dependencies(scenario_state: ScenarioState) -> None:
    """The counter imports nothing."""
    result = typ.cast("CompilationResult", scenario_state["result"])
    assert result.dependencies == ()


@then(parsers.parse('the result exports "{name}"'))
def then_exports(scenario_state: ScenarioState, name: str) -> None:
    """The module exports the expected name."""
    result = typ.cast("CompilationResult", scenario_state["result"])
    assert name in result.exports


@then(parsers.parse('the runtime section declares "{name}" exactly once'))
def then_declared_once(scenario_state: ScenarioState, name: str) -> None:
    """Exactly one declaration of ``name`` appears between the runtime markers."""
    result = typ.cast("CompilationResult", scenario_state["result"])
    section = extract_runtime_section(result.code)
    declarations = re.findall(rf"(?:const|let)\s+\[?{re.escape(name)}\b", section)
    assert len(declarations) == 1, f"expected one declaration of {name!r}"


@then(parsers.parse('a framework error names "{target}" as the actual target'))
def then_framework_error(scenario_state: ScenarioState, target: str) -> None:
    """The refusal carries the unit's declared target."""
    error = scenario_state.get("error")
    assert isinstance(error, FrameworkError), "expected a FrameworkError"
    assert error.actual_target == target
