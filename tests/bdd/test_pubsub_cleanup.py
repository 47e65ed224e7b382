"""Behaviour tests for component-scoped subscriptions on the event bus.

The bus is driven by a :class:`~metamon.runtime.ManualScheduler` so the
scenarios decide exactly when a batch is flushed.
"""

from __future__ import annotations

import typing as typ
from pathlib import Path

import pytest
from pytest_bdd import given, parsers, scenarios, then, when

from metamon.runtime import ManualScheduler, PubSub

FEATURE_FILE = Path(__file__).resolve().parents[2] / "features" / "pubsub_cleanup.feature"
scenarios(FEATURE_FILE)

ScenarioState = dict[str, typ.Any]


@pytest.fixture
def scenario_state() -> ScenarioState:
    """Return a bus, its scheduler, and a log of deliveries."""
    scheduler = ManualScheduler()
    return {
        "scheduler": scheduler,
        "bus": PubSub(scheduler=scheduler),
        "fired": [],
        "deliveries": [],
    }


@given(parsers.parse('a listener on "{event}" registered by component "{component_id}"'))
def given_listener(scenario_state: ScenarioState, event: str, component_id: str) -> None:
    """Subscribe a listener that records its component and event."""

    def listener(_payload: object) -> None:
        scenario_state["fired"].append(component_id)
        scenario_state["deliveries"].append(event)

    typ.cast("PubSub", scenario_state["bus"]).subscribe(event, listener, component_id)


@when(parsers.parse('component "{component_id}" is cleaned up'))
def when_cleanup(scenario_state: ScenarioState, component_id: str) -> None:
    """Drop every subscription held by the component."""
    typ.cast("PubSub", scenario_state["bus"]).cleanup(component_id)


@when(parsers.parse('"{event}" is emitted and the batch is flushed'))
def when_emit_and_flush(scenario_state: ScenarioState, event: str) -> None:
    """Emit one event and run the scheduled flush."""
    typ.cast("PubSub", scenario_state["bus"]).emit(event, None)
    typ.cast("ManualScheduler", scenario_state["scheduler"]).run_pending()


@when(
    parsers.parse(
        '"{first}" then "{second}" then "{third}" are emitted and the batch is flushed'
    )
)
def when_emit_three(scenario_state: ScenarioState, first: str, second: str, third: str) -> None:
    """Emit three events into one batch and flush it."""
    bus = typ.cast("PubSub", scenario_state["bus"])
    for event in (first, second, third):
        bus.emit(event, None)
    typ.cast("ManualScheduler", scenario_state["scheduler"]).run_pending()


@then(parsers.parse('only the listener of component "{component_id}" fires'))
def then_only_fires(scenario_state: ScenarioState, component_id: str) -> None:
    """Listeners of cleaned-up components stay silent."""
    assert scenario_state["fired"] == [component_id]


@then(parsers.parse('the deliveries are "{order}"'))
def then_deliveries(scenario_state: ScenarioState, order: str) -> None:
    """Deliveries follow first-emission order per event."""
    assert scenario_state["deliveries"] == [item.strip() for item in order.split(",")]
