"""Unit tests for the batched event bus and the runtime context.

Most tests drive delivery with :class:`ManualScheduler`; the asyncio tests
check the default scheduler against a real event loop.
"""

from __future__ import annotations

import asyncio
import logging
import typing as typ

import pytest

from metamon.config import CompilerConfig
from metamon.errors import MTMRuntimeError
from metamon.runtime import ManualScheduler, PubSub, RuntimeContext


@pytest.fixture
def scheduler() -> ManualScheduler:
    """Return a scheduler that runs flushes only when asked."""
    return ManualScheduler()


@pytest.fixture
def bus(scheduler: ManualScheduler) -> PubSub:
    """Return an event bus driven by ``scheduler``."""
    return PubSub(scheduler=scheduler)


def test_delivery_is_deferred_until_flush(bus: PubSub, scheduler: ManualScheduler) -> None:
    """Emits queue payloads; one flush delivers them all."""
    received: list[int] = []
    bus.subscribe("tick", received.append, "clock-1")
    bus.emit("tick", 1)
    bus.emit("tick", 2)
    assert received == []
    assert bus.pending_count == 2
    assert scheduler.pending == 1

    assert scheduler.run_pending() == 1
    assert received == [1, 2]
    assert bus.pending_count == 0


def test_batches_group_by_event_in_first_emission_order(
    bus: PubSub, scheduler: ManualScheduler
) -> None:
    """Groups follow each event's first emission; payloads keep emission order."""
    log: list[tuple[str, typ.Any]] = []
    bus.subscribe("a", lambda payload: log.append(("a", payload)), "c1")
    bus.subscribe("b", lambda payload: log.append(("b", payload)), "c1")
    bus.emit("b", 1)
    bus.emit("a", 2)
    bus.emit("b", 3)
    scheduler.run_pending()
    assert log == [("b", 1), ("b", 3), ("a", 2)]


def test_cleanup_removes_component_listeners(bus: PubSub, scheduler: ManualScheduler) -> None:
    """After cleanup, a component's callbacks never fire."""
    fired: list[str] = []
    bus.subscribe("x", lambda _payload: fired.append("1"), "1")
    bus.subscribe("y", lambda _payload: fired.append("1y"), "1")
    bus.subscribe("x", lambda _payload: fired.append("2"), "2")

    bus.cleanup("1")
    bus.emit("x")
    bus.emit("y")
    scheduler.run_pending()

    assert fired == ["2"]
    assert bus.get_component_events("1") == []
    assert bus.get_subscription_count("y") == 0
    bus.cleanup("unknown")


def test_unsubscribe_targets_one_event(bus: PubSub) -> None:
    """Unsubscribe drops a component's listeners for one event only."""
    bus.subscribe("x", print, "panel")
    bus.subscribe("y", print, "panel")
    bus.subscribe("x", print, "other")
    bus.unsubscribe("x", "panel")

    assert bus.get_component_events("panel") == ["y"]
    assert bus.get_subscription_count("x") == 1
    assert [sub.component_id for sub in bus.get_active_subscriptions()] == ["other", "panel"]


def test_listener_removed_during_flush_still_gets_current_group(
    bus: PubSub, scheduler: ManualScheduler
) -> None:
    """Delivery uses a snapshot taken when the group starts."""
    received: list[str] = []

    def first(_payload: object) -> None:
        received.append("first")
        bus.cleanup("second")

    bus.subscribe("x", first, "first")
    bus.subscribe("x", lambda _payload: received.append("second"), "second")
    bus.emit("x")
    scheduler.run_pending()
    assert received == ["first", "second"]


def test_failing_listener_is_logged(
    bus: PubSub, scheduler: ManualScheduler, caplog: pytest.LogCaptureFixture
) -> None:
    """A raising listener does not stop delivery to the others."""
    received: list[object] = []

    def fail(_payload: object) -> None:
        msg = "listener broke"
        raise ValueError(msg)

    bus.subscribe("x", fail, "a")
    bus.subscribe("x", received.append, "b")
    bus.emit("x", "payload")
    with caplog.at_level(logging.ERROR, logger="metamon.runtime.pubsub"):
        scheduler.run_pending()
    assert received == ["payload"]
    assert "listener for 'x'" in caplog.text


@pytest.mark.parametrize(
    ("event", "callback", "component_id"),
    [("", print, "c"), ("x", None, "c"), ("x", print, ""), ("x", "print", "c")],
)
def test_subscribe_rejects_missing_arguments(
    bus: PubSub, event: str, callback: typ.Any, component_id: str  # noqa: ANN401
) -> None:
    """Every subscribe argument is required."""
    with pytest.raises(MTMRuntimeError):
        bus.subscribe(event, callback, component_id)


def test_empty_event_emits_are_ignored(bus: PubSub, scheduler: ManualScheduler) -> None:
    """Emitting an empty event name schedules nothing."""
    bus.emit("", 1)
    assert bus.pending_count == 0
    assert scheduler.pending == 0


def test_clear_drops_pending_batch(bus: PubSub, scheduler: ManualScheduler) -> None:
    """Clearing cancels the scheduled flush and forgets subscriptions."""
    received: list[int] = []
    bus.subscribe("x", received.append, "c")
    bus.emit("x", 1)
    bus.clear()
    assert scheduler.run_pending() == 0
    assert received == []
    assert bus.get_active_subscriptions() == []


def test_emit_without_running_loop_raises() -> None:
    """The default scheduler needs a running event loop."""
    bus = PubSub()
    with pytest.raises(MTMRuntimeError, match="running asyncio event loop"):
        bus.emit("x", 1)


def test_default_scheduler_delivers_on_next_loop_iteration() -> None:
    """Emits made inside a coroutine are delivered on a later loop tick."""
    received: list[int] = []

    async def scenario() -> list[int]:
        bus = PubSub()
        bus.subscribe("x", received.append, "c")
        bus.emit("x", 1)
        bus.emit("x", 2)
        before = list(received)
        await asyncio.sleep(0)
        return before

    before = asyncio.run(scenario())
    assert before == []
    assert received == [1, 2]


def test_batch_delay_uses_call_later() -> None:
    """A configured batch delay postpones delivery."""
    received: list[int] = []

    async def scenario() -> tuple[list[int], list[int]]:
        bus = PubSub(batch_delay=0.01)
        bus.subscribe("x", received.append, "c")
        bus.emit("x", 1)
        await asyncio.sleep(0)
        early = list(received)
        await asyncio.sleep(0.05)
        return early, list(received)

    early, late = asyncio.run(scenario())
    assert early == []
    assert late == [1]


def test_runtime_context_owns_registries(scheduler: ManualScheduler) -> None:
    """A context issues component ids and tears everything down."""
    context = RuntimeContext.from_config(CompilerConfig(batch_delay=0.5), scheduler=scheduler)
    first = context.new_component_id("Counter")
    second = context.new_component_id("Counter")
    assert (first, second) == ("Counter-1", "Counter-2")

    received: list[int] = []
    context.events.subscribe("x", received.append, first)
    context.signals.create_signal(0, "count")
    context.unmount(first)
    context.events.emit("x", 1)
    scheduler.run_pending()
    assert received == []

    context.shutdown()
    assert context.signals.signal_count == 0
    assert context.events.pending_count == 0
