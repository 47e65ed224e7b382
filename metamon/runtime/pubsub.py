"""Event bus with batched delivery and component-scoped subscriptions.

Components subscribe under a component identifier so every subscription they
own can be dropped with a single :meth:`PubSub.cleanup` call when the
component is destroyed. Emissions are queued and delivered together on the
next scheduler tick, grouped by event and in emission order within an event.

Examples
--------
>>> from metamon.runtime.scheduler import ManualScheduler
>>> scheduler = ManualScheduler()
>>> bus = PubSub(scheduler=scheduler)
>>> received = []
>>> _ = bus.subscribe("login", received.append, "header-1")
>>> bus.emit("login", {"user": "ada"})
>>> received
[]
>>> _ = scheduler.run_pending()
>>> received
[{'user': 'ada'}]
"""

from __future__ import annotations

import dataclasses as dc
import logging
import typing as typ

from metamon.errors import MTMRuntimeError

from .scheduler import EventLoopScheduler

if typ.TYPE_CHECKING:
    from .scheduler import Handle, Scheduler

logger = logging.getLogger(__name__)

Listener = typ.Callable[[typ.Any], None]


@dc.dataclass(frozen=True, slots=True, eq=False)
class Subscription:
    """A listener registered for ``event`` by the component ``component_id``."""

    event: str
    callback: Listener
    component_id: str


@dc.dataclass(frozen=True, slots=True)
class _Emission:
    event: str
    payload: typ.Any


class PubSub:
    """Publish/subscribe bus shared by compiled components.

    Parameters
    ----------
    scheduler : Scheduler, optional
        Defers batch flushes. Defaults to :class:`EventLoopScheduler`, which
        requires a running asyncio loop at emit time.
    batch_delay : float, optional
        Seconds to wait before flushing a batch.
    """

    def __init__(
        self, *, scheduler: Scheduler | None = None, batch_delay: float = 0.0
    ) -> None:
        self._scheduler: Scheduler = scheduler or EventLoopScheduler()
        self._batch_delay = batch_delay
        self._listeners: dict[str, dict[Subscription, None]] = {}
        self._component_subscriptions: dict[str, dict[Subscription, None]] = {}
        self._pending: list[_Emission] = []
        self._flush_handle: Handle | None = None

    def subscribe(self, event: str, callback: Listener, component_id: str) -> Subscription:
        """Register ``callback`` for ``event`` on behalf of ``component_id``.

        Raises
        ------
        MTMRuntimeError
            If any argument is empty or ``None``, or ``callback`` is not
            callable.
        """
        if not event or not component_id or callback is None or not callable(callback):
            msg = "subscribe() needs an event name, a callback, and a component id."
            raise MTMRuntimeError(
                msg,
                suggestions=[
                    "Call subscribe('eventName', callback, componentId) with "
                    "non-empty values.",
                ],
            )
        subscription = Subscription(event=event, callback=callback, component_id=component_id)
        self._listeners.setdefault(event, {})[subscription] = None
        self._component_subscriptions.setdefault(component_id, {})[subscription] = None
        return subscription

    def unsubscribe(self, event: str, component_id: str) -> None:
        """Remove every subscription ``component_id`` holds for ``event``."""
        owned = self._component_subscriptions.get(component_id)
        if not event or not owned:
            return
        for subscription in [sub for sub in owned if sub.event == event]:
            self._remove(subscription)

    def cleanup(self, component_id: str) -> None:
        """Remove every subscription registered by ``component_id``."""
        owned = self._component_subscriptions.get(component_id)
        if not owned:
            return
        for subscription in list(owned):
            self._remove(subscription)

    def emit(self, event: str, payload: typ.Any = None) -> None:  # noqa: ANN401 - payloads are arbitrary
        """Queue ``payload`` for delivery to ``event`` listeners.

        Delivery happens when the scheduler runs the flush. Empty event names
        are ignored.

        Raises
        ------
        MTMRuntimeError
            If the default scheduler is used without a running event loop.
        """
        if not event:
            return
        if self._flush_handle is None:
            self._flush_handle = self._scheduler.schedule(
                self.process_batch, self._batch_delay
            )
        self._pending.append(_Emission(event, payload))

    def process_batch(self) -> None:
        """Deliver every queued emission now.

        Emissions are grouped by event in order of each event's first
        emission. Every payload of a group is delivered, in emission order, to
        a snapshot of that event's listeners taken when the group starts. A
        listener that raises is logged and delivery continues.
        """
        handle, self._flush_handle = self._flush_handle, None
        if handle is not None:
            handle.cancel()
        pending, self._pending = self._pending, []
        groups: dict[str, list[typ.Any]] = {}
        for emission in pending:
            groups.setdefault(emission.event, []).append(emission.payload)

        for event, payloads in groups.items():
            listeners = list(self._listeners.get(event, ()))
            for payload in payloads:
                for subscription in listeners:
                    try:
                        subscription.callback(payload)
                    except Exception:
                        logger.exception(
                            "listener for %r (component %r) failed",
                            event,
                            subscription.component_id,
                        )

    def clear(self) -> None:
        """Drop every subscription and pending emission."""
        if self._flush_handle is not None:
            self._flush_handle.cancel()
            self._flush_handle = None
        self._pending.clear()
        self._listeners.clear()
        self._component_subscriptions.clear()

    def get_subscription_count(self, event: str) -> int:
        """Return the number of subscriptions for ``event``."""
        return len(self._listeners.get(event, ()))

    def get_component_events(self, component_id: str) -> list[str]:
        """Return the distinct events ``component_id`` is subscribed to."""
        owned = self._component_subscriptions.get(component_id, {})
        return list(dict.fromkeys(sub.event for sub in owned))

    def get_active_subscriptions(self) -> list[Subscription]:
        """Return every subscription, grouped by event in subscription order."""
        return [sub for listeners in self._listeners.values() for sub in listeners]

    @property
    def pending_count(self) -> int:
        """Return the number of emissions waiting for delivery."""
        return len(self._pending)

    def _remove(self, subscription: Subscription) -> None:
        listeners = self._listeners.get(subscription.event)
        if listeners is not None:
            listeners.pop(subscription, None)
            if not listeners:
                del self._listeners[subscription.event]
        owned = self._component_subscriptions.get(subscription.component_id)
        if owned is not None:
            owned.pop(subscription, None)
            if not owned:
                del self._component_subscriptions[subscription.component_id]


__all__ = ["Listener", "PubSub", "Subscription"]
