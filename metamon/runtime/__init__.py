"""Reactive runtime shared by compiled components.

Signals hold observable state; the event bus delivers batched events to
components and drops a component's subscriptions in one call when it is
destroyed. Both registries are owned by a :class:`RuntimeContext`.
"""

from .context import RuntimeContext
from .pubsub import PubSub, Subscription
from .scheduler import EventLoopScheduler, ManualScheduler, Scheduler
from .signal import Signal, SignalManager, strictly_equal

__all__ = [
    "EventLoopScheduler",
    "ManualScheduler",
    "PubSub",
    "RuntimeContext",
    "Scheduler",
    "Signal",
    "SignalManager",
    "Subscription",
    "strictly_equal",
]
