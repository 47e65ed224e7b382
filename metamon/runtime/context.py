"""Ownership of the runtime registries used by compiled components."""

from __future__ import annotations

import dataclasses as dc
import itertools
import typing as typ

from .pubsub import PubSub
from .signal import SignalManager

if typ.TYPE_CHECKING:
    from metamon.config import CompilerConfig

    from .scheduler import Scheduler


@dc.dataclass(slots=True)
class RuntimeContext:
    """Bundle a :class:`SignalManager` and a :class:`PubSub` for one host.

    Hosts create one context and hand it to every component they mount, so
    there is no process-wide registry. :meth:`new_component_id` issues the
    per-instance identifiers components subscribe under.

    Examples
    --------
    >>> from metamon.runtime.scheduler import ManualScheduler
    >>> context = RuntimeContext.create(scheduler=ManualScheduler())
    >>> context.new_component_id("Counter")
    'Counter-1'
    """

    signals: SignalManager
    events: PubSub
    _ids: typ.Iterator[int] = dc.field(default_factory=lambda: itertools.count(1))

    @classmethod
    def create(
        cls, *, scheduler: Scheduler | None = None, batch_delay: float = 0.0
    ) -> RuntimeContext:
        """Return a context with fresh registries."""
        return cls(
            signals=SignalManager(),
            events=PubSub(scheduler=scheduler, batch_delay=batch_delay),
        )

    @classmethod
    def from_config(
        cls, config: CompilerConfig, *, scheduler: Scheduler | None = None
    ) -> RuntimeContext:
        """Return a context using the configured batch delay."""
        return cls.create(scheduler=scheduler, batch_delay=config.batch_delay)

    def new_component_id(self, prefix: str = "component") -> str:
        """Return a component identifier unique within this context."""
        return f"{prefix}-{next(self._ids)}"

    def unmount(self, component_id: str) -> None:
        """Drop every event subscription held by ``component_id``."""
        self.events.cleanup(component_id)

    def shutdown(self) -> None:
        """Destroy every signal and drop every subscription."""
        self.events.clear()
        self.signals.cleanup()


__all__ = ["RuntimeContext"]
