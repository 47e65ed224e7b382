"""Schedulers that defer event-bus flushes.

The event bus never delivers synchronously from ``emit``; it asks a scheduler
to run its flush later. :class:`EventLoopScheduler` defers onto the running
asyncio loop, while :class:`ManualScheduler` queues callbacks until the host
calls :meth:`ManualScheduler.run_pending`.
"""

from __future__ import annotations

import asyncio
import collections
import typing as typ

from metamon.errors import MTMRuntimeError


class Handle(typ.Protocol):
    """Cancellable reference to a scheduled callback."""

    def cancel(self) -> None:
        """Prevent the callback from running."""
        ...


class Scheduler(typ.Protocol):
    """Defers a zero-argument callback by ``delay`` seconds."""

    def schedule(self, callback: typ.Callable[[], None], delay: float = 0.0) -> Handle:
        """Arrange for ``callback`` to run later and return a cancellable handle."""
        ...


class EventLoopScheduler:
    """Schedule callbacks on the currently running asyncio event loop."""

    def schedule(
        self, callback: typ.Callable[[], None], delay: float = 0.0
    ) -> asyncio.Handle:
        """Run ``callback`` via ``call_soon`` or, when ``delay`` is set, ``call_later``.

        Raises
        ------
        MTMRuntimeError
            If no event loop is running in the current thread.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as exc:
            msg = "Event delivery needs a running asyncio event loop."
            raise MTMRuntimeError(
                msg,
                suggestions=[
                    "Emit from inside a coroutine, or construct the event bus with "
                    "a ManualScheduler and call run_pending().",
                ],
            ) from exc
        if delay > 0:
            return loop.call_later(delay, callback)
        return loop.call_soon(callback)


class _ManualHandle:
    __slots__ = ("callback", "cancelled")

    def __init__(self, callback: typ.Callable[[], None]) -> None:
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Queue callbacks until :meth:`run_pending` is called.

    Delays are ignored; callbacks run in the order they were scheduled.

    Examples
    --------
    >>> scheduler = ManualScheduler()
    >>> calls = []
    >>> _ = scheduler.schedule(lambda: calls.append(1))
    >>> scheduler.run_pending()
    1
    >>> calls
    [1]
    """

    def __init__(self) -> None:
        self._queue: collections.deque[_ManualHandle] = collections.deque()

    def schedule(
        self, callback: typ.Callable[[], None], delay: float = 0.0
    ) -> _ManualHandle:
        """Queue ``callback``."""
        handle = _ManualHandle(callback)
        self._queue.append(handle)
        return handle

    @property
    def pending(self) -> int:
        """Return the number of queued, uncancelled callbacks."""
        return sum(1 for handle in self._queue if not handle.cancelled)

    def run_pending(self) -> int:
        """Run every queued callback, including ones queued while running.

        Returns the number of callbacks that ran.
        """
        ran = 0
        while self._queue:
            handle = self._queue.popleft()
            if handle.cancelled:
                continue
            handle.callback()
            ran += 1
        return ran


__all__ = ["EventLoopScheduler", "Handle", "ManualScheduler", "Scheduler"]
