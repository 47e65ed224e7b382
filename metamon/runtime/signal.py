"""Signals: observable values shared between compiled components.

A :class:`Signal` holds one value and notifies subscribers synchronously when
the value changes. A :class:`SignalManager` keeps a registry of keyed signals
so components compiled for different targets can share state, and builds
computed signals that follow their dependencies.

Examples
--------
>>> manager = SignalManager()
>>> count = manager.create_signal(0, "count")
>>> seen = []
>>> unsubscribe = count.subscribe(seen.append)
>>> count.update(1)
>>> count.update(1)
>>> seen
[1]
>>> manager.create_signal(99, "count") is count
True
"""

from __future__ import annotations

import itertools
import logging
import typing as typ

logger = logging.getLogger(__name__)

T = typ.TypeVar("T")
Subscriber = typ.Callable[[typ.Any], None]
Unsubscribe = typ.Callable[[], None]

_SCALAR_TYPES: tuple[type, ...] = (int, float, complex, str, bytes, bool, type(None))


def strictly_equal(left: object, right: object) -> bool:
    """Return ``True`` when an update from ``left`` to ``right`` changes nothing.

    Values are equal when they are the same object, or when both are
    immutable scalars of exactly the same type that compare equal. Distinct
    containers never compare equal, so replacing a list with an equal copy
    still notifies.

    Examples
    --------
    >>> strictly_equal(1, 1)
    True
    >>> strictly_equal(1, 1.0)
    False
    >>> strictly_equal([1], [1])
    False
    >>> strictly_equal(float("nan"), float("nan"))
    False
    """
    if left is right:
        return not (isinstance(left, float) and left != left)  # noqa: PLR0124 - NaN check
    if type(left) is type(right) and isinstance(left, _SCALAR_TYPES):
        return left == right
    return False


class Signal(typ.Generic[T]):
    """An observable value with synchronous, ordered notification.

    Parameters
    ----------
    initial : T
        Starting value.
    key : str, optional
        Registry key when the signal is owned by a :class:`SignalManager`.
    """

    def __init__(self, initial: T, *, key: str | None = None) -> None:
        self.key = key
        self._value = initial
        self._subscribers: dict[int, Subscriber] = {}
        self._ids = itertools.count()
        self._updating = False
        self._teardown: list[typ.Callable[[], None]] = []

    def __repr__(self) -> str:
        return f"Signal(key={self.key!r}, value={self._value!r})"

    @property
    def value(self) -> T:
        """Return the current value."""
        return self._value

    @value.setter
    def value(self, new_value: T) -> None:
        self.update(new_value)

    @property
    def subscriber_count(self) -> int:
        """Return the number of active subscribers."""
        return len(self._subscribers)

    def subscribe(self, callback: Subscriber) -> Unsubscribe:
        """Register ``callback`` and return a function that removes it.

        The returned function removes exactly this registration, even when
        the same callable is subscribed more than once. Calling it again is
        harmless.
        """
        token = next(self._ids)
        self._subscribers[token] = callback

        def unsubscribe() -> None:
            self._subscribers.pop(token, None)

        return unsubscribe

    def update(self, new_value: T) -> None:
        """Store ``new_value`` and notify subscribers in subscription order.

        Nothing happens when the value is strictly equal to the current one,
        or when this signal is already notifying; an update made by a
        subscriber during notification is dropped. Subscribers are called
        with the new value over a snapshot taken before the first call, and
        a subscriber that raises is logged without stopping the others.
        """
        if self._updating or strictly_equal(self._value, new_value):
            return
        self._value = new_value
        self._updating = True
        try:
            for callback in list(self._subscribers.values()):
                try:
                    callback(new_value)
                except Exception:
                    logger.exception("signal subscriber failed (key=%r)", self.key)
        finally:
            self._updating = False

    def on_destroy(self, hook: typ.Callable[[], None]) -> None:
        """Register ``hook`` to run when the signal is destroyed."""
        self._teardown.append(hook)

    def destroy(self) -> None:
        """Remove every subscriber and run teardown hooks once."""
        self._subscribers.clear()
        hooks, self._teardown = self._teardown, []
        for hook in hooks:
            try:
                hook()
            except Exception:
                logger.exception("signal teardown failed (key=%r)", self.key)


class SignalManager:
    """Registry of keyed signals shared across components.

    Signals created without a key are returned to the caller but not
    tracked; their creator is responsible for destroying them.
    """

    def __init__(self) -> None:
        self._signals: dict[str, Signal[typ.Any]] = {}

    @property
    def signal_count(self) -> int:
        """Return the number of keyed signals."""
        return len(self._signals)

    def signal_keys(self) -> list[str]:
        """Return registered keys in creation order."""
        return list(self._signals)

    def create_signal(self, initial: T, key: str | None = None) -> Signal[T]:
        """Create a signal, or return the existing one registered under ``key``.

        When ``key`` is already registered the existing signal is returned
        unchanged (``initial`` is ignored) and a warning is logged.
        """
        if key is not None:
            existing = self._signals.get(key)
            if existing is not None:
                logger.warning(
                    "signal with key %r already exists; returning existing signal", key
                )
                return existing
        signal: Signal[T] = Signal(initial, key=key)
        if key is not None:
            self._signals[key] = signal
        return signal

    def get_signal(self, key: str) -> Signal[typ.Any] | None:
        """Return the signal registered under ``key`` if any."""
        return self._signals.get(key)

    def destroy_signal(self, key: str) -> None:
        """Destroy and unregister the signal under ``key``; unknown keys are ignored."""
        signal = self._signals.pop(key, None)
        if signal is not None:
            signal.destroy()

    def create_computed(
        self,
        compute: typ.Callable[[], T],
        dependencies: typ.Sequence[Signal[typ.Any]],
        key: str | None = None,
    ) -> Signal[T]:
        """Create a signal whose value is recomputed when a dependency changes.

        Parameters
        ----------
        compute : Callable[[], T]
            Produces the value. Called once immediately and again after each
            dependency update.
        dependencies : Sequence[Signal]
            Signals whose changes trigger recomputation.
        key : str, optional
            Registry key. An existing key returns the existing signal.

        Notes
        -----
        A failing recomputation is logged and the previous value kept.
        Destroying the computed signal unsubscribes it from every dependency.
        """
        if key is not None and key in self._signals:
            return self.create_signal(typ.cast(T, None), key)
        computed = self.create_signal(compute(), key)

        def recompute(_value: object) -> None:
            try:
                result = compute()
            except Exception:
                logger.exception("computed signal failed (key=%r)", key)
                return
            computed.update(result)

        for dependency in dependencies:
            computed.on_destroy(dependency.subscribe(recompute))
        return computed

    def cleanup(self) -> None:
        """Destroy every keyed signal and empty the registry."""
        signals, self._signals = self._signals, {}
        for signal in signals.values():
            signal.destroy()


__all__ = ["Signal", "SignalManager", "strictly_equal"]
