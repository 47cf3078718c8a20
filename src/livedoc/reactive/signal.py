"""Reactive signal — a value cell with an explicit subscriber list.

A ReactiveSignal holds the latest value of some computation plus the set of
callbacks that depend on it.  There is no ambient reactive context: a
dependent subscribes explicitly and is told when the cell changes.

Two kinds of notification exist:

- ``set(value)`` stores a freshly computed value, bumps the version, clears
  the dirty flag and notifies subscribers.
- ``invalidate()`` marks the current value as out of date (a recompute has
  been scheduled) and notifies subscribers once, until the next ``set``.

Dependents either react immediately (push) or re-read the upstream value the
next time they are asked for theirs (pull).  Both are driven by the same
callback.

Thread Safety:
    The subscriber list and value are guarded by a ``threading.Lock``.
    Callbacks run outside the lock, in the thread that changed the cell.

"""

from __future__ import annotations

import sys
import threading
from collections.abc import Callable

type Subscriber[T] = Callable[[ReactiveSignal[T]], None]

_UNSET: object = object()


class ReactiveSignal[T]:
    """A named value cell that notifies explicit subscribers on change.

    Args:
        name: Label used in diagnostics.
        initial: Optional initial value.  Without one the cell starts empty
            and ``value`` raises ``LookupError`` until the first ``set``.

    """

    __slots__ = ("_dirty", "_lock", "_name", "_subscribers", "_value", "_version")

    def __init__(self, name: str, initial: T | object = _UNSET) -> None:
        self._name = name
        self._value: T | object = initial
        self._version = 0 if initial is _UNSET else 1
        self._dirty = False
        self._subscribers: list[Subscriber[T]] = []
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return f"ReactiveSignal({self._name!r}, version={self._version}, dirty={self._dirty})"

    @property
    def name(self) -> str:
        return self._name

    @property
    def has_value(self) -> bool:
        """Whether the cell has ever been set."""
        with self._lock:
            return self._value is not _UNSET

    @property
    def value(self) -> T:
        """The latest value.

        Raises:
            LookupError: If the cell has never been set.

        """
        with self._lock:
            if self._value is _UNSET:
                msg = f"signal {self._name!r} has no value yet"
                raise LookupError(msg)
            return self._value  # type: ignore[return-value]

    @property
    def version(self) -> int:
        """Number of times a value has been stored."""
        with self._lock:
            return self._version

    @property
    def dirty(self) -> bool:
        """True between ``invalidate()`` and the next ``set()``."""
        with self._lock:
            return self._dirty

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def get(self, default: T | None = None) -> T | None:
        """Return the latest value, or *default* if the cell is empty."""
        with self._lock:
            if self._value is _UNSET:
                return default
            return self._value  # type: ignore[return-value]

    def subscribe(self, callback: Subscriber[T]) -> Callable[[], None]:
        """Register *callback* and return a function that unregisters it."""
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def set(self, value: T) -> None:
        """Store a newly computed value and notify subscribers."""
        with self._lock:
            self._value = value
            self._version += 1
            self._dirty = False
        self._notify()

    def invalidate(self) -> None:
        """Mark the current value as out of date and notify subscribers once."""
        with self._lock:
            if self._dirty:
                return
            self._dirty = True
        self._notify()

    def settle(self) -> None:
        """Clear the dirty flag without a new value (the recompute was abandoned)."""
        with self._lock:
            self._dirty = False

    def _notify(self) -> None:
        with self._lock:
            subscribers = tuple(self._subscribers)
        for callback in subscribers:
            try:
                callback(self)
            except Exception as exc:
                # One broken dependent must not starve the others.
                print(
                    f"  Subscriber error ({self._name}): {exc}",
                    file=sys.stderr,
                )
