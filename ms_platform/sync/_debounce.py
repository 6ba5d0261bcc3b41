# ms_platform/sync/_debounce.py
# trailing debounce + keyed debounce pool.
from __future__ import annotations

import functools
import threading
from typing import Any, Callable

from ._scheduler import Scheduler, ThreadScheduler, TimerHandle

_Call = tuple[Callable[..., Any], tuple[Any, ...], dict[str, Any]]


class Debouncer:
    """Runs the last submitted call once, window seconds after the last submit.

    Every submit inside the window cancels the pending timer and starts a new one,
    so N calls within the window produce exactly one invocation with the last args.
    """

    def __init__(self, window: float, fn: Callable[..., Any] | None = None, scheduler: Scheduler | None = None) -> None:
        self.window = max(0.0, float(window))
        self.fn = fn
        self._sched: Scheduler = scheduler or ThreadScheduler("debounce")
        self._lock = threading.Lock()
        self._gen = 0
        self._handle: TimerHandle | None = None
        self._call: _Call | None = None

    @property
    def pending(self) -> bool:
        return self._call is not None

    def __call__(self, *args: Any, **kwargs: Any) -> None:
        if self.fn is None:
            raise TypeError("Debouncer has no target function; use submit()")
        self.submit(self.fn, *args, **kwargs)

    def submit(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        with self._lock:
            if self._handle is not None:
                self._handle.cancel()
            self._gen += 1
            self._call = (fn, args, kwargs)
            self._handle = self._sched.call_later(self.window, self._fire, self._gen)

    def _take(self, gen: int | None) -> _Call | None:
        with self._lock:
            if gen is not None and gen != self._gen:
                return None
            call, self._call = self._call, None
            self._handle = None
            return call

    def _fire(self, gen: int) -> None:
        call = self._take(gen)
        if call is not None:
            fn, args, kwargs = call
            fn(*args, **kwargs)

    def flush(self) -> bool:
        """Run the pending call now (if any). Returns whether something ran."""
        with self._lock:
            if self._handle is not None:
                self._handle.cancel()
        call = self._take(None)
        if call is None:
            return False
        fn, args, kwargs = call
        fn(*args, **kwargs)
        return True

    def cancel(self) -> None:
        with self._lock:
            if self._handle is not None:
                self._handle.cancel()
            self._handle = None
            self._call = None
            self._gen += 1


def debounce(window: float, scheduler: Scheduler | None = None) -> Callable[[Callable[..., Any]], Callable[..., None]]:
    """Decorator form: @debounce(0.5) def f(...): ..."""

    def deco(fn: Callable[..., Any]) -> Callable[..., None]:
        d = Debouncer(window, fn, scheduler)

        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> None:
            d(*args, **kwargs)

        wrapper.debouncer = d  # type: ignore[attr-defined]
        return wrapper

    return deco


class DebouncePool:
    """Keyed debounce: wrappers sharing a label share one timer slot."""

    def __init__(self, window: float, scheduler: Scheduler | None = None) -> None:
        self.window = window
        self._sched = scheduler or ThreadScheduler("debounce")
        self._lock = threading.Lock()
        self._slots: dict[str, Debouncer] = {}

    def slot(self, label: str) -> Debouncer:
        with self._lock:
            d = self._slots.get(label)
            if d is None:
                d = self._slots[label] = Debouncer(self.window, None, self._sched)
            return d

    def wrap(self, label: str, fn: Callable[..., Any]) -> Callable[..., None]:
        d = self.slot(label)

        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> None:
            d.submit(fn, *args, **kwargs)

        return wrapper

    def labels(self) -> list[str]:
        with self._lock:
            return list(self._slots)

    def cancel_all(self) -> None:
        with self._lock:
            slots = list(self._slots.values())
        for d in slots:
            d.cancel()


def debounces(window: float, scheduler: Scheduler | None = None) -> Callable[..., Callable[..., None]]:
    """Factory: debounces(0.5)(fn, label="x"); all wrappers made without a label share one slot."""
    pool = DebouncePool(window, scheduler)

    def make(fn: Callable[..., Any], label: str = "default") -> Callable[..., None]:
        return pool.wrap(label, fn)

    make.pool = pool  # type: ignore[attr-defined]
    return make


__all__ = ["Debouncer", "debounce", "DebouncePool", "debounces"]
