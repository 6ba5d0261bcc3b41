# ms_platform/sync/_scheduler.py
# delayed / repeating callbacks on daemon threads.
from __future__ import annotations

import threading
from typing import Any, Callable, Protocol

try:
    from _logging import log as BASE_LOG
except Exception:
    BASE_LOG = None


def _log(msg: str, level: str = "INFO") -> None:
    if BASE_LOG is not None:
        try:
            BASE_LOG(str(msg), level=level, module="SCHED")
            return
        except Exception:
            pass
    print(f"{level} [SCHED] {msg}")


class Scheduler(Protocol):
    def call_later(self, delay: float, fn: Callable[..., Any], *args: Any) -> "TimerHandle": ...
    def call_every(self, interval: float, fn: Callable[[], Any]) -> "TimerHandle": ...


class TimerHandle:
    """Cancellable handle; cancel() is safe to call any number of times."""

    def __init__(self, name: str = "") -> None:
        self.name = name
        self._stop = threading.Event()
        self._timer: threading.Timer | None = None

    @property
    def cancelled(self) -> bool:
        return self._stop.is_set()

    def cancel(self) -> None:
        self._stop.set()
        t, self._timer = self._timer, None
        if t is not None:
            t.cancel()


def _guarded(name: str, fn: Callable[..., Any], *args: Any) -> None:
    try:
        fn(*args)
    except Exception as e:
        _log(f"{name} callback failed: {e}", "ERROR")


class ThreadScheduler:
    def __init__(self, name: str = "MovieSync") -> None:
        self.name = name

    def call_later(self, delay: float, fn: Callable[..., Any], *args: Any) -> TimerHandle:
        h = TimerHandle(f"{self.name}-later")

        def _run() -> None:
            if not h.cancelled:
                _guarded(h.name, fn, *args)

        t = threading.Timer(max(0.0, float(delay)), _run)
        t.daemon = True
        t.name = h.name
        h._timer = t
        t.start()
        return h

    def call_every(self, interval: float, fn: Callable[[], Any]) -> TimerHandle:
        h = TimerHandle(f"{self.name}-every")
        period = max(0.01, float(interval))

        def _loop() -> None:
            while not h._stop.wait(period):
                _guarded(h.name, fn)

        threading.Thread(target=_loop, name=h.name, daemon=True).start()
        return h


__all__ = ["Scheduler", "TimerHandle", "ThreadScheduler"]
