# ms_platform/sync/_echo.py
# self-trigger suppression for programmatic player mutations.
from __future__ import annotations

import threading
import time
from contextlib import contextmanager
from typing import Callable, Iterator


class EchoGuard:
    """Counts player events we expect to cause ourselves.

    arm(ev) before mutating the player; the outbound handler calls absorb(ev)
    and skips publishing when it returns True. One arm absorbs exactly one
    occurrence. Arms expire after ttl seconds so a player that never fires
    cannot swallow a later user action.
    """

    def __init__(self, ttl: float = 2.0, clock: Callable[[], float] | None = None) -> None:
        self.ttl = max(0.0, float(ttl))
        self._clock = clock or time.monotonic
        self._lock = threading.Lock()
        self._armed: dict[str, list[float]] = {}
        self.absorbed = 0

    def _prune(self, event: str, now: float) -> list[float]:
        live = [d for d in self._armed.get(event, ()) if d > now]
        if live:
            self._armed[event] = live
        else:
            self._armed.pop(event, None)
        return live

    def arm(self, event: str) -> None:
        with self._lock:
            now = self._clock()
            self._prune(event, now)
            self._armed.setdefault(event, []).append(now + self.ttl)

    def disarm(self, event: str) -> None:
        with self._lock:
            q = self._armed.get(event)
            if q:
                q.pop()
                if not q:
                    self._armed.pop(event, None)

    def absorb(self, event: str) -> bool:
        with self._lock:
            live = self._prune(event, self._clock())
            if not live:
                return False
            live.pop(0)
            if not live:
                self._armed.pop(event, None)
            self.absorbed += 1
            return True

    def pending(self, event: str) -> int:
        with self._lock:
            return len(self._prune(event, self._clock()))

    def clear(self) -> None:
        with self._lock:
            self._armed.clear()

    @contextmanager
    def suppressed(self, event: str) -> Iterator[None]:
        self.arm(event)
        try:
            yield
        except BaseException:
            self.disarm(event)
            raise


__all__ = ["EchoGuard"]
