# ms_platform/sync/_status.py
# authoritative movie status channel (immutable snapshots, subscribe/notify).
from __future__ import annotations

import itertools
import threading
from typing import Any, Callable

from ._types import MovieStatus

try:
    from _logging import log as BASE_LOG
except Exception:
    BASE_LOG = None


def _log(msg: str, level: str = "INFO") -> None:
    if BASE_LOG is not None:
        try:
            BASE_LOG(str(msg), level=level, module="STATUS")
            return
        except Exception:
            pass
    print(f"{level} [STATUS] {msg}")


Listener = Callable[[MovieStatus], Any]


class Subscription:
    def __init__(self, channel: "StatusChannel", sid: int) -> None:
        self._channel = channel
        self._sid = sid
        self.active = True

    def cancel(self) -> None:
        if not self.active:
            return
        self.active = False
        self._channel._drop(self._sid)


class StatusChannel:
    """Holds the current authoritative status; notifies subscribers on every real change."""

    def __init__(self, initial: MovieStatus | None = None) -> None:
        self._lock = threading.Lock()
        self._current = initial or MovieStatus()
        self._subs: dict[int, Listener] = {}
        self._ids = itertools.count(1)
        self.version = 0

    @property
    def current(self) -> MovieStatus:
        return self._current

    def subscribe(self, cb: Listener) -> Subscription:
        with self._lock:
            sid = next(self._ids)
            self._subs[sid] = cb
        return Subscription(self, sid)

    def _drop(self, sid: int) -> None:
        with self._lock:
            self._subs.pop(sid, None)

    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subs)

    def publish(self, status: MovieStatus) -> bool:
        with self._lock:
            if status == self._current:
                return False
            self._current = status
            self.version += 1
            listeners = list(self._subs.values())
        for cb in listeners:
            try:
                cb(status)
            except Exception as e:
                _log(f"status subscriber failed: {e}", "ERROR")
        return True

    def update(self, **fields: Any) -> bool:
        return self.publish(self._current.replace(**fields))


class ExpireCounter:
    """Monotonic expire-epoch provider for CHECK messages."""

    def __init__(self, start: int = 0) -> None:
        self._lock = threading.Lock()
        self._value = int(start)

    def __call__(self) -> int:
        return self._value

    def bump(self) -> int:
        with self._lock:
            self._value += 1
            return self._value

    def set(self, value: int) -> int:
        with self._lock:
            self._value = max(self._value, int(value))
            return self._value


__all__ = ["StatusChannel", "Subscription", "ExpireCounter"]
