# ms_platform/sync/_resources.py
# owned timers / subscriptions / listeners, drained once on teardown.
from __future__ import annotations

import threading
from typing import Any, Callable

from ._types import Handle, Player

try:
    from _logging import log as BASE_LOG
except Exception:
    BASE_LOG = None


def _log(msg: str, level: str = "INFO") -> None:
    if BASE_LOG is not None:
        try:
            BASE_LOG(str(msg), level=level, module="SYNC")
            return
        except Exception:
            pass
    print(f"{level} [SYNC] {msg}")


class _Listener:
    def __init__(self, player: Player, event: str, handler: Callable[..., Any]) -> None:
        self.player, self.event, self.handler = player, event, handler

    def cancel(self) -> None:
        self.player.off(self.event, self.handler)


class _Callback:
    def __init__(self, fn: Callable[[], Any]) -> None:
        self.fn = fn

    def cancel(self) -> None:
        self.fn()


class ResourceSet:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._items: list[tuple[str, Handle]] = []
        self.drained = False

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def kinds(self) -> list[str]:
        with self._lock:
            return [k for k, _ in self._items]

    def add(self, kind: str, handle: Handle) -> Handle:
        with self._lock:
            late = self.drained
            if not late:
                self._items.append((kind, handle))
        if late:
            # set already torn down: release immediately instead of leaking
            handle.cancel()
        return handle

    def listen(self, player: Player, event: str, handler: Callable[..., Any]) -> None:
        player.on(event, handler)
        self.add(f"listener:{event}", _Listener(player, event, handler))

    def defer(self, kind: str, fn: Callable[[], Any]) -> None:
        self.add(kind, _Callback(fn))

    def drain(self) -> int:
        with self._lock:
            if self.drained:
                return 0
            self.drained = True
            items, self._items = self._items, []
        n = 0
        for kind, h in reversed(items):
            try:
                h.cancel()
                n += 1
            except Exception as e:
                _log(f"release of {kind} failed: {e}", "WARN")
        return n


__all__ = ["ResourceSet"]
