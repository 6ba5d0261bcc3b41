# ms_platform/sync/_notify.py
# user-facing notices (autoplay outcome) routed to the log and an in-memory buffer.
from __future__ import annotations

import threading
import time
from collections import deque
from typing import Any

try:
    from _logging import log as BASE_LOG
except Exception:
    BASE_LOG = None


class LogNotifier:
    def __init__(self, module: str = "NOTICE") -> None:
        self.module = module

    def notify(self, title: str, message: str, level: str = "info") -> None:
        lvl = "ERROR" if str(level).lower() == "error" else "INFO"
        text = f"{title}: {message}" if message else title
        if BASE_LOG is not None:
            try:
                BASE_LOG(text, level=lvl, module=self.module)
                return
            except Exception:
                pass
        print(f"{lvl} [{self.module}] {text}")


class MemoryNotifier(LogNotifier):
    """LogNotifier that also keeps the most recent notices for the API."""

    def __init__(self, maxlen: int = 50, module: str = "NOTICE") -> None:
        super().__init__(module)
        self._lock = threading.Lock()
        self._buf: deque[dict[str, Any]] = deque(maxlen=max(1, int(maxlen)))

    def notify(self, title: str, message: str, level: str = "info") -> None:
        with self._lock:
            self._buf.append({"ts": int(time.time()), "title": title, "message": str(message), "level": level})
        super().notify(title, message, level)

    def recent(self) -> list[dict[str, Any]]:
        with self._lock:
            return list(self._buf)

    def clear(self) -> None:
        with self._lock:
            self._buf.clear()


__all__ = ["LogNotifier", "MemoryNotifier"]
