# ms_platform/sync/_loop.py
# status subscription + periodic CHECK heartbeat.
from __future__ import annotations

import threading
import time
from typing import Callable

from ._applier import Applier
from ._publisher import Publisher
from ._resources import ResourceSet
from ._scheduler import Scheduler, ThreadScheduler
from ._status import StatusChannel
from ._types import MovieStatus, Player, SessionState, SyncSettings

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


class Reconciler:
    def __init__(
        self,
        player: Player,
        channel: StatusChannel,
        applier: Applier,
        publisher: Publisher,
        *,
        session: SessionState,
        settings: SyncSettings | None = None,
        clock: Callable[[], float] | None = None,
        scheduler: Scheduler | None = None,
        lock: threading.RLock | None = None,
    ) -> None:
        self.player = player
        self.channel = channel
        self.applier = applier
        self.publisher = publisher
        self.session = session
        self.settings = settings or SyncSettings()
        self._clock = clock or time.time
        self._sched: Scheduler = scheduler or ThreadScheduler("reconcile")
        self._lock = lock or threading.RLock()
        self.checks_sent = 0
        self.updates_seen = 0
        self.closed = False

    def check(self) -> bool:
        """One heartbeat tick. Returns whether a CHECK went out."""
        with self._lock:
            if self.closed or self.player.is_live:
                return False
            if self.session.seek_age(self._clock()) < self.settings.check_quiet:
                return False
            remaining = float(self.player.duration or 0.0) - float(self.player.current_time)
            if remaining <= self.settings.check_tail:
                return False
            self.publisher.publish_check()
            self.checks_sent += 1
            return True

    def on_status(self, status: MovieStatus) -> None:
        with self._lock:
            if self.closed:
                return
            self.updates_seen += 1
            _log("syncing progress...", "DEBUG")
            self.applier.apply(status)

    def start(self, resources: ResourceSet) -> None:
        resources.add("timer:check", self._sched.call_every(self.settings.check_interval, self.check))
        resources.add("subscription:status", self.channel.subscribe(self.on_status))

    def close(self) -> None:
        with self._lock:
            self.closed = True


__all__ = ["Reconciler"]
