# ms_platform/sync/facade.py
# sync plugin lifecycle: ready → initial alignment → active reconciliation → teardown.
from __future__ import annotations

import threading
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ._applier import Applier
from ._autoplay import AutoplayResult, attempt_play
from ._echo import EchoGuard
from ._loop import Reconciler
from ._notify import LogNotifier
from ._publisher import Publisher
from ._resources import ResourceSet
from ._scheduler import Scheduler, ThreadScheduler
from ._status import StatusChannel
from ._types import (
    EV_DESTROY, EV_RATE, EV_READY, EV_SEEK,
    ExpireIdFn, Notifier, Player, PublishFn, SessionState, SyncSettings,
)

try:
    from _logging import log as BASE_LOG
except Exception:
    BASE_LOG = None

__all__ = ["SyncPlugin", "LifecycleState", "new_sync_plugin", "SYNC_CONTROL"]

SYNC_CONTROL = "syncControl"
SYNC_CONTROL_HTML = "Sync"
SYNC_SETTING_HTML = "Sync status"
SYNC_SETTING_OPTION = "Click to sync"


def _log(msg: str, level: str = "INFO") -> None:
    if BASE_LOG is not None:
        try:
            BASE_LOG(str(msg), level=level, module="SYNC")
            return
        except Exception:
            pass
    print(f"{level} [SYNC] {msg}")


class LifecycleState(str, Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    ACTIVE = "active"
    TORN_DOWN = "torn_down"


def _zero() -> int:
    return 0


@dataclass
class SyncPlugin:
    player: Player
    publish: PublishFn
    channel: StatusChannel
    expire_id: ExpireIdFn = _zero
    notifier: Notifier | None = None
    config: Mapping[str, Any] | None = None
    settings: SyncSettings | None = None
    clock: Callable[[], float] | None = None
    scheduler: Scheduler | None = None

    name: str = field(init=False, default="syncPlugin")
    state: LifecycleState = field(init=False, default=LifecycleState.UNINITIALIZED)
    live: bool = field(init=False, default=False)
    autoplay: AutoplayResult | None = field(init=False, default=None)

    def __post_init__(self) -> None:
        if self.settings is None:
            self.settings = SyncSettings.from_config(self.config)
        self.notifier = self.notifier or LogNotifier()
        self._clock: Callable[[], float] = self.clock or time.time
        self._sched: Scheduler = self.scheduler or ThreadScheduler("sync")
        self._lock = threading.RLock()

        self.session = SessionState()
        self.guard = EchoGuard(self.settings.echo_ttl, clock=self._clock)
        self.resources = ResourceSet()
        common = dict(session=self.session, guard=self.guard, settings=self.settings, clock=self._clock, lock=self._lock)
        self.publisher = Publisher(
            self.player, self.publish, expire_id=self.expire_id, scheduler=self._sched, **common,
        )
        self.applier = Applier(self.player, notifier=self.notifier, **common)
        self.reconciler = Reconciler(
            self.player, self.channel, self.applier, self.publisher,
            session=self.session, settings=self.settings, clock=self._clock,
            scheduler=self._sched, lock=self._lock,
        )

    # --- lifecycle ---------------------------------------------------------------------
    def attach(self) -> "SyncPlugin":
        self.player.once(EV_READY, self._on_ready)
        self.player.once(EV_DESTROY, self.teardown)
        return self

    def _on_ready(self, *_: Any) -> None:
        with self._lock:
            if self.state is not LifecycleState.UNINITIALIZED:
                return
            self.state = LifecycleState.READY
            self.live = bool(self.player.is_live)
            if self.live:
                # live streams have no position/rate to reconcile; just try to start
                self.autoplay = attempt_play(self.player, self.notifier)  # type: ignore[arg-type]
                self.state = LifecycleState.ACTIVE
                return

            _log("syncing progress...", "DEBUG")
            for event, handler in self.publisher.handlers().items():
                self.resources.listen(self.player, event, handler)
            self.resources.defer("debounce", self.publisher.cancel)
            self._align_initial()
            self.reconciler.start(self.resources)
            self._add_controls()
            self.state = LifecycleState.ACTIVE
            _log(f"sync active: {len(self.resources)} resources", "DEBUG")

    def _align_initial(self) -> None:
        # listeners are live; every write is guarded whether the player echoes now or later
        status = self.channel.current
        if abs(float(self.player.current_time) - float(status.seek)) > 1e-6:
            with self.guard.suppressed(EV_SEEK):
                self.player.current_time = float(status.seek)
        if abs(float(self.player.playback_rate) - float(status.rate)) > 1e-6:
            with self.guard.suppressed(EV_RATE):
                self.player.playback_rate = float(status.rate)
        if status.playing and not self.player.playing:
            self.autoplay = attempt_play(self.player, self.notifier, self.guard)  # type: ignore[arg-type]

    def _add_controls(self) -> None:
        if self.player.has_control(SYNC_CONTROL):
            self.player.remove_control(SYNC_CONTROL)
        self.player.add_control(SYNC_CONTROL, SYNC_CONTROL_HTML, self.request_sync, position="right")
        self.resources.defer(f"control:{SYNC_CONTROL}", self._remove_control)
        self.player.add_setting(
            SYNC_SETTING_HTML,
            [{"default": True, "html": SYNC_SETTING_OPTION}],
            lambda *_: self.request_sync(),
        )

    def _remove_control(self) -> None:
        if self.player.has_control(SYNC_CONTROL):
            self.player.remove_control(SYNC_CONTROL)

    def teardown(self, *_: Any) -> bool:
        with self._lock:
            if self.state is LifecycleState.TORN_DOWN:
                return False
            self.publisher.close()
            self.reconciler.close()
            self.player.off(EV_READY, self._on_ready)
            self.player.off(EV_DESTROY, self.teardown)
            released = self.resources.drain()
            self.guard.clear()
            self.state = LifecycleState.TORN_DOWN
        _log(f"sync torn down: released {released} resources", "DEBUG")
        return True

    # --- plugin surface ----------------------------------------------------------------
    def request_sync(self) -> bool:
        return self.publisher.publish_sync_request()

    def set_and_no_publish_seek(self, seek: float) -> bool:
        return self.applier.set_seek_quiet(seek)

    def set_and_no_publish_play(self) -> AutoplayResult | None:
        return self.applier.set_play_quiet()

    def set_and_no_publish_pause(self) -> bool:
        return self.applier.set_pause_quiet()

    def set_and_no_publish_rate(self, rate: float) -> bool:
        return self.applier.set_rate_quiet(rate)

    def status(self) -> dict[str, Any]:
        with self._lock:
            return {
                "name": self.name,
                "state": self.state.value,
                "live": self.live,
                "last_local_seek_at": self.session.last_local_seek_at,
                "messages_sent": self.publisher.sent,
                "checks_sent": self.reconciler.checks_sent,
                "updates_seen": self.reconciler.updates_seen,
                "echo_absorbed": self.guard.absorbed,
                "resources": self.resources.kinds(),
                "autoplay": self.autoplay.value if self.autoplay else None,
            }


def new_sync_plugin(
    publish: PublishFn,
    channel: StatusChannel,
    expire_id: ExpireIdFn = _zero,
    **kwargs: Any,
) -> Callable[[Player], SyncPlugin]:
    """Factory bound to one session; call it with a player to attach a plugin."""

    def install(player: Player) -> SyncPlugin:
        return SyncPlugin(player, publish, channel, expire_id, **kwargs).attach()

    return install
