# ms_platform/sync/_applier.py
# reconcile the local player toward an authoritative status without republishing.
from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable

from ._autoplay import AutoplayResult, attempt_play
from ._echo import EchoGuard
from ._types import (
    EV_PAUSE, EV_RATE, EV_SEEK,
    MovieStatus, Notifier, Player, SessionState, SyncSettings,
)

try:
    from _logging import log as BASE_LOG
except Exception:
    BASE_LOG = None


def _log(msg: str, level: str = "INFO") -> None:
    if BASE_LOG is not None:
        try:
            BASE_LOG(str(msg), level=level, module="APPLY")
            return
        except Exception:
            pass
    print(f"{level} [APPLY] {msg}")


RATE = "rate"
SEEK = "seek"
PLAY = "play"
PAUSE = "pause"


@dataclass(frozen=True)
class Correction:
    kind: str
    value: float | None = None


@dataclass(frozen=True)
class Plan:
    corrections: tuple[Correction, ...]
    drift: float = 0.0
    live: bool = False

    def kinds(self) -> list[str]:
        return [c.kind for c in self.corrections]

    def __bool__(self) -> bool:
        return bool(self.corrections)


def _rate_differs(a: float, b: float) -> bool:
    return not math.isclose(float(a), float(b), rel_tol=0.0, abs_tol=1e-6)


def plan(target: MovieStatus, player: Player, tolerance: float = 2.0) -> Plan:
    """Corrections needed to move player to target, in fixed order rate → seek → transport."""
    drift = abs(float(target.seek) - float(player.current_time))
    if player.is_live:
        return Plan((), drift=drift, live=True)

    out: list[Correction] = []
    if _rate_differs(target.rate, player.playback_rate):
        out.append(Correction(RATE, float(target.rate)))
    if drift > tolerance:
        out.append(Correction(SEEK, float(target.seek)))
    if target.playing and not player.playing:
        out.append(Correction(PLAY))
    elif not target.playing and player.playing:
        out.append(Correction(PAUSE))
    return Plan(tuple(out), drift=drift)


class Applier:
    def __init__(
        self,
        player: Player,
        *,
        session: SessionState,
        guard: EchoGuard,
        notifier: Notifier,
        settings: SyncSettings | None = None,
        clock: Callable[[], float] | None = None,
        lock: threading.RLock | None = None,
    ) -> None:
        self.player = player
        self.session = session
        self.guard = guard
        self.notifier = notifier
        self.settings = settings or SyncSettings()
        self._clock = clock or time.time
        self._lock = lock or threading.RLock()
        self.last_plan: Plan | None = None
        self.last_applied: list[str] = []

    # --- guarded setters -----------------------------------------------------------------
    def set_rate_quiet(self, rate: float) -> bool:
        with self._lock:
            if self.player.is_live or not _rate_differs(rate, self.player.playback_rate):
                return False
            with self.guard.suppressed(EV_RATE):
                self.player.playback_rate = float(rate)
            return True

    def set_seek_quiet(self, seek: float) -> bool:
        with self._lock:
            # the comparison itself proves we are tracking, so the liveness clock resets either way
            self.session.touch_seek(self._clock())
            if self.player.is_live or abs(float(self.player.current_time) - float(seek)) <= self.settings.seek_tolerance:
                return False
            with self.guard.suppressed(EV_SEEK):
                self.player.current_time = float(seek)
            return True

    def set_play_quiet(self) -> AutoplayResult | None:
        with self._lock:
            if self.player.is_live or self.player.playing:
                return None
            return attempt_play(self.player, self.notifier, self.guard)

    def set_pause_quiet(self) -> bool:
        with self._lock:
            if self.player.is_live or not self.player.playing:
                return False
            with self.guard.suppressed(EV_PAUSE):
                self.player.pause()
            return True

    # --- whole status ------------------------------------------------------------------------
    def apply(self, target: MovieStatus) -> Plan:
        with self._lock:
            p = plan(target, self.player, self.settings.seek_tolerance)
            self.last_plan = p
            _log(f"syncing toward {target.as_dict()} drift={p.drift:.2f}s corrections={p.kinds()}", "DEBUG")
            self.session.touch_seek(self._clock())
            applied: list[str] = []
            for c in p.corrections:
                if c.kind == RATE:
                    done = self.set_rate_quiet(float(c.value))
                elif c.kind == SEEK:
                    done = self.set_seek_quiet(float(c.value))
                elif c.kind == PLAY:
                    done = self.set_play_quiet() is not None
                else:
                    done = self.set_pause_quiet()
                if done:
                    applied.append(c.kind)
            self.last_applied = applied
            return p


__all__ = ["Correction", "Plan", "plan", "Applier", "RATE", "SEEK", "PLAY", "PAUSE"]
