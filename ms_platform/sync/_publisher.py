# ms_platform/sync/_publisher.py
# outbound status messages built from the local player.
from __future__ import annotations

import threading
import time
from typing import Any, Callable

from ._debounce import DebouncePool, Debouncer
from ._echo import EchoGuard
from ._scheduler import Scheduler
from ._types import (
    EV_PAUSE, EV_PLAY, EV_RATE, EV_SEEK,
    ChangeMovieStatus, CheckReq, ExpireIdFn, MessageType, OutboundMessage,
    Player, PublishFn, SessionState, SyncSettings,
)

try:
    from _logging import log as BASE_LOG
except Exception:
    BASE_LOG = None


def _log(msg: str, level: str = "INFO") -> None:
    if BASE_LOG is not None:
        try:
            BASE_LOG(str(msg), level=level, module="PUBLISH")
            return
        except Exception:
            pass
    print(f"{level} [PUBLISH] {msg}")


PLAYING_STATUS = "playing_status"


class Publisher:
    def __init__(
        self,
        player: Player,
        publish: PublishFn,
        *,
        session: SessionState,
        guard: EchoGuard,
        settings: SyncSettings | None = None,
        expire_id: ExpireIdFn | None = None,
        clock: Callable[[], float] | None = None,
        scheduler: Scheduler | None = None,
        lock: threading.RLock | None = None,
    ) -> None:
        self.player = player
        self._publish = publish
        self.session = session
        self.guard = guard
        self.settings = settings or SyncSettings()
        self._expire_id = expire_id or (lambda: 0)
        self._clock = clock or time.time
        self._lock = lock or threading.RLock()
        self.sent = 0
        self.closed = False

        # play and pause share one window, so play→pause→play collapses to the last one
        self._pool = DebouncePool(self.settings.debounce, scheduler)
        self.publish_play_debounce = self._pool.wrap(PLAYING_STATUS, self.publish_play)
        self.publish_pause_debounce = self._pool.wrap(PLAYING_STATUS, self.publish_pause)
        self._seek = Debouncer(self.settings.seek_debounce, self.publish_seek, scheduler)

    # --- helpers -----------------------------------------------------------------
    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def _status(self, *, playing: bool | None) -> ChangeMovieStatus:
        return ChangeMovieStatus(
            playing=playing,
            seek=float(self.player.current_time),
            rate=float(self.player.playback_rate),
        )

    def _send(self, msg: OutboundMessage) -> bool:
        if self.closed:
            _log(f"dropping {msg.type.value}: publisher closed", "DEBUG")
            return False
        try:
            ok = bool(self._publish(msg))
        except Exception as e:
            _log(f"publish {msg.type.value} failed: {e}", "ERROR")
            return False
        self.sent += 1
        _log(f"{msg.type.value} queued={ok} {msg.to_wire()}", "DEBUG")
        return ok

    # --- emitters ------------------------------------------------------------------
    def publish_play(self) -> bool:
        with self._lock:
            _log(f"video play, seek={self.player.current_time}", "DEBUG")
            return self._send(OutboundMessage(
                type=MessageType.PLAY,
                time=self._now_ms(),
                change_movie_status_req=self._status(playing=True),
            ))

    def publish_pause(self) -> bool:
        with self._lock:
            _log(f"video pause, seek={self.player.current_time}", "DEBUG")
            return self._send(OutboundMessage(
                type=MessageType.PAUSE,
                time=self._now_ms(),
                change_movie_status_req=self._status(playing=False),
            ))

    def publish_seek(self) -> bool:
        # playing is left out: the player flips it transiently while seeking
        with self._lock:
            _log(f"video seek, seek={self.player.current_time}", "DEBUG")
            return self._send(OutboundMessage(
                type=MessageType.CHANGE_SEEK,
                time=self._now_ms(),
                change_movie_status_req=self._status(playing=None),
            ))

    def publish_seek_debounce(self) -> None:
        with self._lock:
            self.session.touch_seek(self._clock())
            self._seek()

    def publish_rate(self) -> bool:
        with self._lock:
            _log(f"video rate {self.player.playback_rate}, seek={self.player.current_time}", "DEBUG")
            return self._send(OutboundMessage(
                type=MessageType.CHANGE_RATE,
                time=self._now_ms(),
                change_movie_status_req=self._status(playing=bool(self.player.playing)),
            ))

    def publish_sync_request(self) -> bool:
        with self._lock:
            return self._send(OutboundMessage(type=MessageType.SYNC_MOVIE_STATUS))

    def publish_check(self) -> bool:
        with self._lock:
            return self._send(OutboundMessage(
                type=MessageType.CHECK,
                time=self._now_ms(),
                check_req=CheckReq(
                    status=self._status(playing=bool(self.player.playing)),
                    expire_id=int(self._expire_id()),
                ),
            ))

    # --- player event handlers -------------------------------------------------------
    def on_play(self, *_: Any) -> None:
        with self._lock:
            if self.closed or self.guard.absorb(EV_PLAY):
                return
            self.publish_play_debounce()

    def on_pause(self, *_: Any) -> None:
        with self._lock:
            if self.closed or self.guard.absorb(EV_PAUSE):
                return
            self.publish_pause_debounce()

    def on_seek(self, *_: Any) -> None:
        with self._lock:
            if self.closed or self.guard.absorb(EV_SEEK):
                return
            self.publish_seek_debounce()

    def on_ratechange(self, *_: Any) -> None:
        with self._lock:
            if self.closed or self.guard.absorb(EV_RATE):
                return
            self.publish_rate()

    def handlers(self) -> dict[str, Callable[..., None]]:
        return {EV_PLAY: self.on_play, EV_PAUSE: self.on_pause, EV_SEEK: self.on_seek, EV_RATE: self.on_ratechange}

    def cancel(self) -> None:
        self._pool.cancel_all()
        self._seek.cancel()

    def close(self) -> None:
        """Stop publishing; a flush already waiting on the lock sends nothing."""
        with self._lock:
            self.closed = True
            self.cancel()


__all__ = ["Publisher", "PLAYING_STATUS"]
