# ms_platform/sync/_types.py
# types, protocols and wire messages for playback sync.
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Mapping, Protocol

from pydantic import BaseModel, ConfigDict


# --- events the player emits ---------------------------------------------------
EV_PLAY = "play"
EV_PAUSE = "pause"
EV_SEEK = "seek"
EV_RATE = "ratechange"
EV_READY = "ready"
EV_DESTROY = "destroy"

TRANSPORT_EVENTS = (EV_PLAY, EV_PAUSE, EV_SEEK, EV_RATE)


class SyncError(Exception):
    pass


class PlaybackRejected(SyncError):
    """Raised by players whose play() signals rejection by exception (autoplay policy)."""


class InvalidStatus(SyncError, ValueError):
    pass


@dataclass(frozen=True)
class MovieStatus:
    seek: float = 0.0
    rate: float = 1.0
    playing: bool = False

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "MovieStatus":
        try:
            seek = float(0.0 if data.get("seek") is None else data["seek"])
            rate = float(1.0 if data.get("rate") is None else data["rate"])
        except (TypeError, ValueError) as e:
            raise InvalidStatus(f"bad movie status: {e}") from e
        if seek < 0 or rate <= 0:
            raise InvalidStatus(f"bad movie status: seek={seek} rate={rate}")
        return cls(seek=seek, rate=rate, playing=bool(data.get("playing", False)))

    def replace(self, **fields: Any) -> "MovieStatus":
        return MovieStatus.from_mapping({**self.as_dict(), **fields})

    def as_dict(self) -> dict[str, Any]:
        return {"seek": self.seek, "rate": self.rate, "playing": self.playing}


# --- wire messages ---------------------------------------------------------------
class MessageType(str, Enum):
    PLAY = "PLAY"
    PAUSE = "PAUSE"
    CHANGE_SEEK = "CHANGE_SEEK"
    CHANGE_RATE = "CHANGE_RATE"
    SYNC_MOVIE_STATUS = "SYNC_MOVIE_STATUS"
    CHECK = "CHECK"


class ChangeMovieStatus(BaseModel):
    model_config = ConfigDict(frozen=True)

    playing: bool | None = None
    seek: float
    rate: float


class CheckReq(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: ChangeMovieStatus
    expire_id: int


class OutboundMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: MessageType
    time: int | None = None
    change_movie_status_req: ChangeMovieStatus | None = None
    check_req: CheckReq | None = None

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


PublishFn = Callable[[OutboundMessage], bool]
ExpireIdFn = Callable[[], int]


# --- collaborators ------------------------------------------------------------
class Player(Protocol):
    current_time: float
    playback_rate: float
    muted: bool

    @property
    def playing(self) -> bool: ...
    @property
    def is_live(self) -> bool: ...
    @property
    def duration(self) -> float: ...

    def play(self) -> bool: ...
    def pause(self) -> None: ...

    def on(self, event: str, handler: Callable[..., Any]) -> None: ...
    def off(self, event: str, handler: Callable[..., Any]) -> None: ...
    def once(self, event: str, handler: Callable[..., Any]) -> None: ...

    def has_control(self, name: str) -> bool: ...
    def add_control(self, name: str, html: str, on_click: Callable[[], Any], *, position: str = "right") -> None: ...
    def remove_control(self, name: str) -> None: ...
    def add_setting(self, html: str, options: list[dict[str, Any]], on_select: Callable[..., Any]) -> None: ...


class Notifier(Protocol):
    def notify(self, title: str, message: str, level: str = "info") -> None: ...


class Handle(Protocol):
    def cancel(self) -> None: ...


@dataclass
class SessionState:
    """Per-plugin reconciliation state; last_local_seek_at is epoch seconds."""

    last_local_seek_at: float = 0.0

    def touch_seek(self, now: float) -> None:
        self.last_local_seek_at = float(now)

    def seek_age(self, now: float) -> float:
        return float(now) - self.last_local_seek_at


@dataclass
class SyncSettings:
    debounce: float = 0.5
    seek_debounce: float = 0.5
    seek_tolerance: float = 2.0
    check_interval: float = 10.0
    check_quiet: float = 10.0
    check_tail: float = 5.0
    echo_ttl: float = 2.0
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_config(cls, cfg: Mapping[str, Any] | None) -> "SyncSettings":
        sc = dict(((cfg or {}).get("sync") or {}))

        def _num(key: str, default: float, floor: float = 0.0) -> float:
            try:
                v = float(sc.get(key, default))
            except (TypeError, ValueError):
                v = float(default)
            return max(floor, v)

        known = {"debounce_ms", "seek_debounce_ms", "seek_tolerance", "check_interval", "check_quiet", "check_tail", "echo_ttl"}
        return cls(
            debounce=_num("debounce_ms", 500) / 1000.0,
            seek_debounce=_num("seek_debounce_ms", 500) / 1000.0,
            seek_tolerance=_num("seek_tolerance", 2.0),
            check_interval=_num("check_interval", 10.0, floor=0.05),
            check_quiet=_num("check_quiet", 10.0),
            check_tail=_num("check_tail", 5.0),
            echo_ttl=_num("echo_ttl", 2.0, floor=0.01),
            extra={k: v for k, v in sc.items() if k not in known},
        )


__all__ = [
    "EV_PLAY", "EV_PAUSE", "EV_SEEK", "EV_RATE", "EV_READY", "EV_DESTROY", "TRANSPORT_EVENTS",
    "SyncError", "PlaybackRejected", "InvalidStatus",
    "MovieStatus", "MessageType", "ChangeMovieStatus", "CheckReq", "OutboundMessage",
    "PublishFn", "ExpireIdFn", "Player", "Notifier", "Handle", "SessionState", "SyncSettings",
]
