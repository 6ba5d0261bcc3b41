# MovieSync test scripts
from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

os.environ.setdefault("MS_LOG_LEVEL", "off")

from ms_platform.sync import OutboundMessage  # noqa: E402


class ManualClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = float(start)

    def __call__(self) -> float:
        return self.now


class FakeHandle:
    def __init__(self) -> None:
        self.cancelled = False
        self.cancel_calls = 0

    def cancel(self) -> None:
        self.cancel_calls += 1
        self.cancelled = True


@dataclass
class _Timer:
    due: float
    seq: int
    fn: Callable[..., Any]
    args: tuple[Any, ...]
    handle: FakeHandle
    interval: float | None = None


class ManualScheduler:
    """Scheduler driven by advance(); fires due timers in order on the test thread."""

    def __init__(self, clock: ManualClock) -> None:
        self.clock = clock
        self._timers: list[_Timer] = []
        self._seq = 0

    def _add(self, delay: float, fn: Callable[..., Any], args: tuple[Any, ...], interval: float | None) -> FakeHandle:
        self._seq += 1
        h = FakeHandle()
        self._timers.append(_Timer(self.clock.now + delay, self._seq, fn, args, h, interval))
        return h

    def call_later(self, delay: float, fn: Callable[..., Any], *args: Any) -> FakeHandle:
        return self._add(float(delay), fn, args, None)

    def call_every(self, interval: float, fn: Callable[[], Any]) -> FakeHandle:
        return self._add(float(interval), fn, (), float(interval))

    def pending(self) -> int:
        return sum(1 for t in self._timers if not t.handle.cancelled)

    def advance(self, dt: float) -> None:
        target = self.clock.now + float(dt)
        while True:
            live = [t for t in self._timers if not t.handle.cancelled and t.due <= target + 1e-6]
            if not live:
                break
            t = min(live, key=lambda x: (x.due, x.seq))
            self.clock.now = max(self.clock.now, t.due)
            if t.interval is None:
                self._timers.remove(t)
            else:
                t.due += t.interval
            t.fn(*t.args)
        self._timers = [t for t in self._timers if not t.handle.cancelled]
        self.clock.now = target


class FakePlayer:
    """In-memory player that fires its own events the way a browser video element does."""

    def __init__(
        self, *, live: bool = False, duration: float = 600.0, reject_play: int = 0, lag: tuple[str, ...] = (),
    ) -> None:
        self._listeners: dict[str, list[tuple[Callable[..., Any], bool]]] = {}
        self._time = 0.0
        self._rate = 1.0
        self._playing = False
        self._live = live
        self._duration = duration
        self.reject_play = reject_play
        self.muted = False
        self.play_calls = 0
        self.controls: dict[str, tuple[str, Callable[[], Any], str]] = {}
        self.settings: list[tuple[str, list[dict[str, Any]], Callable[..., Any]]] = []
        self.fired: list[str] = []
        # events named in lag are queued until deliver(), like an engine that reports asynchronously
        self.lag = tuple(lag)
        self.queued: list[str] = []

    # state
    @property
    def current_time(self) -> float:
        return self._time

    @current_time.setter
    def current_time(self, v: float) -> None:
        self._time = float(v)
        self.emit("seek")

    @property
    def playback_rate(self) -> float:
        return self._rate

    @playback_rate.setter
    def playback_rate(self, v: float) -> None:
        self._rate = float(v)
        self.emit("ratechange")

    @property
    def playing(self) -> bool:
        return self._playing

    @property
    def is_live(self) -> bool:
        return self._live

    @property
    def duration(self) -> float:
        return self._duration

    def play(self) -> bool:
        self.play_calls += 1
        if self.reject_play > 0:
            self.reject_play -= 1
            return False
        if not self._playing:
            self._playing = True
            self.emit("play")
        return True

    def pause(self) -> None:
        if self._playing:
            self._playing = False
            self.emit("pause")

    def advance_playback(self, seconds: float) -> None:
        if self._playing:
            self._time += seconds * self._rate

    # events
    def on(self, event: str, handler: Callable[..., Any]) -> None:
        self._listeners.setdefault(event, []).append((handler, False))

    def once(self, event: str, handler: Callable[..., Any]) -> None:
        self._listeners.setdefault(event, []).append((handler, True))

    def off(self, event: str, handler: Callable[..., Any]) -> None:
        self._listeners[event] = [e for e in self._listeners.get(event, []) if e[0] != handler]

    def emit(self, event: str, *args: Any) -> None:
        if event in self.lag:
            self.queued.append(event)
            return
        self._dispatch(event, *args)

    def deliver(self) -> None:
        queued, self.queued = self.queued, []
        for event in queued:
            self._dispatch(event)

    def _dispatch(self, event: str, *args: Any) -> None:
        self.fired.append(event)
        for entry in list(self._listeners.get(event, [])):
            handler, once = entry
            if once and entry in self._listeners.get(event, []):
                self._listeners[event].remove(entry)
            handler(*args)

    def listener_count(self, event: str | None = None) -> int:
        if event is not None:
            return len(self._listeners.get(event, []))
        return sum(len(v) for v in self._listeners.values())

    # controls
    def has_control(self, name: str) -> bool:
        return name in self.controls

    def add_control(self, name: str, html: str, on_click: Callable[[], Any], *, position: str = "right") -> None:
        if name in self.controls:
            raise ValueError(f"duplicate control {name}")
        self.controls[name] = (html, on_click, position)

    def remove_control(self, name: str) -> None:
        self.controls.pop(name, None)

    def add_setting(self, html: str, options: list[dict[str, Any]], on_select: Callable[..., Any]) -> None:
        self.settings.append((html, options, on_select))

    def click(self, name: str) -> Any:
        return self.controls[name][1]()


@dataclass
class Outbox:
    messages: list[OutboundMessage] = field(default_factory=list)
    accept: bool = True

    def __call__(self, msg: OutboundMessage) -> bool:
        self.messages.append(msg)
        return self.accept

    def types(self) -> list[str]:
        return [m.type.value for m in self.messages]

    def clear(self) -> None:
        self.messages.clear()


@dataclass
class Notices:
    items: list[tuple[str, str, str]] = field(default_factory=list)

    def notify(self, title: str, message: str, level: str = "info") -> None:
        self.items.append((title, str(message), level))

    def levels(self) -> list[str]:
        return [lvl for _, _, lvl in self.items]


@pytest.fixture()
def config_base(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setenv("CONFIG_BASE", str(tmp_path))
    return tmp_path


@pytest.fixture()
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture()
def sched(clock: ManualClock) -> ManualScheduler:
    return ManualScheduler(clock)


@pytest.fixture()
def player() -> FakePlayer:
    return FakePlayer()


@pytest.fixture()
def outbox() -> Outbox:
    return Outbox()


@pytest.fixture()
def notices() -> Notices:
    return Notices()


@pytest.fixture()
def make_player() -> Callable[..., FakePlayer]:
    return FakePlayer
