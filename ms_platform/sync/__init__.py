# Public surface of the playback sync package.
from ._types import (
    MovieStatus,
    MessageType,
    OutboundMessage,
    ChangeMovieStatus,
    CheckReq,
    SyncSettings,
    SessionState,
    SyncError,
    PlaybackRejected,
    InvalidStatus,
)
from ._debounce import Debouncer, DebouncePool, debounce, debounces
from ._echo import EchoGuard
from ._status import StatusChannel, ExpireCounter
from ._scheduler import ThreadScheduler, TimerHandle
from ._autoplay import AutoplayResult, attempt_play
from ._applier import plan, Plan, Correction
from ._notify import LogNotifier, MemoryNotifier
from .facade import SyncPlugin, LifecycleState, new_sync_plugin

__all__ = [
    "MovieStatus", "MessageType", "OutboundMessage", "ChangeMovieStatus", "CheckReq",
    "SyncSettings", "SessionState", "SyncError", "PlaybackRejected", "InvalidStatus",
    "Debouncer", "DebouncePool", "debounce", "debounces",
    "EchoGuard", "StatusChannel", "ExpireCounter", "ThreadScheduler", "TimerHandle",
    "AutoplayResult", "attempt_play", "plan", "Plan", "Correction",
    "LogNotifier", "MemoryNotifier",
    "SyncPlugin", "LifecycleState", "new_sync_plugin",
]
