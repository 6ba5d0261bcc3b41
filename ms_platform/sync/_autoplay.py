# ms_platform/sync/_autoplay.py
# play with a single muted retry when the engine rejects autoplay.
from __future__ import annotations

from enum import Enum

from ._echo import EchoGuard
from ._types import EV_PLAY, Notifier, PlaybackRejected, Player

try:
    from _logging import log as BASE_LOG
except Exception:
    BASE_LOG = None


def _log(msg: str, level: str = "INFO") -> None:
    if BASE_LOG is not None:
        try:
            BASE_LOG(str(msg), level=level, module="AUTOPLAY")
            return
        except Exception:
            pass
    print(f"{level} [AUTOPLAY] {msg}")


MUTED_TITLE = "Notice"
MUTED_MESSAGE = "Playback was muted by the autoplay policy; turn the sound back on manually."
FAILED_TITLE = "Autoplay failed, press the sync button to resume manually"


class AutoplayResult(str, Enum):
    PLAYED = "played"
    PLAYED_MUTED = "played_muted"
    FAILED = "failed"


def _try_play(player: Player, guard: EchoGuard | None) -> tuple[bool, str]:
    if guard is not None:
        guard.arm(EV_PLAY)
    try:
        ok = bool(player.play())
        reason = "" if ok else "play() was rejected"
    except PlaybackRejected as e:
        ok, reason = False, str(e) or "play() was rejected"
    except Exception as e:
        ok, reason = False, f"{type(e).__name__}: {e}"
    if not ok and guard is not None:
        # no play event follows a rejected play()
        guard.disarm(EV_PLAY)
    return ok, reason


def attempt_play(player: Player, notifier: Notifier, guard: EchoGuard | None = None) -> AutoplayResult:
    ok, reason = _try_play(player, guard)
    if ok:
        return AutoplayResult.PLAYED

    _log(f"play rejected ({reason}); retrying muted", "DEBUG")
    player.muted = True
    ok, reason = _try_play(player, guard)
    if ok:
        notifier.notify(MUTED_TITLE, MUTED_MESSAGE, "info")
        return AutoplayResult.PLAYED_MUTED

    player.muted = False
    _log(f"muted retry rejected: {reason}", "WARN")
    notifier.notify(FAILED_TITLE, reason, "error")
    return AutoplayResult.FAILED


__all__ = ["AutoplayResult", "attempt_play", "MUTED_TITLE", "MUTED_MESSAGE", "FAILED_TITLE"]
