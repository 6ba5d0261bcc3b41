# _logging.py
# MovieSync - structured logger with colored console output and optional JSON line output.
from __future__ import annotations
import sys, datetime, json, os, threading, time
from pathlib import Path
from typing import Any, Optional, TextIO, Mapping, Dict

from ms_platform.config_base import config_path

RESET = "\033[0m"
DIM = "\033[90m"
RED = "\033[91m"
GREEN = "\033[92m"
YELLOW = "\033[33m"
BLUE = "\033[94m"
CYAN = "\033[96m"

LEVELS = {"off": 100, "silent": 60, "error": 40, "warn": 30, "info": 20, "debug": 10}

# ── runtime debug gate (reads config.json, cached briefly) ────────────────
_CFG_CACHE: Dict[str, Any] | None = None
_CFG_TS: float = 0.0
_CFG_TTL = 5.0

def _config_file() -> Path:
    return config_path()

def _runtime_cfg() -> Dict[str, Any]:
    global _CFG_CACHE, _CFG_TS
    now = time.time()
    if _CFG_CACHE is None or (now - _CFG_TS) > _CFG_TTL:
        try:
            _CFG_CACHE = json.loads(_config_file().read_text(encoding="utf-8"))
        except Exception:
            _CFG_CACHE = {}
        _CFG_TS = now
    rt = (_CFG_CACHE or {}).get("runtime") or {}
    return rt if isinstance(rt, dict) else {}

def _debug_enabled() -> bool:
    env = (os.getenv("MS_DEBUG") or "").strip().lower()
    if env in ("1", "true", "yes", "on"):
        return True
    return bool(_runtime_cfg().get("debug"))

def _env_level(default: str) -> str:
    lvl = (os.getenv("MS_LOG_LEVEL") or "").strip().lower()
    return lvl if lvl in LEVELS else default

class Logger:
    def __init__(
        self,
        stream: TextIO = sys.stdout,
        level: str = "info",
        use_color: bool = True,
        show_time: bool = True,
        time_fmt: str = "%Y-%m-%d %H:%M:%S",
        *,
        _context: Optional[Dict[str, Any]] = None,
        _json_stream: Optional[TextIO] = None,
        _lock: Optional[threading.Lock] = None,
    ):
        self.stream = stream
        self.level_no = LEVELS.get(level, 20)
        self.use_color = use_color
        self.show_time = show_time
        self.time_fmt = time_fmt
        self.tag_color_map = {
            "DEBUG": YELLOW,
            "INFO": BLUE,
            "WARN": YELLOW,
            "ERROR": RED,
            "SUCCESS": GREEN,
            "PUBLISH": CYAN,
        }
        self._context: Dict[str, Any] = dict(_context or {})
        self._json_stream: Optional[TextIO] = _json_stream
        self._lock = _lock or threading.Lock()

    def set_level(self, level: str) -> None:
        self.level_no = LEVELS.get(level, self.level_no)

    def enable_json(self, file_path: str) -> None:
        self._json_stream = open(file_path, "a", encoding="utf-8")

    def bind(self, **ctx: Any) -> "Logger":
        new_ctx = dict(self._context); new_ctx.update(ctx)
        child = Logger(
            stream=self.stream,
            use_color=self.use_color,
            show_time=self.show_time,
            time_fmt=self.time_fmt,
            _context=new_ctx,
            _json_stream=self._json_stream,
            _lock=self._lock,
        )
        child.level_no = self.level_no
        return child

    def child(self, name: str) -> "Logger":
        return self.bind(module=name)

    def _fmt_text(self, label: str, msg: str) -> str:
        # "[MODULE] LEVEL message", optionally with a dim timestamp prefix
        mod = str(self._context.get("module") or "").strip()
        col = self.tag_color_map.get(label.upper()) if self.use_color else None
        lvl = f"{col}{label}{RESET}" if col else label
        line = f"{'[' + mod + ']' if mod else ''} {lvl} {msg}".strip()
        if not self.show_time:
            return line
        ts = datetime.datetime.now().strftime(self.time_fmt)
        return f"{DIM}[{ts}]{RESET} {line}" if self.use_color else f"[{ts}] {line}"

    def _write(self, label: str, msg: str, extra: Optional[Mapping[str, Any]]) -> None:
        text = self._fmt_text(label, msg)
        with self._lock:
            self.stream.write(text + "\n")
            self.stream.flush()
            if self._json_stream:
                payload: Dict[str, Any] = {
                    "ts": datetime.datetime.now(datetime.timezone.utc).isoformat(timespec="milliseconds"),
                    "level": label,
                    "msg": msg,
                    "ctx": self._context,
                }
                if extra:
                    payload["extra"] = dict(extra)
                self._json_stream.write(json.dumps(payload, ensure_ascii=False) + "\n")
                self._json_stream.flush()

    def _emit(self, severity: str, label: str, *parts: Any, extra: Optional[Mapping[str, Any]] = None) -> None:
        env = _env_level("")
        threshold = LEVELS[env] if env else self.level_no
        if severity == "debug":
            if threshold > LEVELS["debug"] and not _debug_enabled():
                return
        elif threshold > LEVELS.get(severity, LEVELS["info"]):
            return
        self._write(label, " ".join(str(p) for p in parts), extra)

    def debug(self, *parts: Any, extra: Optional[Mapping[str, Any]] = None) -> None:
        self._emit("debug", "DEBUG", *parts, extra=extra)

    def info(self, *parts: Any, extra: Optional[Mapping[str, Any]] = None) -> None:
        self._emit("info", "INFO", *parts, extra=extra)

    def warn(self, *parts: Any, extra: Optional[Mapping[str, Any]] = None) -> None:
        self._emit("warn", "WARN", *parts, extra=extra)

    def warning(self, *parts: Any, extra: Optional[Mapping[str, Any]] = None) -> None:
        self.warn(*parts, extra=extra)

    def error(self, *parts: Any, extra: Optional[Mapping[str, Any]] = None) -> None:
        self._emit("error", "ERROR", *parts, extra=extra)

    def success(self, *parts: Any, extra: Optional[Mapping[str, Any]] = None) -> None:
        self._emit("info", "SUCCESS", *parts, extra=extra)

    # Callable adapter: log("text", level="INFO", module="SYNC")
    def __call__(
        self,
        message: str,
        *,
        level: str = "INFO",
        module: Optional[str] = None,
        extra: Optional[Mapping[str, Any]] = None,
    ) -> None:
        target = self.bind(module=module) if module else self
        lvl = (level or "INFO").lower()
        if lvl == "debug":
            target.debug(message, extra=extra)
        elif lvl in ("warn", "warning"):
            target.warn(message, extra=extra)
        elif lvl == "error":
            target.error(message, extra=extra)
        elif lvl == "success":
            target.success(message, extra=extra)
        elif lvl == "info":
            target.info(message, extra=extra)
        else:
            # custom label (e.g. "PUBLISH"): info severity, label kept as given
            target._emit("info", level, message, extra=extra)

# default instance
log = Logger(level=_env_level("info"))

__all__ = ["Logger", "log", "LEVELS", "RESET", "DIM", "RED", "GREEN", "YELLOW", "BLUE", "CYAN"]
