# ms_platform/config_base.py
# MovieSync - configuration file handling (config.json + defaults)
from __future__ import annotations

import copy
import json
import os
import secrets
import threading
import time
from pathlib import Path
from typing import Any, Dict

# ------------------------------------------------------------
# Base dir resolution
# ------------------------------------------------------------
def CONFIG_BASE() -> Path:
    """
    Determine the base directory for config files.

    Priority:
      1) $CONFIG_BASE if set
      2) /config (when running in a container that mounts /config)
      3) Project root (one level up from this file)
    """
    env = os.getenv("CONFIG_BASE")
    if env:
        return Path(env)

    if Path("/app").exists():
        return Path("/config")

    return Path(__file__).resolve().parents[1]

# Default config structure
DEFAULT_CFG: Dict[str, Any] = {
    "runtime": {
        "debug": False,                                 # Emit DEBUG lines
        "log_level": "info",                            # off | error | warn | info | debug
        "log_json": "",                                 # Optional JSON-lines log file
    },

    # --- Playback reconciliation ------------------------------------------------
    "sync": {
        "debounce_ms": 500,                             # Quiet window for play/pause publishing
        "seek_debounce_ms": 500,                        # Quiet window for seek publishing
        "seek_tolerance": 2.0,                          # Drift (seconds) ignored when applying remote seek
        "check_interval": 10.0,                         # Period (seconds) of the CHECK heartbeat
        "check_quiet": 10.0,                            # No CHECK while a local seek is younger than this
        "check_tail": 5.0,                              # No CHECK when fewer seconds than this remain
        "echo_ttl": 2.0,                                # Seconds an armed echo guard waits for its event
    },

    # --- Outbound transport -----------------------------------------------------
    "publish": {
        "url": "",                                      # http(s)://host/api/room/<id>/message (empty = disabled)
        "room": "",                                     # Room / session identifier, sent as header
        "token": "",                                    # Optional bearer token
        "timeout": 5.0,                                 # HTTP timeout (seconds)
        "verify_ssl": True,                             # Verify TLS certificates
        "headers": {},                                  # Extra headers
    },
}


def _cfg_file() -> Path:
    return CONFIG_BASE() / "config.json"

def config_path() -> Path:
    """Public accessor for the active config.json path."""
    return _cfg_file()


def _read_json(p: Path) -> Dict[str, Any]:
    with p.open("r", encoding="utf-8") as f:
        return json.load(f)


def _write_json_atomic(p: Path, data: Dict[str, Any]) -> None:
    p.parent.mkdir(parents=True, exist_ok=True)
    suffix = f".{time.time_ns()}.{os.getpid()}.{threading.get_ident()}.{secrets.token_hex(4)}.tmp"
    tmp = p.with_suffix(suffix)

    with tmp.open("w", encoding="utf-8", newline="\n") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
        f.write("\n")
    tmp.replace(p)


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    out = copy.deepcopy(base)
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _deep_merge(out[k], v)  # type: ignore[assignment]
        else:
            out[k] = v
    return out


def load_config() -> Dict[str, Any]:
    """
    Read config.json merged over DEFAULT_CFG
    """
    p = _cfg_file()
    user_cfg: Dict[str, Any] = {}
    if p.exists():
        try:
            user_cfg = _read_json(p)
        except Exception:
            user_cfg = {}
    if not isinstance(user_cfg, dict):
        user_cfg = {}
    return _deep_merge(DEFAULT_CFG, user_cfg)


def save_config(cfg: Dict[str, Any]) -> None:
    """
    Write to config.json
    """
    _write_json_atomic(_cfg_file(), dict(cfg or {}))


__all__ = ["CONFIG_BASE", "DEFAULT_CFG", "config_path", "load_config", "save_config"]
