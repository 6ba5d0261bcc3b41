# providers/publish/http.py
# MovieSync - publish outbound sync messages to a room endpoint over HTTP.
from __future__ import annotations

from typing import Any, Callable

import requests

try:
    from _logging import log as BASE_LOG
except Exception:
    BASE_LOG = None

from ms_platform.config_base import load_config
from ms_platform.sync import OutboundMessage

APP_AGENT = "MovieSync/Publish/1.0"


def _log(msg: str, lvl: str = "INFO") -> None:
    if BASE_LOG:
        try:
            BASE_LOG(str(msg), level=lvl, module="HTTPPUB"); return
        except Exception:
            pass
    print(f"{lvl} [HTTPPUB] {msg}")


def _pub_cfg(cfg: dict[str, Any]) -> dict[str, Any]:
    return dict((cfg.get("publish") or {}))


def _hdr(pc: dict[str, Any]) -> dict[str, str]:
    h = {"Content-Type": "application/json", "User-Agent": APP_AGENT}
    room = str(pc.get("room") or "").strip()
    if room: h["X-Room-Id"] = room
    tok = str(pc.get("token") or "").strip()
    if tok: h["Authorization"] = f"Bearer {tok}"
    extra = pc.get("headers") or {}
    if isinstance(extra, dict):
        h.update({str(k): str(v) for k, v in extra.items()})
    return h


class HttpPublisher:
    """Publish callback: POST the message JSON, True when the endpoint accepted it.

    Fire-and-forget; delivery to peers is the endpoint's business, so nothing is retried.
    """

    def __init__(self, cfg_provider: Callable[[], dict[str, Any]] | None = None, session: requests.Session | None = None) -> None:
        self._cfg_provider = cfg_provider or load_config
        self._session = session or requests.Session()
        self.failures = 0

    def __call__(self, msg: OutboundMessage) -> bool:
        return self.send(msg)

    def send(self, msg: OutboundMessage) -> bool:
        pc = _pub_cfg(self._cfg_provider() or {})
        url = str(pc.get("url") or "").strip()
        if not url:
            _log(f"no publish.url configured; dropping {msg.type.value}", "DEBUG")
            return False
        try:
            timeout = float(pc.get("timeout") or 5.0)
        except (TypeError, ValueError):
            timeout = 5.0
        try:
            r = self._session.post(
                url, json=msg.to_wire(), headers=_hdr(pc), timeout=timeout,
                verify=bool(pc.get("verify_ssl", True)),
            )
        except requests.RequestException as e:
            self.failures += 1
            _log(f"publish {msg.type.value} failed (network): {e}", "WARN")
            return False
        if not (200 <= r.status_code < 300):
            self.failures += 1
            _log(f"publish {msg.type.value} rejected {r.status_code}: {(r.text or '')[:200]}", "WARN")
            return False
        return True

    def close(self) -> None:
        self._session.close()


__all__ = ["HttpPublisher"]
