# /api/syncAPI.py
# MovieSync - authoritative status + plugin control API
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, HTTPException, Request
from pydantic import BaseModel

from ms_platform.sync import ExpireCounter, InvalidStatus, MemoryNotifier, StatusChannel, SyncPlugin

try:
    from _logging import log as BASE_LOG
except Exception:
    BASE_LOG = None

__all__ = ["router", "StatusIn", "ensure_state"]

router = APIRouter(prefix="/api/sync", tags=["sync"])


def _log(msg: str, level: str = "INFO") -> None:
    if BASE_LOG is not None:
        try:
            BASE_LOG(str(msg), level=level, module="SYNCAPI")
            return
        except Exception:
            pass
    print(f"{level} [SYNCAPI] {msg}")


class StatusIn(BaseModel):
    seek: float | None = None
    rate: float | None = None
    playing: bool | None = None


def ensure_state(app: Any) -> None:
    st = app.state
    if not isinstance(getattr(st, "sync_channel", None), StatusChannel):
        st.sync_channel = StatusChannel()
    if not isinstance(getattr(st, "sync_expire", None), ExpireCounter):
        st.sync_expire = ExpireCounter()
    if getattr(st, "sync_notifier", None) is None:
        st.sync_notifier = MemoryNotifier()
    if not hasattr(st, "sync_plugin"):
        st.sync_plugin = None


def _channel(request: Request) -> StatusChannel:
    ensure_state(request.app)
    return request.app.state.sync_channel


def _plugin(request: Request) -> SyncPlugin:
    ensure_state(request.app)
    p = request.app.state.sync_plugin
    if not isinstance(p, SyncPlugin):
        raise HTTPException(status_code=404, detail="no sync plugin attached")
    return p


def _status_payload(request: Request) -> dict[str, Any]:
    ch = _channel(request)
    return {"status": ch.current.as_dict(), "version": ch.version, "expire_id": request.app.state.sync_expire()}


@router.get("/status")
def get_status(request: Request) -> dict[str, Any]:
    return _status_payload(request)


@router.post("/status")
def post_status(request: Request, body: StatusIn = Body(...)) -> dict[str, Any]:
    ch = _channel(request)
    fields = body.model_dump(exclude_none=True)
    try:
        changed = ch.update(**fields)
    except InvalidStatus as e:
        raise HTTPException(status_code=400, detail=str(e))
    if changed:
        _log(f"status update {fields} -> v{ch.version}", "DEBUG")
    return {"ok": True, "changed": changed, **_status_payload(request)}


@router.post("/expire")
def bump_expire(request: Request) -> dict[str, Any]:
    ensure_state(request.app)
    return {"ok": True, "expire_id": request.app.state.sync_expire.bump()}


@router.get("/plugin")
def plugin_status(request: Request) -> dict[str, Any]:
    return _plugin(request).status()


@router.post("/request")
def request_sync(request: Request) -> dict[str, Any]:
    ok = _plugin(request).request_sync()
    return {"ok": ok}


@router.get("/notices")
def notices(request: Request) -> dict[str, Any]:
    ensure_state(request.app)
    n = request.app.state.sync_notifier
    items = n.recent() if isinstance(n, MemoryNotifier) else []
    return {"notices": items}
