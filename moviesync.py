# /moviesync.py
# MovieSync - keeps a local player convergent with a shared room status
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import uvicorn
from fastapi import FastAPI

from _logging import log as BASE_LOG
from api import register as register_api
from api.syncAPI import ensure_state
from ms_platform.config_base import config_path, load_config
from ms_platform.sync import SyncPlugin
from ms_platform.sync._types import Player, PublishFn
from providers.publish.http import HttpPublisher


def _log(msg: str, level: str = "INFO") -> None:
    BASE_LOG(str(msg), level=level, module="MAIN")


def _apply_logging_from_config(cfg: dict[str, Any]) -> None:
    rt = cfg.get("runtime") or {}
    BASE_LOG.set_level(str(rt.get("log_level") or "info").lower())
    if rt.get("debug"):
        BASE_LOG.set_level("debug")
    json_path = str(rt.get("log_json") or "").strip()
    if json_path:
        try:
            BASE_LOG.enable_json(json_path)
        except OSError as e:
            _log(f"cannot open JSON log {json_path}: {e}", "WARN")


def attach_player(app: FastAPI, player: Player, publish: PublishFn | None = None) -> SyncPlugin:
    """Bind a player to the app's room status; replaces (and tears down) any previous plugin."""
    ensure_state(app)
    old = getattr(app.state, "sync_plugin", None)
    if isinstance(old, SyncPlugin):
        old.teardown()
    plugin = SyncPlugin(
        player,
        publish or HttpPublisher(),
        app.state.sync_channel,
        app.state.sync_expire,
        notifier=app.state.sync_notifier,
        config=load_config(),
    ).attach()
    app.state.sync_plugin = plugin
    return plugin


@asynccontextmanager
async def _lifespan(app: FastAPI):
    _apply_logging_from_config(load_config())
    ensure_state(app)
    _log(f"config: {config_path()}", "DEBUG")
    try:
        yield
    finally:
        p = getattr(app.state, "sync_plugin", None)
        if isinstance(p, SyncPlugin) and p.teardown():
            _log("sync plugin torn down", "INFO")


def create_app() -> FastAPI:
    app = FastAPI(title="MovieSync", lifespan=_lifespan)
    register_api(app)
    return app


app = create_app()


# Entry point
def main(host: str = "0.0.0.0", port: int = 8788) -> None:
    cfg = load_config()
    debug = bool((cfg.get("runtime") or {}).get("debug"))
    print("\nMovieSync running:")
    print(f"  Local:   http://127.0.0.1:{port}")
    print(f"  Bind:    {host}:{port}")
    print(f"  Config:  {config_path()} (JSON)\n")
    uvicorn.run(app, host=host, port=port, log_level=("debug" if debug else "warning"))


if __name__ == "__main__":
    main()
