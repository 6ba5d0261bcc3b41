# MovieSync test scripts
from __future__ import annotations

from fastapi.testclient import TestClient


def _client():
    from moviesync import create_app

    app = create_app()
    return app, TestClient(app)


def test_status_roundtrip_and_validation(config_base) -> None:
    app, client = _client()
    with client:
        r = client.get("/api/sync/status")
        assert r.status_code == 200
        assert r.json()["status"] == {"seek": 0.0, "rate": 1.0, "playing": False}
        assert r.json()["version"] == 0

        r = client.post("/api/sync/status", json={"seek": 42.5, "playing": True})
        assert r.status_code == 200
        body = r.json()
        assert body["changed"] is True
        assert body["status"] == {"seek": 42.5, "rate": 1.0, "playing": True}
        assert body["version"] == 1

        r = client.post("/api/sync/status", json={"seek": 42.5})
        assert r.json()["changed"] is False

        r = client.post("/api/sync/status", json={"rate": 0})
        assert r.status_code == 400
        assert client.get("/api/sync/status").json()["status"]["rate"] == 1.0


def test_expire_bump(config_base) -> None:
    _, client = _client()
    with client:
        assert client.post("/api/sync/expire").json()["expire_id"] == 1
        assert client.post("/api/sync/expire").json()["expire_id"] == 2
        assert client.get("/api/sync/status").json()["expire_id"] == 2


def test_plugin_endpoints_need_attached_player(config_base) -> None:
    _, client = _client()
    with client:
        assert client.get("/api/sync/plugin").status_code == 404
        assert client.post("/api/sync/request").status_code == 404


def test_attached_player_follows_posted_status(config_base, make_player, outbox) -> None:
    from moviesync import attach_player

    app, client = _client()
    with client:
        player = make_player(reject_play=1)
        plugin = attach_player(app, player, publish=outbox)
        player.emit("ready")

        client.post("/api/sync/status", json={"seek": 120.0, "playing": True})
        assert player.current_time == 120.0
        assert player.playing is True
        assert player.muted is True

        info = client.get("/api/sync/plugin").json()
        assert info["state"] == "active"
        assert info["updates_seen"] == 1

        assert client.post("/api/sync/request").json() == {"ok": True}
        assert outbox.types() == ["SYNC_MOVIE_STATUS"]

        notices = client.get("/api/sync/notices").json()["notices"]
        assert [n["level"] for n in notices] == ["info"]

        # a second player replaces the first and tears it down
        other = make_player()
        attach_player(app, other, publish=outbox)
        assert plugin.state.value == "torn_down"
        assert player.listener_count("seek") == 0

    assert app.state.sync_plugin.state.value == "torn_down"
