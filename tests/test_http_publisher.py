# MovieSync test scripts
from __future__ import annotations

import json

import requests
import responses

from ms_platform.sync import ChangeMovieStatus, MessageType, OutboundMessage
from providers.publish.http import APP_AGENT, HttpPublisher

URL = "https://room.example/api/room/abc/message"


def _cfg(**over):
    pc = {"url": URL, "room": "abc", "token": "t0k", "timeout": 3, "verify_ssl": True, "headers": {"X-Client": "test"}}
    pc.update(over)
    return lambda: {"publish": pc}


def _play() -> OutboundMessage:
    return OutboundMessage(
        type=MessageType.PLAY,
        time=1_700_000_000_000,
        change_movie_status_req=ChangeMovieStatus(playing=True, seek=12.0, rate=1.0),
    )


def test_posts_wire_json_with_headers() -> None:
    pub = HttpPublisher(_cfg())
    with responses.RequestsMock() as rsps:
        rsps.add(responses.POST, URL, json={"ok": True}, status=200)
        assert pub(_play()) is True

        req = rsps.calls[0].request
        assert json.loads(req.body) == {
            "type": "PLAY",
            "time": 1_700_000_000_000,
            "change_movie_status_req": {"playing": True, "seek": 12.0, "rate": 1.0},
        }
        assert req.headers["Authorization"] == "Bearer t0k"
        assert req.headers["X-Room-Id"] == "abc"
        assert req.headers["X-Client"] == "test"
        assert req.headers["User-Agent"] == APP_AGENT
    assert pub.failures == 0


def test_sync_request_body_has_type_only() -> None:
    pub = HttpPublisher(_cfg(token="", room=""))
    with responses.RequestsMock() as rsps:
        rsps.add(responses.POST, URL, status=204)
        assert pub.send(OutboundMessage(type=MessageType.SYNC_MOVIE_STATUS)) is True
        req = rsps.calls[0].request
        assert json.loads(req.body) == {"type": "SYNC_MOVIE_STATUS"}
        assert "Authorization" not in req.headers
        assert "X-Room-Id" not in req.headers


def test_rejection_and_network_errors_return_false() -> None:
    pub = HttpPublisher(_cfg())
    with responses.RequestsMock() as rsps:
        rsps.add(responses.POST, URL, body="room closed", status=410)
        rsps.add(responses.POST, URL, body=requests.ConnectionError("down"))
        assert pub(_play()) is False
        assert pub(_play()) is False
        assert len(rsps.calls) == 2
    assert pub.failures == 2


def test_no_url_drops_without_request() -> None:
    pub = HttpPublisher(_cfg(url=""))
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        assert pub(_play()) is False
        assert len(rsps.calls) == 0
    assert pub.failures == 0
