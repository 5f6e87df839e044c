"""End to end: POST /api/messages reaches the receiver's /ws sessions."""

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from unilink.domain.value_objects.user_id import UserId
from unilink.infrastructure.realtime.notification_bus import (
    CLOSE_AUTH_TIMEOUT,
    NotificationBus,
)

from tests.fakes import wait_for

BOB = UserId("bob")


def test_receiver_is_notified_over_websocket(client, bus, auth_headers):
    with client.websocket_connect("/ws") as ws:
        ws.send_json({"type": "auth", "userId": "bob"})
        wait_for(lambda: len(bus.channels_for(BOB)) == 1)

        res = client.post(
            "/api/messages",
            headers=auth_headers,
            json={"receiverId": "bob", "content": "Lunch at noon?"},
        )
        frame = ws.receive_json()

    assert res.status_code == 200
    assert frame["type"] == "new_message"
    assert frame["data"]["content"] == "Lunch at noon?"
    assert frame["data"]["receiverId"] == "bob"
    assert frame["data"]["id"] == res.json()["id"]


def test_two_tabs_both_receive(client, bus, auth_headers):
    with client.websocket_connect("/ws") as first, client.websocket_connect("/ws") as second:
        first.send_json({"type": "auth", "userId": "bob"})
        second.send_json({"type": "auth", "userId": "bob"})
        wait_for(lambda: len(bus.channels_for(BOB)) == 2)

        client.post(
            "/api/messages",
            headers=auth_headers,
            json={"receiverId": "bob", "content": "Hi"},
        )

        assert first.receive_json()["data"]["content"] == "Hi"
        assert second.receive_json()["data"]["content"] == "Hi"


def test_malformed_frame_keeps_socket_open(client, bus, auth_headers):
    with client.websocket_connect("/ws") as ws:
        ws.send_text("definitely not json")
        ws.send_bytes(b'{"type": "auth"}')
        ws.send_json({"type": "auth", "userId": "bob"})
        wait_for(lambda: len(bus.channels_for(BOB)) == 1)

        client.post(
            "/api/messages",
            headers=auth_headers,
            json={"receiverId": "bob", "content": "still here?"},
        )

        assert ws.receive_json()["data"]["content"] == "still here?"


def test_disconnect_removes_channel(client, bus):
    with client.websocket_connect("/ws") as ws:
        ws.send_json({"type": "auth", "userId": "bob"})
        wait_for(lambda: len(bus.channels_for(BOB)) == 1)

    wait_for(lambda: bus.channel_count == 0)
    assert bus.connected_users() == set()


def test_unauthenticated_socket_is_closed_after_timeout(make_app):
    quick_bus = NotificationBus(auth_timeout=0.2, max_unauthenticated=10, send_buffer_size=10)
    app = make_app(notification_bus=quick_bus)

    with TestClient(app) as client:
        with client.websocket_connect("/ws") as ws:
            with pytest.raises(WebSocketDisconnect) as exc_info:
                ws.receive_text()

    assert exc_info.value.code == CLOSE_AUTH_TIMEOUT
    assert quick_bus.channel_count == 0
