import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from tests.helpers import register


def test_ws_rejects_bad_token(app):
    with TestClient(app) as client:
        with pytest.raises(WebSocketDisconnect) as exc:
            with client.websocket_connect("/ws?token=bogus") as ws:
                ws.receive_text()
        assert exc.value.code == 1008


def test_ws_rejects_missing_token(app):
    with TestClient(app) as client:
        with pytest.raises(WebSocketDisconnect) as exc:
            with client.websocket_connect("/ws") as ws:
                ws.receive_text()
        assert exc.value.code == 1008


def test_ws_ping_pong_and_presence(app):
    with TestClient(app) as client:
        a_id, _, a_token = register(client, "Alice")
        b_id, _, b_token = register(client, "Bob")

        with client.websocket_connect(f"/ws?token={a_token}") as a_ws:
            assert a_ws.receive_json() == {"type": "user_status", "data": {"userId": a_id, "status": "ONLINE"}}

            with client.websocket_connect(f"/ws?token={b_token}") as b_ws:
                assert b_ws.receive_json()["data"] == {"userId": b_id, "status": "ONLINE"}
                assert a_ws.receive_json()["data"] == {"userId": b_id, "status": "ONLINE"}

                a_ws.send_text('{"type":"ping","data":""}')
                assert a_ws.receive_text() == '{"type":"pong","data":""}'

                services = app.state.services
                assert services.connection_manager.get_total_connections() == 2
                r = client.get("/health")
                assert r.json()["total_connections"] == 2


def test_ws_signal_relay(app):
    with TestClient(app) as client:
        a_id, _, a_token = register(client, "Alice")
        b_id, _, b_token = register(client, "Bob")

        with client.websocket_connect(f"/ws?token={a_token}") as a_ws:
            a_ws.receive_json()
            with client.websocket_connect(f"/ws?token={b_token}") as b_ws:
                b_ws.receive_json()
                a_ws.receive_json()

                a_ws.send_json({
                    "type": "webrtc_offer",
                    "data": {"callId": None, "fromUserId": a_id, "toUserId": b_id, "signal": "SDP-XYZ"},
                })
                frame = b_ws.receive_json()
                assert frame["type"] == "webrtc_offer"
                assert frame["data"]["signal"] == "SDP-XYZ"
