"""
tests.test_api
~~~~~~~~~~~~~~

HTTP 与 WebSocket 端点集成测试（FastAPI ``TestClient``，会触发 lifespan）。
"""
from __future__ import annotations

from fastapi.testclient import TestClient

from roomchat.main import app


def test_health() -> None:
    with TestClient(app) as client:
        response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_rooms_listing_contains_lobby() -> None:
    with TestClient(app) as client:
        body = client.get("/api/rooms").json()

    assert body["code"] == 200
    lobby = next(room for room in body["data"] if room["name"] == "lobby")
    assert lobby["is_lobby"] is True


def test_lobby_status() -> None:
    with TestClient(app) as client:
        body = client.get("/api/lobby").json()

    assert body["data"]["duration"] == 300
    assert 0 < body["data"]["remaining"] <= 300


def test_websocket_login_join_and_chat() -> None:
    with TestClient(app) as client:
        with client.websocket_connect("/chat") as ws:
            ws.send_text("__login__alice")
            assert ws.receive_text() == "__login_ok__"
            assert ws.receive_text().startswith("__rooms__lobby")

            ws.send_text("__join__general")
            ws.send_text("hi")
            assert ws.receive_text() == "alice: hi"

        rooms = client.get("/api/rooms").json()["data"]

    general = next(room for room in rooms if room["name"] == "general")
    assert general["history_size"] == 1


def test_websocket_join_lobby_receives_timer() -> None:
    with TestClient(app) as client:
        with client.websocket_connect("/chat") as ws:
            ws.send_text("__join__lobby")
            frame = ws.receive_text()

    assert frame.startswith("__lobby_tick__")
    assert 0 < int(frame.removeprefix("__lobby_tick__")) <= 300
