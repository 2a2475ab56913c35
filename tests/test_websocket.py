"""
Feature: WebSocket live board view
  As a frontend application
  I want to subscribe to a board over a WebSocket
  So that every viewer sees task moves as soon as they are written

Scenario: Successfully connect to WebSocket
  When connecting with a valid token
  Then a welcome message should be received

Scenario: Connecting without a valid token is refused

Scenario: Handle ping-pong
  Given a WebSocket connection is established
  When sending a ping message
  Then a pong response should be received

Scenario: A JSON message that is not an object is rejected
  Given a WebSocket connection is established
  When sending a JSON array
  Then an error is returned and the connection keeps serving pings

Scenario: Subscribe and move a task
  Given a connection subscribed to a board
  When a move_task message is sent
  Then a tasks_snapshot with the task in its new column is pushed

Scenario: Subscribing to a private board of someone else fails
"""

import json
import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session
from starlette.websockets import WebSocketDisconnect
from database import get_session, get_store
from main import app
from conftest import make_task


@pytest.fixture(name="client")
def client_fixture(engine, store):
    def get_session_override():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = get_session_override
    app.dependency_overrides[get_store] = lambda: store
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


def receive(websocket) -> dict:
    return json.loads(websocket.receive_text())


def test_websocket_stats_endpoint(client):
    response = client.get("/api/ws/stats")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "running"
    assert "active_connections" in data


def test_websocket_connection(client, owner):
    with client.websocket_connect("/api/ws?token=owner_token") as websocket:
        message = receive(websocket)

        assert message["type"] == "connection_established"
        assert message["userId"] == owner.id
        assert message["activeConnections"] >= 1


def test_websocket_rejects_missing_token(client):
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect("/api/ws?token=bogus") as websocket:
            websocket.receive_text()


def test_websocket_ping_pong(client, owner):
    with client.websocket_connect("/api/ws?token=owner_token") as websocket:
        receive(websocket)

        websocket.send_text(json.dumps({"type": "ping", "timestamp": "2025-01-01T00:00:00Z"}))
        pong = receive(websocket)

        assert pong["type"] == "pong"
        assert pong["timestamp"] == "2025-01-01T00:00:00Z"
        assert "serverTime" in pong


def test_websocket_rejects_non_object_message(client, owner):
    with client.websocket_connect("/api/ws?token=owner_token") as websocket:
        receive(websocket)

        websocket.send_text("[1, 2]")
        assert receive(websocket) == {"type": "error", "message": "Invalid message"}

        websocket.send_text(json.dumps("hi"))
        assert receive(websocket) == {"type": "error", "message": "Invalid message"}

        websocket.send_text(json.dumps({"type": "ping"}))
        assert receive(websocket)["type"] == "pong"


def test_subscribe_and_move_task(client, session, owner, board):
    task = make_task(session, board, "Ship it", "To Do")
    board_id = board.id

    with client.websocket_connect("/api/ws?token=owner_token") as websocket:
        receive(websocket)

        websocket.send_text(json.dumps({"type": "subscribe", "boardId": board_id}))
        snapshot = receive(websocket)
        assert snapshot["type"] == "tasks_snapshot"
        assert [(t["id"], t["column"]) for t in snapshot["tasks"]] == [(task.id, "To Do")]

        presence = receive(websocket)
        assert presence["type"] == "presence"
        assert [viewer["id"] for viewer in presence["viewers"]] == [owner.id]

        websocket.send_text(json.dumps({"type": "move_task", "taskId": task.id, "column": "Done"}))
        moved = receive(websocket)
        assert moved["type"] == "tasks_snapshot"
        assert moved["tasks"][0]["column"] == "Done"
        assert moved["tasks"][0]["boardId"] == board_id

        websocket.send_text(json.dumps({"type": "move_task", "taskId": task.id, "column": "Nowhere"}))
        error = receive(websocket)
        assert error["type"] == "error"
        assert error["requestType"] == "move_task"

        websocket.send_text(json.dumps({"type": "unsubscribe"}))
        assert receive(websocket) == {"type": "unsubscribed", "boardId": board_id}


def test_subscribe_to_hidden_board(client, outsider, board):
    board_id = board.id

    with client.websocket_connect("/api/ws?token=outsider_token") as websocket:
        receive(websocket)

        websocket.send_text(json.dumps({"type": "subscribe", "boardId": board_id}))
        error = receive(websocket)

        assert error["type"] == "error"
        assert error["message"] == "Board not found"


def test_health_and_market_over_http(client, owner, store):
    assert client.get("/api/health").status_code == 200

    headers = {"Authorization": "Bearer owner_token"}
    assert client.get("/api/market/ETHUSD/latest", headers=headers).status_code == 404
    assert client.get("/api/market/ETHUSD/latest").status_code == 401

    client.post("/api/boards", json={"name": "Over HTTP"}, headers=headers)
    boards = client.get("/api/boards", headers=headers).json()
    assert boards[0]["name"] == "Over HTTP"
    assert boards[0]["ownerId"] == owner.id
    assert boards[0]["isSharable"] is False
