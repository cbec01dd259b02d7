import pytest
from fastapi.testclient import TestClient

from app import create_app


@pytest.fixture
def app():
    return create_app(rooms=["room1", "room2"], max_players=10, enforce_capacity=False)


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client


def _join(ws, room_id, **extra):
    ws.send_json({"type": "join_room", "roomId": room_id, **extra})


def test_connect_sends_welcome(client):
    with client.websocket_connect("/ws") as ws:
        welcome = ws.receive_json()
        assert welcome["type"] == "connected"
        assert welcome["availableRooms"] == ["room1", "room2"]
        assert welcome["username"] == f"Player_{welcome['clientId'][:8]}"


def test_two_players_join_move_and_leave(app, client):
    with client.websocket_connect("/ws") as ws_a:
        a_id = ws_a.receive_json()["clientId"]
        _join(ws_a, "room1", username="alice")

        state = ws_a.receive_json()
        assert state["type"] == "room_state"
        assert [player["id"] for player in state["players"]] == [a_id]
        assert ws_a.receive_json() == {"type": "room_update", "roomId": "room1", "playerCount": 1}

        with client.websocket_connect("/ws") as ws_b:
            b_id = ws_b.receive_json()["clientId"]
            _join(ws_b, "room1", position={"x": 50, "y": 60})

            b_state = ws_b.receive_json()
            assert [player["id"] for player in b_state["players"]] == [a_id, b_id]
            assert b_state["players"][0]["username"] == "alice"
            assert ws_b.receive_json() == {"type": "room_update", "roomId": "room1", "playerCount": 2}

            joined = ws_a.receive_json()
            assert joined["type"] == "player_joined"
            assert joined["player"]["id"] == b_id
            assert ws_a.receive_json() == {"type": "room_update", "roomId": "room1", "playerCount": 2}

            ws_a.send_json({"type": "player_move", "position": {"x": 10, "y": 20}, "frame": 3})
            assert ws_b.receive_json() == {
                "type": "player_moved",
                "playerId": a_id,
                "position": {"x": 10, "y": 20},
                "frame": 3,
            }

            # The mover gets nothing back: the next frame it reads is the pong
            ws_a.send_json({"type": "ping"})
            assert ws_a.receive_json() == {"type": "pong"}

            assert app.state.status.server_status().connected_clients == 2

        assert ws_a.receive_json() == {"type": "player_left", "playerId": b_id}
        assert ws_a.receive_json() == {"type": "room_update", "roomId": "room1", "playerCount": 1}


def test_unknown_room_returns_error(app, client):
    with client.websocket_connect("/ws") as ws:
        ws.receive_json()
        _join(ws, "roomX")
        assert ws.receive_json() == {"type": "error", "message": "Room does not exist"}

        ws.send_json({"type": "ping"})
        assert ws.receive_json() == {"type": "pong"}
        assert all(len(room) == 0 for room in app.state.broadcaster.rooms.values())


def test_malformed_frame_keeps_connection_open(client):
    with client.websocket_connect("/ws") as ws:
        ws.receive_json()
        ws.send_text("{broken")
        assert ws.receive_json() == {"type": "error", "message": "Invalid JSON"}

        ws.send_json({"type": "ping"})
        assert ws.receive_json() == {"type": "pong"}
