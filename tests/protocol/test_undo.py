from __future__ import annotations

from fastapi.testclient import TestClient

from microchess.config import Settings
from microchess.engine.move import START_SQUARES
from microchess.protocol.http.app import create_app


def _client() -> TestClient:
    return TestClient(create_app(Settings()))


def test_undo_without_moves_returns_400() -> None:
    client = _client()
    r = client.post("/api/games")
    game_id = r.json()["game_id"]

    r_undo = client.post(f"/api/games/{game_id}/undo")
    assert r_undo.status_code == 400
    body = r_undo.json()
    assert body["error"]["code"] == "bad_request"
    assert "no moves" in body["error"]["message"].lower()


def test_undo_restores_prior_state() -> None:
    client = _client()
    r = client.post("/api/games")
    game_id = r.json()["game_id"]

    r_move = client.post(f"/api/games/{game_id}/move", json={"piece": 15, "square": 0x33})
    assert r_move.status_code == 200
    state = r_move.json()
    assert state["board"][15] == 0x33
    assert state["last_move"] == {"piece": 15, "from_sq": 0x13, "to_sq": 0x33, "capture": False}

    r_undo = client.post(f"/api/games/{game_id}/undo")
    assert r_undo.status_code == 200
    state = r_undo.json()
    assert state["board"] == list(START_SQUARES)
    assert isinstance(state["legal_moves"], list) and state["legal_moves"]
    assert state["last_move"] is None
    assert state["move_history"] == []
