from __future__ import annotations

from fastapi.testclient import TestClient

from microchess.config import Settings
from microchess.engine.move import START_SQUARES
from microchess.protocol.http.app import create_app


def _client() -> TestClient:
    return TestClient(create_app(Settings()))


def test_create_game_and_get_state() -> None:
    client = _client()
    r = client.post("/api/games")
    assert r.status_code == 200
    body = r.json()
    assert "game_id" in body and isinstance(body["game_id"], str) and body["game_id"]
    game_id = body["game_id"]
    assert body["board"] == list(START_SQUARES)

    r2 = client.get(f"/api/games/{game_id}/state")
    assert r2.status_code == 200
    state = r2.json()
    assert state["game_id"] == game_id
    assert state["board"] == list(START_SQUARES)
    assert len(state["legal_moves"]) == 20
    assert state["in_check"] is False
    assert state["book_active"] is True
    assert (state["exchange_depth"], state["check_threshold"]) == (4, 2)
    assert state["last_move"] is None


def test_create_game_with_options() -> None:
    client = _client()
    r = client.post("/api/games", json={"level": "super_blitz", "use_book": False})
    game_id = r.json()["game_id"]
    state = client.get(f"/api/games/{game_id}/state").json()
    assert (state["exchange_depth"], state["check_threshold"]) == (0, 0)
    assert state["book_active"] is False


def test_create_game_unknown_level_400() -> None:
    r = _client().post("/api/games", json={"level": "bullet"})
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "bad_request"


def test_get_state_unknown_id_404() -> None:
    client = _client()
    r = client.get("/api/games/does-not-exist/state")
    assert r.status_code == 404
    body = r.json()
    assert "error" in body
    assert body["error"]["code"] == "not_found"


def test_games_are_independent() -> None:
    client = _client()
    a = client.post("/api/games").json()["game_id"]
    b = client.post("/api/games").json()["game_id"]
    client.post(f"/api/games/{a}/move", json={"piece": 15, "square": 0x33})
    assert client.get(f"/api/games/{b}/state").json()["board"] == list(START_SQUARES)


def test_list_and_delete_games() -> None:
    client = _client()
    a = client.post("/api/games").json()["game_id"]
    b = client.post("/api/games").json()["game_id"]
    assert set(client.get("/api/games").json()["games"]) == {a, b}

    r = client.delete(f"/api/games/{a}")
    assert r.status_code == 200
    assert r.json() == {"deleted": a}
    assert client.get("/api/games").json()["games"] == [b]
    assert client.get(f"/api/games/{a}/state").status_code == 404
    assert client.delete(f"/api/games/{a}").status_code == 404
