import pytest
from fastapi.testclient import TestClient

from api import app
from core import GameProgressState


@pytest.fixture
def client():
    return TestClient(app)


def _new_game(client, **settings):
    response = client.post("/game/new", json=settings)
    assert response.status_code == 200
    return response.json()


def _with_grid(state, grid):
    state = dict(state)
    state["grid"] = grid
    return state


WIN_GRID = [
    [1024, 1024, 0, 0],
    [0, 0, 0, 0],
    [0, 0, 0, 0],
    [0, 0, 0, 0],
]


def test_new_game(client):
    data = _new_game(client)
    state = data["state"]
    assert data["board_size"] == 4
    assert data["progress"] == GameProgressState.IN_PROGRESS.value
    assert state["score"] == 0
    assert sum(1 for row in state["grid"] for value in row if value) == 2
    assert state["undo_budget"] == 9
    assert state["merge_budget"] == 3
    assert state["history"]["entries"] == []


def test_new_game_with_settings(client):
    data = _new_game(client, size=3, win_tile=64, undo_limit=1, merge_limit=0)
    assert data["board_size"] == 3
    assert data["state"]["config"]["win_tile"] == 64
    assert data["state"]["undo_budget"] == 1


def test_new_game_rejects_bad_config(client):
    assert client.post("/game/new", json={"four_probability": 1.5}).status_code == 400
    assert client.post("/game/new", json={"win_tile": 1000}).status_code == 400
    assert client.post("/game/new", json={"size": 0}).status_code == 422


def test_move_and_undo(client):
    state = _with_grid(_new_game(client)["state"], [
        [2, 0, 0, 0],
        [0, 0, 0, 0],
        [0, 0, 0, 0],
        [0, 0, 0, 2],
    ])
    response = client.post("/game/move", json={"state": state, "direction": "right"})
    assert response.status_code == 200
    moved = response.json()
    assert moved["events"]["changed"]
    assert moved["events"]["spawned"] is not None
    assert moved["state"]["grid"][0][3] == 2
    assert moved["state"]["score"] == 4 + moved["events"]["spawned"]["value"]
    assert len(moved["state"]["history"]["entries"]) == 1

    response = client.post("/game/undo", json={"state": moved["state"]})
    assert response.status_code == 200
    undone = response.json()
    assert undone["events"]["cleared"]
    assert undone["state"]["grid"] == state["grid"]
    assert undone["state"]["undo_budget"] == 8

    again = client.post("/game/undo", json={"state": undone["state"]}).json()
    assert again["message"] == "Nothing to undo."
    assert again["state"] == undone["state"]


def test_blocked_move(client):
    state = _with_grid(_new_game(client)["state"], [
        [2, 4, 0, 0],
        [0, 0, 0, 0],
        [0, 0, 0, 0],
        [0, 0, 0, 0],
    ])
    data = client.post("/game/move", json={"state": state, "direction": "LEFT"}).json()
    assert not data["events"]["changed"]
    assert data["message"].startswith("Move was not effective")
    assert data["state"]["grid"] == state["grid"]


def test_invalid_direction(client):
    state = _new_game(client)["state"]
    response = client.post("/game/move", json={"state": state, "direction": "north"})
    assert response.status_code == 400


def test_malformed_board(client):
    state = _with_grid(_new_game(client)["state"], [[2, 0], [0]])
    response = client.post("/game/move", json={"state": state, "direction": "up"})
    assert response.status_code == 400


def test_win_and_keep_playing(client):
    state = _with_grid(_new_game(client)["state"], WIN_GRID)
    won = client.post("/game/move", json={"state": state, "direction": "left"}).json()
    assert won["events"]["won"]
    assert won["message"] == "Congratulations! You won!"
    assert won["progress"] == GameProgressState.GAME_WON.value

    blocked = client.post("/game/move", json={"state": won["state"], "direction": "down"}).json()
    assert not blocked["events"]["changed"]

    kept = client.post("/game/keep-playing", json={"state": won["state"]}).json()
    assert kept["events"]["cleared"]
    assert kept["state"]["keep_playing"]
    assert kept["progress"] == GameProgressState.GAME_WON_KEEP_PLAYING.value


def test_power_up(client):
    state = _with_grid(_new_game(client)["state"], [
        [2, 2, 2, 0],
        [0, 0, 0, 0],
        [0, 0, 0, 0],
        [0, 0, 0, 0],
    ])
    data = client.post("/game/power-up", json={"state": state}).json()
    assert data["events"]["merged"]
    assert data["state"]["grid"][0] == [4, 2, 0, 0]
    assert data["state"]["merge_budget"] == 2

    exhausted = dict(data["state"], merge_budget=0)
    data = client.post("/game/power-up", json={"state": exhausted}).json()
    assert not data["events"]["merged"]
    assert data["message"].startswith("Magic merge not used")
