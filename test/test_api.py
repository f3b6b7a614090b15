"""
HTTP surface: game creation, commands, queries and error mapping.
"""

import pytest
from fastapi.testclient import TestClient

from gridgetters.api import main as api
from gridgetters.engine.errors import InvariantViolation


@pytest.fixture
def client():
    api.games.clear()
    api.game_rngs.clear()
    return TestClient(api.app)


@pytest.fixture
def game_id(client):
    response = client.post("/games", json={"setup_id": "grid_getters", "seed": 3})
    assert response.status_code == 200
    return response.json()["game_id"]


def test_root(client):
    assert client.get("/").json()["message"] == "Grid Getters API"


def test_list_setups(client):
    data = client.get("/setups").json()
    assert data["default"] == "grid_getters"
    assert {"grid_getters", "skirmish"} <= {s["id"] for s in data["setups"]}


def test_create_game_without_body_uses_default_setup(client):
    response = client.post("/games")
    assert response.status_code == 200
    state = response.json()["state"]
    assert state["summary"]["current_player"] == "BLUE"
    assert state["placeable_cells"] == [{"q": 0, "r": 0, "s": 0}]
    assert len(state["cells"]) == 9 * 6


def test_create_game_with_unknown_setup(client):
    response = client.post("/games", json={"setup_id": "no_such_setup"})
    assert response.status_code == 404


def test_unknown_game(client):
    assert client.get("/games/nope").status_code == 404
    assert client.post("/games/nope/advance").status_code == 404


def test_place_reinforcement(client, game_id):
    response = client.post(f"/games/{game_id}/reinforcements", json={"q": 0, "r": 0})
    data = response.json()
    assert response.status_code == 200
    assert data["rejected"] is False
    assert data["events"][0]["type"] == "reinforcement_placed"
    assert data["state"]["summary"]["remaining_reinforcements"] == 1

    stored = client.get(f"/games/{game_id}").json()["state"]
    assert stored["summary"]["unit_counts"]["BLUE"] == 1


def test_rejected_command_is_reported_not_raised(client, game_id):
    response = client.post(f"/games/{game_id}/reinforcements", json={"q": 6, "r": 5})
    data = response.json()
    assert response.status_code == 200
    assert data["rejected"] is True
    assert data["error"]
    assert data["state"]["summary"]["remaining_reinforcements"] == 2


def test_advance_and_log(client, game_id):
    data = client.post(f"/games/{game_id}/advance").json()
    assert data["state"]["phase"] == "MOVEMENT_SELECTING_CELL"

    actions = client.get(f"/games/{game_id}/available-actions").json()
    assert actions["actions"] == ["select_cell", "advance_phase"]

    log = client.get(f"/games/{game_id}/log").json()["log"]
    assert log == [
        "It is BLUE turn to place 2 reinforcement(s).",
        "BLUE ended placing reinforcements, moving on to Movement Phase.",
    ]
    assert client.get(f"/games/{game_id}/log", params={"limit": 1}).json()["log"] == log[-1:]


def test_select_cell_and_unit(client, game_id):
    client.post(f"/games/{game_id}/reinforcements", json={"q": 0, "r": 0})
    client.post(f"/games/{game_id}/advance")

    data = client.post(f"/games/{game_id}/select-cell", json={"q": 0, "r": 0}).json()
    assert data["state"]["phase"] == "MOVEMENT_SELECTING_SOLDIER"
    unit_id = data["state"]["selectable_unit_ids"][0]

    data = client.post(f"/games/{game_id}/select-unit", json={"unit_id": unit_id}).json()
    assert data["rejected"] is False
    assert data["state"]["phase"] == "SELECTING_MOVE"
    assert data["state"]["highlights"]["legal_moves"]


def test_invariant_violation_maps_to_500(client, game_id, monkeypatch):
    def broken(*args, **kwargs):
        raise InvariantViolation("two moves target [1, 1]")

    monkeypatch.setattr(api, "apply_action", broken)
    response = client.post(f"/games/{game_id}/advance")
    assert response.status_code == 500
    assert response.json() == {"detail": "two moves target [1, 1]", "error": "invariant_violation"}


def test_available_actions_mid_selection(client, game_id):
    client.post(f"/games/{game_id}/reinforcements", json={"q": 0, "r": 0})
    client.post(f"/games/{game_id}/advance")
    client.post(f"/games/{game_id}/select-cell", json={"q": 0, "r": 0})

    actions = client.get(f"/games/{game_id}/available-actions").json()
    assert actions["phase"] == "MOVEMENT_SELECTING_SOLDIER"
    assert actions["actions"] == ["select_cell", "select_unit"]
