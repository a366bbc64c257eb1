from fastapi.testclient import TestClient

from api.app import app
from sim.scenario import create_pair_skirmish

client = TestClient(app)


def test_game_lifecycle_over_http():
    assert client.get("/status").json() == {"active": False}

    response = client.post("/start", json={"scenario": create_pair_skirmish().to_dict()})
    assert response.status_code == 200
    assert response.json()["success"] is True

    frame = client.post("/step", json={}).json()
    assert frame["done"] is False
    assert frame["step_info"]["tick"] == 1

    status = client.get("/status").json()
    assert status == {"active": True, "tick": 1, "step": 1, "done": False}

    assert client.post("/stop").json()["success"] is True
    assert client.post("/step", json={}).status_code == 400


def test_invalid_scenario_is_rejected():
    response = client.post("/start", json={"scenario": {"entities": []}})
    assert response.status_code == 400
