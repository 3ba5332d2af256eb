import pytest
from fastapi.testclient import TestClient

from server.app import app, registry


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


def _create_room(client: TestClient, seed: int = 42, players=("alice", "bob")) -> str:
    resp = client.post(
        "/rooms",
        json={"players": [{"player_id": p, "name": p.title()} for p in players], "seed": seed},
    )
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert "room_id" in data and isinstance(data["room_id"], str)
    assert data["version"] == 0
    return data["room_id"]


def _as(player_id: str) -> dict:
    return {"X-User-ID": player_id}


def test_create_room_and_state(client):
    rid = _create_room(client)

    resp = client.get(f"/rooms/{rid}/game-state")
    assert resp.status_code == 200
    data = resp.json()

    assert data["version"] == 0
    assert data["active_player_id"] == "alice"
    assert data["phase"] == "awaiting_roll"
    assert len(data["players"]) == 2
    assert set(data["decks"].keys()) == {"big_deal", "small_deal", "market", "expense"}


def test_create_room_validates_players(client):
    resp = client.post("/rooms", json={"players": []})
    assert resp.status_code == 422

    resp = client.post(
        "/rooms",
        json={"players": [{"player_id": "a", "name": "A"}, {"player_id": "a", "name": "B"}]},
    )
    assert resp.status_code == 400
    assert resp.json()["kind"] == "validation"


def test_roll_bumps_version(client):
    rid = _create_room(client)

    resp = client.post(f"/rooms/{rid}/roll", headers=_as("alice"))
    assert resp.status_code == 200, resp.text
    data = resp.json()

    assert data["ok"] is True
    assert data["version"] == 1
    assert 1 <= data["result"]["total"] <= 6
    assert data["state"]["last_roll"]["total"] == data["result"]["total"]
    assert data["state"]["phase"] != "awaiting_roll"


def test_missing_user_header(client):
    rid = _create_room(client)
    resp = client.post(f"/rooms/{rid}/roll")
    assert resp.status_code == 400
    assert resp.json()["kind"] == "validation"


def test_not_your_turn(client):
    rid = _create_room(client)
    resp = client.post(f"/rooms/{rid}/roll", headers=_as("bob"))
    assert resp.status_code == 400
    body = resp.json()
    assert body["kind"] == "validation"
    assert "turn" in body["message"].lower()


def test_unknown_room_404(client):
    resp = client.get("/rooms/doesnotexist/game-state")
    assert resp.status_code == 404
    assert resp.json()["kind"] == "not_found"


def test_phase_error_is_409(client):
    rid = _create_room(client)
    resp = client.post(f"/rooms/{rid}/deals/choose", headers=_as("alice"), json={"size": "big"})
    assert resp.status_code == 409
    assert resp.json()["kind"] == "state"


def test_missing_pending_deal_is_404(client):
    rid = _create_room(client)
    resp = client.post(f"/rooms/{rid}/deals/resolve", headers=_as("alice"), json={"action": "buy"})
    assert resp.status_code == 404
    assert resp.json()["kind"] == "not_found"


def test_stale_version_conflict(client):
    rid = _create_room(client)
    ok = client.post(f"/rooms/{rid}/take-credit", headers=_as("alice"), json={"amount": 1000, "expected_version": 0})
    assert ok.status_code == 200
    assert ok.json()["version"] == 1

    stale = client.post(
        f"/rooms/{rid}/take-credit", headers=_as("alice"), json={"amount": 1000, "expected_version": 0}
    )
    assert stale.status_code == 409
    assert stale.json()["kind"] == "concurrency"

    state = client.get(f"/rooms/{rid}/game-state").json()
    assert state["version"] == 1
    assert state["players"][0]["credit_amount"] == 1000


def test_failed_operation_leaves_room_unchanged(client):
    rid = _create_room(client)
    resp = client.post(f"/rooms/{rid}/transfer", headers=_as("alice"), json={"recipient": "bob", "amount": 999999})
    assert resp.status_code == 400

    state = client.get(f"/rooms/{rid}/game-state").json()
    assert state["version"] == 0
    assert [p["cash"] for p in state["players"]] == [10000, 10000]


def test_transfer_and_transactions(client):
    rid = _create_room(client)
    resp = client.post(
        f"/rooms/{rid}/transfer",
        headers=_as("alice"),
        json={"recipient": "bob", "amount": 100, "description": "lunch"},
    )
    assert resp.status_code == 200, resp.text

    txs = client.get(f"/rooms/{rid}/transactions", params={"player_id": "bob"}).json()["transactions"]
    assert len(txs) == 1
    assert txs[0]["amount"] == 100
    assert txs[0]["description"] == "lunch"


def test_credit_round_trip(client):
    rid = _create_room(client)
    client.post(f"/rooms/{rid}/take-credit", headers=_as("alice"), json={"amount": 3000})
    resp = client.post(f"/rooms/{rid}/payoff-credit", headers=_as("alice"))
    assert resp.status_code == 200, resp.text
    alice = resp.json()["state"]["players"][0]
    assert alice["credit_amount"] == 0
    assert alice["cash"] == 10000


def test_events_since(client):
    rid = _create_room(client)
    client.post(f"/rooms/{rid}/roll", headers=_as("alice"))

    everything = client.get(f"/rooms/{rid}/events").json()
    assert everything["since"] == 0
    types = [e["event_type"] for e in everything["events"]]
    assert types[:2] == ["game_start", "turn_start"]
    assert "dice_roll" in types

    tail = client.get(f"/rooms/{rid}/events", params={"since": 2}).json()
    assert tail["events"][0]["index"] == 2
    assert tail["next"] == everything["next"]


def test_end_turn_hands_over(client):
    rid = _create_room(client)
    resp = client.post(f"/rooms/{rid}/end-turn", headers=_as("alice"))
    assert resp.status_code == 200
    assert resp.json()["result"] == {"active_player_id": "bob"}
    assert resp.json()["state"]["turn_number"] == 2


def test_turn_history_endpoint(client):
    rid = _create_room(client)
    client.post(f"/rooms/{rid}/end-turn", headers=_as("alice"))
    client.post(f"/rooms/{rid}/end-turn", headers=_as("bob"))

    data = client.get(f"/rooms/{rid}/turns").json()
    assert [t["player_id"] for t in data["history"]] == ["alice", "bob"]
    assert data["stats"]["recorded_turns"] == 2
    assert data["stats"]["turn_number"] == 3

    last = client.get(f"/rooms/{rid}/turns", params={"limit": 1}).json()
    assert [t["player_id"] for t in last["history"]] == ["bob"]


def test_error_body_documented_in_openapi(client):
    schema = client.get("/openapi.json").json()
    roll_responses = schema["paths"]["/rooms/{room_id}/roll"]["post"]["responses"]
    assert {"400", "404", "409"} <= set(roll_responses)
    assert roll_responses["409"]["content"]["application/json"]["schema"]["$ref"].endswith("/ErrorResponse")
    assert set(schema["components"]["schemas"]["ErrorResponse"]["properties"]) == {"kind", "message"}


def test_room_kept_in_registry(client):
    rid = _create_room(client)
    assert rid in registry.room_ids()
