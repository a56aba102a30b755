from __future__ import annotations

import json
from uuid import uuid4

from app.core.scheduler import ManualScheduler


def _keys(data: dict, symbol_id: str) -> list[int]:
    return [t["key"] for t in data["tiles"] if t["id"] == symbol_id]


def _click(client, session_id: str, key: int) -> dict:
    res = client.post(f"/session/{session_id}/click", json={"key": key})
    assert res.status_code == 200, res.text
    return res.json()


def _event_types(client, session_id: str) -> list[str]:
    res = client.get(f"/session/{session_id}/events")
    assert res.status_code == 200, res.text
    return [e["fields"]["type"] for e in res.json()["events"]]


def test_healthcheck_and_symbol_sets(client_and_redis) -> None:
    client, _ = client_and_redis

    assert client.get("/healthcheck").json() == {"status": "ok"}

    sets = client.get("/symbol_sets").json()["symbol_sets"]
    assert [s["set_id"] for s in sets] == ["pairs", "single"]
    assert [sym["id"] for sym in sets[0]["symbols"]] == ["sun", "moon", "star"]


def test_create_session_deals_default_set(client_and_redis) -> None:
    client, r = client_and_redis

    res = client.post("/session")
    assert res.status_code == 201, res.text
    data = res.json()

    assert data["phase"] == "start"
    assert data["message"] == "Start clicking tiles to match pairs!"
    assert data["symbol_set"] == "pairs"
    assert data["score"] == 0
    assert len(data["tiles"]) == 7
    assert sorted(t["key"] for t in data["tiles"]) == list(range(7))
    assert len(_keys(data, "bomb")) == 1

    # Creation is published to the session's stream.
    key = f"memory:session:{data['session_id']}:events"
    assert [fields["type"] for _, fields in r.xrange(key)] == ["ROUND_STARTED"]


def test_create_session_with_unknown_set_is_422(client_and_redis) -> None:
    client, _ = client_and_redis

    res = client.post("/session", json={"symbol_set": "nope"})
    assert res.status_code == 422
    assert "nope" in res.json()["detail"]


def test_match_flow_over_http(client_and_redis, clock: ManualScheduler) -> None:
    client, _ = client_and_redis
    data = client.post("/session").json()
    sid = data["session_id"]
    k1, k2 = _keys(data, "sun")

    data = _click(client, sid, k1)
    assert data["selected_keys"] == [k1]
    data = _click(client, sid, k2)
    assert data["selected_keys"] == [k1, k2]

    clock.advance(0.7)
    data = client.get(f"/session/{sid}").json()
    assert data["phase"] == "matched"
    assert data["score"] == 20
    assert data["selected_keys"] == []

    assert _event_types(client, sid) == ["ROUND_STARTED", "TILE_SELECTED", "TILE_SELECTED", "PAIR_MATCHED"]


def test_bomb_flow_over_http(client_and_redis, clock: ManualScheduler) -> None:
    client, _ = client_and_redis
    data = client.post("/session").json()
    sid = data["session_id"]
    (bomb,) = _keys(data, "bomb")

    data = _click(client, sid, bomb)
    assert data["phase"] == "bombed"
    assert data["bomb_triggered"] is True

    clock.advance(0.7)
    data = client.get(f"/session/{sid}").json()
    tile = next(t for t in data["tiles"] if t["key"] == bomb)
    assert tile["guessed"] and tile["bombed"]

    events = client.get(f"/session/{sid}/events").json()["events"]
    resolved = next(e for e in events if e["fields"]["type"] == "BOMB_RESOLVED")
    assert json.loads(resolved["fields"]["payload"]) == {"frozen_keys": [bomb]}


def test_click_validation_errors(client_and_redis) -> None:
    client, _ = client_and_redis
    sid = client.post("/session").json()["session_id"]

    res = client.post(f"/session/{sid}/click", json={"key": 42})
    assert res.status_code == 422
    assert "42" in res.json()["detail"]

    assert client.post(f"/session/{sid}/click", json={"key": -1}).status_code == 422
    assert client.post(f"/session/{sid}/click", json={}).status_code == 422


def test_unknown_session_is_404(client_and_redis) -> None:
    client, _ = client_and_redis
    sid = str(uuid4())

    assert client.get(f"/session/{sid}").status_code == 404
    assert client.post(f"/session/{sid}/click", json={"key": 0}).status_code == 404
    assert client.post(f"/session/{sid}/reset").status_code == 404
    assert client.post(f"/session/{sid}/symbol_set", json={"symbol_set": "single"}).status_code == 404
    assert client.get(f"/session/{sid}/events").status_code == 404
    assert client.delete(f"/session/{sid}").status_code == 404


def test_symbol_set_switch_and_reset(client_and_redis, clock: ManualScheduler) -> None:
    client, _ = client_and_redis
    sid = client.post("/session").json()["session_id"]

    res = client.post(f"/session/{sid}/symbol_set", json={"symbol_set": "single"})
    assert res.status_code == 200, res.text
    data = res.json()
    assert data["phase"] == "reloading"
    assert data["symbol_set"] == "single"

    clock.advance(0.4)
    data = client.get(f"/session/{sid}").json()
    assert data["phase"] == "start"
    assert data["round_id"] == 1
    assert len(data["tiles"]) == 3

    # Reset is only allowed once the game is over.
    res = client.post(f"/session/{sid}/reset")
    assert res.status_code == 422
    assert res.json()["detail"] == "Action 'reset' not allowed in phase 'start'"

    k1, k2 = _keys(data, "heart")
    _click(client, sid, k1)
    _click(client, sid, k2)
    clock.advance(0.7)
    data = client.get(f"/session/{sid}").json()
    assert data["phase"] == "over"
    assert data["score"] == 30

    data = client.post(f"/session/{sid}/reset").json()
    assert data["phase"] == "reloading"
    clock.advance(0.4)
    data = client.get(f"/session/{sid}").json()
    assert data["phase"] == "start"
    assert data["score"] == 0
    assert data["round_id"] == 2


def test_unknown_symbol_set_is_422(client_and_redis) -> None:
    client, _ = client_and_redis
    sid = client.post("/session").json()["session_id"]

    res = client.post(f"/session/{sid}/symbol_set", json={"symbol_set": "nope"})
    assert res.status_code == 422
    assert client.get(f"/session/{sid}").json()["phase"] == "start"


def test_list_and_delete_sessions(client_and_redis) -> None:
    client, _ = client_and_redis
    a = client.post("/session").json()["session_id"]
    b = client.post("/session", json={"symbol_set": "single"}).json()["session_id"]

    listed = client.get("/session").json()["sessions"]
    assert {s["session_id"] for s in listed} == {a, b}

    assert client.delete(f"/session/{a}").status_code == 204
    listed = client.get("/session").json()["sessions"]
    assert [s["session_id"] for s in listed] == [b]


def test_events_count_bounds(client_and_redis) -> None:
    client, _ = client_and_redis
    sid = client.post("/session").json()["session_id"]

    assert client.get(f"/session/{sid}/events", params={"count": 0}).status_code == 422
    assert client.get(f"/session/{sid}/events", params={"count": 501}).status_code == 422

    body = client.get(f"/session/{sid}/events", params={"count": 1}).json()
    assert body["stream"] == f"memory:session:{sid}:events"
    assert len(body["events"]) == 1
