from __future__ import annotations

from collections.abc import Generator

import fakeredis
import pytest
from fastapi.testclient import TestClient

from app.api.deps import get_redis, get_registry
from app.engine_config import EngineConfig
from app.main import app
from app.sessions import SessionRegistry
from app.websocket_hub import notify_session_event


@pytest.fixture()
def client() -> Generator[TestClient, None, None]:
    r = fakeredis.FakeRedis(decode_responses=True)
    # Real event-loop timers, short enough to keep the test quick.
    sessions = SessionRegistry(config=EngineConfig(reveal_delay_ms=200, reload_delay_ms=100))
    sessions.add_listener(notify_session_event)

    def _override() -> Generator[fakeredis.FakeRedis, None, None]:
        yield r

    app.dependency_overrides[get_redis] = _override
    app.dependency_overrides[get_registry] = lambda: sessions
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
    sessions.clear()


def test_ws_pushes_timer_driven_match(client: TestClient) -> None:
    state = client.post("/session").json()
    sid = state["session_id"]
    k1, k2 = [t["key"] for t in state["tiles"] if t["id"] == "sun"]

    with client.websocket_connect(f"/ws/session/{sid}") as ws:
        assert client.post(f"/session/{sid}/click", json={"key": k1}).status_code == 200
        assert client.post(f"/session/{sid}/click", json={"key": k2}).status_code == 200

        # Selections arrive first; the match follows once the reveal delay elapses.
        seen: list[str] = []
        while "PAIR_MATCHED" not in seen:
            msg = ws.receive_json()
            assert msg["type"] == "session_updated"
            assert msg["session_id"] == sid
            seen.append(msg["event"])
            assert len(seen) <= 3

    assert seen[-1] == "PAIR_MATCHED"
    assert client.get(f"/session/{sid}").json()["score"] == 20
