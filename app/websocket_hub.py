from __future__ import annotations

import asyncio
import logging
from collections import defaultdict

from fastapi import WebSocket

from app.core.events import GameEvent

logger = logging.getLogger(__name__)


class SessionWebSocketHub:
    """In-process WebSocket pub/sub keyed by session_id.

    Contract:
      - assign connection to a session via `connect(session_id, websocket)`.
      - broadcast lightweight events with `broadcast(session_id, payload)`.

    Payloads should be JSON-serializable dicts.
    """

    def __init__(self) -> None:
        self._by_session: dict[str, set[WebSocket]] = defaultdict(set)
        self._lock = asyncio.Lock()

    async def connect(self, session_id: str, websocket: WebSocket) -> None:
        await websocket.accept()
        async with self._lock:
            self._by_session[session_id].add(websocket)

    async def disconnect(self, session_id: str, websocket: WebSocket) -> None:
        async with self._lock:
            conns = self._by_session.get(session_id)
            if not conns:
                return
            conns.discard(websocket)
            if not conns:
                self._by_session.pop(session_id, None)

    async def broadcast(self, session_id: str, payload: dict[str, object]) -> None:
        async with self._lock:
            conns = list(self._by_session.get(session_id, set()))

        if not conns:
            return

        dead: list[WebSocket] = []
        for ws in conns:
            try:
                await ws.send_json(payload)
            except Exception:
                dead.append(ws)

        if dead:
            async with self._lock:
                for ws in dead:
                    self._by_session.get(session_id, set()).discard(ws)


hub = SessionWebSocketHub()


def session_updated_payload(session_id: str, event: GameEvent | None = None) -> dict[str, object]:
    payload: dict[str, object] = {"type": "session_updated", "session_id": session_id}
    if event is not None:
        payload["event"] = event.type
        payload["round_id"] = event.round_id
    return payload


def notify_session_event(session_id: str, event: GameEvent) -> None:
    """Session listener: push timer-driven changes to connected clients.

    Timers fire on the event loop, so there is normally a running loop here.
    Without one (e.g. a manually driven clock) there is nobody to notify.
    """

    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        logger.debug("no running loop; skipping websocket push for %s", event.type)
        return
    loop.create_task(hub.broadcast(session_id, session_updated_payload(session_id, event)))
