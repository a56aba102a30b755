from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect, status
import redis

from app.api.deps import get_redis, get_registry
from app.api.models import (
    ClickRequest,
    GameSnapshot,
    SessionCreateRequest,
    SessionListResponse,
    SymbolModel,
    SymbolSetListResponse,
    SymbolSetModel,
    SymbolSetRequest,
)
from app.assets.singleton import get_assets
from app.errors import SessionNotFound
from app.sessions import GameSession, SessionRegistry
from app.streams import SessionStream, publish_events, read_stream
from app.websocket_hub import hub

router = APIRouter()


def _require_session(sessions: SessionRegistry, session_id: UUID) -> GameSession:
    try:
        return sessions.require(str(session_id))
    except SessionNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found") from e


def _flush_events(r: redis.Redis, session: GameSession) -> None:
    # Timer-driven events queue up between requests; every request touching the session flushes them.
    events = session.drain_events()
    if events:
        publish_events(r=r, stream=SessionStream(session_id=session.session_id), events=events)


@router.websocket("/ws/session/{session_id}")
async def session_updates_ws(websocket: WebSocket, session_id: UUID) -> None:
    sid = str(session_id)
    await hub.connect(sid, websocket)

    try:
        # Keep the socket open; client can optionally send pings.
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        await hub.disconnect(sid, websocket)
    except Exception:
        await hub.disconnect(sid, websocket)
        raise


@router.get("/healthcheck")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/symbol_sets", response_model=SymbolSetListResponse)
async def list_symbol_sets_route() -> SymbolSetListResponse:
    catalog = get_assets()
    return SymbolSetListResponse(
        symbol_sets=[
            SymbolSetModel(set_id=s.set_id, symbols=[SymbolModel(id=sym.id, content=sym.content) for sym in s.symbols])
            for s in catalog.sets
        ]
    )


@router.post("/session", response_model=GameSnapshot, status_code=status.HTTP_201_CREATED)
async def create_session_route(
    payload: SessionCreateRequest | None = None,
    r: redis.Redis = Depends(get_redis),
    sessions: SessionRegistry = Depends(get_registry),
) -> GameSnapshot:
    try:
        session = sessions.create(symbol_set=payload.symbol_set if payload is not None else None)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e

    _flush_events(r, session)
    return session.get_snapshot()


@router.get("/session", response_model=SessionListResponse)
async def list_sessions_route(sessions: SessionRegistry = Depends(get_registry)) -> SessionListResponse:
    return SessionListResponse(sessions=[s.get_snapshot() for s in sessions.list_sessions()])


@router.get("/session/{session_id}", response_model=GameSnapshot)
async def get_session_route(
    session_id: UUID,
    r: redis.Redis = Depends(get_redis),
    sessions: SessionRegistry = Depends(get_registry),
) -> GameSnapshot:
    session = _require_session(sessions, session_id)
    _flush_events(r, session)
    return session.get_snapshot()


@router.delete("/session/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session_route(session_id: UUID, sessions: SessionRegistry = Depends(get_registry)) -> None:
    try:
        sessions.remove(str(session_id))
    except SessionNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found") from e


@router.post("/session/{session_id}/click", response_model=GameSnapshot)
async def click_route(
    session_id: UUID,
    payload: ClickRequest,
    r: redis.Redis = Depends(get_redis),
    sessions: SessionRegistry = Depends(get_registry),
) -> GameSnapshot:
    session = _require_session(sessions, session_id)
    try:
        session.submit_click(payload.key)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e

    _flush_events(r, session)
    return session.get_snapshot()


@router.post("/session/{session_id}/symbol_set", response_model=GameSnapshot)
async def select_symbol_set_route(
    session_id: UUID,
    payload: SymbolSetRequest,
    r: redis.Redis = Depends(get_redis),
    sessions: SessionRegistry = Depends(get_registry),
) -> GameSnapshot:
    session = _require_session(sessions, session_id)
    try:
        session.select_symbol_set(payload.symbol_set)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e

    _flush_events(r, session)
    return session.get_snapshot()


@router.post("/session/{session_id}/reset", response_model=GameSnapshot)
async def reset_route(
    session_id: UUID,
    r: redis.Redis = Depends(get_redis),
    sessions: SessionRegistry = Depends(get_registry),
) -> GameSnapshot:
    session = _require_session(sessions, session_id)
    try:
        session.request_reset()
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e

    _flush_events(r, session)
    return session.get_snapshot()


@router.get("/session/{session_id}/events")
async def get_session_events_route(
    session_id: UUID,
    count: int = 50,
    start: str = "-",
    end: str = "+",
    r: redis.Redis = Depends(get_redis),
    sessions: SessionRegistry = Depends(get_registry),
) -> dict[str, object]:
    """Debug endpoint: read a session's event stream.

    Intended for local/dev testing when redis-cli isn't available.
    """

    if count < 1 or count > 500:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="count must be between 1 and 500")

    session = _require_session(sessions, session_id)
    _flush_events(r, session)

    stream = SessionStream(session_id=session.session_id)
    try:
        entries = read_stream(r=r, stream=stream, start=start, end=end, count=count)
    except redis.RedisError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e

    events = [{"id": eid, "fields": fields} for eid, fields in entries]
    return {"session_id": session.session_id, "stream": stream.key, "events": events}
