from __future__ import annotations

import logging
from collections.abc import Callable
from uuid import uuid4

from app.api.models import GamePhase, GameSnapshot
from app.assets.registry import SymbolCatalog
from app.assets.singleton import get_assets
from app.core.events import GameEvent
from app.core.scheduler import AsyncioScheduler, Scheduler
from app.engine_config import DEFAULT_MAX_SESSIONS, EngineConfig, engine_config_from_env
from app.errors import InvalidConfiguration, SessionNotFound
from app.game_engine import GameEngine
from app.turn_processing.guesses import ClickOutcome

logger = logging.getLogger(__name__)

SessionListener = Callable[[str, GameEvent], None]


class GameSession:
    """Command/query surface for one player's game.

    Wires a symbol set from the catalog into a `GameEngine` and buffers the
    engine's events until a caller drains them.
    """

    def __init__(
        self,
        *,
        session_id: str,
        catalog: SymbolCatalog,
        scheduler: Scheduler,
        config: EngineConfig | None = None,
        symbol_set: str | None = None,
        seed: int | None = None,
    ):
        self.session_id = session_id
        self.catalog = catalog
        self._outbox: list[GameEvent] = []
        self._listeners: list[SessionListener] = []

        initial = catalog.require(symbol_set if symbol_set is not None else catalog.default_set_id)
        self.engine = GameEngine(
            session_id=session_id,
            symbol_set=initial,
            scheduler=scheduler,
            config=config,
            seed=seed,
            on_event=self._on_event,
        )

    def add_listener(self, listener: SessionListener) -> None:
        self._listeners.append(listener)

    def submit_click(self, key: int) -> ClickOutcome:
        return self.engine.submit_click(key)

    def select_symbol_set(self, set_id: str) -> bool:
        """Switch symbol sets. Returns False when `set_id` is already active."""

        symbol_set = self.catalog.require(set_id)
        if symbol_set.set_id == self.engine.symbol_set.set_id:
            logger.debug("session %s: symbol set %s already active", self.session_id, set_id)
            return False
        self.engine.begin_reload(symbol_set)
        return True

    def request_reset(self) -> None:
        self.engine.request_reset()

    def get_snapshot(self) -> GameSnapshot:
        return self.engine.snapshot()

    def drain_events(self) -> list[GameEvent]:
        events, self._outbox = self._outbox, []
        return events

    def close(self) -> None:
        self.engine.close()

    def _on_event(self, event: GameEvent) -> None:
        self._outbox.append(event)
        for listener in self._listeners:
            listener(self.session_id, event)


class SessionRegistry:
    """In-process registry of live sessions keyed by session id.

    Sessions hold timers, so they live in this process only. The registry is
    capped at `max_sessions`: creating a session beyond the cap evicts a
    finished (`over`) session first, else the least recently used one.
    """

    def __init__(
        self,
        *,
        scheduler_factory: Callable[[], Scheduler] = AsyncioScheduler,
        config: EngineConfig | None = None,
        catalog: SymbolCatalog | None = None,
        max_sessions: int = DEFAULT_MAX_SESSIONS,
    ) -> None:
        if max_sessions < 1:
            raise InvalidConfiguration("max_sessions must be >= 1")
        self._scheduler_factory = scheduler_factory
        self._config = config
        self._catalog = catalog
        self._max_sessions = max_sessions
        # Insertion order doubles as recency: `require` moves a session to the end.
        self._sessions: dict[str, GameSession] = {}
        self._listeners: list[SessionListener] = []

    def configure(
        self,
        *,
        config: EngineConfig | None = None,
        catalog: SymbolCatalog | None = None,
        max_sessions: int | None = None,
    ) -> None:
        if config is not None:
            self._config = config
        if catalog is not None:
            self._catalog = catalog
        if max_sessions is not None:
            if max_sessions < 1:
                raise InvalidConfiguration("max_sessions must be >= 1")
            self._max_sessions = max_sessions

    def add_listener(self, listener: SessionListener) -> None:
        self._listeners.append(listener)

    def create(self, *, symbol_set: str | None = None, seed: int | None = None) -> GameSession:
        session = GameSession(
            session_id=str(uuid4()),
            catalog=self._catalog or get_assets(),
            scheduler=self._scheduler_factory(),
            config=self._config or engine_config_from_env(),
            symbol_set=symbol_set,
            seed=seed,
        )
        for listener in self._listeners:
            session.add_listener(listener)
        while len(self._sessions) >= self._max_sessions:
            self._evict_one()
        self._sessions[session.session_id] = session
        logger.info("created session %s (symbol set %s)", session.session_id, session.engine.symbol_set.set_id)
        return session

    def require(self, session_id: str) -> GameSession:
        session = self._sessions.pop(session_id, None)
        if session is None:
            raise SessionNotFound(f"Session not found: {session_id}")
        self._sessions[session_id] = session
        return session

    def list_sessions(self) -> list[GameSession]:
        return list(self._sessions.values())

    def remove(self, session_id: str) -> None:
        session = self._sessions.pop(session_id, None)
        if session is None:
            raise SessionNotFound(f"Session not found: {session_id}")
        session.close()

    def clear(self) -> None:
        for session in self._sessions.values():
            session.close()
        self._sessions.clear()

    def _evict_one(self) -> None:
        victim = next(
            (sid for sid, s in self._sessions.items() if s.engine.phase == GamePhase.over),
            next(iter(self._sessions)),
        )
        session = self._sessions.pop(victim)
        session.close()
        logger.info("evicted session %s (phase %s)", victim, session.engine.phase.value)


registry = SessionRegistry()
