from __future__ import annotations

import logging
import random
from collections.abc import Callable
from typing import Any

from app.api.models import PHASE_MESSAGES, GamePhase, GameSnapshot, GuessSlot, SessionState, Tile
from app.assets.registry import SymbolSet
from app.core.events import EventType, GameEvent
from app.core.scheduler import Scheduler, TimerFamily, TimerHandle, TimerToken
from app.deck import build_deck
from app.engine_config import EngineConfig
from app.errors import InvalidPhase, UnknownTile
from app.fsm import GameFSM
from app.scoring import compute_score
from app.turn_processing.guesses import ClickOutcome, resolve_click

logger = logging.getLogger(__name__)


class GameEngine:
    """Owns one session's state and applies every mutation to it.

    Commands (`submit_click`, `begin_reload`, `request_reset`) run synchronously.
    Visible board changes are deferred through the scheduler:

    - `pair` timers resolve a full pair of guesses (match or mismatch).
    - `phase` timers resolve the bomb penalty or finish a reload.

    Scheduling a timer cancels the pending one of the same family, and every
    timer carries a `TimerToken` that is checked again when it fires, so a
    timer from an older round or an outdated guess pair never touches the board.
    """

    def __init__(
        self,
        *,
        session_id: str,
        symbol_set: SymbolSet,
        scheduler: Scheduler,
        config: EngineConfig | None = None,
        seed: int | None = None,
        on_event: Callable[[GameEvent], None] | None = None,
    ):
        if seed is None:
            seed = random.SystemRandom().randint(1, 2**31 - 1)
        self._rng = random.Random(seed)
        self._symbol_set = symbol_set
        self._scheduler = scheduler
        self._config = config or EngineConfig()
        self._on_event = on_event

        self._generations: dict[TimerFamily, int] = {"pair": 0, "phase": 0}
        self._handles: dict[TimerFamily, TimerHandle] = {}

        self.state = SessionState(
            session_id=session_id,
            seed=seed,
            symbol_set=symbol_set.set_id,
            tiles=build_deck(symbol_set.symbols, rng=self._rng),
        )
        self._fsm = GameFSM(self.state)
        self._emit("ROUND_STARTED", {"symbol_set": symbol_set.set_id, "tiles": len(self.state.tiles)})

    @property
    def symbol_set(self) -> SymbolSet:
        return self._symbol_set

    @property
    def phase(self) -> GamePhase:
        return self.state.phase

    # -- queries ---------------------------------------------------------

    def snapshot(self) -> GameSnapshot:
        s = self.state
        return GameSnapshot(
            session_id=s.session_id,
            round_id=s.round_id,
            symbol_set=s.symbol_set,
            phase=s.phase,
            message=PHASE_MESSAGES[s.phase],
            tiles=[t.model_copy() for t in s.tiles],
            score=s.score,
            selected_keys=[g.key for g in (s.first_guess, s.second_guess) if g is not None],
            bomb_triggered=s.bomb_triggered,
        )

    # -- commands --------------------------------------------------------

    def submit_click(self, key: int) -> ClickOutcome:
        s = self.state
        tile = self._tile_by_key(key)
        outcome = resolve_click(tile=tile, first_guess=s.first_guess, second_guess=s.second_guess, phase=s.phase)
        if not outcome.accepted:
            logger.debug("session %s: click on tile %d ignored: %s", s.session_id, key, outcome.reason)
            return outcome

        if outcome.bomb_revealed and not s.bomb_triggered:
            s.bomb_triggered = True
            self._transition("bomb_revealed")
            self._schedule("phase", self._config.reveal_delay, self._resolve_bomb)
            self._recompute_score()
            self._emit("BOMB_REVEALED", {"key": tile.key})

        self._set_guesses(outcome.first_guess, outcome.second_guess)
        self._emit("TILE_SELECTED", {"key": tile.key, "id": tile.id})
        return outcome

    def begin_reload(self, symbol_set: SymbolSet) -> None:
        """Enter `reloading`; a fresh deck for `symbol_set` is dealt after the reload delay."""

        s = self.state
        # New round id first: anything still scheduled for the old deck is now stale.
        s.round_id += 1
        self._symbol_set = symbol_set
        s.symbol_set = symbol_set.set_id
        self._cancel("pair")
        self._transition("reload")
        self._schedule("phase", self._config.reload_delay, self._finish_reload)
        self._emit("RELOADING", {"symbol_set": symbol_set.set_id})

    def request_reset(self) -> None:
        if self._fsm.current_state != self._fsm.over:
            raise InvalidPhase("reset", self.state.phase.value)
        self.begin_reload(self._symbol_set)

    def close(self) -> None:
        """Cancel all pending timers. The engine must not be used afterwards."""

        self._cancel("pair")
        self._cancel("phase")

    # -- delayed effects -------------------------------------------------

    def _resolve_pair(self) -> None:
        s = self.state
        first, second = s.first_guess, s.second_guess
        if first is None or second is None:
            return

        if first.id == second.id:
            for t in s.tiles:
                if t.id == first.id:
                    t.guessed = True
            self._transition("pair_matched")
            self._set_guesses(None, None)
            self._emit("PAIR_MATCHED", {"id": first.id, "keys": [first.key, second.key]})
            self._after_tiles_changed()
        else:
            self._set_guesses(None, None)
            self._emit("PAIR_MISMATCHED", {"keys": [first.key, second.key]})

    def _resolve_bomb(self) -> None:
        # Every earned match is frozen together with the bomb; frozen tiles score zero.
        frozen: list[int] = []
        for t in self.state.tiles:
            if t.guessed or t.bombed:
                t.guessed = True
                t.bombed = True
                frozen.append(t.key)
        self._set_guesses(None, None)
        self._emit("BOMB_RESOLVED", {"frozen_keys": frozen})
        self._after_tiles_changed()

    def _finish_reload(self) -> None:
        s = self.state
        s.tiles = build_deck(self._symbol_set.symbols, rng=self._rng)
        s.bomb_triggered = False
        self._set_guesses(None, None)
        self._transition("restart")
        self._recompute_score()
        self._emit("ROUND_STARTED", {"symbol_set": s.symbol_set, "tiles": len(s.tiles)})

    def _after_tiles_changed(self) -> None:
        s = self.state
        self._recompute_score()
        if s.phase == GamePhase.over:
            return
        if all(t.bombed or t.guessed for t in s.tiles):
            for t in s.tiles:
                t.guessed = True
            self._transition("finish")
            self._recompute_score()
            self._emit("GAME_OVER", {"score": s.score})

    # -- plumbing --------------------------------------------------------

    def _tile_by_key(self, key: int) -> Tile:
        tile = next((t for t in self.state.tiles if t.key == key), None)
        if tile is None:
            raise UnknownTile(key)
        return tile

    def _set_guesses(self, first: GuessSlot | None, second: GuessSlot | None) -> None:
        s = self.state
        s.first_guess = first
        s.second_guess = second
        if first is not None and second is not None:
            self._schedule("pair", self._config.reveal_delay, self._resolve_pair)
        else:
            self._cancel("pair")

    def _transition(self, event: str) -> None:
        before = self.state.phase
        self._fsm.send(event)
        self._fsm.sync_phase_to_model()
        # A phase change invalidates whatever the previous phase had scheduled.
        self._cancel("phase")
        logger.info(
            "session %s round %d: %s (%s -> %s)",
            self.state.session_id,
            self.state.round_id,
            event,
            before.value,
            self.state.phase.value,
        )

    def _recompute_score(self) -> None:
        self.state.score = compute_score(self.state.tiles, self.state.bomb_triggered)

    def _schedule(self, family: TimerFamily, delay: float, effect: Callable[[], None]) -> None:
        self._cancel(family)
        token = TimerToken(round_id=self.state.round_id, family=family, generation=self._generations[family])
        self._handles[family] = self._scheduler.call_later(delay, lambda: self._fire(token, effect))

    def _cancel(self, family: TimerFamily) -> None:
        self._generations[family] += 1
        handle = self._handles.pop(family, None)
        if handle is not None:
            handle.cancel()

    def _fire(self, token: TimerToken, effect: Callable[[], None]) -> None:
        if token.round_id != self.state.round_id or token.generation != self._generations[token.family]:
            logger.debug("session %s: discarding stale %s timer %s", self.state.session_id, token.family, token)
            return
        self._handles.pop(token.family, None)
        effect()

    def _emit(self, type: EventType, payload: dict[str, Any]) -> None:
        if self._on_event is not None:
            self._on_event(GameEvent.now(type=type, round_id=self.state.round_id, payload=payload))
