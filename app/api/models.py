from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

BOMB_ID = "bomb"
BOMB_CONTENT = "🔥"


class GamePhase(StrEnum):
    start = "start"
    matched = "matched"
    bombed = "bombed"
    over = "over"
    reloading = "reloading"


PHASE_MESSAGES: dict[GamePhase, str] = {
    GamePhase.start: "Start clicking tiles to match pairs!",
    GamePhase.matched: "Wow! You found a pair. Continue playing.",
    GamePhase.bombed: "Boom! You lost all your matched pairs. Continue playing.",
    GamePhase.over: "Game ended! You found all matching tiles. Click to restart.",
    GamePhase.reloading: "reloading",
}


class Tile(BaseModel):
    id: str
    content: str
    # Position in the shuffled deck; unique for the round.
    key: int
    bombed: bool = False
    guessed: bool = False

    @property
    def is_bomb(self) -> bool:
        return self.id == BOMB_ID


class GuessSlot(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: int
    id: str


class SessionState(BaseModel):
    """Authoritative, mutable state of one game session.

    Only the engine writes to it; callers get deep copies via snapshots.
    """

    session_id: str
    seed: int
    symbol_set: str
    round_id: int = 0
    phase: GamePhase = GamePhase.start

    tiles: list[Tile] = Field(default_factory=list)
    first_guess: GuessSlot | None = None
    second_guess: GuessSlot | None = None

    bomb_triggered: bool = False
    score: int = 0


class GameSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    session_id: str
    round_id: int
    symbol_set: str
    phase: GamePhase
    message: str
    tiles: list[Tile]
    score: int
    selected_keys: list[int]
    bomb_triggered: bool


class SessionCreateRequest(BaseModel):
    symbol_set: str | None = None


class ClickRequest(BaseModel):
    key: int = Field(..., ge=0)


class SymbolSetRequest(BaseModel):
    symbol_set: str = Field(..., min_length=1)


class SymbolModel(BaseModel):
    id: str
    content: str


class SymbolSetModel(BaseModel):
    set_id: str
    symbols: list[SymbolModel]


class SymbolSetListResponse(BaseModel):
    symbol_sets: list[SymbolSetModel]


class SessionListResponse(BaseModel):
    sessions: list[GameSnapshot]
