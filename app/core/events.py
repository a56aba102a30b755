from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Literal

EventType = Literal[
    "ROUND_STARTED",
    "RELOADING",
    "TILE_SELECTED",
    "PAIR_MATCHED",
    "PAIR_MISMATCHED",
    "BOMB_REVEALED",
    "BOMB_RESOLVED",
    "GAME_OVER",
]


@dataclass(frozen=True, slots=True)
class GameEvent:
    type: EventType
    round_id: int
    payload: dict[str, Any]
    ts: datetime

    @staticmethod
    def now(*, type: EventType, round_id: int, payload: dict[str, Any]) -> "GameEvent":
        return GameEvent(type=type, round_id=round_id, payload=payload, ts=datetime.now(timezone.utc))
