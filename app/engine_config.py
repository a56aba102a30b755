from __future__ import annotations

import os
from dataclasses import dataclass

from app.errors import InvalidConfiguration

DEFAULT_REVEAL_DELAY_MS = 600
DEFAULT_MAX_SESSIONS = 1000


@dataclass(frozen=True, slots=True)
class EngineConfig:
    # How long a revealed pair (or the bomb) stays on screen before the board updates.
    reveal_delay_ms: int = DEFAULT_REVEAL_DELAY_MS
    # Pause between entering `reloading` and dealing the new deck.
    reload_delay_ms: int = DEFAULT_REVEAL_DELAY_MS // 2

    def __post_init__(self) -> None:
        if self.reveal_delay_ms <= 0:
            raise InvalidConfiguration("reveal_delay_ms must be > 0")
        if self.reload_delay_ms <= 0:
            raise InvalidConfiguration("reload_delay_ms must be > 0")

    @property
    def reveal_delay(self) -> float:
        return self.reveal_delay_ms / 1000

    @property
    def reload_delay(self) -> float:
        return self.reload_delay_ms / 1000


def _int_from_env(name: str) -> int | None:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw)
    except ValueError as e:
        raise InvalidConfiguration(f"{name} must be an integer, got {raw!r}") from e


def engine_config_from_env() -> EngineConfig:
    reveal = _int_from_env("MEMORY_BOMB_REVEAL_DELAY_MS")
    if reveal is None:
        reveal = DEFAULT_REVEAL_DELAY_MS
    reload = _int_from_env("MEMORY_BOMB_RELOAD_DELAY_MS")
    if reload is None:
        reload = max(1, reveal // 2)
    return EngineConfig(reveal_delay_ms=reveal, reload_delay_ms=reload)


def max_sessions_from_env() -> int:
    value = _int_from_env("MEMORY_BOMB_MAX_SESSIONS")
    if value is None:
        return DEFAULT_MAX_SESSIONS
    if value < 1:
        raise InvalidConfiguration("MEMORY_BOMB_MAX_SESSIONS must be >= 1")
    return value
