from __future__ import annotations

import random
from collections.abc import Sequence

from app.api.models import BOMB_CONTENT, BOMB_ID, Tile
from app.assets.registry import Symbol
from app.errors import InvalidConfiguration


def build_deck(symbols: Sequence[Symbol], *, rng: random.Random) -> list[Tile]:
    """Duplicate every symbol into a pair, add the bomb and shuffle.

    Keys are assigned after shuffling, so `key` is the tile's position on the board.
    """

    if not symbols:
        raise InvalidConfiguration("Cannot build a deck from an empty symbol list")

    ids = [s.id for s in symbols]
    if len(set(ids)) != len(ids):
        raise InvalidConfiguration("Symbols must have distinct ids")
    if BOMB_ID in ids:
        raise InvalidConfiguration(f"Symbol id '{BOMB_ID}' is reserved")

    entries: list[tuple[str, str, bool]] = [(s.id, s.content, False) for s in symbols] * 2
    entries.append((BOMB_ID, BOMB_CONTENT, True))
    rng.shuffle(entries)

    return [
        Tile(id=sid, content=content, key=idx, bombed=bombed, guessed=False)
        for idx, (sid, content, bombed) in enumerate(entries)
    ]
