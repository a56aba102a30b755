from __future__ import annotations

from collections.abc import Iterable

from app.api.models import Tile

POINTS_PER_TILE = 10


def tile_points(tile: Tile, *, bomb_triggered: bool) -> int:
    """Contribution of one tile to the score.

    A tile frozen by a triggered bomb (guessed and bombed) nets zero.
    """

    points = 0
    if tile.guessed:
        points += POINTS_PER_TILE
        if tile.bombed and bomb_triggered:
            points -= POINTS_PER_TILE
    return points


def compute_score(tiles: Iterable[Tile], bomb_triggered: bool) -> int:
    return sum(tile_points(t, bomb_triggered=bomb_triggered) for t in tiles)
