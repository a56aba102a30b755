from __future__ import annotations

from dataclasses import dataclass

from app.api.models import GamePhase, GuessSlot, Tile
from app.errors import ClickIgnored
from app.turn_processing.validators import DEFAULT_CLICK_PIPELINE, ClickContext, ClickPipeline


@dataclass(frozen=True, slots=True)
class ClickOutcome:
    """Result of resolving one click against the two guess slots.

    - `accepted`: False means the click was a no-op; `reason` says why.
    - `bomb_revealed`: the clicked tile is the bomb and this is its first reveal.
    """

    accepted: bool
    first_guess: GuessSlot | None
    second_guess: GuessSlot | None
    bomb_revealed: bool = False
    reason: str | None = None

    @property
    def pair_complete(self) -> bool:
        return self.first_guess is not None and self.second_guess is not None


def resolve_click(
    *,
    tile: Tile,
    first_guess: GuessSlot | None,
    second_guess: GuessSlot | None,
    phase: GamePhase,
    pipeline: ClickPipeline = DEFAULT_CLICK_PIPELINE,
) -> ClickOutcome:
    ctx = ClickContext(tile=tile, first_guess=first_guess, second_guess=second_guess, phase=phase)
    try:
        pipeline.validate(ctx=ctx)
    except ClickIgnored as e:
        return ClickOutcome(accepted=False, first_guess=first_guess, second_guess=second_guess, reason=str(e))

    slot = GuessSlot(key=tile.key, id=tile.id)
    # Fill order is asymmetric: a pending matched pair gets its second slot replaced.
    if first_guess is None:
        first_guess = slot
    else:
        second_guess = slot

    return ClickOutcome(
        accepted=True,
        first_guess=first_guess,
        second_guess=second_guess,
        bomb_revealed=tile.is_bomb,
    )
