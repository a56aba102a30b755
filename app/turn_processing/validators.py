from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from app.api.models import GamePhase, GuessSlot, Tile
from app.errors import ClickIgnored


@dataclass(frozen=True, slots=True)
class ClickContext:
    """Inputs available to click validators.

    Keep this tight and serializable-ish so we can safely log it.
    """

    tile: Tile
    first_guess: GuessSlot | None
    second_guess: GuessSlot | None
    phase: GamePhase


class ClickValidator(ABC):
    """A small, composable acceptance rule for a tile click."""

    @abstractmethod
    def validate(self, *, ctx: ClickContext) -> None:
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class SelectedTileValidator(ClickValidator):
    """Re-clicking a tile that already sits in a guess slot does nothing."""

    def validate(self, *, ctx: ClickContext) -> None:
        selected = {g.key for g in (ctx.first_guess, ctx.second_guess) if g is not None}
        if ctx.tile.key in selected:
            raise ClickIgnored("Tile is already selected")


@dataclass(frozen=True, slots=True)
class MismatchLockValidator(ClickValidator):
    """A displayed mismatched pair locks the board until it is cleared."""

    def validate(self, *, ctx: ClickContext) -> None:
        first, second = ctx.first_guess, ctx.second_guess
        if first is not None and second is not None and first.id != second.id:
            raise ClickIgnored("Mismatched pair is still showing")


@dataclass(frozen=True, slots=True)
class NeutralizedBombValidator(ClickValidator):
    def validate(self, *, ctx: ClickContext) -> None:
        if ctx.tile.is_bomb and ctx.tile.guessed:
            raise ClickIgnored("Bomb already neutralized")


@dataclass(frozen=True, slots=True)
class ResolvedTileValidator(ClickValidator):
    """Guessed tiles are permanently resolved and cannot be selected."""

    def validate(self, *, ctx: ClickContext) -> None:
        if ctx.tile.guessed:
            raise ClickIgnored("Tile is already resolved")


@dataclass(frozen=True, slots=True)
class PhaseValidator(ClickValidator):
    blocked_phases: frozenset[GamePhase]

    def validate(self, *, ctx: ClickContext) -> None:
        if ctx.phase in self.blocked_phases:
            raise ClickIgnored(f"Clicks are not accepted in phase '{ctx.phase.value}'")


@dataclass(frozen=True, slots=True)
class ClickPipeline:
    validators: tuple[ClickValidator, ...]

    def validate(self, *, ctx: ClickContext) -> None:
        for v in self.validators:
            v.validate(ctx=ctx)


# Order matters: the first failing rule names the reason.
DEFAULT_CLICK_PIPELINE = ClickPipeline(
    validators=(
        SelectedTileValidator(),
        MismatchLockValidator(),
        NeutralizedBombValidator(),
        ResolvedTileValidator(),
        PhaseValidator(blocked_phases=frozenset({GamePhase.reloading})),
    )
)
