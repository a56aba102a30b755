from __future__ import annotations

import pytest

from app.api.models import BOMB_ID, GamePhase, GuessSlot, Tile
from app.errors import ClickIgnored
from app.turn_processing.guesses import resolve_click
from app.turn_processing.validators import ClickContext, DEFAULT_CLICK_PIPELINE, MismatchLockValidator

A1 = Tile(id="a", content="A", key=0)
A2 = Tile(id="a", content="A", key=1)
B1 = Tile(id="b", content="B", key=2)
BOMB = Tile(id=BOMB_ID, content="🔥", key=3, bombed=True)


def _slot(tile: Tile) -> GuessSlot:
    return GuessSlot(key=tile.key, id=tile.id)


def test_first_click_fills_first_slot() -> None:
    out = resolve_click(tile=A1, first_guess=None, second_guess=None, phase=GamePhase.start)

    assert out.accepted
    assert out.first_guess == _slot(A1)
    assert out.second_guess is None
    assert not out.pair_complete
    assert not out.bomb_revealed


def test_second_click_fills_second_slot() -> None:
    out = resolve_click(tile=A2, first_guess=_slot(A1), second_guess=None, phase=GamePhase.start)

    assert out.accepted
    assert (out.first_guess, out.second_guess) == (_slot(A1), _slot(A2))
    assert out.pair_complete


@pytest.mark.parametrize("first, second", [(A1, None), (B1, A1)])
def test_reclicking_a_selected_tile_is_ignored(first: Tile, second: Tile | None) -> None:
    second_slot = _slot(second) if second is not None else None
    out = resolve_click(tile=A1, first_guess=_slot(first), second_guess=second_slot, phase=GamePhase.start)

    assert not out.accepted
    assert out.reason == "Tile is already selected"
    assert (out.first_guess, out.second_guess) == (_slot(first), second_slot)


def test_mismatched_pair_locks_the_board() -> None:
    out = resolve_click(tile=A2, first_guess=_slot(A1), second_guess=_slot(B1), phase=GamePhase.start)

    assert not out.accepted
    assert out.reason == "Mismatched pair is still showing"


def test_pending_matched_pair_gets_second_slot_replaced() -> None:
    out = resolve_click(tile=B1, first_guess=_slot(A1), second_guess=_slot(A2), phase=GamePhase.matched)

    assert out.accepted
    assert (out.first_guess, out.second_guess) == (_slot(A1), _slot(B1))


def test_bomb_click_is_flagged() -> None:
    out = resolve_click(tile=BOMB, first_guess=_slot(A1), second_guess=None, phase=GamePhase.start)

    assert out.accepted
    assert out.bomb_revealed
    assert out.second_guess == _slot(BOMB)


def test_neutralized_bomb_is_ignored() -> None:
    spent = BOMB.model_copy(update={"guessed": True})
    out = resolve_click(tile=spent, first_guess=None, second_guess=None, phase=GamePhase.bombed)

    assert not out.accepted
    assert out.reason == "Bomb already neutralized"
    assert not out.bomb_revealed


def test_guessed_tile_is_not_selectable() -> None:
    done = A1.model_copy(update={"guessed": True})
    out = resolve_click(tile=done, first_guess=None, second_guess=None, phase=GamePhase.matched)

    assert not out.accepted
    assert out.reason == "Tile is already resolved"


def test_clicks_are_ignored_while_reloading() -> None:
    out = resolve_click(tile=A1, first_guess=None, second_guess=None, phase=GamePhase.reloading)

    assert not out.accepted
    assert "reloading" in (out.reason or "")


def test_rules_are_checked_in_order() -> None:
    # Re-click wins over the mismatch lock when both apply.
    ctx = ClickContext(tile=A1, first_guess=_slot(A1), second_guess=_slot(B1), phase=GamePhase.start)
    with pytest.raises(ClickIgnored) as e:
        DEFAULT_CLICK_PIPELINE.validate(ctx=ctx)
    assert str(e.value) == "Tile is already selected"

    with pytest.raises(ClickIgnored):
        MismatchLockValidator().validate(ctx=ctx)
