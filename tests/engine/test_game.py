from __future__ import annotations

import pytest

from row4.engine.board import Color
from row4.engine.game import Game


def test_apply_move_and_history() -> None:
    game = Game.new()
    game.apply_move(3)
    game.apply_move(2)
    assert game.move_stack == [3, 2]
    assert game.last_move() == 2
    assert game.to_move is Color.RED


def test_apply_rejects_illegal_move() -> None:
    game = Game.new()
    for _ in range(6):
        game.apply_move(0)
    with pytest.raises(ValueError):
        game.apply_move(0)
    with pytest.raises(ValueError):
        game.apply_move(7)


def test_no_moves_after_a_win() -> None:
    game = Game.new()
    for column in (4, 3, 4, 3, 4, 3, 4):
        game.apply_move(column)
    assert game.winner is Color.RED
    assert game.is_over()
    assert not game.is_draw()
    assert game.legal_moves() == []
    with pytest.raises(ValueError):
        game.apply_move(2)


def test_undo_restores_previous_board() -> None:
    game = Game.new()
    game.apply_move(3)
    snapshot = game.board.copy()
    game.apply_move(4)
    game.undo_move()
    assert game.board == snapshot
    assert game.move_stack == [3]


def test_undo_on_empty_history_raises() -> None:
    with pytest.raises(ValueError):
        Game.new().undo_move()


def test_blue_may_start() -> None:
    game = Game.new(first=Color.BLUE)
    game.apply_move(3)
    assert game.board.blue != 0 and game.board.red == 0
