from __future__ import annotations

from typing import List

from .board import Board


def useful_moves(board: Board) -> List[int]:
    """Restrict the legal moves to a forced move when one exists.

    Returns a single column that wins at once for the colour to move, else a
    single column the opponent would win with next turn, else every legal
    column. Candidates are tried in the board's column priority order.
    """
    mover = board.color_to_move
    for column in board.moves:
        sim = board.copy()
        sim.play_move(column, mover, gen_moves=False)
        if sim.winner is not None:
            return [column]

    opponent = mover.other()
    for column in board.moves:
        sim = board.copy()
        sim.play_move(column, opponent, gen_moves=False)
        if sim.winner is not None:
            return [column]

    return list(board.moves)
