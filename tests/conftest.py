import os
import sys

import pytest


# Ensure the repository root is on sys.path for `from row4...` imports
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from row4.engine.board import COLUMNS, ROWS, Board, Color  # noqa: E402


def draw_color(column: int, row: int) -> Color:
    # Pairs of columns alternate colour and every row flips the pattern,
    # which leaves no four in a row anywhere on a full board.
    red = (column // 2) % 2 == 0
    if row % 2 == 1:
        red = not red
    return Color.RED if red else Color.BLUE


def fill_draw_pattern(skip_top=()) -> Board:
    board = Board.new()
    for row in range(ROWS):
        for column in range(COLUMNS):
            if row == ROWS - 1 and column in skip_top:
                continue
            board.play_move(column, draw_color(column, row))
    return board


@pytest.fixture
def full_draw_board() -> Board:
    return fill_draw_pattern()
