from __future__ import annotations

import random

from row4.engine.board import (
    COLUMN_ORDER,
    COLUMNS,
    ROWS,
    Board,
    Color,
    position_mask,
    win_masks,
    winner_of,
)


def test_position_mask() -> None:
    assert position_mask(3, 1) == 2048
    assert position_mask(0, 0) == 1
    assert position_mask(6, 5) == 1 << 46


def test_height_and_moves_follow_column_priority() -> None:
    board = Board(heights=[0, 6, 5, 3, 1, 6, 0])
    assert board.height(0) == 0
    assert board.height(1) == 6
    assert board.height(3) == 3
    assert board.legal_moves() == (3, 2, 4, 0, 6)


def test_play_move_sets_bits_and_heights() -> None:
    board = Board(red=8, heights=[0, 0, 0, 1, 0, 0, 0])
    board.play_move(3, Color.RED, gen_moves=False)
    board.play_move(1, Color.BLUE, gen_moves=False)

    assert board.blue == 2
    assert board.red == 2056
    assert board.heights == [0, 1, 0, 2, 0, 0, 0]


def test_play_moves_alternates_colors() -> None:
    board = Board(red=8, heights=[0, 0, 0, 1, 0, 0, 0])
    board.play_moves([3, 1], Color.BLUE)

    assert board.blue == 2048
    assert board.red == 10
    assert board.heights == [0, 1, 0, 2, 0, 0, 0]
    assert board.winner is None
    assert board.color_to_move is Color.RED


def test_play_move_defaults_to_color_to_move() -> None:
    board = Board.new()
    assert board.color_to_move is Color.RED
    board.play_move(3)
    assert board.red == position_mask(3, 0)
    assert board.color_to_move is Color.BLUE
    board.play_move(3)
    assert board.blue == position_mask(3, 1)


def test_skipping_move_generation_keeps_stale_list() -> None:
    board = Board.new()
    for _ in range(ROWS):
        board.play_move(0, gen_moves=False)
    assert 0 in board.moves
    assert 0 not in board.legal_moves()
    board.play_move(1)
    assert 0 not in board.moves


def test_vertical_stack_wins_for_red() -> None:
    board = Board.new()
    board.play_moves([4, 3, 4, 3, 4, 3, 4], Color.RED)
    assert board.winner is Color.RED


def test_diagonal_win_and_near_miss() -> None:
    board = Board.new()
    board.play_moves([3, 4, 4, 3, 3, 4, 4, 3, 1, 2, 2], Color.BLUE)
    assert board.winner is Color.BLUE

    board.reset()
    board.play_moves([3, 4, 4, 3, 3, 4, 4, 3, 1, 1, 2, 2], Color.BLUE)
    assert board.winner is None


def test_full_board_without_line_is_drawn(full_draw_board: Board) -> None:
    assert full_draw_board.winner is None
    assert full_draw_board.moves == ()
    assert full_draw_board.legal_moves() == ()
    assert full_draw_board.empty_cells() == 0
    assert bin(full_draw_board.red).count("1") == 21
    assert bin(full_draw_board.blue).count("1") == 21
    assert full_draw_board.red & full_draw_board.blue == 0


def test_win_table_is_built_once_with_every_line() -> None:
    masks = win_masks()
    assert masks is win_masks()
    assert len(masks) == 69
    assert len(set(masks)) == 69
    assert all(bin(m).count("1") == 4 for m in masks)


def _scan_for_line(cells: dict) -> Color | None:
    for (col, row), color in cells.items():
        for dc, dr in ((1, 0), (0, 1), (1, 1), (1, -1)):
            if all(cells.get((col + i * dc, row + i * dr)) is color for i in range(4)):
                return color
    return None


def test_winner_matches_literal_scan_over_random_games() -> None:
    rng = random.Random(1234)
    for _ in range(60):
        board = Board.new()
        cells: dict = {}
        while board.winner is None and board.moves:
            column = rng.choice(board.moves)
            cells[(column, board.height(column))] = board.color_to_move
            board.play_move(column)
            assert winner_of(board.red, board.blue) == _scan_for_line(cells)
        assert board.winner == _scan_for_line(cells)


def test_copy_is_independent() -> None:
    board = Board.from_moves([3, 3, 2])
    clone = board.copy()
    clone.play_move(4)
    assert board.heights[4] == 0
    assert clone.heights[4] == 1
    assert board.red != clone.red or board.blue != clone.blue


def test_rows_render_top_row_first() -> None:
    board = Board.from_moves([0, 6])
    rows = board.rows()
    assert len(rows) == ROWS
    assert rows[-1] == "x . . . . . o"
    assert rows[0] == " ".join(["."] * COLUMNS)
    assert str(board).splitlines() == rows


def test_new_board_lists_all_columns() -> None:
    assert Board.new().moves == COLUMN_ORDER
