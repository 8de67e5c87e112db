from __future__ import annotations

import random

import pytest

from row4.engine.board import COLUMNS, ROWS, Board, Color, position_mask
from row4.search.cache import BoardCache, mirror


def _random_mask(rng: random.Random) -> int:
    mask = 0
    for row in range(ROWS):
        for column in range(COLUMNS):
            if rng.random() < 0.4:
                mask |= position_mask(column, row)
    return mask


def test_mirror_known_values() -> None:
    assert mirror(0) == 0
    assert mirror(1) == 1 << 6
    assert mirror(1 | 1 << 1 | 1 << 6) == 1 | 1 << 5 | 1 << 6
    assert mirror(525324) == 528408
    assert mirror(134219792) == 134219780


def test_mirror_keeps_rows() -> None:
    assert mirror(position_mask(0, 5)) == position_mask(6, 5)
    assert mirror(position_mask(3, 2)) == position_mask(3, 2)


def test_mirror_is_its_own_inverse() -> None:
    rng = random.Random(99)
    for _ in range(200):
        mask = _random_mask(rng)
        assert mirror(mirror(mask)) == mask


def test_store_then_get_round_trip() -> None:
    cache = BoardCache()
    board = Board.from_moves([0, 1, 0])
    assert cache.get(board) is None
    cache.store(board, 0.7)
    assert cache.get(board) == 0.7


def test_store_writes_swapped_and_mirrored_entries() -> None:
    cache = BoardCache()
    board = Board.from_moves([0, 1, 0])  # blue to move
    cache.store(board, 0.7)
    assert len(cache) == 4

    # Same stones with the colours exchanged, now seen by the new mover
    swapped = Board(red=board.blue, blue=board.red, color_to_move=Color.BLUE)
    assert cache.get(swapped) == pytest.approx(0.3)

    mirrored = Board(
        red=mirror(board.red), blue=mirror(board.blue), color_to_move=Color.BLUE
    )
    assert cache.get(mirrored) == 0.7

    mirrored_swapped = Board(
        red=mirror(board.blue), blue=mirror(board.red), color_to_move=Color.BLUE
    )
    assert cache.get(mirrored_swapped) == pytest.approx(0.3)


def test_explicit_color_selects_the_key() -> None:
    cache = BoardCache()
    board = Board.from_moves([2, 3])  # red to move
    cache.store(board, 0.9, Color.RED)
    assert cache.get(board) == 0.9
    assert cache.get(board, Color.BLUE) == pytest.approx(0.1)


def test_counters_and_clear() -> None:
    cache = BoardCache()
    board = Board.from_moves([5])
    cache.get(board)
    cache.store(board, 0.4)
    cache.get(board)
    assert cache.probes == 2
    assert cache.hits == 1
    assert cache.stores == 1
    cache.clear()
    assert len(cache) == 0
    assert cache.probes == cache.hits == cache.stores == 0
    assert cache.get(board) is None


def test_symmetric_position_collapses_entries() -> None:
    cache = BoardCache()
    cache.store(Board.from_moves([3]), 0.6)
    # Column 3 is its own mirror image
    assert len(cache) == 2
