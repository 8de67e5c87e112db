from __future__ import annotations

from typing import Dict, Optional, Tuple

from row4.engine.board import COLUMNS, ROWS, ROW_STRIDE, Board, Color


ROW_BITS = (1 << COLUMNS) - 1


def mirror(src: int) -> int:
    """Reflect a bitboard across the vertical center line.

    Column ``c`` maps to column ``6 - c`` within each row; applying it twice
    returns the input.
    """
    target = 0
    for row in range(ROWS):
        bits = (src >> (row * ROW_STRIDE)) & ROW_BITS
        flipped = 0
        for column in range(COLUMNS):
            if bits & (1 << column):
                flipped |= 1 << (COLUMNS - 1 - column)
        target |= flipped << (row * ROW_STRIDE)
    return target


class BoardCache:
    """Win probability cache keyed by ``(own stones, opponent stones)``.

    A stored estimate belongs to the colour whose stones come first in the
    key. Each ``store`` also writes the colour-swapped view (``1 - p``,
    an approximation that ignores draws) and the mirrored views of both.
    Lookups only ever read the exact key for the requested colour.
    """

    def __init__(self) -> None:
        self._table: Dict[Tuple[int, int], float] = {}
        self.probes = 0
        self.hits = 0
        self.stores = 0

    @staticmethod
    def key(board: Board, color: Optional[Color] = None) -> Tuple[int, int]:
        if color is None:
            color = board.color_to_move
        return board.mask(color), board.mask(color.other())

    def get(self, board: Board, color: Optional[Color] = None) -> Optional[float]:
        self.probes += 1
        value = self._table.get(self.key(board, color))
        if value is not None:
            self.hits += 1
        return value

    def store(self, board: Board, probability: float, color: Optional[Color] = None) -> None:
        own, opp = self.key(board, color)
        self._table[(own, opp)] = probability
        # swapped colours: pessimistic approximation in the presence of draws
        self._table[(opp, own)] = 1.0 - probability

        own_m = mirror(own)
        opp_m = mirror(opp)
        self._table[(own_m, opp_m)] = probability
        self._table[(opp_m, own_m)] = 1.0 - probability
        self.stores += 1

    def clear(self) -> None:
        self._table.clear()
        self.probes = 0
        self.hits = 0
        self.stores = 0

    def __len__(self) -> int:
        return len(self._table)
