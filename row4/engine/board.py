from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Tuple


COLUMNS = 7
ROWS = 6
# Row stride in bits; one spare bit per row keeps rows apart.
ROW_STRIDE = 8

# Search order: center first, then outward.
COLUMN_ORDER: Tuple[int, ...] = (3, 2, 4, 1, 5, 0, 6)


class Color(Enum):
    RED = "red"
    BLUE = "blue"

    def other(self) -> "Color":
        return Color.BLUE if self is Color.RED else Color.RED

    @property
    def symbol(self) -> str:
        return "x" if self is Color.RED else "o"


def position_mask(column: int, height: int) -> int:
    """Return the single-bit mask of the cell at ``column``/``height``.

    Bits 0..6 of the lowest byte are the bottom row, bits 8..14 the second
    row, and so on.
    """
    return 1 << (height * ROW_STRIDE + column)


def _compute_win_masks() -> List[int]:
    masks: List[int] = []
    # vertical
    for col in range(COLUMNS):
        for row in range(ROWS - 3):
            mask = 0
            for idx in range(4):
                mask |= position_mask(col, row + idx)
            masks.append(mask)
    # horizontal
    for row in range(ROWS):
        for col in range(COLUMNS - 3):
            mask = 0
            for idx in range(4):
                mask |= position_mask(col + idx, row)
            masks.append(mask)
    # diagonals, both directions
    for row in range(ROWS - 3):
        for col in range(COLUMNS - 3):
            rising = 0
            falling = 0
            for idx in range(4):
                rising |= position_mask(col + idx, row + idx)
                falling |= position_mask(col + 3 - idx, row + idx)
            masks.append(rising)
            masks.append(falling)
    return masks


_WIN_MASKS: Optional[Tuple[int, ...]] = None
_WIN_MASKS_LOCK = threading.Lock()


def win_masks() -> Tuple[int, ...]:
    """Return the process-wide table of four-in-a-row masks.

    Built on first use; later calls return the same immutable tuple.
    """
    global _WIN_MASKS
    if _WIN_MASKS is None:
        with _WIN_MASKS_LOCK:
            if _WIN_MASKS is None:
                _WIN_MASKS = tuple(_compute_win_masks())
    return _WIN_MASKS


def winner_of(red: int, blue: int) -> Optional[Color]:
    """Return the first colour whose stones cover a complete line."""
    for mask in win_masks():
        if red & mask == mask:
            return Color.RED
        if blue & mask == mask:
            return Color.BLUE
    return None


@dataclass
class Board:
    """Gravity-drop 7x6 board with one occupancy bitboard per colour.

    Notes:
    - ``moves`` caches the playable columns in ``COLUMN_ORDER``; it is only
      refreshed when ``play_move`` is called with ``gen_moves=True``.
    - ``winner`` is recomputed after every move.
    - ``play_move`` does not check legality; callers pick from ``moves``.
    """

    red: int = 0
    blue: int = 0
    heights: List[int] = field(default_factory=lambda: [0] * COLUMNS)
    color_to_move: Color = Color.RED
    moves: Tuple[int, ...] = COLUMN_ORDER
    winner: Optional[Color] = None

    @classmethod
    def new(cls) -> "Board":
        return cls()

    @classmethod
    def from_moves(cls, columns: Iterable[int], first: Color = Color.RED) -> "Board":
        board = cls(color_to_move=first)
        board.play_moves(columns, first)
        return board

    def copy(self) -> "Board":
        return Board(
            red=self.red,
            blue=self.blue,
            heights=list(self.heights),
            color_to_move=self.color_to_move,
            moves=self.moves,
            winner=self.winner,
        )

    def reset(self) -> None:
        self.red = 0
        self.blue = 0
        self.heights = [0] * COLUMNS
        self.color_to_move = Color.RED
        self.moves = COLUMN_ORDER
        self.winner = None

    def mask(self, color: Color) -> int:
        return self.red if color is Color.RED else self.blue

    def height(self, column: int) -> int:
        return self.heights[column]

    def stones(self) -> int:
        return sum(self.heights)

    def empty_cells(self) -> int:
        return COLUMNS * ROWS - self.stones()

    def legal_moves(self) -> Tuple[int, ...]:
        """Compute the playable columns from the column heights."""
        return tuple(c for c in COLUMN_ORDER if self.heights[c] < ROWS)

    def play_move(
        self, column: int, color: Optional[Color] = None, gen_moves: bool = True
    ) -> None:
        """Drop a stone of ``color`` (default: colour to move) into ``column``.

        Passing ``gen_moves=False`` skips refreshing ``moves``; used for
        throwaway boards that are only inspected for a winner.
        """
        if color is None:
            color = self.color_to_move
        height = self.heights[column]
        bit = position_mask(column, height)
        self.heights[column] = height + 1
        if color is Color.RED:
            self.red |= bit
        else:
            self.blue |= bit
        self.color_to_move = color.other()
        if gen_moves:
            self.moves = self.legal_moves()
        self.winner = winner_of(self.red, self.blue)

    def play_moves(self, columns: Iterable[int], color: Optional[Color] = None) -> None:
        """Play ``columns`` in order, alternating colours starting at ``color``."""
        if color is None:
            color = self.color_to_move
        for column in columns:
            self.play_move(column, color)
            color = color.other()

    def rows(self) -> List[str]:
        """Render the grid as text lines, top row first."""
        lines: List[str] = []
        for row in range(ROWS - 1, -1, -1):
            cells = []
            for column in range(COLUMNS):
                bit = position_mask(column, row)
                if self.red & bit:
                    cells.append(Color.RED.symbol)
                elif self.blue & bit:
                    cells.append(Color.BLUE.symbol)
                else:
                    cells.append(".")
            lines.append(" ".join(cells))
        return lines

    def __str__(self) -> str:
        return "\n".join(self.rows())
