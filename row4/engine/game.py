from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from .board import Board, Color


@dataclass
class Game:
    """Game wrapper around a board with helper operations.

    Responsibility: track board state, validate and apply externally chosen
    moves, undo.
    """

    board: Board
    move_stack: List[int] = field(default_factory=list)
    _previous: List[Board] = field(default_factory=list, repr=False)

    @classmethod
    def new(cls, first: Color = Color.RED) -> "Game":
        return cls(board=Board(color_to_move=first))

    def legal_moves(self) -> List[int]:
        if self.board.winner is not None:
            return []
        return list(self.board.moves)

    def apply_move(self, column: int) -> None:
        # Validate legality
        if column not in self.legal_moves():
            raise ValueError("illegal move")
        self._previous.append(self.board.copy())
        self.board.play_move(column)
        self.move_stack.append(column)

    def undo_move(self) -> None:
        if not self.move_stack:
            raise ValueError("no moves to undo")
        self.move_stack.pop()
        self.board = self._previous.pop()

    # --- State flags for protocol ---
    @property
    def to_move(self) -> Color:
        return self.board.color_to_move

    @property
    def winner(self) -> Optional[Color]:
        return self.board.winner

    def is_draw(self) -> bool:
        return self.board.winner is None and not self.board.moves

    def is_over(self) -> bool:
        return self.board.winner is not None or not self.board.moves

    def last_move(self) -> Optional[int]:
        return self.move_stack[-1] if self.move_stack else None
