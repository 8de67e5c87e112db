from __future__ import annotations

import logging
import random
import sys
from typing import Callable, Optional

from ...engine.board import Color
from ...engine.game import Game
from ...eval import choose_monte_carlo
from ...search.config import SearchConfig
from ...search.service import SearchService


logger = logging.getLogger(__name__)

Writer = Callable[[str], None]


class ConsoleGame:
    """Terminal adapter: the engine plays one colour, a human the other.

    Columns are shown and read 1-based. With ``flat_millis`` set the engine
    skips the tree search and picks moves by flat Monte Carlo.
    """

    def __init__(
        self,
        config: Optional[SearchConfig] = None,
        ai_color: Color = Color.RED,
        flat_millis: Optional[int] = None,
    ) -> None:
        self.game = Game.new()
        self.ai_color = ai_color
        self.search = SearchService(config)
        self.flat_millis = flat_millis
        self._rng = random.Random(self.search.config.seed)

    def new_game(self) -> None:
        self.game = Game.new()
        self.search.new_game()

    def ai_to_move(self) -> bool:
        return not self.game.is_over() and self.game.to_move is self.ai_color

    def cmd_ai_move(self, write: Writer) -> int:
        if self.flat_millis is not None:
            return self._flat_ai_move(write)
        res = self.search.search(self.game.board)
        if res.best_move is None:
            raise ValueError("game is already over")
        self.game.apply_move(res.best_move)
        shown = [c + 1 for c in res.variation]
        write(f"ai moves: {shown}, win rate: {res.score:.3f} ({res.moves_simulated})")
        write(str(self.game.board))
        write("")
        return res.best_move

    def _flat_ai_move(self, write: Writer) -> int:
        column, rate, games = choose_monte_carlo(
            self.game.board, self.ai_color, self.flat_millis, rng=self._rng
        )
        self.game.apply_move(column)
        write(f"ai moves: [{column + 1}], win rate: {rate:.3f} ({games} games)")
        write(str(self.game.board))
        write("")
        return column

    def cmd_human_move(self, text: str, write: Writer) -> bool:
        """Apply a 1-based column typed by the human; report bad input."""
        try:
            column = int(text.strip()) - 1
        except ValueError:
            write(f"not a column: {text.strip()!r}")
            return False
        try:
            self.game.apply_move(column)
        except ValueError:
            write(f"illegal move: {column + 1}")
            return False
        write(f"player move: {column + 1}")
        write(str(self.game.board))
        write("")
        return True

    def result_line(self) -> str:
        winner = self.game.winner
        if winner is None:
            return "draw"
        return "ai wins" if winner is self.ai_color else "you win"


def _default_writer(line: str) -> None:
    sys.stdout.write(line + "\n")
    sys.stdout.flush()


def run_console(console: Optional[ConsoleGame] = None) -> None:
    console = console or ConsoleGame()
    write = _default_writer
    if console.game.to_move is not console.ai_color:
        write(str(console.game.board))
        write("")
    while not console.game.is_over():
        if console.ai_to_move():
            console.cmd_ai_move(write)
            continue
        write("Your move: ")
        raw = sys.stdin.readline()
        if not raw:
            logger.info("input closed, leaving game")
            return
        console.cmd_human_move(raw, write)
    write(console.result_line())
