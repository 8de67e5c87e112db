from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from row4.engine.board import Board, Color
from row4.engine.tactics import useful_moves
from row4.eval import evaluate, evaluate_parallel
from .cache import BoardCache
from .config import SearchConfig
from .timer import Timer


logger = logging.getLogger(__name__)

# Leaf evaluator: (board, colour to score for) -> (win probability, simulated plies)
Evaluate = Callable[[Board, Color], Tuple[float, int]]

WIN = 1.0
LOSS = 0.0
DRAW = 0.5
# Sentinels outside the [0, 1] score range
_BELOW = -1.0
_ABOVE = 2.0


@dataclass
class SearchResult:
    best_move: Optional[int]
    variation: List[int]
    score: float
    moves_simulated: int
    positions: int
    depth: int
    time_ms: int
    cache_hits: int = 0
    cache_probes: int = 0
    cache_size: int = 0
    iters: List[Dict[str, int]] = field(default_factory=list)


def terminal_score(board: Board, own_color: Color) -> Optional[float]:
    """Score a finished game for ``own_color``; ``None`` while it is running."""
    if board.winner is not None:
        return WIN if board.winner is own_color else LOSS
    if not board.moves:
        return DRAW
    return None


def minmax(
    board: Board, own_color: Color, depth: int, evaluate_leaf: Evaluate
) -> Tuple[List[int], float, int]:
    """Exhaustive minimax over the tactical move set.

    Returns the best line (root first), its score for ``own_color`` and the
    number of plies simulated by ``evaluate_leaf``. Ties keep the earlier move.
    """
    score = terminal_score(board, own_color)
    if score is not None:
        return [], score, 0
    if depth == 0:
        value, simulated = evaluate_leaf(board, own_color)
        return [], value, simulated

    maximizing = board.color_to_move is own_color
    best = _BELOW if maximizing else _ABOVE
    best_line: List[int] = []
    total = 0
    for column in useful_moves(board):
        child = board.copy()
        child.play_move(column)
        line, value, simulated = minmax(child, own_color, depth - 1, evaluate_leaf)
        total += simulated
        if (maximizing and value > best) or (not maximizing and value < best):
            best = value
            best_line = [column] + line
    return best_line, best, total


def alphabeta(
    board: Board,
    own_color: Color,
    depth: int,
    evaluate_leaf: Evaluate,
    alpha: float = _BELOW,
    beta: float = _ABOVE,
    hint: Sequence[int] = (),
) -> Tuple[List[int], float, int, int]:
    """Minimax with alpha-beta pruning.

    ``hint`` is the remainder of an earlier best line: its first column is
    searched first here and the rest is passed down that branch only.

    Returns:
        Tuple[List[int], float, int, int]: Best line (root first), score for
        ``own_color``, simulated plies and positions visited.
    """
    score = terminal_score(board, own_color)
    if score is not None:
        return [], score, 0, 1
    if depth == 0:
        value, simulated = evaluate_leaf(board, own_color)
        return [], value, simulated, 1

    moves = useful_moves(board)
    child_hint: Sequence[int] = ()
    if hint and hint[0] in moves:
        moves.remove(hint[0])
        moves.insert(0, hint[0])
        child_hint = hint[1:]

    maximizing = board.color_to_move is own_color
    best = _BELOW if maximizing else _ABOVE
    best_line: List[int] = []
    total = 0
    positions = 1
    for idx, column in enumerate(moves):
        child = board.copy()
        child.play_move(column)
        line, value, simulated, visited = alphabeta(
            child,
            own_color,
            depth - 1,
            evaluate_leaf,
            alpha,
            beta,
            child_hint if idx == 0 else (),
        )
        total += simulated
        positions += visited
        if maximizing:
            if value > best:
                best = value
                best_line = [column] + line
            alpha = max(alpha, best)
        else:
            if value < best:
                best = value
                best_line = [column] + line
            beta = min(beta, best)
        if beta <= alpha:
            break
    return best_line, best, total, positions


class SearchService:
    """Iterative-deepening alpha-beta search with Monte Carlo leaves.

    One service is meant to live for one game: its ``BoardCache`` keeps leaf
    estimates across searches until ``new_game`` is called.
    """

    def __init__(
        self, config: Optional[SearchConfig] = None, evaluate_leaf: Optional[Evaluate] = None
    ) -> None:
        self.config = (config or SearchConfig()).validate()
        self.cache = BoardCache()
        self._evaluate_leaf = evaluate_leaf
        self._rng = random.Random(self.config.seed)
        self._leaf_calls = 0

    def new_game(self) -> None:
        self.cache.clear()

    def _monte_carlo(
        self, board: Board, own_color: Color, cfg: SearchConfig
    ) -> Tuple[float, int]:
        if self._evaluate_leaf is not None:
            return self._evaluate_leaf(board, own_color)
        if cfg.workers > 1:
            seed = None
            if cfg.seed is not None:
                seed = cfg.seed + self._leaf_calls * cfg.workers
            self._leaf_calls += 1
            return evaluate_parallel(
                board,
                own_color,
                num_games=cfg.games_per_leaf,
                workers=cfg.workers,
                millis=cfg.leaf_millis,
                seed=seed,
            )
        return evaluate(
            board, own_color, num_games=cfg.games_per_leaf, millis=cfg.leaf_millis, rng=self._rng
        )

    def _leaf(self, board: Board, own_color: Color, cfg: SearchConfig) -> Tuple[float, int]:
        cached = self.cache.get(board, own_color)
        if cached is not None:
            return cached, 0
        value, simulated = self._monte_carlo(board, own_color, cfg)
        self.cache.store(board, value, own_color)
        return value, simulated

    def search(
        self,
        board: Board,
        budget_ms: Optional[int] = None,
        max_depth: Optional[int] = None,
        on_iter: Optional[
            Callable[
                [
                    int,  # depth
                    int,  # time_ms since start
                    float,  # score
                    List[int],  # variation
                ],
                None,
            ]
        ] = None,
        config: Optional[SearchConfig] = None,
    ) -> SearchResult:
        """Search ``board`` for the colour to move.

        ``config`` replaces the service configuration for this call only; the
        explicit ``budget_ms`` and ``max_depth`` arguments win over both.
        """
        # Deepen 1, 2, ... until the ceiling, the number of empty cells or the
        # time budget is reached. Time is only checked between depths.
        cfg = config.validate() if config is not None else self.config
        budget = budget_ms if budget_ms is not None else cfg.budget_ms
        ceiling = max_depth if max_depth is not None else cfg.max_depth

        def leaf(b: Board, color: Color) -> Tuple[float, int]:
            return self._leaf(b, color, cfg)

        own_color = board.color_to_move
        timer = Timer()
        hits_before = self.cache.hits
        probes_before = self.cache.probes

        root_score = terminal_score(board, own_color)
        if root_score is not None:
            return SearchResult(
                best_move=None,
                variation=[],
                score=root_score,
                moves_simulated=0,
                positions=1,
                depth=0,
                time_ms=timer.elapsed_millis(),
                cache_size=len(self.cache),
            )

        last_line: List[int] = []
        last_score = DRAW
        completed_depth = 0
        moves_simulated = 0
        positions = 0
        iters: List[Dict[str, int]] = []

        for d in range(1, min(ceiling, board.empty_cells()) + 1):
            iter_timer = Timer()
            line, score, simulated, visited = alphabeta(
                board, own_color, d, leaf, hint=last_line
            )
            moves_simulated += simulated
            positions += visited
            iters.append(
                {
                    "depth": d,
                    "time_ms": iter_timer.elapsed_millis(),
                    "positions": visited,
                    "moves_simulated": simulated,
                }
            )
            logger.debug(
                "depth %d: score %.3f line %s (%d positions, %d simulated)",
                d,
                score,
                line,
                visited,
                simulated,
            )
            if on_iter is not None:
                try:
                    on_iter(d, timer.elapsed_millis(), score, list(line))
                except Exception:
                    logger.exception("on_iter callback failed")
            last_line, last_score, completed_depth = line, score, d
            if budget is not None and timer.expired(budget):
                break

        best_move = last_line[0] if last_line else useful_moves(board)[0]
        result = SearchResult(
            best_move=best_move,
            variation=last_line,
            score=last_score,
            moves_simulated=moves_simulated,
            positions=positions,
            depth=completed_depth,
            time_ms=timer.elapsed_millis(),
            cache_hits=self.cache.hits - hits_before,
            cache_probes=self.cache.probes - probes_before,
            cache_size=len(self.cache),
            iters=iters,
        )
        logger.info(
            "search done: move %s score %.3f depth %d in %d ms",
            result.best_move,
            result.score,
            result.depth,
            result.time_ms,
        )
        return result


def choose_move(
    board: Board,
    budget_ms: Optional[int] = None,
    config: Optional[SearchConfig] = None,
) -> Tuple[Optional[int], List[int], float, int, int]:
    """One-shot search with a fresh service.

    Returns:
        Tuple: Column to play, best line (root first), win probability for
        the colour to move, simulated plies and positions visited.
    """
    res = SearchService(config).search(board, budget_ms=budget_ms)
    return res.best_move, res.variation, res.score, res.moves_simulated, res.positions
