"""Monte Carlo position evaluation.

A position is scored for one colour by playing random games to the end and
counting the share that colour wins. Every simulated ply draws from the
tactical move set, so one-move wins and forced blocks are never missed by
the random players.
"""

from __future__ import annotations

import logging
import random
from concurrent.futures import ThreadPoolExecutor
from typing import Final, List, Optional, Tuple

from row4.engine.board import Board, Color
from row4.engine.tactics import useful_moves
from row4.search.timer import Timer


logger = logging.getLogger(__name__)

# Worker threads used by the parallel evaluator
WORKERS: Final = 4
# Reported when no game finished inside the budget
NO_GAMES_WIN_RATE: Final = 0.5


class MonteCarloWorkerError(RuntimeError):
    """A parallel evaluation worker terminated abnormally."""


def play_random_game(board: Board, rng: random.Random) -> Tuple[int, Optional[Color]]:
    """Play ``board`` out with random tactical moves, mutating it.

    Returns:
        Tuple[int, Optional[Color]]: Plies played and the winner (``None``
        for a draw).
    """
    plies = 0
    while board.winner is None:
        moves = useful_moves(board)
        if not moves:
            return plies, None
        board.play_move(rng.choice(moves))
        plies += 1
    return plies, board.winner


def evaluate(
    board: Board,
    own_color: Color,
    num_games: Optional[int] = None,
    millis: Optional[int] = None,
    rng: Optional[random.Random] = None,
) -> Tuple[float, int]:
    """Estimate the probability that ``own_color`` wins from ``board``.

    Args:
        board (Board): Position to evaluate; left untouched.
        own_color (Color): Colour the win rate is reported for.
        num_games (Optional[int]): Stop after this many games.
        millis (Optional[int]): Stop once this many milliseconds elapsed.
        rng (Optional[random.Random]): Random source; a fresh one by default.

    Returns:
        Tuple[float, int]: Win rate over completed games (draws count as
        non-wins) and the total number of simulated plies.

    Raises:
        ValueError: If neither ``num_games`` nor ``millis`` is given.
    """
    if num_games is None and millis is None:
        raise ValueError("either num_games or millis is required")
    wins, total, plies = _play_games(board, own_color, num_games, millis, rng or random.Random())
    if total == 0:
        return NO_GAMES_WIN_RATE, plies
    return wins / total, plies


def _play_games(
    board: Board,
    own_color: Color,
    num_games: Optional[int],
    millis: Optional[int],
    rng: random.Random,
) -> Tuple[int, int, int]:
    # Returns (wins for own_color, games finished, plies played)
    timer = Timer()
    wins = 0
    total = 0
    plies = 0
    while True:
        if num_games is not None and total >= num_games:
            break
        if millis is not None and timer.expired(millis):
            break
        sim = board.copy()
        played, winner = play_random_game(sim, rng)
        if winner is own_color:
            wins += 1
        total += 1
        plies += played
    return wins, total, plies


def _split_games(num_games: int, workers: int) -> List[int]:
    base, rest = divmod(num_games, workers)
    slices = [base + (1 if i < rest else 0) for i in range(workers)]
    return [n for n in slices if n > 0]


def evaluate_parallel(
    board: Board,
    own_color: Color,
    num_games: Optional[int] = None,
    workers: int = WORKERS,
    millis: Optional[int] = None,
    seed: Optional[int] = None,
) -> Tuple[float, int]:
    """Run :func:`evaluate` on a pool of worker threads and merge the results.

    The game count is divided evenly across ``workers``; each worker plays on
    its own copy of ``board`` with its own random source. With only a time
    budget every worker runs for the full ``millis``.

    Returns:
        Tuple[float, int]: Mean of the per-worker win rates and the summed
        ply count.

    Raises:
        ValueError: On a non-positive worker count or with no budget given.
        MonteCarloWorkerError: If any worker fails.
    """
    if workers < 1:
        raise ValueError("workers must be >= 1")
    if num_games is None and millis is None:
        raise ValueError("either num_games or millis is required")

    if num_games is not None:
        slices: List[Optional[int]] = list(_split_games(num_games, workers))
    else:
        slices = [None] * workers
    if not slices:
        return NO_GAMES_WIN_RATE, 0

    rngs = [random.Random(None if seed is None else seed + i) for i in range(len(slices))]
    logger.debug("monte carlo fan-out", extra={"workers": len(slices), "games": num_games})

    with ThreadPoolExecutor(max_workers=len(slices), thread_name_prefix="row4-mc") as pool:
        futures = [
            pool.submit(evaluate, board.copy(), own_color, n, millis, rng)
            for n, rng in zip(slices, rngs)
        ]
        results: List[Tuple[float, int]] = []
        for fut in futures:
            try:
                results.append(fut.result())
            except Exception as e:
                raise MonteCarloWorkerError("monte carlo worker failed") from e

    win_rate = sum(rate for rate, _ in results) / len(results)
    plies = sum(p for _, p in results)
    return win_rate, plies


def choose_monte_carlo(
    board: Board,
    own_color: Color,
    millis: int,
    rng: Optional[random.Random] = None,
) -> Tuple[int, float, int]:
    """Pick a move by flat Monte Carlo over the tactical move set.

    The time budget is shared equally between candidate moves. A move that
    wins on the spot is scored without playing any game.

    Returns:
        Tuple[int, float, int]: Chosen column, its win rate for
        ``own_color`` and the number of random games played.

    Raises:
        ValueError: If the position has no moves left.
    """
    candidates = useful_moves(board) if board.winner is None else []
    if not candidates:
        raise ValueError("no moves available")
    if rng is None:
        rng = random.Random()
    per_move = max(1, millis // len(candidates))
    best: Tuple[int, float] = (candidates[0], -1.0)
    games = 0
    for column in candidates:
        sim = board.copy()
        sim.play_move(column)
        if sim.winner is not None:
            rate = 1.0 if sim.winner is own_color else 0.0
        else:
            wins, played, _ = _play_games(sim, own_color, None, per_move, rng)
            rate = wins / played if played else NO_GAMES_WIN_RATE
            games += played
        if rate > best[1]:
            best = (column, rate)
    return best[0], best[1], games
