from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from row4.engine.board import COLUMNS, ROWS
from row4.eval import WORKERS


@dataclass
class SearchConfig:
    """Tunable numbers for one search.

    ``workers == 1`` evaluates leaves on the calling thread.
    """

    max_depth: int = COLUMNS * ROWS
    budget_ms: Optional[int] = 1000
    games_per_leaf: int = 10
    leaf_millis: Optional[int] = None
    workers: int = WORKERS
    seed: Optional[int] = None

    def validate(self) -> "SearchConfig":
        if self.max_depth < 1:
            raise ValueError("max_depth must be >= 1")
        if self.budget_ms is not None and self.budget_ms < 1:
            raise ValueError("budget_ms must be >= 1")
        if self.games_per_leaf < 1:
            raise ValueError("games_per_leaf must be >= 1")
        if self.leaf_millis is not None and self.leaf_millis < 1:
            raise ValueError("leaf_millis must be >= 1")
        if self.workers < 1:
            raise ValueError("workers must be >= 1")
        return self
