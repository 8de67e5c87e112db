#!/usr/bin/env python3
# ruff: noqa: E402
from __future__ import annotations

import argparse
import json
import os
import platform
import sys
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

# Ensure repo root (which contains `row4/`) is importable when running directly
REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from row4.engine.board import Board
from row4.eval import WORKERS
from row4.search.config import SearchConfig
from row4.search.service import SearchService


@dataclass
class BenchItem:
    name: str
    moves: List[int]


DEFAULT_POSITIONS = [
    BenchItem("empty", []),
    BenchItem("center-opening", [3, 3, 2, 4]),
    BenchItem("threat-to-block", [4, 3, 4, 3, 4]),
    BenchItem("midgame", [3, 2, 3, 3, 4, 2, 1, 5, 5, 4]),
]


def bench_position(
    item: BenchItem, *, budget_ms: int, max_depth: Optional[int], cfg: SearchConfig
) -> Dict[str, Any]:
    svc = SearchService(cfg)
    board = Board.from_moves(item.moves)
    res = svc.search(board, budget_ms=budget_ms, max_depth=max_depth)
    return {
        "name": item.name,
        "best_move": res.best_move,
        "variation": res.variation,
        "score": round(res.score, 4),
        "depth": res.depth,
        "time_ms": res.time_ms,
        "positions": res.positions,
        "moves_simulated": res.moves_simulated,
        "cache_hits": res.cache_hits,
        "cache_probes": res.cache_probes,
        "cache_size": res.cache_size,
        "iters": res.iters,
    }


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Benchmark the row4 search")
    ap.add_argument("--budget-ms", type=int, default=500)
    ap.add_argument("--max-depth", type=int, default=None)
    ap.add_argument("--games-per-leaf", type=int, default=10)
    ap.add_argument("--workers", type=int, default=WORKERS)
    ap.add_argument("--seed", type=int, default=1)
    ap.add_argument("--out", default=None, help="write JSON here instead of stdout")
    args = ap.parse_args(argv)

    cfg = SearchConfig(
        games_per_leaf=args.games_per_leaf, workers=args.workers, seed=args.seed
    ).validate()
    results = [
        bench_position(item, budget_ms=args.budget_ms, max_depth=args.max_depth, cfg=cfg)
        for item in DEFAULT_POSITIONS
    ]
    report = {
        "python": platform.python_version(),
        "budget_ms": args.budget_ms,
        "games_per_leaf": args.games_per_leaf,
        "workers": args.workers,
        "results": results,
        "total_positions": sum(r["positions"] for r in results),
        "total_time_ms": sum(r["time_ms"] for r in results),
    }
    text = json.dumps(report, indent=2)
    if args.out:
        with open(args.out, "w", encoding="utf-8") as f:
            f.write(text + "\n")
    else:
        print(text)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
