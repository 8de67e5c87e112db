from __future__ import annotations

import argparse
import logging
from typing import List, Optional

import uvicorn

from ..engine.board import Color
from ..eval import WORKERS
from ..protocol.console.loop import ConsoleGame, run_console
from ..search.config import SearchConfig


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="row4", description="Connect-four search engine")
    ap.add_argument("--log-level", default="WARNING", help="logging level (default WARNING)")
    sub = ap.add_subparsers(dest="command")

    serve = sub.add_parser("serve", help="run the HTTP API")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=8000)

    play = sub.add_parser("play", help="play against the engine in the terminal")
    play.add_argument("--budget-ms", type=int, default=1000, help="time per engine move")
    play.add_argument("--max-depth", type=int, default=None, help="search depth ceiling")
    play.add_argument("--games-per-leaf", type=int, default=10)
    play.add_argument("--workers", type=int, default=WORKERS)
    play.add_argument("--seed", type=int, default=None)
    play.add_argument("--human-first", action="store_true", help="human plays red")
    play.add_argument(
        "--flat-ms",
        type=int,
        default=None,
        help="skip the tree search; flat Monte Carlo with this many ms per move",
    )
    return ap


def config_from_args(args: argparse.Namespace) -> SearchConfig:
    cfg = SearchConfig(
        budget_ms=args.budget_ms,
        games_per_leaf=args.games_per_leaf,
        workers=args.workers,
        seed=args.seed,
    )
    if args.max_depth is not None:
        cfg.max_depth = args.max_depth
    return cfg.validate()


def main(argv: Optional[List[str]] = None) -> None:
    ap = build_parser()
    args = ap.parse_args(argv)
    logging.basicConfig(level=args.log_level.upper())

    if args.command == "play":
        try:
            cfg = config_from_args(args)
        except ValueError as e:
            ap.error(str(e))
        if args.flat_ms is not None and args.flat_ms < 1:
            ap.error("--flat-ms must be >= 1")
        ai_color = Color.BLUE if args.human_first else Color.RED
        run_console(ConsoleGame(cfg, ai_color=ai_color, flat_millis=args.flat_ms))
        return

    if args.command == "serve":
        uvicorn.run(
            "row4.protocol.http.app:create_app", factory=True, host=args.host, port=args.port
        )
        return

    ap.print_help()


if __name__ == "__main__":
    main()
