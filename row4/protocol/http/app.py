from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, Field

from .error import (
    exception_handler,
    http_exception_handler,
    request_validation_exception_handler,
)
from .logging_middleware import RequestIDLoggingMiddleware
from ...engine.board import COLUMNS, ROWS
from ...eval import MonteCarloWorkerError
from ...search.config import SearchConfig
from .session import InMemorySessionStore, Session


logger = logging.getLogger(__name__)


class CreateGameResponse(BaseModel):
    game_id: str
    rows: list[str]
    to_move: str


class MoveRequest(BaseModel):
    column: int = Field(..., ge=0, le=COLUMNS - 1, description="0-based column")


class SearchRequest(BaseModel):
    budget_ms: Optional[int] = Field(default=None, ge=1, le=600_000)
    max_depth: Optional[int] = Field(default=None, ge=1, le=COLUMNS * ROWS)
    games_per_leaf: Optional[int] = Field(default=None, ge=1, le=100_000)
    workers: Optional[int] = Field(default=None, ge=1, le=64)
    apply: bool = Field(default=False, description="play the chosen move")


class GameState(BaseModel):
    game_id: str
    rows: list[str]
    to_move: str
    legal_moves: list[int]
    winner: Optional[str]
    draw: bool
    last_move: Optional[int]
    move_history: list[int]


def create_app(config: Optional[SearchConfig] = None) -> FastAPI:
    app = FastAPI(title="Row4 Engine API", version="0.1.0")

    # Basic logging setup
    logging.basicConfig(level=logging.INFO)

    # Middleware & error handling
    app.add_middleware(RequestIDLoggingMiddleware)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(MonteCarloWorkerError, exception_handler)
    app.add_exception_handler(Exception, exception_handler)

    # Each session carries its own search service and cache
    store = InMemorySessionStore(config)

    @app.get("/healthz")
    async def healthz() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/games", response_model=CreateGameResponse)
    async def create_game() -> CreateGameResponse:
        game_id = store.create()
        game = _require_session(store, game_id).game
        return CreateGameResponse(
            game_id=game_id, rows=game.board.rows(), to_move=game.to_move.value
        )

    @app.get("/api/games/{game_id}/state", response_model=GameState)
    async def get_state(game_id: str) -> GameState:
        return _state(game_id, _require_session(store, game_id))

    @app.post("/api/games/{game_id}/move", response_model=GameState)
    def make_move(game_id: str, req: MoveRequest) -> GameState:
        session = _require_session(store, game_id)
        with session.lock:
            try:
                session.game.apply_move(req.column)
            except ValueError:
                raise HTTPException(status_code=400, detail="illegal move")
            return _state(game_id, session)

    @app.post("/api/games/{game_id}/undo", response_model=GameState)
    def undo(game_id: str) -> GameState:
        session = _require_session(store, game_id)
        with session.lock:
            try:
                session.game.undo_move()
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            return _state(game_id, session)

    @app.post("/api/games/{game_id}/search")
    def search(game_id: str, req: SearchRequest) -> Dict[str, Any]:
        # Sync handler: FastAPI runs it in its threadpool, keeping the loop free
        session = _require_session(store, game_id)
        with session.lock:
            game = session.game
            if game.is_over():
                raise HTTPException(status_code=409, detail="game is over")
            service = session.search
            overrides: Dict[str, int] = {}
            if req.games_per_leaf is not None:
                overrides["games_per_leaf"] = req.games_per_leaf
            if req.workers is not None:
                overrides["workers"] = req.workers
            # Overrides apply to this search only
            call_config = replace(service.config, **overrides) if overrides else None
            res = service.search(
                game.board,
                budget_ms=req.budget_ms,
                max_depth=req.max_depth,
                config=call_config,
            )
            if req.apply and res.best_move is not None:
                game.apply_move(res.best_move)

        return {
            "best_move": res.best_move,
            "variation": res.variation,
            "win_probability": res.score,
            "moves_simulated": res.moves_simulated,
            "positions": res.positions,
            "depth": res.depth,
            "time_ms": res.time_ms,
            "cache_hits": res.cache_hits,
            "cache_probes": res.cache_probes,
            "cache_size": res.cache_size,
            "iters": res.iters,
        }

    @app.delete("/api/games/{game_id}")
    async def delete_game(game_id: str) -> Dict[str, str]:
        _require_session(store, game_id)
        store.delete(game_id)
        return {"status": "deleted"}

    return app


def _require_session(store: InMemorySessionStore, game_id: str) -> Session:
    session = store.get(game_id)
    if session is None:
        raise HTTPException(status_code=404, detail="game not found")
    return session


def _state(game_id: str, session: Session) -> GameState:
    game = session.game
    return GameState(
        game_id=game_id,
        rows=game.board.rows(),
        to_move=game.to_move.value,
        legal_moves=game.legal_moves(),
        winner=game.winner.value if game.winner is not None else None,
        draw=game.is_draw(),
        last_move=game.last_move(),
        move_history=list(game.move_stack),
    )
