from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, Field

from .error import (
    exception_handler,
    http_exception_handler,
    illegal_move_exception_handler,
    request_validation_exception_handler,
)
from .logging_middleware import RequestIDLoggingMiddleware
from ...config import LEVELS, Settings
from ...engine.game import Game, IllegalMoveError
from ...engine.move import Move
from ...engine.perft import perft as perft_nodes
from .session import InMemorySessionStore


logger = logging.getLogger(__name__)


class CreateGameRequest(BaseModel):
    level: Optional[str] = Field(default=None, description="super_blitz, blitz or normal")
    use_book: Optional[bool] = None


class CreateGameResponse(BaseModel):
    game_id: str
    board: List[int]


class MoveRequest(BaseModel):
    piece: int = Field(..., ge=0, le=31, description="Slot 0..31")
    square: int = Field(..., ge=0, le=255, description="0x88 square byte")


class EditRequest(BaseModel):
    piece: int = Field(..., ge=0, le=31)
    square: Optional[int] = Field(default=None, ge=0, le=255, description="None removes the piece")


class StrengthRequest(BaseModel):
    level: Optional[str] = None
    exchange_depth: Optional[int] = Field(default=None, ge=0, le=16)
    check_threshold: Optional[int] = Field(default=None, ge=0, le=4)


class ReplyRequest(BaseModel):
    movetime_ms: Optional[int] = Field(default=None, ge=1)
    max_nodes: Optional[int] = Field(default=None, ge=1)


class PerftRequest(BaseModel):
    depth: int = Field(default=1, ge=0, le=4)


class MoveModel(BaseModel):
    piece: int
    from_sq: int
    to_sq: int
    capture: bool


class GameState(BaseModel):
    game_id: str
    board: List[int]
    legal_moves: List[MoveModel]
    in_check: bool
    exchange_depth: int
    check_threshold: int
    book_active: bool
    last_move: Optional[MoveModel]
    move_history: List[MoveModel]


def _move_model(m: Move) -> MoveModel:
    return MoveModel(piece=m.piece, from_sq=m.from_sq, to_sq=m.to_sq, capture=m.capture)


def _state(game_id: str, game: Game) -> GameState:
    history = [
        MoveModel(piece=r.piece, from_sq=r.from_sq, to_sq=r.to_sq, capture=r.captured is not None)
        for r in game.move_stack
    ]
    return GameState(
        game_id=game_id,
        board=game.get_board(),
        legal_moves=[_move_model(m) for m in game.legal_moves()],
        in_check=game.in_check(),
        exchange_depth=game.strength.exchange_depth,
        check_threshold=game.strength.check_threshold,
        book_active=game.book_active,
        last_move=history[-1] if history else None,
        move_history=history,
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.load()
    app = FastAPI(title="MicroChess Engine API", version="0.1.0")

    # Basic logging setup
    logging.basicConfig(level=settings.log_level)

    # Middleware & error handling
    app.add_middleware(RequestIDLoggingMiddleware)
    # Preserve FastAPI 422 validation behavior and structured HTTP errors
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(IllegalMoveError, illegal_move_exception_handler)
    app.add_exception_handler(Exception, exception_handler)

    # In-memory session store for games
    store = InMemorySessionStore()

    def new_game(req: Optional[CreateGameRequest]) -> Game:
        level_name = (req.level if req and req.level else None) or settings.engine.level
        use_book = settings.engine.use_book if not req or req.use_book is None else req.use_book
        try:
            return Game.new(level_name=level_name, use_book=use_book, book_path=settings.engine.book_path)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    @app.get("/healthz")
    async def healthz() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/games", response_model=CreateGameResponse)
    async def create_game(req: Optional[CreateGameRequest] = None) -> CreateGameResponse:
        game_id = store.create(new_game(req))
        game = _require_game(store, game_id)
        return CreateGameResponse(game_id=game_id, board=game.get_board())

    @app.get("/api/games")
    async def list_games() -> Dict[str, List[str]]:
        return {"games": store.ids()}

    @app.delete("/api/games/{game_id}")
    async def delete_game(game_id: str) -> Dict[str, str]:
        _require_game(store, game_id)
        store.delete(game_id)
        return {"deleted": game_id}

    @app.get("/api/games/{game_id}/state", response_model=GameState)
    async def get_state(game_id: str) -> GameState:
        return _state(game_id, _require_game(store, game_id))

    @app.post("/api/games/{game_id}/move", response_model=GameState)
    async def make_move(game_id: str, req: MoveRequest) -> GameState:
        game = _require_game(store, game_id)
        try:
            game.apply_move(req.piece, req.square)
        except IllegalMoveError:
            raise
        except ValueError as e:
            # out-of-range slot or square
            raise HTTPException(status_code=400, detail=str(e))
        return _state(game_id, game)

    @app.post("/api/games/{game_id}/reply")
    async def reply(game_id: str, req: Optional[ReplyRequest] = None) -> Dict[str, Any]:
        game = _require_game(store, game_id)
        req = req or ReplyRequest()
        res = game.compute_best_reply(
            movetime_ms=req.movetime_ms or settings.engine.movetime_ms,
            max_nodes=req.max_nodes or settings.engine.max_nodes,
        )
        payload = res.as_dict()
        payload["board"] = game.get_board()
        return payload

    @app.post("/api/games/{game_id}/edit", response_model=GameState)
    async def edit(game_id: str, req: EditRequest) -> GameState:
        game = _require_game(store, game_id)
        try:
            game.edit_board(req.piece, req.square)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return _state(game_id, game)

    @app.post("/api/games/{game_id}/strength", response_model=GameState)
    async def strength(game_id: str, req: StrengthRequest) -> GameState:
        game = _require_game(store, game_id)
        if req.level is not None:
            if req.level not in LEVELS:
                raise HTTPException(status_code=400, detail=f"unknown level: {req.level!r}")
            game.set_level(req.level)
        elif req.exchange_depth is not None and req.check_threshold is not None:
            game.set_strength(req.exchange_depth, req.check_threshold)
        else:
            raise HTTPException(
                status_code=400,
                detail="level or both exchange_depth and check_threshold are required",
            )
        return _state(game_id, game)

    @app.post("/api/games/{game_id}/reverse", response_model=GameState)
    async def reverse(game_id: str) -> GameState:
        game = _require_game(store, game_id)
        game.exchange_sides()
        return _state(game_id, game)

    @app.post("/api/games/{game_id}/reset", response_model=GameState)
    async def reset(game_id: str) -> GameState:
        game = _require_game(store, game_id)
        game.reset()
        return _state(game_id, game)

    @app.post("/api/games/{game_id}/undo", response_model=GameState)
    async def undo(game_id: str) -> GameState:
        game = _require_game(store, game_id)
        try:
            game.undo_move()
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return _state(game_id, game)

    @app.post("/api/games/{game_id}/perft")
    async def perft(game_id: str, req: PerftRequest) -> Dict[str, Any]:
        game = _require_game(store, game_id)
        nodes = perft_nodes(game.board.copy(), req.depth)
        return {"depth": req.depth, "nodes": nodes}

    return app


def _require_game(store: InMemorySessionStore, game_id: str) -> Game:
    game = store.get(game_id)
    if game is None:
        raise HTTPException(status_code=404, detail="game not found")
    return game


# Default app for non-factory servers
app = create_app()
