"""
FastAPI web application for the search engine.

Exposes POST /api/move, which accepts a FEN position and search limits,
runs the iterative-deepening search, and returns the best move with its
score, depth and principal variation.

Architecture notes:
- Sync endpoint (not async): FastAPI runs sync handlers in a thread pool,
  which is the correct pattern for CPU-bound blocking calls like engine search.
- Stateless per request: the client sends the full FEN each time and every
  request gets its own Engine (and transposition table), so concurrent
  requests never share mutable search state.

Run with ``uvicorn web.app:app``.
"""

import logging

import chess
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, field_validator

from searchcore.constants import MAX_DEPTH
from searchcore.engine import Engine
from searchcore.evaluate import EVALUATORS, get_evaluator

# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------

logging.basicConfig(level=logging.INFO)
_log = logging.getLogger(__name__)

app = FastAPI(title="Chess Search Core", version="1.0.0")


# ---------------------------------------------------------------------------
# Request / response models
# ---------------------------------------------------------------------------


class MoveRequest(BaseModel):
    """
    Client request to the engine.

    Fields:
        fen:        Full FEN string representing the current board position.
        time_limit: Seconds allocated to the engine for this move (clamped
                    to [0.1, 30.0] to prevent accidental 0-second calls or
                    runaway searches).
        max_depth:  Deepest iteration to run, clamped to [1, MAX_DEPTH].
        evaluator:  Leaf evaluator name ("material" or "pesto").
    """

    fen: str
    time_limit: float = 1.0
    max_depth: int = MAX_DEPTH
    evaluator: str = "pesto"

    @field_validator("time_limit")
    @classmethod
    def clamp_time_limit(cls, v: float) -> float:
        """Clamp time_limit to a safe operating range."""
        return max(0.1, min(v, 30.0))

    @field_validator("max_depth")
    @classmethod
    def clamp_max_depth(cls, v: int) -> int:
        return max(1, min(v, MAX_DEPTH))

    @field_validator("evaluator")
    @classmethod
    def known_evaluator(cls, v: str) -> str:
        if v not in EVALUATORS:
            raise ValueError(f"unknown evaluator {v!r}")
        return v


class MoveResponse(BaseModel):
    """
    Engine response after computing the best move.

    Fields:
        move:  Best move in UCI notation (e.g. "e2e4", "e7e8q").
        fen:   Board FEN after the engine's move is applied.
        score: Evaluation in centipawns from the engine's perspective, or
               None when a forced mate was found.
        mate:  Moves to mate (positive: engine mates, negative: engine gets
               mated), or None.
        depth: Deepest completed iteration.
        nodes: Nodes searched.
        pv:    Principal variation in UCI notation, starting with ``move``.
    """

    move: str
    fen: str
    score: int | None
    mate: int | None
    depth: int
    nodes: int
    pv: list[str]


# ---------------------------------------------------------------------------
# API routes
# ---------------------------------------------------------------------------


@app.get("/api/health")
def api_health() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/api/move", response_model=MoveResponse)
def api_move(request: MoveRequest) -> MoveResponse:
    """
    Compute the engine's best move for the given position.

    Raises:
        HTTPException 400: Malformed FEN or game already over.
        HTTPException 500: Engine failure or no move returned.
    """
    # --- Parse and validate the FEN ---
    try:
        board = chess.Board(request.fen)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f"Invalid FEN: {exc}") from exc

    if board.is_game_over():
        raise HTTPException(
            status_code=400,
            detail=f"Game is already over: {board.result()}",
        )

    # --- Run the engine search ---
    engine = Engine(evaluator=get_evaluator(request.evaluator))
    time_limit_ms = int(request.time_limit * 1000)

    try:
        result = engine.find_best_move(
            board,
            max_depth=request.max_depth,
            time_budget_ms=time_limit_ms,
        )
    except Exception as exc:
        _log.exception("Engine search failed for FEN=%s", request.fen)
        raise HTTPException(status_code=500, detail=f"Engine error: {exc}") from exc

    if result.move is None:
        raise HTTPException(status_code=500, detail="Engine returned no move")

    _log.info(
        "Move=%s score=%r depth=%d nodes=%d fen=%s",
        result.move.uci(),
        result.score,
        result.depth,
        result.nodes,
        request.fen[:40],
    )

    # --- Apply the move and return ---
    pv = [move.uci() for move in result.pv]
    board.push(result.move)
    return MoveResponse(
        move=result.move.uci(),
        fen=board.fen(),
        score=result.score.centipawns,
        mate=result.score.mate_in,
        depth=result.depth,
        nodes=result.nodes,
        pv=pv,
    )
