"""
Iterative deepening: an anytime driver around the root search.

The driver searches depth 1, 2, 3, ... until the time budget runs out, the
stop event is set, or ``max_depth`` is reached. Each completed iteration
yields a move that can be played immediately; deeper iterations only replace
it once they complete. An iteration cut off halfway is discarded, never
mixed into the answer.

The transposition table is shared by all iterations. Shallow iterations fill
it with bounds and best moves that make the deeper ones both cheaper (more
cutoffs) and better ordered (the previous best move is searched first).

Depth 1 always runs to completion, even with a zero budget or a stop request
already pending, so the caller gets a legal move whenever one exists.
"""

from __future__ import annotations

import logging
import random
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from searchcore.constants import TIME_USAGE_FRACTION
from searchcore.oracle import PositionOracle
from searchcore.score import DRAW, Score
from searchcore.search import MoveOrderer, SearchInterrupted, SearchState, search_root
from searchcore.transposition import TranspositionTable

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class IterationInfo:
    """Progress report emitted after every completed iteration."""

    depth: int
    move: Any
    score: Score
    nodes: int
    elapsed_ms: int
    pv: tuple[Any, ...]


@dataclass(slots=True, frozen=True)
class BestMove:
    """
    Result of ``find_best_move``.

    Attributes:
        move:  The move to play, or None when the position has no legal moves.
        score: Score of ``move`` for the side to move.
        depth: Deepest iteration that completed (0 for a terminal root).
        nodes: Nodes visited across all iterations, including the abandoned one.
        pv:    Principal variation starting with ``move``.
    """

    move: Any | None
    score: Score
    depth: int
    nodes: int
    pv: tuple[Any, ...] = ()


def principal_variation(
    oracle: PositionOracle,
    table: TranspositionTable | None,
    first_move: Any | None,
    max_length: int,
) -> tuple[Any, ...]:
    """
    Walk the table's best moves from the root to recover the expected line.

    Every move is checked for legality before it is played, and the walk
    stops at the first missing entry or repeated position. The position is
    restored before returning.
    """
    if first_move is None or max_length < 1:
        return ()

    line = [first_move]
    oracle.make_move(first_move)
    try:
        key = oracle.key()
        seen = {key}
        while table is not None and len(line) < max_length:
            entry = table.probe(key, oracle.check_key() if table.verify else None)
            if entry is None or entry.best_move is None:
                break
            move = entry.best_move
            if move not in oracle.legal_moves():
                break
            oracle.make_move(move)
            line.append(move)
            key = oracle.key()
            if key in seen:
                break
            seen.add(key)
    finally:
        for move in reversed(line):
            oracle.unmake_move(move)

    return tuple(line)


def _out_of_time(state: SearchState) -> bool:
    if state.stop_event.is_set():
        return True
    return state.deadline is not None and time.monotonic() >= state.deadline


def find_best_move(
    oracle: PositionOracle,
    max_depth: int,
    time_budget_ms: float | None,
    *,
    evaluator: Callable[[Any], int],
    table: TranspositionTable | None = None,
    order_moves: MoveOrderer | None = None,
    rng: random.Random | None = None,
    stop_event: threading.Event | None = None,
    on_iteration: Callable[[IterationInfo], None] | None = None,
) -> BestMove:
    """
    Return the best move for the current position within the time budget.

    Args:
        oracle:         The root position. Restored before returning.
        max_depth:      Deepest iteration to run (>= 1).
        time_budget_ms: Wall-clock budget in milliseconds, or None for no
                        limit. The search stops at TIME_USAGE_FRACTION of it.
        evaluator:      Leaf evaluator (centipawns, White's perspective).
        table:          Transposition table shared by all iterations, or None.
        order_moves:    Optional move orderer.
        rng:            Optional random source for move shuffling.
        stop_event:     External cancellation. When set, the running iteration
                        is abandoned and the last completed one is returned.
        on_iteration:   Called with an ``IterationInfo`` after every completed
                        iteration ("thinking output").

    Returns:
        BestMove of the deepest completed iteration. When the root has no
        legal moves: move None, LOSS(0) if in check, otherwise DRAW.

    Raises:
        ValueError: ``max_depth`` < 1.
    """
    if max_depth < 1:
        raise ValueError(f"max_depth must be >= 1, got {max_depth}")

    start = time.monotonic()
    deadline = None
    if time_budget_ms is not None:
        deadline = start + max(time_budget_ms, 0) * TIME_USAGE_FRACTION / 1000.0

    state = SearchState(
        evaluator=evaluator,
        table=table,
        order_moves=order_moves,
        rng=rng,
        stop_event=stop_event if stop_event is not None else threading.Event(),
        deadline=deadline,
    )

    if not oracle.legal_moves():
        score = Score.loss(0) if oracle.in_check() else DRAW
        return BestMove(None, score, 0, 0)

    best: BestMove | None = None

    for depth in range(1, max_depth + 1):
        # Don't start a new iteration once the budget is spent or stop was sent.
        if best is not None and _out_of_time(state):
            break

        state.interruptible = best is not None
        try:
            result = search_root(oracle, depth, state)
        except SearchInterrupted as exc:
            logger.debug(
                "depth %d abandoned (%s) after %d nodes; keeping depth %d",
                depth, exc, state.node_count, best.depth,
            )
            break

        pv = principal_variation(oracle, table, result.move, depth)
        best = BestMove(result.move, result.score, depth, state.node_count, pv)
        elapsed_ms = int((time.monotonic() - start) * 1000)
        logger.debug(
            "depth %d move %s score %r nodes %d time %dms",
            depth, result.move, result.score, state.node_count, elapsed_ms,
        )
        if on_iteration is not None:
            on_iteration(IterationInfo(depth, result.move, result.score, state.node_count, elapsed_ms, pv))

        # A mate no longer than the searched horizon is optimal; deeper
        # iterations cannot change it. A longer one was read from a table
        # entry left by an earlier, deeper search, and a faster mate may
        # still be found, so keep deepening.
        if result.score.is_mate and result.score.value <= depth:
            break

    return BestMove(best.move, best.score, best.depth, state.node_count, best.pv)
