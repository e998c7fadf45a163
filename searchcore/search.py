"""
Negamax search with alpha-beta pruning and transposition-table memoization.

Negamax is a simplification of minimax that exploits the zero-sum property
of two-player games: one player's gain is exactly the other player's loss.
Instead of alternating between maximizing and minimizing, negamax always
maximizes and converts each child's score into its own perspective
(``Score.from_child``: negate, one ply further from any mate).

The alpha-beta window [alpha, beta] prunes branches that cannot influence
the final decision. If a position scores >= beta, the opponent would never
allow it (beta cutoff). If it scores <= alpha, we already have a better
option elsewhere. Pruning never changes the value found at the root; it only
changes how many nodes are needed to find it.

Node procedure (``negamax``):
    1. Probe the transposition table; a deep-enough entry whose bound
       settles the current window is returned as is.
    2. Terminal check: repetition and fifty-move draws, checkmate, stalemate.
    3. Depth zero: static evaluation, signed for the side to move.
    4. Recurse over ordered moves with the swapped, converted window;
       stop at the first beta cutoff.
    5. Store the result, classified against the window it was searched with.

Cancellation:
    The search is synchronous, but it can be abandoned at any node. Every
    node checks the stop event, and every TIME_CHECK_NODES nodes the clock.
    Either one raises ``SearchInterrupted``, which unwinds the whole
    recursion. Each make is paired with its unmake in a ``finally`` block, so
    the position is restored on the way out, and nothing half-searched ever
    reaches the table.
"""

from __future__ import annotations

import random
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from searchcore.constants import TIME_CHECK_NODES
from searchcore.oracle import DrawReason, PositionOracle
from searchcore.score import DRAW, INFINITY, NEG_INFINITY, Score
from searchcore.transposition import Bound, TranspositionTable, classify_bound

MoveOrderer = Callable[[Any, list[Any]], list[Any]]


class SearchInterrupted(Exception):
    """Raised inside the recursion when the search must be abandoned."""


@dataclass(slots=True, frozen=True)
class SearchResult:
    """A move (None at terminal and leaf nodes) and its score for the side to move."""

    move: Any | None
    score: Score


@dataclass
class SearchState:
    """
    Everything one search run needs besides the position itself.

    Keeping this in one object, rather than in module globals, lets several
    engines and tests search side by side without sharing a table or a
    random source by accident.

    Attributes:
        evaluator:     Leaf evaluator, centipawns from White's perspective.
        table:         Transposition table, or None to search without one.
        order_moves:   Optional move orderer ``(position, moves) -> moves``.
        rng:           Optional random source; when set, moves are shuffled
                       before ordering. Seed it to make searches reproducible.
        stop_event:    External cancellation signal.
        deadline:      ``time.monotonic()`` value after which the search stops,
                       or None for no time limit.
        interruptible: When False, neither the stop event nor the deadline
                       is honoured. The driver uses this to guarantee that
                       depth 1 always completes.
        node_count:    Nodes visited so far (root and leaves included).
        table_hits:    Nodes answered directly from the table.
    """

    evaluator: Callable[[Any], int]
    table: TranspositionTable | None = None
    order_moves: MoveOrderer | None = None
    rng: random.Random | None = None
    stop_event: threading.Event = field(default_factory=threading.Event)
    deadline: float | None = None
    interruptible: bool = True
    node_count: int = 0
    table_hits: int = 0

    def check_stop(self) -> None:
        if not self.interruptible:
            return
        if self.stop_event.is_set():
            raise SearchInterrupted("stop requested")
        if (
            self.deadline is not None
            and self.node_count % TIME_CHECK_NODES == 0
            and time.monotonic() >= self.deadline
        ):
            raise SearchInterrupted("time budget exhausted")


def _leaf_score(oracle: PositionOracle, state: SearchState) -> Score:
    cp = state.evaluator(oracle.position)
    return Score.finite(cp if oracle.white_to_move() else -cp)


def _ordered_moves(
    oracle: PositionOracle,
    moves: list[Any],
    state: SearchState,
    hint: Any | None,
) -> list[Any]:
    """Shuffle (optional), order (optional), then put the table's best move first."""
    if state.rng is not None:
        state.rng.shuffle(moves)
    if state.order_moves is not None:
        moves = state.order_moves(oracle.position, moves)
    if hint is not None and hint in moves:
        moves.remove(hint)
        moves.insert(0, hint)
    return moves


def _search_moves(
    oracle: PositionOracle,
    moves: list[Any],
    depth: int,
    alpha: Score,
    beta: Score,
    state: SearchState,
) -> SearchResult:
    best_move = None
    best_score = NEG_INFINITY

    for move in moves:
        oracle.make_move(move)
        try:
            # Swap and convert the window for the child (negamax convention).
            child = negamax(oracle, depth - 1, beta.to_child(), alpha.to_child(), state)
        finally:
            oracle.unmake_move(move)

        score = child.score.from_child()
        # Strictly better only: the first move reaching the best score wins ties.
        if best_move is None or score > best_score:
            best_score = score
            best_move = move

        if best_score > alpha:
            alpha = best_score

        # Beta cutoff: the opponent already has a better alternative earlier
        # in the tree and will never allow this line.
        if alpha >= beta:
            break

    return SearchResult(best_move, best_score)


def negamax(
    oracle: PositionOracle,
    depth: int,
    alpha: Score,
    beta: Score,
    state: SearchState,
) -> SearchResult:
    """
    Search the position to ``depth`` plies within the window [alpha, beta].

    Args:
        oracle: The position, reached through the rules-engine contract.
                Modified in place during the search and always restored.
        depth:  Remaining depth in plies. Zero means evaluate statically.
        alpha:  Lower bound of the window: the score the side to move can
                already guarantee elsewhere.
        beta:   Upper bound of the window: the score the opponent already
                holds elsewhere.
        state:  Evaluator, table, ordering, cancellation and counters.

    Returns:
        The best move found (None at terminal and depth-zero nodes) and its
        score from the perspective of the side to move. Scores outside the
        window are bounds (fail-soft), exactly as they are stored in the table.

    Raises:
        SearchInterrupted: The stop event fired or the deadline passed.
        ValueError:        ``depth`` is negative.
    """
    if depth < 0:
        raise ValueError(f"search depth must be >= 0, got {depth}")

    state.node_count += 1
    state.check_stop()

    table = state.table
    key = None
    check = None
    entry = None
    if table is not None:
        key = oracle.key()
        check = oracle.check_key() if table.verify else None
        entry = table.probe(key, check)
        if entry is not None and entry.depth >= depth and entry.cuts(alpha, beta):
            state.table_hits += 1
            return SearchResult(entry.best_move, entry.score)

    # Terminal nodes. Checkmate takes precedence over the fifty-move rule,
    # so the move list is needed before the fifty-move draw can be declared.
    reason = oracle.draw_reason()
    if reason is DrawReason.REPETITION:
        return SearchResult(None, DRAW)
    moves = oracle.legal_moves()
    if not moves:
        return SearchResult(None, Score.loss(0) if oracle.in_check() else DRAW)
    if reason is DrawReason.FIFTY_MOVE_RULE:
        return SearchResult(None, DRAW)

    if depth == 0:
        return SearchResult(None, _leaf_score(oracle, state))

    alpha_orig = alpha
    hint = entry.best_move if entry is not None else None
    result = _search_moves(oracle, _ordered_moves(oracle, moves, state, hint), depth, alpha, beta, state)

    if table is not None:
        bound = classify_bound(result.score, alpha_orig, beta)
        table.store(key, depth, result.score, bound, result.move, check)
    return result


def search_root(oracle: PositionOracle, depth: int, state: SearchState) -> SearchResult:
    """
    Full-window search of the root position to ``depth`` plies.

    Differs from ``negamax`` in three ways: the table is only used for move
    ordering, never to cut the root off (the caller needs a move, not just a
    score); a flagged draw does not stop the search, because the caller still
    needs a move to play, but the reported score is DRAW whatever the moves
    are worth; and the result is stored as an exact entry so the next
    iteration searches this move first.

    Returns:
        SearchResult with move None only when there are no legal moves.
    """
    if depth < 1:
        raise ValueError(f"root search depth must be >= 1, got {depth}")

    state.node_count += 1
    state.check_stop()

    moves = oracle.legal_moves()
    if not moves:
        return SearchResult(None, Score.loss(0) if oracle.in_check() else DRAW)

    table = state.table
    hint = None
    if table is not None:
        key = oracle.key()
        check = oracle.check_key() if table.verify else None
        entry = table.probe(key, check)
        hint = entry.best_move if entry is not None else None

    result = _search_moves(
        oracle, _ordered_moves(oracle, moves, state, hint), depth, NEG_INFINITY, INFINITY, state
    )
    if oracle.draw_reason() is not DrawReason.NONE:
        result = SearchResult(result.move, DRAW)

    if table is not None:
        table.store(key, depth, result.score, Bound.EXACT, result.move, check)
    return result
