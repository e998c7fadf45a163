"""
Move ordering heuristics.

Alpha-beta visits exactly the same value no matter which order moves are
tried in, but the number of nodes it needs depends enormously on it: the
earlier a refutation is searched, the earlier the remaining siblings are cut.

A move orderer is a callable ``order(position, moves) -> list`` that returns
the moves best-first. Orderers must sort stably so that an exploration
shuffle applied beforehand still decides between equally ranked moves.
"""

from collections.abc import Iterable

import chess

from searchcore.constants import CAPTURE_ORDER_BONUS, PIECE_VALUES


def mvv_lva(board: chess.Board, moves: Iterable[chess.Move]) -> list[chess.Move]:
    """
    Order moves for better alpha-beta pruning using MVV-LVA for captures.

    MVV-LVA (Most Valuable Victim - Least Valuable Aggressor) is a simple but
    effective heuristic: search captures of high-value pieces first, and prefer
    to capture with low-value pieces (they're less risky). For example:
        - PxQ scores highest (cheap attacker, expensive victim)
        - QxP scores lowest among captures (expensive attacker, cheap victim)
        - Quiet moves are searched last (score 0)

    Score formula:
        captures: CAPTURE_ORDER_BONUS + victim_value - attacker_value
        quiet moves: 0

    Args:
        board: The current board position (used to look up piece types).
        moves: Legal moves to order.

    Returns:
        List of moves sorted from highest to lowest score. Equal scores keep
        their incoming order.
    """
    def _mvv_lva_score(move: chess.Move) -> int:
        if not board.is_capture(move):
            return 0
        attacker = board.piece_at(move.from_square)
        victim = board.piece_at(move.to_square)
        attacker_val = PIECE_VALUES.get(attacker.piece_type, 0) if attacker else 0
        # En passant: the captured pawn is not on move.to_square; default to pawn value.
        victim_val = PIECE_VALUES.get(victim.piece_type, 0) if victim else PIECE_VALUES[chess.PAWN]
        return CAPTURE_ORDER_BONUS + victim_val - attacker_val

    return sorted(moves, key=_mvv_lva_score, reverse=True)
