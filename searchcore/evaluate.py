"""
Leaf evaluators: static scoring of chess positions.

An evaluator is any callable ``evaluate(board) -> int`` that returns
centipawns from White's perspective. It must be pure, deterministic and total
over non-terminal positions; checkmate and draws are detected by the search,
never by an evaluator. The search converts the White-relative number into the
side-to-move perspective it needs for negamax, so evaluators stay free of
sign conventions.

Two evaluators ship with the engine:

- ``material_evaluator`` counts material only. Cheap and symmetric, which
  makes it the evaluator of choice for tests with known exact answers.
- ``pesto_evaluator`` is the tapered PeSTO evaluation: material plus
  piece-square tables, interpolated between middlegame and endgame tables by
  the amount of non-pawn material left on the board.
"""

from typing import Protocol

import chess

from searchcore.constants import MAX_PHASE, PHASE_WEIGHTS, PIECE_VALUES, PST


class Evaluator(Protocol):
    def __call__(self, board: chess.Board) -> int: ...


def material_evaluator(board: chess.Board) -> int:
    """
    Material balance in centipawns, White minus Black.

    Kings are not counted: both sides always have exactly one.

    Example:
        >>> material_evaluator(chess.Board())
        0
    """
    score = 0
    for piece_type in (chess.PAWN, chess.KNIGHT, chess.BISHOP, chess.ROOK, chess.QUEEN):
        value = PIECE_VALUES[piece_type]
        score += value * len(board.pieces(piece_type, chess.WHITE))
        score -= value * len(board.pieces(piece_type, chess.BLACK))
    return score


def pesto_evaluator(board: chess.Board) -> int:
    """
    Tapered centipawn evaluation from White's perspective.

    Scores each piece using PeSTO piece-square tables, then interpolates
    between middlegame and endgame scores based on remaining non-pawn material.

    The square indexing convention for PST lookup:
        - White piece on square sq: use index sq ^ 56 (flip rank, since PST
          index 0 = a8 visually but python-chess a1=0 is at the bottom)
        - Black piece on square sq: use index sq directly (already mirrored)

    Args:
        board: The current board position. Not modified.

    Returns:
        Centipawns, positive when White is ahead.
    """
    mg_score = 0  # middlegame score accumulated (White minus Black)
    eg_score = 0  # endgame score accumulated (White minus Black)
    phase = 0     # 0 = full endgame, MAX_PHASE = full middlegame

    for sq, piece in board.piece_map().items():
        pt = piece.piece_type
        mg_table, eg_table = PST[pt]

        # Only the PST bonus applies to the king; its material value is an
        # ordering device, not something that can be won or lost.
        material = 0 if pt == chess.KING else PIECE_VALUES[pt]

        if piece.color == chess.WHITE:
            idx = sq ^ 56
            mg_score += material + mg_table[idx]
            eg_score += material + eg_table[idx]
        else:
            idx = sq
            mg_score -= material + mg_table[idx]
            eg_score -= material + eg_table[idx]

        phase += PHASE_WEIGHTS[pt]

    # A promotion can push the phase past the opening value.
    phase = min(phase, MAX_PHASE)

    # Integer arithmetic only; floor division rounds toward -inf, so round the
    # magnitude instead to keep the evaluation colour-symmetric.
    blended = mg_score * phase + eg_score * (MAX_PHASE - phase)
    if blended < 0:
        return -(-blended // MAX_PHASE)
    return blended // MAX_PHASE


EVALUATORS: dict[str, Evaluator] = {
    "material": material_evaluator,
    "pesto": pesto_evaluator,
}


def get_evaluator(name: str) -> Evaluator:
    """Look up an evaluator by its configuration name."""
    try:
        return EVALUATORS[name]
    except KeyError:
        known = ", ".join(sorted(EVALUATORS))
        raise ValueError(f"unknown evaluator {name!r} (known: {known})") from None
