"""
Position oracle: the narrow rules-engine contract the search talks through.

The search never touches a board directly. Everything it needs from the rules
of the game goes through a ``PositionOracle``: legal moves, reversible move
application, a 64-bit position key, and the draw/check signals used to detect
terminal nodes. ``ChessOracle`` implements the contract on top of python-chess;
tests plug in small synthetic games through the same protocol.
"""

from __future__ import annotations

import enum
from collections.abc import Hashable
from typing import Any, Protocol

import chess
import chess.polyglot

# Half-moves without a capture or pawn move after which the game is drawn.
FIFTY_MOVE_HALFMOVES: int = 100


class DrawReason(enum.Enum):
    """Forced-draw signals reported by the oracle."""

    NONE = "none"
    FIFTY_MOVE_RULE = "fifty-move-rule"
    REPETITION = "repetition"


class PositionOracle(Protocol):
    """
    Rules-engine contract consumed by the search.

    ``make_move`` and ``unmake_move`` mutate the position in place and must be
    strictly nested: every make is undone by exactly one unmake of the same
    move before the enclosing search call returns.
    """

    @property
    def position(self) -> Any:
        """The underlying position, handed to evaluators and move orderers."""
        ...

    def legal_moves(self) -> list[Any]: ...

    def make_move(self, move: Any) -> None: ...

    def unmake_move(self, move: Any) -> None: ...

    def key(self) -> int:
        """64-bit key, identical for identical positions (used as table key)."""
        ...

    def check_key(self) -> Hashable:
        """Secondary identity used to verify table hits against key collisions."""
        ...

    def draw_reason(self) -> DrawReason: ...

    def in_check(self) -> bool: ...

    def white_to_move(self) -> bool:
        """True when the side evaluators score for (White / first player) moves."""
        ...


class ChessOracle:
    """
    ``PositionOracle`` over a ``chess.Board``.

    The board is borrowed, not copied: callers that keep using their board
    while a search runs on another thread must pass a copy.

    The fifty-move signal is raised purely from the half-move clock; the
    search itself decides that a checkmate delivered on the hundredth
    half-move is still a loss. Repetition means the current position occurred
    three times (python-chess ``is_repetition(3)``).
    """

    __slots__ = ("board",)

    def __init__(self, board: chess.Board) -> None:
        self.board = board

    @property
    def position(self) -> chess.Board:
        return self.board

    def legal_moves(self) -> list[chess.Move]:
        return list(self.board.legal_moves)

    def make_move(self, move: chess.Move) -> None:
        self.board.push(move)

    def unmake_move(self, move: chess.Move) -> None:
        undone = self.board.pop()
        if undone != move:
            raise RuntimeError(
                f"unmake_move({move.uci()}) does not match last move {undone.uci()}"
            )

    def key(self) -> int:
        return chess.polyglot.zobrist_hash(self.board)

    def check_key(self) -> str:
        # EPD carries placement, side to move, castling and en passant:
        # exactly the state the Zobrist key is meant to identify.
        return self.board.epd()

    def draw_reason(self) -> DrawReason:
        if self.board.halfmove_clock >= FIFTY_MOVE_HALFMOVES:
            return DrawReason.FIFTY_MOVE_RULE
        if self.board.is_repetition(3):
            return DrawReason.REPETITION
        return DrawReason.NONE

    def in_check(self) -> bool:
        return self.board.is_check()

    def white_to_move(self) -> bool:
        return self.board.turn == chess.WHITE

