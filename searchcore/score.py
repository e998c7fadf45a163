"""
Tagged search scores: finite centipawns, draws, and mate distances.

Integer sentinels for checkmate ("99_999 means mate") only stay correct as
long as nobody negates the most negative value or adds a centipawn bonus to a
mate score. This module replaces them with an explicit tagged value:

    NEG_INFINITY < LOSS(d) < FINITE(cp) == DRAW < WIN(d) < POS_INFINITY

The distance ``d`` is counted in plies from the node that owns the score:
``LOSS(0)`` means "the side to move is checkmated right now", ``WIN(1)`` means
"the side to move mates with its next move". Among wins the shorter distance
is better; among losses the longer one is better, so the search prefers fast
mates and, when lost, the longest resistance.

Because the distance is relative to the owning node rather than to the root,
a score stored in the transposition table stays valid no matter along which
path the position is reached again.

Negamax needs two conversions between a parent and its child:

    from_child()  negate, then add one ply to a mate distance
    to_child()    the exact inverse, used to hand the window down

Both are order-reversing bijections, so passing ``(beta.to_child(),
alpha.to_child())`` to the child is precisely the window the parent needs.
"""

from __future__ import annotations

import enum


class ScoreKind(enum.Enum):
    NEG_INFINITY = "-inf"
    LOSS = "loss"
    FINITE = "cp"
    DRAW = "draw"
    WIN = "win"
    POS_INFINITY = "+inf"


_NEGATED_KIND: dict[ScoreKind, ScoreKind] = {
    ScoreKind.NEG_INFINITY: ScoreKind.POS_INFINITY,
    ScoreKind.LOSS: ScoreKind.WIN,
    ScoreKind.FINITE: ScoreKind.FINITE,
    ScoreKind.DRAW: ScoreKind.DRAW,
    ScoreKind.WIN: ScoreKind.LOSS,
    ScoreKind.POS_INFINITY: ScoreKind.NEG_INFINITY,
}


class Score:
    """
    An immutable, totally ordered search score.

    Construct through the class methods (``Score.finite``, ``Score.win``,
    ``Score.loss``) or use the module constants ``DRAW``, ``INFINITY`` and
    ``NEG_INFINITY``. Comparison and hashing use a sort key so that a draw
    compares equal to ``Score.finite(0)``.
    """

    __slots__ = ("kind", "value", "_key")

    def __init__(self, kind: ScoreKind, value: int = 0) -> None:
        self.kind = kind
        self.value = value
        if kind is ScoreKind.LOSS:
            self._key = (1, value)
        elif kind is ScoreKind.WIN:
            self._key = (3, -value)
        elif kind is ScoreKind.NEG_INFINITY:
            self._key = (0, 0)
        elif kind is ScoreKind.POS_INFINITY:
            self._key = (4, 0)
        else:
            self._key = (2, value)

    # -----------------------------------------------------------------------
    # Constructors
    # -----------------------------------------------------------------------

    @classmethod
    def finite(cls, centipawns: int) -> Score:
        return cls(ScoreKind.FINITE, int(centipawns))

    @classmethod
    def win(cls, plies: int) -> Score:
        """The side to move delivers mate in ``plies`` half-moves."""
        if plies < 0:
            raise ValueError(f"mate distance must be >= 0, got {plies}")
        return cls(ScoreKind.WIN, plies)

    @classmethod
    def loss(cls, plies: int) -> Score:
        """The side to move is mated in ``plies`` half-moves."""
        if plies < 0:
            raise ValueError(f"mate distance must be >= 0, got {plies}")
        return cls(ScoreKind.LOSS, plies)

    # -----------------------------------------------------------------------
    # Negamax arithmetic
    # -----------------------------------------------------------------------

    def __neg__(self) -> Score:
        kind = _NEGATED_KIND[self.kind]
        if kind is ScoreKind.FINITE:
            return Score(kind, -self.value)
        return Score(kind, self.value)

    def from_child(self) -> Score:
        """Convert a child's score into the parent's perspective."""
        negated = -self
        if negated.is_mate:
            return Score(negated.kind, negated.value + 1)
        return negated

    def to_child(self) -> Score:
        """Convert a parent's window bound into the child's perspective."""
        negated = -self
        if negated.is_mate:
            return Score(negated.kind, negated.value - 1)
        return negated

    # -----------------------------------------------------------------------
    # Queries
    # -----------------------------------------------------------------------

    @property
    def is_mate(self) -> bool:
        return self.kind is ScoreKind.WIN or self.kind is ScoreKind.LOSS

    @property
    def is_infinite(self) -> bool:
        return self.kind is ScoreKind.POS_INFINITY or self.kind is ScoreKind.NEG_INFINITY

    @property
    def centipawns(self) -> int | None:
        """Centipawn value for finite scores and draws, None for mates and bounds."""
        if self.kind is ScoreKind.FINITE or self.kind is ScoreKind.DRAW:
            return self.value
        return None

    @property
    def mate_in(self) -> int | None:
        """
        Signed mate distance in full moves, the way UCI reports it.

        Positive when the side to move mates (``WIN(1)`` → 1, ``WIN(3)`` → 2),
        negative or zero when it gets mated (``LOSS(2)`` → -1, ``LOSS(0)`` → 0).
        """
        if self.kind is ScoreKind.WIN:
            return (self.value + 1) // 2
        if self.kind is ScoreKind.LOSS:
            return -((self.value + 1) // 2)
        return None

    def uci(self) -> str:
        """Render as the ``score`` argument of a UCI ``info`` line."""
        if self.is_infinite:
            raise ValueError(f"window bound {self!r} has no UCI representation")
        if self.is_mate:
            return f"mate {self.mate_in}"
        return f"cp {self.value}"

    # -----------------------------------------------------------------------
    # Ordering
    # -----------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Score):
            return NotImplemented
        return self._key == other._key

    def __hash__(self) -> int:
        return hash(self._key)

    def __lt__(self, other: Score) -> bool:
        return self._key < other._key

    def __le__(self, other: Score) -> bool:
        return self._key <= other._key

    def __gt__(self, other: Score) -> bool:
        return self._key > other._key

    def __ge__(self, other: Score) -> bool:
        return self._key >= other._key

    def __repr__(self) -> str:
        if self.kind is ScoreKind.FINITE:
            return f"Score.finite({self.value})"
        if self.kind is ScoreKind.WIN:
            return f"Score.win({self.value})"
        if self.kind is ScoreKind.LOSS:
            return f"Score.loss({self.value})"
        return self.kind.name


DRAW = Score(ScoreKind.DRAW, 0)
INFINITY = Score(ScoreKind.POS_INFINITY)
NEG_INFINITY = Score(ScoreKind.NEG_INFINITY)
