"""
Time allocation: turning clock state into a per-move search budget.

The standard formula spreads the remaining time over the moves the game is
expected to last and adds the increment, which is returned to the clock after
every move anyway. A small overhead is held back for protocol latency, and
the budget never exceeds what is actually on the clock.
"""

from __future__ import annotations

from dataclasses import dataclass

from searchcore.constants import DEFAULT_MOVES_TO_GO, INFINITE_TIME_MS, MOVE_OVERHEAD_MS


def allocate(
    remaining_ms: int | None,
    increment_ms: int = 0,
    moves_to_go: int | None = None,
    overhead_ms: int = MOVE_OVERHEAD_MS,
) -> int:
    """
    Budget in milliseconds for the next move.

    Args:
        remaining_ms: Time left on our clock, or None for an unlimited clock.
        increment_ms: Time added to our clock after the move.
        moves_to_go:  Moves until the next time control; DEFAULT_MOVES_TO_GO
                      when unknown (sudden death).
        overhead_ms:  Reserved per move for communication delays.

    Returns:
        ``remaining / moves_to_go + increment - overhead``, clamped to
        ``[1, remaining - overhead]``. INFINITE_TIME_MS when the clock is
        unlimited; the caller is then responsible for sending a stop.

    Example:
        >>> allocate(60_000, 1_000, overhead_ms=0)
        2500
    """
    if remaining_ms is None:
        return INFINITE_TIME_MS

    horizon = moves_to_go if moves_to_go is not None and moves_to_go > 0 else DEFAULT_MOVES_TO_GO
    budget = remaining_ms // horizon + increment_ms - overhead_ms
    ceiling = remaining_ms - overhead_ms
    return max(1, min(budget, ceiling))


@dataclass(slots=True)
class TimeControl:
    """
    Clock parameters of one "go" request.

    All times are milliseconds. ``depth`` limits the search depth rather than
    its duration and is carried here because controllers send both together.
    """

    movetime: int | None = None
    wtime: int | None = None
    btime: int | None = None
    winc: int = 0
    binc: int = 0
    movestogo: int | None = None
    depth: int | None = None
    infinite: bool = False

    def budget_ms(self, white_to_move: bool, overhead_ms: int = MOVE_OVERHEAD_MS) -> int:
        """
        Budget for the side to move.

        ``infinite`` wins over everything; a fixed ``movetime`` is used as is;
        otherwise the side's clock goes through ``allocate``. With no time
        information at all (e.g. "go depth 6") the budget is unlimited.
        """
        if self.infinite:
            return INFINITE_TIME_MS
        if self.movetime is not None:
            return max(1, self.movetime)
        remaining = self.wtime if white_to_move else self.btime
        if remaining is None:
            return INFINITE_TIME_MS
        increment = self.winc if white_to_move else self.binc
        return allocate(remaining, increment, self.movestogo, overhead_ms)
