"""
Transposition table: memoized search results keyed by position.

Different move orders often reach the same position. The table remembers,
for each position key, the score found there, how deep that search went, and
whether the score is exact or only a bound (alpha-beta searches that cut off
early only know one side of the true value).

A stored entry answers a later probe only if it was searched at least as
deep as the probe asks for and its bound licenses a cutoff against the
prober's window:

    EXACT                  always
    LOWER  (score >= beta)  the true value is at least beta: fail high
    UPPER  (score <= alpha) the true value is at most alpha: fail low

Replacement is depth-preferred: a store overwrites an existing entry for the
same key only when it was searched equally deep or deeper. Nothing is ever
evicted; the table lives until ``clear()`` (a new game).

Collisions: two different positions sharing a 64-bit key would share an
entry. With Zobrist keys this is rare enough to accept as a silent accuracy
risk. Constructing the table with ``verify=True`` stores a secondary check
key with every entry and treats mismatching probes as misses, trading a
little speed for eliminating that risk.

The table is not locked: one search owns it at a time.
"""

from __future__ import annotations

import enum
from collections.abc import Hashable
from dataclasses import dataclass
from typing import Any

from searchcore.constants import TT_MAX_ENTRIES
from searchcore.score import Score


class Bound(enum.Enum):
    EXACT = "exact"
    LOWER = "lower"
    UPPER = "upper"


def classify_bound(score: Score, alpha_orig: Score, beta: Score) -> Bound:
    """Bound kind of a fail-soft result relative to the window it was searched with."""
    if score <= alpha_orig:
        return Bound.UPPER
    if score >= beta:
        return Bound.LOWER
    return Bound.EXACT


@dataclass(slots=True)
class TTEntry:
    depth: int
    score: Score
    bound: Bound
    best_move: Any | None = None
    check: Hashable | None = None

    def cuts(self, alpha: Score, beta: Score) -> bool:
        """Whether this entry settles a node searched with window [alpha, beta]."""
        if self.bound is Bound.EXACT:
            return True
        if self.bound is Bound.LOWER:
            return self.score >= beta
        return self.score <= alpha


class TranspositionTable:
    """
    Dict-backed transposition table keyed by 64-bit position keys.

    Args:
        verify:      store and compare a secondary check key on every entry.
        max_entries: optional cap. Once reached, stores for keys that are not
                     already present are refused; existing keys still update.
    """

    def __init__(self, verify: bool = False, max_entries: int | None = TT_MAX_ENTRIES) -> None:
        self.verify = verify
        self.max_entries = max_entries
        self._table: dict[int, TTEntry] = {}
        self.probes = 0
        self.hits = 0
        self.stores = 0

    def __len__(self) -> int:
        return len(self._table)

    def probe(self, key: int, check: Hashable | None = None) -> TTEntry | None:
        self.probes += 1
        entry = self._table.get(key)
        if entry is None:
            return None
        if self.verify and entry.check != check:
            return None
        self.hits += 1
        return entry

    def store(
        self,
        key: int,
        depth: int,
        score: Score,
        bound: Bound,
        best_move: Any | None = None,
        check: Hashable | None = None,
    ) -> bool:
        """
        Record a search result. Returns False when the store was refused
        (a deeper entry already exists, or the table is full).
        """
        existing = self._table.get(key)
        if existing is not None and existing.depth > depth:
            return False
        if existing is None and self.max_entries is not None and len(self._table) >= self.max_entries:
            return False
        self._table[key] = TTEntry(
            depth=depth,
            score=score,
            bound=bound,
            best_move=best_move,
            check=check if self.verify else None,
        )
        self.stores += 1
        return True

    def clear(self) -> None:
        self._table.clear()
        self.probes = 0
        self.hits = 0
        self.stores = 0
