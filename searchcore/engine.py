"""
Engine session: the object adapters hold between searches.

One ``Engine`` owns one transposition table for its whole lifetime, so
consecutive searches in the same game reuse each other's work. ``new_game``
clears it. Independent engines share nothing, which is what lets the UCI
handler, the web app and the tests each run their own.
"""

from __future__ import annotations

import random
import threading
from collections.abc import Callable

import chess

from searchcore.config import EngineConfig
from searchcore.constants import MAX_DEPTH
from searchcore.deepening import BestMove, IterationInfo, find_best_move
from searchcore.evaluate import Evaluator, get_evaluator, pesto_evaluator
from searchcore.move_ordering import mvv_lva
from searchcore.oracle import ChessOracle
from searchcore.search import MoveOrderer
from searchcore.transposition import TranspositionTable


class Engine:
    """
    Chess search engine bound to python-chess boards.

    Args:
        evaluator:   Leaf evaluator (centipawns, White's perspective).
        table:       Transposition table to use. A fresh one is created when
                     omitted and ``use_table`` is true.
        use_table:   Search without memoization when false.
        order_moves: Move orderer; MVV-LVA by default.
        seed:        When given, moves are shuffled before ordering with a
                     ``random.Random(seed)``, making exploration among equally
                     ranked moves varied but reproducible.
        max_depth:   Default depth limit for ``find_best_move``.
    """

    def __init__(
        self,
        evaluator: Evaluator = pesto_evaluator,
        table: TranspositionTable | None = None,
        use_table: bool = True,
        order_moves: MoveOrderer | None = mvv_lva,
        seed: int | None = None,
        max_depth: int = MAX_DEPTH,
    ) -> None:
        self.evaluator = evaluator
        if table is None and use_table:
            table = TranspositionTable()
        self.table = table
        self.order_moves = order_moves
        self.seed = seed
        self.rng = random.Random(seed) if seed is not None else None
        self.max_depth = max_depth

    @classmethod
    def from_config(cls, config: EngineConfig) -> Engine:
        table = None
        if config.use_table:
            table = TranspositionTable(
                verify=config.verify_keys,
                max_entries=config.table_max_entries,
            )
        return cls(
            evaluator=get_evaluator(config.evaluator),
            table=table,
            use_table=config.use_table,
            seed=config.shuffle_seed,
            max_depth=config.max_depth,
        )

    def new_game(self) -> None:
        """Forget everything learned about earlier positions."""
        if self.table is not None:
            self.table.clear()
        if self.seed is not None:
            self.rng = random.Random(self.seed)

    def find_best_move(
        self,
        board: chess.Board,
        max_depth: int | None = None,
        time_budget_ms: float | None = None,
        stop_event: threading.Event | None = None,
        on_iteration: Callable[[IterationInfo], None] | None = None,
    ) -> BestMove:
        """
        Search ``board`` and return the best move found.

        The board is searched in place and restored before returning; pass a
        copy if another thread may touch it meanwhile.
        """
        return find_best_move(
            ChessOracle(board),
            max_depth if max_depth is not None else self.max_depth,
            time_budget_ms,
            evaluator=self.evaluator,
            table=self.table,
            order_moves=self.order_moves,
            rng=self.rng,
            stop_event=stop_event,
            on_iteration=on_iteration,
        )
