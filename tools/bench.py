#!/usr/bin/env python3
"""
Benchmark: nodes, table hits and time per position at a fixed depth.

Every position is searched twice from a fresh engine, once with the
transposition table and once without it, so the table's effect on node
count shows up directly. Positions whose score differs between the two runs
are flagged: a deeper entry reached by transposition answered a shallower
probe there.

Usage: python3 tools/bench.py [depth] [material|pesto]
"""
import os
import sys
import time

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import chess  # noqa: E402

from searchcore.engine import Engine  # noqa: E402
from searchcore.evaluate import get_evaluator  # noqa: E402

DEFAULT_DEPTH = 4
DEFAULT_EVALUATOR = "pesto"

# Fixed positions spanning opening, middlegame, endgame and a forced mate.
POSITIONS = [
    ("Start",        chess.STARTING_FEN),
    ("After 1.e4",   "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq - 0 1"),
    ("Italian",      "r1bqkbnr/pppp1ppp/2n5/4p3/2B1P3/5N2/PPPP1PPP/RNBQK2R b KQkq - 3 3"),
    ("Mid-open",     "r1bqkb1r/pppp1ppp/2n2n2/4p3/2B1P3/5N2/PPPP1PPP/RNBQK2R w KQkq - 4 4"),
    ("Complex mid",  "r2q1rk1/ppp2ppp/2np1n2/2b1p1B1/2B1P1b1/2NP1N2/PPP2PPP/R2Q1RK1 w - - 0 8"),
    ("Pawn ending",  "6k1/ppp2ppp/8/3p4/3P4/8/PPP2PPP/6K1 w - - 0 1"),
    ("Rook ending",  "8/5pk1/6p1/7p/3R3P/6P1/1r3PK1/8 w - - 0 40"),
    ("Mate in 1",    "r1bqkb1r/pppp1ppp/2n2n2/4p2Q/2B1P3/8/PPPP1PPP/RNB1K1NR w KQkq - 4 4"),
]


def run_position(fen: str, depth: int, evaluator: str, use_table: bool) -> dict:
    """Search one position from a fresh engine and collect its statistics."""
    engine = Engine(evaluator=get_evaluator(evaluator), use_table=use_table)
    start = time.perf_counter()
    result = engine.find_best_move(chess.Board(fen), max_depth=depth)
    elapsed_ms = max(1, int((time.perf_counter() - start) * 1000))
    hit_rate = 0.0
    if engine.table is not None and engine.table.probes:
        hit_rate = 100.0 * engine.table.hits / engine.table.probes
    return {
        "move": result.move.uci() if result.move else "(none)",
        "score": result.score,
        "depth": result.depth,
        "nodes": result.nodes,
        "time_ms": elapsed_ms,
        "hit_rate": hit_rate,
    }


def main() -> None:
    """Run all benchmark positions and print a summary table."""
    depth = int(sys.argv[1]) if len(sys.argv) > 1 else DEFAULT_DEPTH
    evaluator = sys.argv[2] if len(sys.argv) > 2 else DEFAULT_EVALUATOR
    print(f"Search core benchmark: depth {depth}, evaluator {evaluator}")
    print()
    print(
        f"{'Position':<13} {'Move':<6} {'Score':>9} {'Nodes(TT)':>10} "
        f"{'Nodes':>10} {'Saved':>6} {'Hits':>6} {'ms(TT)':>7}"
    )
    print("-" * 74)

    total_with = total_without = 0
    for label, fen in POSITIONS:
        with_table = run_position(fen, depth, evaluator, use_table=True)
        without = run_position(fen, depth, evaluator, use_table=False)
        if with_table["score"] != without["score"]:
            print(f"note {label}: {with_table['score']!r} with table, {without['score']!r} without")
        total_with += with_table["nodes"]
        total_without += without["nodes"]
        saved = 100.0 * (1 - with_table["nodes"] / max(1, without["nodes"]))
        print(
            f"{label:<13} {with_table['move']:<6} {with_table['score'].uci():>9} "
            f"{with_table['nodes']:>10,} {without['nodes']:>10,} {saved:>5.1f}% "
            f"{with_table['hit_rate']:>5.1f}% {with_table['time_ms']:>7,}"
        )

    print("-" * 74)
    saved = 100.0 * (1 - total_with / max(1, total_without))
    print(f"{'TOTAL':<13} {'':<6} {'':>9} {total_with:>10,} {total_without:>10,} {saved:>5.1f}%")


if __name__ == "__main__":
    main()
