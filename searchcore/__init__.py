"""
Chess search core.

Negamax search with alpha-beta pruning, transposition-table memoization and
iterative deepening under a wall-clock budget. The rules of the game come
from a position oracle (python-chess for chess) and leaf scores from a
pluggable evaluator; the search itself knows neither.

Modules:
    constants     — Piece values, PST arrays, search and time parameters
    score         — Tagged scores: centipawns, draws, mate distances
    oracle        — Position oracle contract and its python-chess adapter
    evaluate      — Leaf evaluators (material, tapered PeSTO)
    move_ordering — MVV-LVA move ordering
    transposition — Transposition table with depth-preferred replacement
    search        — Negamax with alpha-beta and in-search cancellation
    deepening     — Iterative-deepening driver, principal variation
    timecontrol   — Per-move time allocation
    config        — EngineConfig from TOML and environment
    engine        — Engine session object owning the table
"""
