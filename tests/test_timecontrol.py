"""Tests for per-move time allocation."""

from searchcore.constants import DEFAULT_MOVES_TO_GO, INFINITE_TIME_MS
from searchcore.timecontrol import TimeControl, allocate


class TestAllocate:
    def test_sudden_death_with_increment(self):
        assert allocate(60_000, 1_000, overhead_ms=0) == 60_000 // DEFAULT_MOVES_TO_GO + 1_000

    def test_overhead_is_subtracted(self):
        assert allocate(60_000, 0, overhead_ms=50) == 1_450

    def test_moves_to_go(self):
        assert allocate(60_000, 0, moves_to_go=10, overhead_ms=0) == 6_000

    def test_non_positive_moves_to_go_uses_default(self):
        assert allocate(60_000, 0, moves_to_go=0, overhead_ms=0) == 1_500

    def test_never_exceeds_clock(self):
        # A large increment must not spend time that is not on the clock yet.
        assert allocate(100, 5_000, overhead_ms=10) == 90

    def test_never_below_one_millisecond(self):
        assert allocate(5, 0, overhead_ms=10) == 1
        assert allocate(0) == 1

    def test_unlimited_clock(self):
        assert allocate(None) == INFINITE_TIME_MS


class TestTimeControl:
    def test_infinite_wins(self):
        tc = TimeControl(infinite=True, movetime=500, wtime=1_000)
        assert tc.budget_ms(True) == INFINITE_TIME_MS

    def test_fixed_movetime(self):
        assert TimeControl(movetime=500).budget_ms(True) == 500
        assert TimeControl(movetime=0).budget_ms(False) == 1

    def test_uses_clock_of_side_to_move(self):
        tc = TimeControl(wtime=80_000, btime=40_000, winc=0, binc=2_000)
        assert tc.budget_ms(True, overhead_ms=0) == 2_000
        assert tc.budget_ms(False, overhead_ms=0) == 3_000

    def test_movestogo_passed_through(self):
        tc = TimeControl(wtime=30_000, btime=30_000, movestogo=3)
        assert tc.budget_ms(True, overhead_ms=0) == 10_000

    def test_depth_only_is_unlimited(self):
        assert TimeControl(depth=6).budget_ms(True) == INFINITE_TIME_MS

    def test_missing_clock_for_side_is_unlimited(self):
        assert TimeControl(wtime=10_000).budget_ms(False) == INFINITE_TIME_MS
