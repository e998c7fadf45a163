"""Tests for negamax, the root search and search cancellation."""

import random
import threading
import time

import chess
import pytest

from games import Node, PickGame, TreeGame, minimax, pick_value, random_tree, tree_value
from positions import (
    CHECKMATED_FEN,
    ENDGAME_FEN,
    FIFTY_MOVE_FEN,
    FIFTY_MOVE_PAWN_FEN,
    MATE_IN_ONE_FEN,
    MATE_IN_ONE_MOVE,
    MIDDLEGAME_FEN,
    STALEMATE_FEN,
)
from searchcore.constants import TIME_CHECK_NODES
from searchcore.evaluate import material_evaluator, pesto_evaluator
from searchcore.move_ordering import mvv_lva
from searchcore.oracle import ChessOracle
from searchcore.score import DRAW, INFINITY, NEG_INFINITY, Score
from searchcore.search import SearchInterrupted, SearchState, negamax, search_root
from searchcore.transposition import Bound, TranspositionTable


def full_window(oracle, depth, state):
    return negamax(oracle, depth, NEG_INFINITY, INFINITY, state)


class TestTerminalNodes:
    def setup_method(self):
        self.state = SearchState(evaluator=material_evaluator)

    def test_checkmated_side_scores_loss_zero(self):
        result = full_window(ChessOracle(chess.Board(CHECKMATED_FEN)), 3, self.state)
        assert result.move is None
        assert result.score == Score.loss(0)

    def test_stalemate_is_draw(self):
        result = full_window(ChessOracle(chess.Board(STALEMATE_FEN)), 3, self.state)
        assert result.move is None
        assert result.score == DRAW

    def test_fifty_move_rule_is_draw_despite_material(self):
        result = full_window(ChessOracle(chess.Board(FIFTY_MOVE_FEN)), 2, self.state)
        assert result.score == DRAW

    def test_checkmate_beats_fifty_move_rule(self):
        board = chess.Board(CHECKMATED_FEN.replace(" 1 3", " 100 80"))
        result = full_window(ChessOracle(board), 2, self.state)
        assert result.score == Score.loss(0)

    def test_threefold_repetition_is_draw(self):
        board = chess.Board()
        for uci in ["g1f3", "g8f6", "f3g1", "f6g8"] * 2:
            board.push_uci(uci)
        result = full_window(ChessOracle(board), 2, self.state)
        assert result.score == DRAW

    def test_depth_zero_signs_evaluation_for_side_to_move(self):
        board = chess.Board(MIDDLEGAME_FEN)
        assert full_window(ChessOracle(board), 0, self.state).score == Score.finite(320)
        board.turn = chess.BLACK
        assert full_window(ChessOracle(board), 0, self.state).score == Score.finite(-320)

    def test_negative_depth_rejected(self):
        with pytest.raises(ValueError):
            full_window(ChessOracle(chess.Board()), -1, self.state)


class TestRootSearch:
    def test_finds_mate_in_one(self):
        state = SearchState(evaluator=material_evaluator, table=TranspositionTable())
        result = search_root(ChessOracle(chess.Board(MATE_IN_ONE_FEN)), 2, state)
        assert result.move == chess.Move.from_uci(MATE_IN_ONE_MOVE)
        assert result.score == Score.win(1)

    def test_flagged_root_still_moves_but_scores_draw(self):
        state = SearchState(evaluator=material_evaluator)
        result = search_root(ChessOracle(chess.Board(FIFTY_MOVE_FEN)), 1, state)
        assert result.move is not None
        assert result.score == DRAW

    def test_flagged_root_with_clock_resetting_move(self):
        # e2e4 resets the clock, so the child is scored by material.
        board = chess.Board(FIFTY_MOVE_PAWN_FEN)
        table = TranspositionTable()
        result = search_root(ChessOracle(board), 2, SearchState(evaluator=material_evaluator, table=table))
        assert result.move in board.legal_moves
        assert result.score == DRAW
        assert table.probe(ChessOracle(board).key()).score == DRAW

    def test_no_legal_moves_at_root(self):
        state = SearchState(evaluator=material_evaluator)
        result = search_root(ChessOracle(chess.Board(STALEMATE_FEN)), 2, state)
        assert result.move is None
        assert result.score == DRAW

    def test_root_result_stored_exact_with_move(self):
        table = TranspositionTable()
        oracle = ChessOracle(chess.Board())
        state = SearchState(evaluator=material_evaluator, table=table)
        result = search_root(oracle, 2, state)
        entry = table.probe(oracle.key())
        assert entry.depth == 2
        assert entry.best_move == result.move

    def test_depth_zero_rejected(self):
        with pytest.raises(ValueError):
            search_root(ChessOracle(chess.Board()), 0, SearchState(evaluator=material_evaluator))


class TestMateDistance:
    def test_prefers_faster_mate(self):
        mate_now = Node(in_check=True)
        slow = Node(children=[Node(children=[Node(in_check=True)])])
        root = Node(children=[slow, mate_now])
        result = search_root(TreeGame(root), 4, SearchState(evaluator=tree_value))
        assert result.move == 1
        assert result.score == Score.win(1)

    def test_prefers_longest_resistance_when_lost(self):
        fast_loss = Node(children=[Node(in_check=True)])
        slow_loss = Node(children=[Node(children=[Node(children=[Node(in_check=True)])])])
        root = Node(children=[fast_loss, slow_loss])
        result = search_root(TreeGame(root), 5, SearchState(evaluator=tree_value))
        assert result.move == 1
        assert result.score == Score.loss(4)

    def test_mate_beyond_horizon_is_not_seen(self):
        slow = Node(value=0, children=[Node(value=0, children=[Node(in_check=True)])])
        root = Node(children=[slow])
        result = search_root(TreeGame(root), 1, SearchState(evaluator=tree_value))
        assert not result.score.is_mate


class TestAlphaBetaEquivalence:
    """Pruning and memoization must never change the value minimax finds."""

    @pytest.mark.parametrize("seed", range(20))
    def test_random_trees(self, seed):
        root = random_tree(random.Random(seed), depth=5)
        for depth in range(1, 6):
            expected = minimax(TreeGame(root), depth, tree_value)
            plain = SearchState(evaluator=tree_value)
            memo = SearchState(evaluator=tree_value, table=TranspositionTable())
            assert full_window(TreeGame(root), depth, plain).score == expected
            assert full_window(TreeGame(root), depth, memo).score == expected

    @pytest.mark.parametrize("fen,depth", [(MIDDLEGAME_FEN, 2), (ENDGAME_FEN, 3), (MATE_IN_ONE_FEN, 2)])
    def test_chess_positions(self, fen, depth):
        expected = minimax(ChessOracle(chess.Board(fen)), depth, material_evaluator)
        for table in (None, TranspositionTable()):
            state = SearchState(evaluator=material_evaluator, table=table, order_moves=mvv_lva)
            assert full_window(ChessOracle(chess.Board(fen)), depth, state).score == expected

    def test_shuffled_move_order_gives_same_value(self):
        fen = ENDGAME_FEN
        baseline = full_window(ChessOracle(chess.Board(fen)), 3, SearchState(evaluator=material_evaluator))
        for seed in range(3):
            state = SearchState(evaluator=material_evaluator, rng=random.Random(seed), order_moves=mvv_lva)
            assert full_window(ChessOracle(chess.Board(fen)), 3, state).score == baseline.score


class TestTableTransparency:
    """Searching with a table returns the same value as searching without one."""

    VALUES = [3, 9, 1, 7, 4, 8, 2]

    @pytest.mark.parametrize("depth", range(1, 6))
    def test_pick_game(self, depth):
        expected = minimax(PickGame(self.VALUES), depth, pick_value)
        table = TranspositionTable()
        with_table = full_window(PickGame(self.VALUES), depth, SearchState(evaluator=pick_value, table=table))
        without = full_window(PickGame(self.VALUES), depth, SearchState(evaluator=pick_value))
        assert with_table.score == without.score == expected

    def test_pick_game_has_transpositions(self):
        table = TranspositionTable()
        full_window(PickGame(self.VALUES), 5, SearchState(evaluator=pick_value, table=table))
        assert table.hits > 0

    @pytest.mark.parametrize("depth", [1, 2, 3])
    def test_chess_start_position(self, depth):
        with_table = full_window(
            ChessOracle(chess.Board()), depth, SearchState(evaluator=pesto_evaluator, table=TranspositionTable())
        )
        without = full_window(ChessOracle(chess.Board()), depth, SearchState(evaluator=pesto_evaluator))
        assert with_table.score == without.score

    def test_reused_table_across_depths(self):
        table = TranspositionTable()
        board = chess.Board(ENDGAME_FEN)
        for depth in (1, 2, 3):
            reused = full_window(ChessOracle(board), depth, SearchState(evaluator=material_evaluator, table=table))
            fresh = full_window(ChessOracle(board), depth, SearchState(evaluator=material_evaluator))
            assert reused.score == fresh.score


class TestVerifiedTable:
    """Check keys turn a key collision into a miss without changing results."""

    def setup_method(self):
        self.board = chess.Board(ENDGAME_FEN)
        self.clean = full_window(ChessOracle(self.board), 3, SearchState(evaluator=material_evaluator)).score

    def test_same_score_as_unverified(self):
        verified = full_window(
            ChessOracle(self.board), 3, SearchState(evaluator=material_evaluator, table=TranspositionTable(verify=True))
        )
        plain = full_window(
            ChessOracle(self.board), 3, SearchState(evaluator=material_evaluator, table=TranspositionTable())
        )
        assert verified.score == plain.score == self.clean

    def test_colliding_entry_is_a_miss(self):
        oracle = ChessOracle(self.board)
        table = TranspositionTable(verify=True)
        table.store(oracle.key(), 10, Score.win(1), Bound.EXACT, None, check="another position")
        result = full_window(oracle, 3, SearchState(evaluator=material_evaluator, table=table))
        assert result.score == self.clean
        assert self.board.fen() == ENDGAME_FEN

    def test_unverified_table_trusts_colliding_entry(self):
        oracle = ChessOracle(self.board)
        table = TranspositionTable()
        table.store(oracle.key(), 10, Score.win(1), Bound.EXACT)
        result = full_window(oracle, 3, SearchState(evaluator=material_evaluator, table=table))
        assert result.score == Score.win(1)


class TestZeroSumSymmetry:
    @pytest.mark.parametrize("evaluator", [material_evaluator, pesto_evaluator])
    def test_side_flip_at_depth_zero(self, evaluator):
        board = chess.Board(MIDDLEGAME_FEN)
        white = full_window(ChessOracle(board), 0, SearchState(evaluator=evaluator)).score
        board.turn = chess.BLACK
        black = full_window(ChessOracle(board), 0, SearchState(evaluator=evaluator)).score
        assert black == -white

    @pytest.mark.parametrize("fen,depth", [(MIDDLEGAME_FEN, 2), (ENDGAME_FEN, 3)])
    def test_colour_mirror(self, fen, depth):
        board = chess.Board(fen)
        original = full_window(ChessOracle(board), depth, SearchState(evaluator=pesto_evaluator))
        mirrored = full_window(ChessOracle(board.mirror()), depth, SearchState(evaluator=pesto_evaluator))
        assert original.score == mirrored.score


class TestCancellation:
    def test_pending_stop_raises(self):
        state = SearchState(evaluator=material_evaluator)
        state.stop_event.set()
        with pytest.raises(SearchInterrupted):
            full_window(ChessOracle(chess.Board()), 2, state)

    def test_stop_mid_search_restores_board(self):
        stop = threading.Event()
        calls = 0

        def evaluator(board):
            nonlocal calls
            calls += 1
            if calls == 10:
                stop.set()
            return material_evaluator(board)

        board = chess.Board(MIDDLEGAME_FEN)
        table = TranspositionTable()
        state = SearchState(evaluator=evaluator, table=table, stop_event=stop)
        with pytest.raises(SearchInterrupted):
            full_window(ChessOracle(board), 3, state)
        assert board.fen() == MIDDLEGAME_FEN
        assert not board.move_stack

    def test_uninterruptible_search_ignores_stop(self):
        state = SearchState(evaluator=material_evaluator, interruptible=False)
        state.stop_event.set()
        state.deadline = time.monotonic() - 1
        result = search_root(ChessOracle(chess.Board()), 2, state)
        assert result.move is not None

    def test_deadline_checked_every_time_check_nodes(self):
        state = SearchState(evaluator=material_evaluator, deadline=time.monotonic() - 1)
        state.node_count = 1
        state.check_stop()
        state.node_count = TIME_CHECK_NODES
        with pytest.raises(SearchInterrupted):
            state.check_stop()

    def test_node_count(self):
        state = SearchState(evaluator=material_evaluator)
        full_window(ChessOracle(chess.Board()), 1, state)
        assert state.node_count == 21
