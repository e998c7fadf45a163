"""Tests for leaf evaluators and move ordering."""

import chess
import pytest

from searchcore.evaluate import EVALUATORS, get_evaluator, material_evaluator, pesto_evaluator
from searchcore.move_ordering import mvv_lva
from positions import MIDDLEGAME_FEN


class TestMaterialEvaluator:
    def test_start_position_is_balanced(self):
        assert material_evaluator(chess.Board()) == 0

    def test_white_perspective(self):
        # White is a knight up.
        assert material_evaluator(chess.Board(MIDDLEGAME_FEN)) == 320

    def test_independent_of_side_to_move(self):
        board = chess.Board(MIDDLEGAME_FEN)
        board.turn = chess.BLACK
        assert material_evaluator(board) == 320


class TestPestoEvaluator:
    def test_start_position_is_balanced(self):
        assert pesto_evaluator(chess.Board()) == 0

    @pytest.mark.parametrize(
        "fen",
        [
            MIDDLEGAME_FEN,
            "r2q1rk1/ppp2ppp/2np1n2/2b1p1B1/2B1P1b1/2NP1N2/PPP2PPP/R2Q1RK1 w - - 0 8",
            "8/5pk1/6p1/7p/3R3P/6P1/1r3PK1/8 w - - 0 40",
        ],
    )
    def test_colour_mirror_negates(self, fen):
        board = chess.Board(fen)
        assert pesto_evaluator(board.mirror()) == -pesto_evaluator(board)

    def test_extra_piece_is_good_for_its_owner(self):
        assert pesto_evaluator(chess.Board(MIDDLEGAME_FEN)) > 0

    def test_does_not_modify_board(self):
        board = chess.Board(MIDDLEGAME_FEN)
        pesto_evaluator(board)
        assert board.fen() == MIDDLEGAME_FEN


class TestEvaluatorRegistry:
    def test_lookup(self):
        assert get_evaluator("material") is material_evaluator
        assert get_evaluator("pesto") is pesto_evaluator
        assert set(EVALUATORS) == {"material", "pesto"}

    def test_unknown_name(self):
        with pytest.raises(ValueError, match="unknown evaluator"):
            get_evaluator("nnue")


class TestMvvLva:
    def test_cheapest_attacker_on_most_valuable_victim_first(self):
        board = chess.Board("4k3/8/8/3q4/4P3/8/8/3QK3 w - - 0 1")
        ordered = mvv_lva(board, list(board.legal_moves))
        assert ordered[0] == chess.Move.from_uci("e4d5")
        assert ordered[1] == chess.Move.from_uci("d1d5")
        assert not any(board.is_capture(move) for move in ordered[2:])

    def test_en_passant_counts_as_capture(self):
        board = chess.Board("4k3/8/8/3pP3/8/8/8/4K3 w - d6 0 1")
        ordered = mvv_lva(board, list(board.legal_moves))
        assert ordered[0] == chess.Move.from_uci("e5d6")

    def test_quiet_moves_keep_incoming_order(self):
        board = chess.Board()
        moves = list(board.legal_moves)
        moves.reverse()
        assert mvv_lva(board, moves) == moves
