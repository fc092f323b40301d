import math
import unittest

from parthbot.chessAI import (
    PIECE_VALUES, SequenceRandom, evaluate, getBestMove, minimax, shuffleMoves,
)
from parthbot.chessEngine import (
    BLACK, QUEEN, WHITE, GameState, applyMove, createInitialState, findMove,
    kingInCheck, legalMoves, makeMove, squareToPosition,
)


def _position(pieces, toMove=WHITE):
    rows = [["--" for _ in range(8)] for _ in range(8)]
    for square, code in pieces.items():
        r, c = squareToPosition(square)
        rows[r][c] = code
    return GameState.fromBoard(rows, toMove=toMove)


def _plainMinimax(gs, depth, isMaximizing):
    """minimax without pruning, the reference the pruned search must agree with"""
    moves = legalMoves(gs)
    if not moves:
        if kingInCheck(gs.board, gs.toMove):
            return -math.inf if isMaximizing else math.inf
        return 0.0
    if depth == 0:
        return evaluate(gs, jitter=0)
    scores = [_plainMinimax(makeMove(gs, m), depth - 1, not isMaximizing) for m in moves]
    return max(scores) if isMaximizing else min(scores)


class TestEvaluate(unittest.TestCase):
    def test_initial_position_is_level(self):
        self.assertEqual(evaluate(createInitialState(), jitter=0), 0.0)

    def test_missing_black_queen(self):
        gs = createInitialState()
        rows = gs.getBoardCodes()
        rows[0][3] = "--"
        gs = GameState.fromBoard(rows)
        # queen value plus the d8 square bonus black no longer has
        self.assertEqual(evaluate(gs, jitter=0), PIECE_VALUES[QUEEN] - 5)

    def test_mirrored_position_negates_the_score(self):
        white = _position({'e1': 'wK', 'd4': 'wN', 'b2': 'wp', 'e8': 'bK'})
        black = _position({'e8': 'bK', 'd5': 'bN', 'b7': 'bp', 'e1': 'wK'}, toMove=BLACK)
        self.assertEqual(evaluate(white, jitter=0), -evaluate(black, jitter=0))
        self.assertGreater(evaluate(white, jitter=0), 0)

    def test_jitter_is_bounded(self):
        gs = createInitialState()
        self.assertEqual(evaluate(gs, rng=SequenceRandom([0.0]), jitter=5), -5.0)
        self.assertEqual(evaluate(gs, rng=SequenceRandom([0.5]), jitter=5), 0.0)
        high = evaluate(gs, rng=SequenceRandom([0.999]), jitter=5)
        self.assertTrue(4.9 < high < 5.0)


class TestMinimax(unittest.TestCase):
    def test_depth_zero_is_the_static_evaluation(self):
        gs = _position({'e1': 'wK', 'a1': 'wR', 'f2': 'wp', 'e8': 'bK', 'c6': 'bN'})
        static = evaluate(gs, jitter=0)
        self.assertEqual(minimax(gs, 0, True, jitter=0), static)
        self.assertEqual(minimax(gs, 0, False, jitter=0), static)

    def test_pruning_does_not_change_the_value(self):
        gs = _position({'g1': 'wK', 'd1': 'wR', 'b2': 'wp',
                        'g8': 'bK', 'c7': 'bN', 'g7': 'bp'})
        for depth in (1, 2, 3):
            for isMaximizing in (True, False):
                self.assertEqual(minimax(gs, depth, isMaximizing, jitter=0),
                                 _plainMinimax(gs, depth, isMaximizing),
                                 (depth, isMaximizing))

    def test_checkmated_side_scores_infinite(self):
        gs = _position({'a8': 'wR', 'g1': 'wK', 'g8': 'bK', 'f7': 'bp', 'g7': 'bp', 'h7': 'bp'},
                       toMove=BLACK)
        self.assertTrue(gs.checkMate)
        self.assertEqual(minimax(gs, 2, False, jitter=0), math.inf)
        self.assertEqual(minimax(gs, 2, True, jitter=0), -math.inf)

    def test_stalemate_scores_zero(self):
        gs = _position({'h8': 'bK', 'g6': 'wQ', 'f7': 'wK'}, toMove=BLACK)
        self.assertEqual(minimax(gs, 3, False, jitter=0), 0.0)

    def test_mate_on_the_last_ply_is_scored_as_mate(self):
        gs = _position({'a1': 'wR', 'd1': 'wR', 'g1': 'wK',
                        'g8': 'bK', 'f7': 'bp', 'g7': 'bp', 'h7': 'bp', 'd5': 'bN'})
        leaf = makeMove(gs, findMove(gs, 'a1a8'))
        self.assertFalse(leaf.checkMate)
        self.assertEqual(minimax(leaf, 0, False, jitter=0), math.inf)

    def test_stalemate_on_the_last_ply_scores_zero(self):
        gs = _position({'h8': 'bK', 'g5': 'wQ', 'f7': 'wK'})
        leaf = makeMove(gs, findMove(gs, 'g5g6'))
        self.assertEqual(minimax(leaf, 0, False, jitter=0), 0.0)


class TestBestMove(unittest.TestCase):
    def test_white_finds_back_rank_mate(self):
        gs = _position({'a1': 'wR', 'g1': 'wK', 'g8': 'bK', 'f7': 'bp', 'g7': 'bp', 'h7': 'bp'})
        move = getBestMove(gs, 2, rng=SequenceRandom([0.3, 0.7]), jitter=0)
        self.assertEqual(move.getChessNotation(), 'a1a8')
        self.assertTrue(applyMove(gs, move).checkMate)

    def test_black_finds_back_rank_mate(self):
        gs = _position({'a8': 'bR', 'g8': 'bK', 'g1': 'wK', 'f2': 'wp', 'g2': 'wp', 'h2': 'wp'},
                       toMove=BLACK)
        move = getBestMove(gs, 2, rng=SequenceRandom([0.9, 0.1]), jitter=0)
        self.assertEqual(move.getChessNotation(), 'a8a1')

    def test_prefers_mate_in_one_over_winning_a_knight(self):
        gs = _position({'a1': 'wR', 'd1': 'wR', 'g1': 'wK',
                        'g8': 'bK', 'f7': 'bp', 'g7': 'bp', 'h7': 'bp', 'd5': 'bN'})
        for values in ([0.1], [0.5], [0.9]):
            move = getBestMove(gs, 1, rng=SequenceRandom(values), jitter=0)
            self.assertEqual(move.getChessNotation(), 'a1a8', values)

    def test_takes_the_hanging_queen(self):
        gs = _position({'a1': 'wR', 'e1': 'wK', 'a8': 'bQ', 'h7': 'bK'})
        move = getBestMove(gs, 1, rng=SequenceRandom([0.5]), jitter=0)
        self.assertEqual(move.getChessNotation(), 'a1a8')

    def test_no_legal_moves_gives_none(self):
        mated = _position({'a8': 'wR', 'g1': 'wK', 'g8': 'bK', 'f7': 'bp', 'g7': 'bp', 'h7': 'bp'},
                          toMove=BLACK)
        stalemated = _position({'h8': 'bK', 'g6': 'wQ', 'f7': 'wK'}, toMove=BLACK)
        self.assertIsNone(getBestMove(mated, 2))
        self.assertIsNone(getBestMove(stalemated, 2))

    def test_lost_position_still_returns_a_move(self):
        # Kg8 is forced and Rb8 mates, so nothing beats +inf and the fallback kicks in
        gs = _position({'a7': 'wR', 'b1': 'wR', 'g1': 'wK', 'h8': 'bK'}, toMove=BLACK)
        move = getBestMove(gs, 3, rng=SequenceRandom([0.5]), jitter=0)
        self.assertEqual(move.getChessNotation(), 'h8g8')

    def test_same_random_source_same_move(self):
        gs = applyMove(createInitialState(), findMove(createInitialState(), 'e2e4'))
        first = getBestMove(gs, 1, rng=SequenceRandom([0.25, 0.75, 0.5]), jitter=3)
        second = getBestMove(gs, 1, rng=SequenceRandom([0.25, 0.75, 0.5]), jitter=3)
        self.assertEqual(first, second)

    def test_depth_must_be_positive(self):
        with self.assertRaises(ValueError):
            getBestMove(createInitialState(), 0)


class TestShuffle(unittest.TestCase):
    def test_shuffle_is_a_permutation(self):
        moves = legalMoves(createInitialState())
        shuffled = shuffleMoves(list(moves), SequenceRandom([0.1, 0.9, 0.4, 0.6]))
        self.assertEqual(sorted(map(str, shuffled)), sorted(map(str, moves)))
        self.assertNotEqual(list(map(str, shuffled)), list(map(str, moves)))

    def test_sequence_random_cycles(self):
        rng = SequenceRandom([0.1, 0.2])
        self.assertEqual([rng.random() for _ in range(5)], [0.1, 0.2, 0.1, 0.2, 0.1])
        with self.assertRaises(ValueError):
            SequenceRandom([])

    def test_sequence_random_rejects_values_outside_unit_interval(self):
        for values in ([1.0], [0.5, -0.1], [2]):
            with self.assertRaises(ValueError):
                SequenceRandom(values)
        moves = legalMoves(createInitialState())
        shuffled = shuffleMoves(list(moves), SequenceRandom([0.0, 0.999]))
        self.assertEqual(len(shuffled), len(moves))


if __name__ == "__main__":
    unittest.main()
