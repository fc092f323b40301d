"""
Move selection for the automated side.

The evaluator scores a position from white's point of view as material plus a
piece-square bonus, with a small random term so that equal lines do not
always resolve the same way. The search is a fixed-depth minimax with
alpha-beta pruning on top of the rules engine.

All randomness goes through one source object with a single ``random()``
method returning a float in ``[0, 1)``. ``random.Random`` fits; pass a
:class:`SequenceRandom` (and ``jitter=0``) to make a search repeatable.
"""

import logging
import math
import random

import numpy as np

from parthbot import config
from parthbot.chessEngine import (
    BISHOP, BLACK, KING, KNIGHT, PAWN, QUEEN, ROOK, WHITE,
    checkGameStatus, kingInCheck, legalMoves, makeMove,
)

logger = logging.getLogger(__name__)

PIECE_VALUES = {PAWN: 100, KNIGHT: 320, BISHOP: 330, ROOK: 500, QUEEN: 900, KING: 20000}

# Piece-square tables, written from white's side: row 0 is rank 8
pawnTable = np.array([
    [0,  0,  0,  0,  0,  0,  0,  0],
    [50, 50, 50, 50, 50, 50, 50, 50],
    [10, 10, 20, 30, 30, 20, 10, 10],
    [5,  5, 10, 25, 25, 10,  5,  5],
    [0,  0,  0, 20, 20,  0,  0,  0],
    [5, -5, -10,  0,  0, -10, -5,  5],
    [5, 10, 10, -20, -20, 10, 10,  5],
    [0,  0,  0,  0,  0,  0,  0,  0],
])

knightTable = np.array([
    [-50, -40, -30, -30, -30, -30, -40, -50],
    [-40, -20,   0,   0,   0,   0, -20, -40],
    [-30,   0,  10,  15,  15,  10,   0, -30],
    [-30,   5,  15,  20,  20,  15,   5, -30],
    [-30,   0,  15,  20,  20,  15,   0, -30],
    [-30,   5,  10,  15,  15,  10,   5, -30],
    [-40, -20,   0,   5,   5,   0, -20, -40],
    [-50, -40, -30, -30, -30, -30, -40, -50],
])

bishopTable = np.array([
    [-20, -10, -10, -10, -10, -10, -10, -20],
    [-10,   0,   0,   0,   0,   0,   0, -10],
    [-10,   0,   5,  10,  10,   5,   0, -10],
    [-10,   5,   5,  10,  10,   5,   5, -10],
    [-10,   0,  10,  10,  10,  10,   0, -10],
    [-10,  10,  10,  10,  10,  10,  10, -10],
    [-10,   5,   0,   0,   0,   0,   5, -10],
    [-20, -10, -10, -10, -10, -10, -10, -20],
])

rookTable = np.array([
    [0,  0,  0,  0,  0,  0,  0,  0],
    [5, 10, 10, 10, 10, 10, 10,  5],
    [-5, 0,  0,  0,  0,  0,  0, -5],
    [-5, 0,  0,  0,  0,  0,  0, -5],
    [-5, 0,  0,  0,  0,  0,  0, -5],
    [-5, 0,  0,  0,  0,  0,  0, -5],
    [-5, 0,  0,  0,  0,  0,  0, -5],
    [0,  0,  0,  5,  5,  0,  0,  0],
])

queenTable = np.array([
    [-20, -10, -10, -5, -5, -10, -10, -20],
    [-10,   0,   0,  0,  0,   0,   0, -10],
    [-10,   0,   5,  5,  5,   5,   0, -10],
    [-5,    0,   5,  5,  5,   5,   0,  -5],
    [0,     0,   5,  5,  5,   5,   0,  -5],
    [-10,   5,   5,  5,  5,   5,   0, -10],
    [-10,   0,   5,  0,  0,   0,   0, -10],
    [-20, -10, -10, -5, -5, -10, -10, -20],
])

kingTable = np.array([
    [-30, -40, -40, -50, -50, -40, -40, -30],
    [-30, -40, -40, -50, -50, -40, -40, -30],
    [-30, -40, -40, -50, -50, -40, -40, -30],
    [-30, -40, -40, -50, -50, -40, -40, -30],
    [-20, -30, -30, -40, -40, -30, -30, -20],
    [-10, -20, -20, -20, -20, -20, -20, -10],
    [20,   20,   0,   0,   0,   0,  20,  20],
    [20,   30,  10,   0,   0,  10,  30,  20],
])

_whiteTables = {
    PAWN: pawnTable, KNIGHT: knightTable, BISHOP: bishopTable,
    ROOK: rookTable, QUEEN: queenTable, KING: kingTable,
}
# black reads the same tables upside down, square values are relative to each side's own back rank
PIECE_SQUARE_TABLES = {
    WHITE: _whiteTables,
    BLACK: {kind: np.flipud(table) for kind, table in _whiteTables.items()},
}


class SequenceRandom:
    """A random source that replays ``values`` in a loop."""

    def __init__(self, values):
        self.values = list(values)
        if not self.values:
            raise ValueError("SequenceRandom needs at least one value")
        bad = [v for v in self.values if not 0 <= v < 1]
        if bad:
            raise ValueError(f"SequenceRandom values must lie in [0, 1), got {bad}")
        self.index = 0

    def random(self):
        value = self.values[self.index % len(self.values)]
        self.index += 1
        return value


_defaultRng = random.Random(config.SEED)


def evaluate(gs, rng=None, jitter=None):
    """
    Static score of ``gs``, positive when white is better. ``jitter`` bounds the
    random term (defaults to ``config.EVAL_JITTER``); pass 0 for a
    deterministic score.
    """
    if jitter is None:
        jitter = config.EVAL_JITTER
    score = 0
    for r, row in enumerate(gs.board):
        for c, piece in enumerate(row):
            if piece is None:
                continue
            value = PIECE_VALUES[piece.kind] + int(PIECE_SQUARE_TABLES[piece.color][piece.kind][r, c])
            score += value if piece.color == WHITE else -value
    score = float(score)
    if jitter:
        score += (rng or _defaultRng).random() * 2 * jitter - jitter
    return score


def _mateOrDrawScore(gs, isMaximizing):
    # called for a side with no legal moves: mated if its king is attacked, stalemate otherwise
    if kingInCheck(gs.board, gs.toMove):
        return -math.inf if isMaximizing else math.inf
    return 0.0


def minimax(gs, depth, isMaximizing, alpha=-math.inf, beta=math.inf, rng=None, jitter=None):
    """
    Score ``gs`` by searching ``depth`` more plies. White maximizes. A side
    that has been mated scores -inf when maximizing and +inf when minimizing,
    stalemate scores 0.
    """
    if depth <= 0 and not gs.gameOver:
        # leaves come unclassified from makeMove, a mate on the last ply must still count
        gs = checkGameStatus(gs)
    if depth <= 0 or gs.gameOver:
        if gs.checkMate:
            return -math.inf if isMaximizing else math.inf
        if gs.staleMate:
            return 0.0
        return evaluate(gs, rng, jitter)

    moves = legalMoves(gs)
    if not moves:
        return _mateOrDrawScore(gs, isMaximizing)

    if isMaximizing:
        maxEval = -math.inf
        for move in moves:
            evaluation = minimax(makeMove(gs, move), depth - 1, False, alpha, beta, rng, jitter)
            maxEval = max(maxEval, evaluation)
            alpha = max(alpha, evaluation)
            if beta <= alpha:
                break
        return maxEval

    minEval = math.inf
    for move in moves:
        evaluation = minimax(makeMove(gs, move), depth - 1, True, alpha, beta, rng, jitter)
        minEval = min(minEval, evaluation)
        beta = min(beta, evaluation)
        if beta <= alpha:
            break
    return minEval


def shuffleMoves(moves, rng):
    """Fisher-Yates shuffle in place, drawing only from ``rng.random()``."""
    for i in range(len(moves) - 1, 0, -1):
        j = int(rng.random() * (i + 1))
        moves[i], moves[j] = moves[j], moves[i]
    return moves


def getBestMove(gs, depth=None, rng=None, jitter=None):
    """
    Pick a move for the side to move, searching ``depth`` plies (defaults to
    ``config.SEARCH_DEPTH``). Returns None when there is no legal move, which
    the caller must treat as the end of the game.

    Promotions are only searched as queen promotions.
    """
    if depth is None:
        depth = config.SEARCH_DEPTH
    if depth < 1:
        raise ValueError(f"search depth must be at least 1, got {depth}")
    rng = rng or _defaultRng

    moves = legalMoves(gs)
    if not moves:
        logger.info("no legal moves for %s, nothing to search", gs.toMove)
        return None

    # randomize move order so equal moves don't always resolve to the same one
    shuffleMoves(moves, rng)

    whiteMoving = gs.toMove == WHITE
    bestMove = None
    bestValue = -math.inf if whiteMoving else math.inf
    for move in moves:
        moveValue = minimax(makeMove(gs, move), depth - 1, not whiteMoving,
                            -math.inf, math.inf, rng, jitter)
        if (whiteMoving and moveValue > bestValue) or (not whiteMoving and moveValue < bestValue):
            bestValue = moveValue
            bestMove = move

    if bestMove is None:
        # every move scored as a loss; any of them will do
        bestMove = moves[0]
    logger.debug("depth %d search for %s over %d moves chose %s (score %s)",
                 depth, gs.toMove, len(moves), bestMove.getChessNotation(), bestValue)
    return bestMove


bestMove = getBestMove
