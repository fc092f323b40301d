"""
 + this module contains :class:`GameSession`, the host side of a game against
 + the computer: square selection, pending promotions, undo, new game and the
 + automated reply. it only talks to the engine through createInitialState,
 + legalMoves, applyMove, attachPromotionChoice and getBestMove
"""

import logging
import threading

from parthbot import config
from parthbot.chessAI import PIECE_VALUES, getBestMove
from parthbot.chessEngine import (
    BISHOP, BLACK, KING, KNIGHT, PAWN, QUEEN, ROOK, WHITE,
    ChessError, Piece, applyMove, attachPromotionChoice, checkGameStatus,
    createInitialState, legalMoves, makeMove, squareToPosition,
)

logger = logging.getLogger(__name__)

STARTING_COUNTS = {PAWN: 8, ROOK: 2, KNIGHT: 2, BISHOP: 2, QUEEN: 1, KING: 1}
COLOR_NAMES = {WHITE: "White", BLACK: "Black"}


class IllegalMoveError(ChessError):
    """The host tried to play a move that is not legal in the current position."""


class GameSession:
    def __init__(self, aiColor=None, depth=None, rng=None, jitter=None):
        self.aiColor = aiColor or config.AI_COLOR
        self.depth = depth if depth is not None else config.SEARCH_DEPTH
        self.rng = rng
        self.jitter = jitter
        self.newGame()

    def newGame(self):
        self.gameState = createInitialState()
        self.selectedSquare = None
        self.promotionMove = None  # a promotion waiting for the player's piece choice
        logger.info("new game, computer plays %s", COLOR_NAMES.get(self.aiColor, self.aiColor))

    def aiToMove(self):
        return not self.gameState.gameOver and self.gameState.toMove == self.aiColor

    def validMoves(self):
        """legal moves of the selected piece"""
        if self.selectedSquare is None or self.promotionMove is not None:
            return []
        return [m for m in legalMoves(self.gameState) if m.startSq == self.selectedSquare]

    def clickSquare(self, square):
        """
        Handle a click on ``square``: select one of the player's pieces, move the
        selected piece there, or deselect. Returns the move played, if any.
        A promotion is not played straight away; it waits in ``promotionMove``
        until :meth:`choosePromotion` is called.
        """
        squareToPosition(square)
        if self.gameState.gameOver or self.gameState.toMove == self.aiColor or self.promotionMove:
            return None

        if self.selectedSquare == square:
            self.selectedSquare = None
            return None

        if self.selectedSquare is not None:
            move = next((m for m in self.validMoves() if m.endSq == square), None)
            if move is not None:
                if move.isPawnPromotion:
                    self.promotionMove = move
                    self.selectedSquare = None
                    return None
                return self.makeMove(move)

        piece = self.gameState.pieceAt(square)
        if piece is not None and piece.color == self.gameState.toMove:
            self.selectedSquare = square
        else:
            self.selectedSquare = None
        return None

    def choosePromotion(self, kind):
        if self.promotionMove is None:
            return None
        move = attachPromotionChoice(self.promotionMove, kind)
        self.promotionMove = None
        return self.makeMove(move)

    def cancelPromotion(self):
        self.promotionMove = None

    def isLegal(self, move):
        moves = legalMoves(self.gameState)
        if move in moves:
            return True
        # generated promotions default to a queen, the player may have picked something else
        return move.isPawnPromotion and attachPromotionChoice(move, QUEEN) in moves

    def makeMove(self, move):
        if self.gameState.gameOver:
            return None
        if not self.isLegal(move):
            raise IllegalMoveError(f"{move.getChessNotation()} is not legal here")
        mover = self.gameState.toMove
        self.gameState = applyMove(self.gameState, move)
        self.selectedSquare = None
        logger.info("%s played %s", COLOR_NAMES[mover], move.getChessNotation())
        if self.gameState.gameOver:
            logger.info(self.statusMessage())
        return move

    def findAIMove(self, gs=None):
        """search the given snapshot (the current one by default) without touching the session"""
        return getBestMove(gs or self.gameState, self.depth, rng=self.rng, jitter=self.jitter)

    def startAISearch(self):
        """search the current position on a background thread, see :class:`BackgroundSearch`"""
        return BackgroundSearch(self, self.gameState)

    def playAIMove(self):
        if not self.aiToMove():
            return None
        move = self.findAIMove()
        if move is None:
            return None
        return self.makeMove(move)

    def undoMove(self):
        """
        Take back the player's last move and the computer's reply by replaying
        the history, minus its last two plies, from the initial position.
        """
        history = self.gameState.moveLog
        if len(history) < 2:
            return False
        gs = createInitialState()
        for move in history[:-2]:
            gs = makeMove(gs, move)
        self.gameState = checkGameStatus(gs)
        self.selectedSquare = None
        self.promotionMove = None
        logger.info("took back %s and %s", history[-2].getChessNotation(), history[-1].getChessNotation())
        return True

    def lastMove(self):
        return self.gameState.moveLog[-1] if self.gameState.moveLog else None

    def capturedPieces(self, color):
        """pieces of ``color`` no longer on the board, most valuable first"""
        counts = dict.fromkeys(STARTING_COUNTS, 0)
        for row in self.gameState.board:
            for piece in row:
                if piece is not None and piece.color == color:
                    counts[piece.kind] += 1
        captured = []
        for kind, start in STARTING_COUNTS.items():
            captured.extend([Piece(color, kind)] * max(0, start - counts[kind]))
        captured.sort(key=lambda p: PIECE_VALUES[p.kind] if p.kind != KING else 0, reverse=True)
        return captured

    def moveHistory(self):
        """
        The moves played so far as numbered pairs: ``[(1, "e2e4", "e7e5"), (2, "g1f3", None)]``.
        The black entry stays None until black has replied.
        """
        notations = [move.getChessNotation() for move in self.gameState.moveLog]
        if notations and self.gameState.moveLog[0].pieceMoved.color == BLACK:
            # a set-up position where black moved first
            notations.insert(0, None)
        return [(i // 2 + 1, notations[i], notations[i + 1] if i + 1 < len(notations) else None)
                for i in range(0, len(notations), 2)]

    def statusMessage(self):
        gs = self.gameState
        if gs.checkMate:
            winner = WHITE if gs.toMove == BLACK else BLACK
            return f"Checkmate! {COLOR_NAMES[winner]} wins."
        if gs.staleMate:
            return "Stalemate! The game is a draw."
        if gs.inCheck:
            return "Check!"
        return None


class BackgroundSearch:
    """
    Runs :meth:`GameSession.findAIMove` for one snapshot on a daemon thread, so
    a host that quits mid-search is never held up waiting for it.
    """

    def __init__(self, session, gs):
        self.gameState = gs
        self.move = None
        self.error = None
        self.thread = threading.Thread(target=self._run, args=(session, gs), daemon=True)
        self.thread.start()

    def _run(self, session, gs):
        try:
            self.move = session.findAIMove(gs)
        except Exception as e:
            logger.exception("search failed")
            self.error = e

    def done(self):
        return not self.thread.is_alive()

    def join(self, timeout=None):
        self.thread.join(timeout)

    def result(self):
        """the move found, re-raising whatever the search raised"""
        if self.error is not None:
            raise self.error
        return self.move
