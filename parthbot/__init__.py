"""
ParthBot: a chess rules engine and a minimax opponent.

The host-facing operations are re-exported here.
"""

from parthbot.chessAI import bestMove
from parthbot.chessEngine import (
    GameState,
    Move,
    Piece,
    applyMove,
    attachPromotionChoice,
    createInitialState,
    legalMoves,
)

__all__ = [
    "GameState",
    "Move",
    "Piece",
    "applyMove",
    "attachPromotionChoice",
    "bestMove",
    "createInitialState",
    "legalMoves",
]
