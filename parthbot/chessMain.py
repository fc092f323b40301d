"""
This is our main driver file. it is responsible for handling user input and
displaying the current game of a :class:`GameSession`. The computer's search
runs on a daemon thread so the window keeps drawing while it thinks.

Keys: ``z`` undo, ``n`` new game, ``Esc`` cancels a pending promotion.
"""

import argparse
import logging

import pygame as p

from parthbot import config
from parthbot.chessEngine import (
    BISHOP, BLACK, KING, KNIGHT, PAWN, PROMOTION_CHOICES, QUEEN, ROOK, WHITE,
    Piece, positionToSquare, squareToPosition,
)
from parthbot.gameSession import GameSession
from parthbot.logging_utils import configure_logging

logger = logging.getLogger(__name__)

WIDTH = HEIGHT = 512
DIMENSION = 8
SQ_SIZE = HEIGHT // DIMENSION
STATUS_HEIGHT = 32
PANEL_WIDTH = 176
HISTORY_LINE = 20
MAX_FPS = 15

GLYPHS = {KING: '♚', QUEEN: '♛', ROOK: '♜', BISHOP: '♝', KNIGHT: '♞', PAWN: '♟'}
FONTS = {}


def loadFonts():
    # DejaVu Sans carries the chess glyphs; pygame falls back to its default font otherwise
    FONTS['piece'] = p.font.SysFont("dejavusans", SQ_SIZE * 3 // 4)
    FONTS['status'] = p.font.SysFont("dejavusans", STATUS_HEIGHT * 2 // 3)
    FONTS['history'] = p.font.SysFont("dejavusansmono", HISTORY_LINE * 3 // 4)


def squareAtPixel(x, y):
    col = x // SQ_SIZE
    row = y // SQ_SIZE
    if 0 <= row < DIMENSION and 0 <= col < DIMENSION:
        return positionToSquare((row, col))
    return None


def promotionRects():
    # the four choices across the middle of the board
    top = HEIGHT // 2 - SQ_SIZE // 2
    left = WIDTH // 2 - 2 * SQ_SIZE
    return [(kind, p.Rect(left + i * SQ_SIZE, top, SQ_SIZE, SQ_SIZE)) for i, kind in enumerate(PROMOTION_CHOICES)]


def main(argv=None):
    """
    the main driver for our code. this will handle user input and updating the graphics
    """
    parser = argparse.ArgumentParser(description="Play chess against the computer")
    parser.add_argument("--depth", type=int, default=config.SEARCH_DEPTH, help="Search depth in plies")
    parser.add_argument("--ai-color", choices=["w", "b"], default=config.AI_COLOR, help="Side the computer plays")
    parser.add_argument("--log-level", default=config.LOG_LEVEL, help="Logging level")
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    p.init()
    screen = p.display.set_mode((WIDTH + PANEL_WIDTH, HEIGHT + STATUS_HEIGHT))
    p.display.set_caption("ParthBot")
    clock = p.time.Clock()
    loadFonts()

    session = GameSession(aiColor=args.ai_color, depth=args.depth)
    pending = None  # (BackgroundSearch, tick the search started)
    running = True

    while running:
        for e in p.event.get():
            if e.type == p.QUIT:
                running = False
            # mouse handler
            elif e.type == p.MOUSEBUTTONDOWN:
                x, y = p.mouse.get_pos()
                if session.promotionMove is not None:
                    for kind, rect in promotionRects():
                        if rect.collidepoint(x, y):
                            session.choosePromotion(kind)
                            break
                else:
                    square = squareAtPixel(x, y)
                    if square is not None:
                        session.clickSquare(square)
            # key handler
            elif e.type == p.KEYDOWN:
                if e.key == p.K_z:  # undo when Z is pressed
                    session.undoMove()
                elif e.key == p.K_n:
                    session.newGame()
                elif e.key == p.K_ESCAPE:
                    session.cancelPromotion()

        if session.aiToMove() and pending is None:
            pending = (session.startAISearch(), p.time.get_ticks())
        if pending is not None:
            search, started = pending
            if search.gameState is not session.gameState:
                # undo or new game while the computer was thinking; drop the answer
                pending = None
            elif search.done() and p.time.get_ticks() - started >= config.AI_MOVE_DELAY_MS:
                pending = None
                move = search.result()
                if move is not None:
                    session.makeMove(move)

        drawGameState(screen, session, thinking=pending is not None)
        clock.tick(MAX_FPS)
        p.display.flip()

    p.quit()


"""
responsible for all the graphics within a current game state
"""


def drawGameState(screen, session, thinking=False):
    drawBoard(screen)
    highlightSquares(screen, session)
    drawPieces(screen, session.gameState.board)
    if session.promotionMove is not None:
        drawPromotionPicker(screen, session.promotionMove.pieceMoved.color)
    drawStatus(screen, session, thinking)
    drawMoveHistory(screen, session)


def drawBoard(screen):
    colors = [p.Color("white"), p.Color("gray")]
    for r in range(DIMENSION):
        for c in range(DIMENSION):
            color = colors[((r + c) % 2)]
            p.draw.rect(screen, color, p.Rect(c * SQ_SIZE, r * SQ_SIZE, SQ_SIZE, SQ_SIZE))


def drawPiece(screen, piece, rect):
    fill, outline = ("white", "black") if piece.color == WHITE else ("black", "white")
    glyph = GLYPHS[piece.kind]
    shadow = FONTS['piece'].render(glyph, True, p.Color(outline))
    face = FONTS['piece'].render(glyph, True, p.Color(fill))
    for dx, dy in ((-1, 0), (1, 0), (0, -1), (0, 1)):
        screen.blit(shadow, shadow.get_rect(center=(rect.centerx + dx, rect.centery + dy)))
    screen.blit(face, face.get_rect(center=rect.center))


def drawPieces(screen, board):
    for r in range(DIMENSION):
        for c in range(DIMENSION):
            piece = board[r][c]
            if piece is not None:  # not empty square
                drawPiece(screen, piece, p.Rect(c * SQ_SIZE, r * SQ_SIZE, SQ_SIZE, SQ_SIZE))


def highlightSquare(screen, square, color):
    r, c = squareToPosition(square)
    s = p.Surface((SQ_SIZE, SQ_SIZE))
    s.set_alpha(100)
    s.fill(p.Color(color))
    screen.blit(s, (c * SQ_SIZE, r * SQ_SIZE))


# highlight the last move, the selected piece and its legal moves
def highlightSquares(screen, session):
    lastMove = session.lastMove()
    if lastMove is not None:
        highlightSquare(screen, lastMove.startSq, 'orange')
        highlightSquare(screen, lastMove.endSq, 'orange')
    if session.selectedSquare is not None:
        highlightSquare(screen, session.selectedSquare, 'blue')
        for move in session.validMoves():
            highlightSquare(screen, move.endSq, 'yellow')


def drawPromotionPicker(screen, color):
    for kind, rect in promotionRects():
        p.draw.rect(screen, p.Color("burlywood"), rect)
        p.draw.rect(screen, p.Color("black"), rect, 2)
        drawPiece(screen, Piece(color, kind), rect)


def drawStatus(screen, session, thinking):
    p.draw.rect(screen, p.Color("black"), p.Rect(0, HEIGHT, WIDTH, STATUS_HEIGHT))
    text = session.statusMessage()
    if text is None:
        text = "Thinking..." if thinking else ("White" if session.gameState.whiteToMove else "Black") + " to move"
    label = FONTS['status'].render(text, True, p.Color("gold"))
    screen.blit(label, label.get_rect(midleft=(8, HEIGHT + STATUS_HEIGHT // 2)))
    # material each side has lost so far
    taken = "".join(GLYPHS[piece.kind] for color in (WHITE, BLACK) for piece in session.capturedPieces(color))
    if taken:
        lost = FONTS['status'].render(taken, True, p.Color("lightgray"))
        screen.blit(lost, lost.get_rect(midright=(WIDTH - 8, HEIGHT + STATUS_HEIGHT // 2)))


def drawMoveHistory(screen, session):
    panel = p.Rect(WIDTH, 0, PANEL_WIDTH, HEIGHT + STATUS_HEIGHT)
    p.draw.rect(screen, p.Color("gray15"), panel)
    title = FONTS['status'].render("Move History", True, p.Color("gold"))
    screen.blit(title, (WIDTH + 8, 6))
    top = 6 + STATUS_HEIGHT
    # newest moves stay visible, older ones scroll off the top
    rows = session.moveHistory()[-((panel.height - top) // HISTORY_LINE):]
    for i, (number, white, black) in enumerate(rows):
        text = f"{number:>3}. {white or '...':<6} {black or ''}"
        line = FONTS['history'].render(text, True, p.Color("lightgray"))
        screen.blit(line, (WIDTH + 8, top + i * HISTORY_LINE))


if __name__ == "__main__":
    main()
