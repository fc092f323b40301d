"""
 + this module contains the rules of the game: the immutable :class:`GameState`
 + snapshot, the :class:`Move` description and the functions that generate,
 + filter and apply moves. nothing in here ever mutates a state once it has
 + been built, every transition returns a new snapshot
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Iterator, Optional

logger = logging.getLogger(__name__)

WHITE = 'w'
BLACK = 'b'

PAWN = 'p'
KNIGHT = 'N'
BISHOP = 'B'
ROOK = 'R'
QUEEN = 'Q'
KING = 'K'

PROMOTION_CHOICES = (QUEEN, ROOK, BISHOP, KNIGHT)

KINGSIDE = 'kingside'
QUEENSIDE = 'queenside'

EMPTY = "--"

# maps keys in values
# key : value
ranksToRows = {"1": 7, "2": 6, "3": 5, "4": 4,
               "5": 3, "6": 2, "7": 1, "8": 0}
rowsToRanks = {v: k for k, v in ranksToRows.items()}
filesToCols = {"a": 0, "b": 1, "c": 2, "d": 3,
               "e": 4, "f": 5, "g": 6, "h": 7}
colsToFiles = {v: k for k, v in filesToCols.items()}

rookDirections = ((-1, 0), (1, 0), (0, -1), (0, 1))
bishopDirections = ((-1, -1), (-1, 1), (1, -1), (1, 1))
queenDirections = rookDirections + bishopDirections
knightJumps = ((-2, -1), (-1, -2), (-2, 1), (-1, 2),
               (1, -2), (2, -1), (1, 2), (2, 1))
kingSteps = ((-1, -1), (-1, 0), (-1, 1),
             (0, -1),           (0, 1),
             (1, -1),  (1, 0),  (1, 1))

# forward direction, home row and last row of each side's pawns
pawnDirection = {WHITE: -1, BLACK: 1}
pawnStartRow = {WHITE: 6, BLACK: 1}
pawnLastRow = {WHITE: 0, BLACK: 7}


class ChessError(Exception):
    """Base class for errors raised by the rules engine."""


class InvalidCoordinate(ChessError, ValueError):
    """A square identifier or (row, col) pair outside the board."""


class IllegalPromotion(ChessError, ValueError):
    """A promotion choice bound to a move that cannot promote, or to a bad piece type."""


def opponent(color):
    return BLACK if color == WHITE else WHITE


def squareToPosition(square):
    """'e4' -> (4, 4). Row 0 is rank 8."""
    if not isinstance(square, str) or len(square) != 2 \
            or square[0] not in filesToCols or square[1] not in ranksToRows:
        raise InvalidCoordinate(f"not a square: {square!r}")
    return ranksToRows[square[1]], filesToCols[square[0]]


def positionToSquare(position):
    """(4, 4) -> 'e4'."""
    row, col = position
    if row not in rowsToRanks or col not in colsToFiles:
        raise InvalidCoordinate(f"not a board position: {position!r}")
    return colsToFiles[col] + rowsToRanks[row]


@dataclass(frozen=True)
class Piece:
    color: str
    kind: str

    def __str__(self):
        return self.color + self.kind

    @classmethod
    def fromCode(cls, code):
        """'wN' -> Piece('w', 'N'); '--' -> None"""
        if code == EMPTY:
            return None
        return cls(code[0], code[1])


@dataclass(frozen=True)
class CastleRights:
    wks: bool = True
    wqs: bool = True
    bks: bool = True
    bqs: bool = True


NO_CASTLE_RIGHTS = CastleRights(False, False, False, False)


@dataclass(frozen=True)
class Move:
    """
    A pure description of one transition. It carries no board reference, so
    moves can be built speculatively without touching any state.
    """
    startSq: str
    endSq: str
    pieceMoved: Piece
    pieceCaptured: Optional[Piece] = None
    promotionChoice: Optional[str] = None
    castleSide: Optional[str] = None
    isEnPassantMove: bool = False

    @property
    def isPawnPromotion(self):
        return self.promotionChoice is not None

    @property
    def isCastleMove(self):
        return self.castleSide is not None

    @property
    def isCapture(self):
        return self.pieceCaptured is not None

    def getChessNotation(self):
        # long algebraic, the way UCI writes it: e2e4, e7e8q
        notation = self.startSq + self.endSq
        if self.promotionChoice:
            notation += self.promotionChoice.lower()
        return notation

    def __str__(self):
        return self.getChessNotation()


@dataclass(frozen=True)
class GameState:
    # 8x8 tuple of tuples, each cell holds a Piece or None.
    # row 0 is black's back rank (rank 8), row 7 is white's (rank 1)
    board: tuple
    toMove: str = WHITE
    moveLog: tuple = ()
    castleRights: CastleRights = field(default_factory=CastleRights)
    enPassantPossible: Optional[str] = None  # square a pawn just skipped over
    halfMoveClock: int = 0
    fullMoveNumber: int = 1
    inCheck: bool = False
    checkMate: bool = False
    staleMate: bool = False

    @property
    def gameOver(self):
        return self.checkMate or self.staleMate

    @property
    def whiteToMove(self):
        return self.toMove == WHITE

    def pieceAt(self, square):
        row, col = squareToPosition(square)
        return self.board[row][col]

    def legalMoves(self):
        return getAllValidMoves(self, self.toMove)

    def getBoardCodes(self):
        """the board as rows of two-character codes, '--' for empty squares"""
        return [[str(piece) if piece else EMPTY for piece in row] for row in self.board]

    @classmethod
    def fromBoard(cls, rows, toMove=WHITE, castleRights=None, enPassantPossible=None):
        """
        Build a classified position from an 8x8 grid of two-character codes
        such as ``"wK"`` or ``"--"``. When no castle rights are given, a right
        is granted wherever the king and that rook still stand on their home
        squares.
        """
        board = boardFromCodes(rows)
        if castleRights is None:
            castleRights = inferCastleRights(board)
        gs = cls(board=board, toMove=toMove, castleRights=castleRights,
                 enPassantPossible=enPassantPossible)
        return checkGameStatus(gs)


def boardFromCodes(rows):
    if len(rows) != 8 or any(len(row) != 8 for row in rows):
        raise ValueError("a board needs 8 rows of 8 squares")
    return tuple(tuple(Piece.fromCode(code) for code in row) for row in rows)


INITIAL_BOARD = boardFromCodes([
    ["bR", "bN", "bB", "bQ", "bK", "bB", "bN", "bR"],
    ["bp", "bp", "bp", "bp", "bp", "bp", "bp", "bp"],
    ["--", "--", "--", "--", "--", "--", "--", "--"],
    ["--", "--", "--", "--", "--", "--", "--", "--"],
    ["--", "--", "--", "--", "--", "--", "--", "--"],
    ["--", "--", "--", "--", "--", "--", "--", "--"],
    ["wp", "wp", "wp", "wp", "wp", "wp", "wp", "wp"],
    ["wR", "wN", "wB", "wQ", "wK", "wB", "wN", "wR"],
])


def createInitialState():
    return GameState(board=INITIAL_BOARD)


def pieceOn(board, square):
    row, col = squareToPosition(square)
    return board[row][col]


'''
castling lanes for each side:
(side, right, rook home, squares that must be empty, squares the king crosses, king destination)
'''
kingHome = {WHITE: 'e1', BLACK: 'e8'}
castleLanes = {
    WHITE: ((KINGSIDE, 'wks', 'h1', ('f1', 'g1'), ('f1', 'g1'), 'g1'),
            (QUEENSIDE, 'wqs', 'a1', ('b1', 'c1', 'd1'), ('d1', 'c1'), 'c1')),
    BLACK: ((KINGSIDE, 'bks', 'h8', ('f8', 'g8'), ('f8', 'g8'), 'g8'),
            (QUEENSIDE, 'bqs', 'a8', ('b8', 'c8', 'd8'), ('d8', 'c8'), 'c8')),
}
# rook home square -> the right that dies when it is vacated or captured on
rookHomes = {'h1': 'wks', 'a1': 'wqs', 'h8': 'bks', 'a8': 'bqs'}
# rook relocation on castling, by side: (rook from col, rook to col)
castleRookCols = {KINGSIDE: (7, 5), QUEENSIDE: (0, 3)}


def inferCastleRights(board):
    rights = {}
    for color, lanes in castleLanes.items():
        kingAtHome = pieceOn(board, kingHome[color]) == Piece(color, KING)
        for _, right, rookSq, _, _, _ in lanes:
            rights[right] = kingAtHome and pieceOn(board, rookSq) == Piece(color, ROOK)
    return CastleRights(**rights)


def movesFor(board, square, piece, castleRights, enPassantTarget, ignoreKingSafety=False):
    """
    All pseudo-legal moves of ``piece`` standing on ``square``: board edges and
    own-piece blocking are respected, leaving the own king in check is not
    checked here.

    ``ignoreKingSafety`` switches off castling. Attack detection generates
    opponent moves in this mode, which keeps castling checks from recursing
    into themselves.
    """
    r, c = squareToPosition(square)
    moves = []
    if piece.kind == PAWN:
        getPawnMoves(board, r, c, piece, enPassantTarget, moves)
    elif piece.kind == KING:
        getKingMoves(board, r, c, piece, moves)
        if not ignoreKingSafety:
            getCastleMoves(board, r, c, piece, castleRights, moves)
    else:
        moveFunctions[piece.kind](board, r, c, piece, moves)
    return moves


def getPawnMoves(board, r, c, piece, enPassantTarget, moves):
    moveAmount = pawnDirection[piece.color]
    endRow = r + moveAmount
    if not 0 <= endRow < 8:
        return
    start = positionToSquare((r, c))
    # promotion always defaults to a queen, the host may rebind it before the move is applied
    promotion = QUEEN if endRow == pawnLastRow[piece.color] else None

    if board[endRow][c] is None:
        moves.append(Move(start, positionToSquare((endRow, c)), piece, promotionChoice=promotion))
        if r == pawnStartRow[piece.color] and board[r + 2 * moveAmount][c] is None:
            moves.append(Move(start, positionToSquare((r + 2 * moveAmount, c)), piece))

    for dc in (-1, 1):
        endCol = c + dc
        if not 0 <= endCol < 8:
            continue
        target = board[endRow][endCol]
        endSq = positionToSquare((endRow, endCol))
        if target is not None:
            if target.color != piece.color:
                moves.append(Move(start, endSq, piece, pieceCaptured=target, promotionChoice=promotion))
        elif endSq == enPassantTarget:
            # the pawn being taken stands beside us, not on the target square
            captured = board[r][endCol]
            if captured is not None and captured.kind == PAWN and captured.color != piece.color:
                moves.append(Move(start, endSq, piece, pieceCaptured=captured, isEnPassantMove=True))


def getSlidingMoves(board, r, c, piece, directions, moves):
    start = positionToSquare((r, c))
    for dr, dc in directions:
        for i in range(1, 8):
            endRow = r + dr * i
            endCol = c + dc * i
            if not (0 <= endRow < 8 and 0 <= endCol < 8):
                break
            endPiece = board[endRow][endCol]
            if endPiece is None:
                moves.append(Move(start, positionToSquare((endRow, endCol)), piece))
                continue
            if endPiece.color != piece.color:
                moves.append(Move(start, positionToSquare((endRow, endCol)), piece, pieceCaptured=endPiece))
            break


def getRookMoves(board, r, c, piece, moves):
    getSlidingMoves(board, r, c, piece, rookDirections, moves)


def getBishopMoves(board, r, c, piece, moves):
    getSlidingMoves(board, r, c, piece, bishopDirections, moves)


def getQueenMoves(board, r, c, piece, moves):
    getSlidingMoves(board, r, c, piece, queenDirections, moves)


def getStepMoves(board, r, c, piece, offsets, moves):
    start = positionToSquare((r, c))
    for dr, dc in offsets:
        endRow = r + dr
        endCol = c + dc
        if 0 <= endRow < 8 and 0 <= endCol < 8:  # stay on board
            endPiece = board[endRow][endCol]
            # move if square is empty or has an enemy
            if endPiece is None or endPiece.color != piece.color:
                moves.append(Move(start, positionToSquare((endRow, endCol)), piece, pieceCaptured=endPiece))


def getKnightMoves(board, r, c, piece, moves):
    getStepMoves(board, r, c, piece, knightJumps, moves)


def getKingMoves(board, r, c, piece, moves):
    getStepMoves(board, r, c, piece, kingSteps, moves)


def getCastleMoves(board, r, c, piece, castleRights, moves):
    home = kingHome[piece.color]
    if positionToSquare((r, c)) != home:
        return
    lanes = [lane for lane in castleLanes[piece.color] if getattr(castleRights, lane[1])]
    if not lanes:
        return
    enemy = opponent(piece.color)
    # can't castle out of check
    if squareAttacked(board, home, enemy):
        return
    for side, _, rookSq, between, crossed, dest in lanes:
        if pieceOn(board, rookSq) != Piece(piece.color, ROOK):
            continue
        if any(pieceOn(board, sq) is not None for sq in between):
            continue
        if any(squareAttacked(board, sq, enemy) for sq in crossed):
            continue
        moves.append(Move(home, dest, piece, castleSide=side))


moveFunctions = {
    KNIGHT: getKnightMoves,
    BISHOP: getBishopMoves,
    ROOK: getRookMoves,
    QUEEN: getQueenMoves,
}


def squareAttacked(board, square, byColor):
    """
    True when some piece of ``byColor`` could land on ``square``. Castling is
    never an attack, so every piece is generated with ``ignoreKingSafety``.
    """
    row, col = squareToPosition(square)
    for r in range(8):
        for c in range(8):
            piece = board[r][c]
            if piece is None or piece.color != byColor:
                continue
            if piece.kind == PAWN:
                # pawns take diagonally whether or not the square is occupied yet,
                # and never take straight ahead
                if r + pawnDirection[byColor] == row and abs(c - col) == 1:
                    return True
                continue
            for move in movesFor(board, positionToSquare((r, c)), piece, NO_CASTLE_RIGHTS, None,
                                 ignoreKingSafety=True):
                if move.endSq == square:
                    return True
    return False


def findKing(board, color):
    king = Piece(color, KING)
    for r in range(8):
        for c in range(8):
            if board[r][c] == king:
                return positionToSquare((r, c))
    return None


def kingInCheck(board, color):
    """a missing king counts as a king in check"""
    kingSq = findKing(board, color)
    if kingSq is None:
        return True
    return squareAttacked(board, kingSq, opponent(color))


def boardAfter(board, move):
    """the board that results from ``move``; ``board`` itself is left alone"""
    rows = [list(row) for row in board]
    startRow, startCol = squareToPosition(move.startSq)
    endRow, endCol = squareToPosition(move.endSq)
    piece = move.pieceMoved

    rows[startRow][startCol] = None
    if move.promotionChoice:
        rows[endRow][endCol] = Piece(piece.color, move.promotionChoice)
    else:
        rows[endRow][endCol] = piece

    if move.isEnPassantMove:
        rows[startRow][endCol] = None  # capturing the pawn

    if move.castleSide:
        rookFrom, rookTo = castleRookCols[move.castleSide]
        rows[endRow][rookTo] = rows[endRow][rookFrom]
        rows[endRow][rookFrom] = None

    return tuple(tuple(row) for row in rows)


def updateCastleRights(castleRights, move):
    lost = {}
    if move.pieceMoved.kind == KING:
        if move.pieceMoved.color == WHITE:
            lost.update(wks=False, wqs=False)
        else:
            lost.update(bks=False, bqs=False)
    # a rook leaving home, or anything landing on a rook's home square, kills that wing for good
    for sq in (move.startSq, move.endSq):
        if sq in rookHomes:
            lost[rookHomes[sq]] = False
    if not lost:
        return castleRights
    return replace(castleRights, **lost)


def makeMove(gs, move):
    """
    Apply ``move`` and return the new snapshot without classifying it: the
    check / mate / stalemate flags of the result are all False. Used for
    speculative application, callers that show the state to anyone should
    use :func:`applyMove`.
    """
    startRow, startCol = squareToPosition(move.startSq)
    endRow, _ = squareToPosition(move.endSq)
    piece = move.pieceMoved

    # Update enPassantPossible
    enPassant = None
    if piece.kind == PAWN and abs(startRow - endRow) == 2:
        enPassant = positionToSquare(((startRow + endRow) // 2, startCol))

    # the clock is tracked only, no fifty-move draw is ever declared
    if piece.kind == PAWN or move.pieceCaptured is not None:
        halfMoveClock = 0
    else:
        halfMoveClock = gs.halfMoveClock + 1
    fullMoveNumber = gs.fullMoveNumber + 1 if gs.toMove == BLACK else gs.fullMoveNumber

    return GameState(
        board=boardAfter(gs.board, move),
        toMove=opponent(gs.toMove),
        moveLog=gs.moveLog + (move,),
        castleRights=updateCastleRights(gs.castleRights, move),
        enPassantPossible=enPassant,
        halfMoveClock=halfMoveClock,
        fullMoveNumber=fullMoveNumber,
    )


def applyMove(gs, move):
    """
    Pure ``GameState x Move -> GameState``. The move must come from
    :func:`legalMoves` (or :func:`attachPromotionChoice` on one of those),
    illegal moves are not detected.
    """
    return checkGameStatus(makeMove(gs, move))


def iterValidMoves(gs, color):
    """
    Yield the legal moves of ``color``. Each pseudo-legal move is applied to a
    throwaway board and kept only if the mover's king is not attacked there.
    """
    enemy = opponent(color)
    for r in range(8):
        for c in range(8):
            piece = gs.board[r][c]
            if piece is None or piece.color != color:
                continue
            square = positionToSquare((r, c))
            for move in movesFor(gs.board, square, piece, gs.castleRights, gs.enPassantPossible):
                after = boardAfter(gs.board, move)
                kingSq = findKing(after, color)
                if kingSq is not None and not squareAttacked(after, kingSq, enemy):
                    yield move


def getAllValidMoves(gs, color):
    return list(iterValidMoves(gs, color))


def legalMoves(gs):
    return getAllValidMoves(gs, gs.toMove)


def checkGameStatus(gs):
    """fill in the check, checkmate and stalemate flags for the side to move"""
    kingSq = findKing(gs.board, gs.toMove)
    if kingSq is None:
        # unreachable in a real game; end it against the side without a king
        logger.warning("no king for %s on the board, treating the position as checkmate", gs.toMove)
        return replace(gs, inCheck=True, checkMate=True, staleMate=False)

    inCheck = squareAttacked(gs.board, kingSq, opponent(gs.toMove))
    hasValidMoves = any(True for _ in iterValidMoves(gs, gs.toMove))
    checkMate = inCheck and not hasValidMoves
    staleMate = not inCheck and not hasValidMoves
    if checkMate or staleMate:
        logger.debug("%s after %d plies: checkmate=%s stalemate=%s",
                     gs.toMove, len(gs.moveLog), checkMate, staleMate)
    return replace(gs, inCheck=inCheck, checkMate=checkMate, staleMate=staleMate)


def attachPromotionChoice(move, kind):
    """rebind a pending promotion to the piece type the player picked"""
    if not move.isPawnPromotion:
        raise IllegalPromotion(f"{move.getChessNotation()} is not a promotion")
    kind = kind.upper()
    if kind not in PROMOTION_CHOICES:
        raise IllegalPromotion(f"cannot promote to {kind!r}")
    return replace(move, promotionChoice=kind)


def findMove(gs, notation):
    """
    Look up the legal move written as ``e2e4`` / ``e7e8n``. Returns None when
    no legal move matches; bad squares raise :class:`InvalidCoordinate`.
    """
    notation = notation.strip().lower()
    start, end, promotion = notation[:2], notation[2:4], notation[4:]
    squareToPosition(start)
    squareToPosition(end)
    for move in legalMoves(gs):
        if move.startSq == start and move.endSq == end:
            if promotion:
                return attachPromotionChoice(move, promotion)
            return move
    return None
