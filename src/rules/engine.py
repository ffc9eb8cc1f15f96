"""
Adapter around the python-chess rules engine.

The rest of the package only talks to python-chess through the functions in this module:
applying moves, reading whose turn it is, detecting terminal positions and
converting between boards and their stored representations (FEN for the position, PGN for the move log).

Boards handed out by this module are never mutated afterwards: apply_move works on a copy.
"""

import io
import re
from typing import Optional

import chess
import chess.pgn

from src.core.exceptions import IllegalMoveError, InvalidFENError, ReplayError
from src.core.shared_types import Color, PieceType, Status

PROMOTION_PIECES: dict[PieceType, chess.PieceType] = {
    PieceType.KNIGHT: chess.KNIGHT,
    PieceType.BISHOP: chess.BISHOP,
    PieceType.ROOK: chess.ROOK,
    PieceType.QUEEN: chess.QUEEN,
}

# Tokens the PGN exporter writes in the movetext section.
# python-chess silently skips anything else, which would make a corrupt log replay as the initial position.
_MOVETEXT_TOKEN = re.compile(
    r"\d+\.(?:\.\.)?"
    r"|\*|1-0|0-1|1/2-1/2"
    r"|[NBRQK]?[a-h]?[1-8]?x?[a-h][1-8](?:=[NBRQ])?[+#]?"
    r"|O-O(?:-O)?[+#]?"
)


# --- Positions ---
def initial_position() -> str:
    return chess.STARTING_FEN


def load_position(fen: str) -> chess.Board:
    """Board from a FEN string. Has no move history, so repetitions cannot be detected."""
    try:
        return chess.Board(fen)
    except ValueError as e:
        raise InvalidFENError(f"Cannot interpret supplied string as FEN: {fen!r}") from e


def to_position(board: chess.Board) -> str:
    return board.fen()


# --- Move log ---
def serialize_history(board: chess.Board) -> str:
    """PGN of all moves played on the board (includes a FEN header if the board did not start from the standard position)."""
    game = chess.pgn.Game.from_board(board)
    exporter = chess.pgn.StringExporter(headers=True, variations=False, comments=False)
    return game.accept(exporter)


def replay(move_log: str) -> chess.Board:
    """
    Rebuild a board by replaying a PGN move log.

    Raises ReplayError if the log is empty, contains anything besides headers and plain SAN movetext,
    or if any move is illegal.
    """
    if not move_log.strip():
        raise ReplayError("Move log is empty.")

    movetext = [line for line in move_log.splitlines() if not line.lstrip().startswith("[")]
    for token in " ".join(movetext).split():
        if not _MOVETEXT_TOKEN.fullmatch(token):
            raise ReplayError(f"Unrecognised token in move log: {token!r}")

    game = chess.pgn.read_game(io.StringIO(move_log))
    if game is None:
        raise ReplayError("Move log does not contain a game.")
    if game.errors:
        raise ReplayError(f"Move log could not be replayed: {game.errors[0]}")

    try:
        board = game.board()
        for move in game.mainline_moves():
            board.push(move)
    except ValueError as e:
        raise ReplayError(f"Move log could not be replayed: {e}") from e
    return board


# --- Moves ---
def apply_move(
    board: chess.Board,
    from_square: str,
    to_square: str,
    promotion: Optional[PieceType] = None,
) -> chess.Board:
    """
    New board with the move played. The input board is left untouched.

    A pawn reaching the last rank without a promotion piece promotes to a queen;
    a promotion piece given for any other move is ignored.
    """
    try:
        origin = chess.parse_square(from_square)
        target = chess.parse_square(to_square)
    except ValueError as e:
        raise IllegalMoveError(f"Move not allowed: {from_square}{to_square}") from e

    piece = PROMOTION_PIECES[promotion] if promotion else None
    move = chess.Move(origin, target, promotion=piece)
    if not board.is_legal(move):
        fallback = chess.Move(origin, target, promotion=None if piece else chess.QUEEN)
        if not board.is_legal(fallback):
            raise IllegalMoveError(f"Move not allowed: {move.uci()}")
        move = fallback

    after = board.copy()
    after.push(move)
    return after


def last_move(board: chess.Board) -> Optional[tuple[str, str]]:
    if not board.move_stack:
        return None
    move = board.peek()
    return chess.square_name(move.from_square), chess.square_name(move.to_square)


def moves_from(board: chess.Board, square: str) -> list[str]:
    """Legal moves (UCI) for the piece standing on the square."""
    try:
        origin = chess.parse_square(square)
    except ValueError:
        return []
    return [move.uci() for move in board.legal_moves if move.from_square == origin]


# --- Game state ---
def side_to_move(board: chess.Board) -> Color:
    return Color.WHITE if board.turn == chess.WHITE else Color.BLACK


def is_check(board: chess.Board) -> bool:
    return board.is_check()


def is_checkmate(board: chess.Board) -> bool:
    return board.is_checkmate()


def is_stalemate(board: chess.Board) -> bool:
    return board.is_stalemate()


def is_draw(board: chess.Board) -> bool:
    """Insufficient material, threefold repetition or 50 moves without capture / pawn move."""
    return (
        board.is_insufficient_material()
        or board.is_repetition(3)
        or board.halfmove_clock >= 100
    )


def status_of(board: chess.Board) -> Status:
    """Game status after the last move on the board."""
    if is_checkmate(board):
        return Status.CHECKMATE
    if is_stalemate(board):
        return Status.STALEMATE
    if is_draw(board):
        return Status.DRAW
    if is_check(board):
        return Status.IN_CHECK
    return (
        Status.WHITE_TO_MOVE
        if side_to_move(board) == Color.WHITE
        else Status.BLACK_TO_MOVE
    )
