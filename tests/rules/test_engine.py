"""Unit tests for src/rules/engine.py"""

import random

import chess
import pytest

from src.core.exceptions import IllegalMoveError, InvalidFENError, ReplayError
from src.core.shared_types import Color, PieceType, Status
from src.rules import engine


def play(moves: list[tuple[str, str]], board: chess.Board | None = None) -> chess.Board:
    board = board if board is not None else chess.Board()
    for from_square, to_square in moves:
        board = engine.apply_move(board, from_square, to_square)
    return board


# --- POSITIONS ----
def test_initial_position() -> None:
    board = engine.load_position(engine.initial_position())
    assert engine.to_position(board) == chess.STARTING_FEN
    assert engine.side_to_move(board) == Color.WHITE
    assert engine.status_of(board) == Status.WHITE_TO_MOVE


@pytest.mark.parametrize(
    "invalid_fen",
    [
        "nonsense",
        "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR x KQkq - 0 1",  # no such color
        "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP w KQkq - 0 1",  # missing ranks
    ],
)
def test_invalid_position(invalid_fen: str) -> None:
    with pytest.raises(InvalidFENError):
        engine.load_position(invalid_fen)


# --- MOVES ----
def test_apply_move_leaves_input_untouched() -> None:
    board = chess.Board()
    after = engine.apply_move(board, "e2", "e4")

    assert engine.to_position(board) == chess.STARTING_FEN
    assert after.piece_at(chess.E4) == chess.Piece(chess.PAWN, chess.WHITE)
    assert engine.side_to_move(after) == Color.BLACK
    assert engine.last_move(after) == ("e2", "e4")
    assert engine.last_move(board) is None


@pytest.mark.parametrize(
    "from_square, to_square",
    [
        ("e2", "e5"),  # pawn cannot move three squares
        ("e7", "e5"),  # not white's piece
        ("e1", "e2"),  # occupied by own pawn
        ("e3", "e4"),  # empty square
        ("z9", "e4"),  # not a square
    ],
)
def test_illegal_moves_are_refused(from_square: str, to_square: str) -> None:
    with pytest.raises(IllegalMoveError):
        engine.apply_move(chess.Board(), from_square, to_square)


def test_promotion_defaults_to_queen() -> None:
    board = engine.load_position("8/P7/8/8/8/8/8/k6K w - - 0 1")
    after = engine.apply_move(board, "a7", "a8")
    assert after.piece_at(chess.A8) == chess.Piece(chess.QUEEN, chess.WHITE)


def test_promotion_to_chosen_piece() -> None:
    board = engine.load_position("8/P7/8/8/8/8/8/k6K w - - 0 1")
    after = engine.apply_move(board, "a7", "a8", PieceType.KNIGHT)
    assert after.piece_at(chess.A8) == chess.Piece(chess.KNIGHT, chess.WHITE)


def test_promotion_piece_ignored_for_other_moves() -> None:
    after = engine.apply_move(chess.Board(), "e2", "e4", PieceType.QUEEN)
    assert after.piece_at(chess.E4) == chess.Piece(chess.PAWN, chess.WHITE)


def test_moves_from_square() -> None:
    board = chess.Board()
    assert sorted(engine.moves_from(board, "e2")) == ["e2e3", "e2e4"]
    assert sorted(engine.moves_from(board, "g1")) == ["g1f3", "g1h3"]
    assert engine.moves_from(board, "e4") == []
    assert engine.moves_from(board, "nonsense") == []


# --- STATUS ----
def test_checkmate(scholars_mate: list[tuple[str, str]]) -> None:
    board = play(scholars_mate)
    assert engine.is_checkmate(board)
    assert engine.status_of(board) == Status.CHECKMATE
    # the mated side is the one to move
    assert engine.side_to_move(board) == Color.BLACK


def test_stalemate(stalemate_moves: list[tuple[str, str]]) -> None:
    board = play(stalemate_moves)
    assert engine.is_stalemate(board)
    assert engine.status_of(board) == Status.STALEMATE


def test_in_check() -> None:
    board = engine.load_position("4k3/8/8/8/8/8/4R3/4K3 b - - 0 1")
    assert engine.is_check(board)
    assert engine.status_of(board) == Status.IN_CHECK


def test_black_to_move() -> None:
    board = play([("e2", "e4")])
    assert engine.status_of(board) == Status.BLACK_TO_MOVE


def test_draw_by_insufficient_material() -> None:
    board = engine.load_position("8/8/8/8/8/8/8/k6K w - - 0 1")
    assert engine.is_draw(board)
    assert engine.status_of(board) == Status.DRAW


def test_draw_by_fifty_move_rule() -> None:
    board = engine.load_position("4k3/8/8/8/8/8/R7/4K3 w - - 100 80")
    assert engine.status_of(board) == Status.DRAW


def test_draw_by_threefold_repetition() -> None:
    knight_dance = [("g1", "f3"), ("g8", "f6"), ("f3", "g1"), ("f6", "g8")]
    board = play(knight_dance)
    assert engine.status_of(board) == Status.WHITE_TO_MOVE

    board = play(knight_dance, board)
    assert engine.status_of(board) == Status.DRAW


# --- MOVE LOG ----
def test_replay_reproduces_position(scholars_mate: list[tuple[str, str]]) -> None:
    """Replaying the serialized history gives the same position as playing the moves."""
    for n_moves in range(len(scholars_mate) + 1):
        board = play(scholars_mate[:n_moves])
        replayed = engine.replay(engine.serialize_history(board))
        assert engine.to_position(replayed) == engine.to_position(board)
        assert replayed.move_stack == board.move_stack


@pytest.mark.parametrize("seed", range(20))
def test_replay_of_random_games(seed: int) -> None:
    """Random legal walks, including promotions, castling and en passant when they come up."""
    rng = random.Random(seed)
    board = chess.Board()
    for _ in range(rng.randint(1, 160)):
        moves = list(board.legal_moves)
        if not moves:
            break
        board.push(rng.choice(moves))

    replayed = engine.replay(engine.serialize_history(board))
    assert replayed.move_stack == board.move_stack
    assert engine.to_position(replayed) == engine.to_position(board)
    assert engine.status_of(replayed) == engine.status_of(board)


def test_replay_of_stalemate_game(stalemate_moves: list[tuple[str, str]]) -> None:
    board = play(stalemate_moves)
    replayed = engine.replay(engine.serialize_history(board))
    assert engine.to_position(replayed) == engine.to_position(board)
    assert engine.status_of(replayed) == Status.STALEMATE


def test_move_log_keeps_check_and_capture_flags(scholars_mate: list[tuple[str, str]]) -> None:
    move_log = engine.serialize_history(play(scholars_mate))
    assert "Qxf7#" in move_log
    assert "1-0" in move_log


def test_replay_of_game_not_starting_from_initial_position() -> None:
    board = engine.load_position("4k3/8/8/8/8/8/R7/4K3 w - - 0 1")
    board = play([("a2", "a7"), ("e8", "d8")], board)
    replayed = engine.replay(engine.serialize_history(board))
    assert engine.to_position(replayed) == engine.to_position(board)


@pytest.mark.parametrize(
    "move_log",
    [
        "",
        "   \n",
        "this is not a chess game",
        "1. e4 e5 2. Ke3 *",  # illegal move
        "1. e4 e5 2. Nf3 {a comment} Nc6 *",  # not written by us
    ],
)
def test_replay_failures(move_log: str) -> None:
    with pytest.raises(ReplayError):
        engine.replay(move_log)
