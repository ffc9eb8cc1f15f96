"""
Type definitions used across layers
"""

from enum import StrEnum


class Status(StrEnum):
    NEW = "new"
    WHITE_TO_MOVE = "white to move"
    BLACK_TO_MOVE = "black to move"
    IN_CHECK = "in check"
    CHECKMATE = "checkmate"
    STALEMATE = "stalemate"
    DRAW = "draw"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({Status.CHECKMATE, Status.STALEMATE, Status.DRAW})


class EndStatus(StrEnum):
    """How a concluded game ended, as recorded in the history."""

    CHECKMATE = "checkmate"
    STALEMATE = "stalemate"
    OTHER = "other"


class Color(StrEnum):
    WHITE = "white"
    BLACK = "black"

    @property
    def opponent(self) -> "Color":
        return Color.BLACK if self == Color.WHITE else Color.WHITE


class PieceType(StrEnum):
    """Pieces a pawn may promote into."""

    KNIGHT = "knight"
    BISHOP = "bishop"
    ROOK = "rook"
    QUEEN = "queen"


class ChangeAction(StrEnum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


# --- Collection names as used by the record store
GAME_COLLECTION = "game_state"
HISTORY_COLLECTION = "game_history"
