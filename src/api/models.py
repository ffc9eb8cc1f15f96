"""Requests and Response models"""

from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, field_validator

from src.core.exceptions import InvalidRequestError
from src.core.shared_types import Color, PieceType, Status

PlayerName = str
SquareName = str

FILES = "abcdefgh"
RANKS = "12345678"

# UCI / SAN letters of the promotion pieces
PROMOTION_LETTERS = {"n": "knight", "b": "bishop", "r": "rook", "q": "queen"}


# --- REQUEST MODELS ---
class MoveRequest(BaseModel):
    from_square: SquareName
    to_square: SquareName
    promote_to: Optional[PieceType] = None

    @field_validator(*["from_square", "to_square"])
    @classmethod
    def validate_square(cls, value: str) -> str:
        def _is_algebraic_notation(value: str) -> bool:
            if len(value) != 2:
                return False

            file, rank = value[0], value[1]
            return file in FILES and rank in RANKS

        value = value.strip().lower()
        if not _is_algebraic_notation(value):
            raise InvalidRequestError(
                f"Cannot interpret {value!r} as a valid square name."
            )
        return value

    @field_validator("promote_to", mode="before")
    @classmethod
    def validate_promotion(cls, value: Any) -> Any:
        if value is None or isinstance(value, PieceType):
            return value
        name = str(value).strip().lower()
        name = PROMOTION_LETTERS.get(name, name)
        if name not in {piece.value for piece in PieceType}:
            raise InvalidRequestError(
                f"Cannot promote into {value!r}. Pick one from {','.join(PieceType)} (or {','.join(PROMOTION_LETTERS)})"
            )
        return name


class JoinSeatRequest(BaseModel):
    color: Color

    @field_validator("color", mode="before")
    @classmethod
    def validate_color(cls, value: Any) -> Any:
        if isinstance(value, Color):
            return value
        if str(value).lower() not in {color.value for color in Color}:
            raise InvalidRequestError(
                f"No seat with color {value!r}. Pick one from {','.join(Color)}"
            )
        return str(value).lower()


# --- RESPONSE MODELS ---
class GameStateResponse(BaseModel):
    """What a client shows of the game, from the point of view of the current user."""

    game_id: UUID
    fen_state: str
    move_history: str
    status: Status
    players: dict[Color, PlayerName]
    side_to_move: Color
    last_move: Optional[tuple[SquareName, SquareName]]
    player_color: Optional[Color]
    is_my_turn: bool
    is_spectator: bool
