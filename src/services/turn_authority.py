"""
Who may move: derived from the record's seat fields and the side to move of the local simulation.

Pure functions without state of their own. An empty / missing user id never matches an open seat.
"""

from typing import Optional

from src.core.models import OPEN_SEAT, GameRecord, PlayerId
from src.core.shared_types import Color, Status


def seat_owner(record: GameRecord, color: Color) -> PlayerId:
    return record.white_player if color == Color.WHITE else record.black_player


def player_color(record: GameRecord, user_id: Optional[PlayerId]) -> Optional[Color]:
    """Color of the seat held by the user. White is checked first if a user holds both seats."""
    if not user_id:
        return None
    if record.white_player == user_id:
        return Color.WHITE
    if record.black_player == user_id:
        return Color.BLACK
    return None


def is_my_turn(record: GameRecord, side_to_move: Color, user_id: Optional[PlayerId]) -> bool:
    if not user_id:
        return False
    return seat_owner(record, side_to_move) == user_id


def is_spectator(record: GameRecord, user_id: Optional[PlayerId]) -> bool:
    """
    Watching a game without a seat.

    While the game is new or a seat is still open, an unseated user is not a spectator: they may still claim a seat.
    """
    if player_color(record, user_id) is not None:
        return False
    unclaimed = record.status == Status.NEW or OPEN_SEAT in (
        record.white_player,
        record.black_player,
    )
    return not unclaimed


def opponent_of(record: GameRecord, user_id: Optional[PlayerId]) -> Optional[PlayerId]:
    """Occupant of the other seat, None if that seat is open or the user holds no seat."""
    color = player_color(record, user_id)
    if color is None:
        return None
    opponent = seat_owner(record, color.opponent)
    return opponent or None
