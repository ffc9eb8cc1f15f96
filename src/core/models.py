"""
Boundary layer data model(s).

These objects are used to communicate between the record store and the services.
Both the store implementations (lower) and the synchronizer (higher) send/receive the models defined here,
which decouples the DB schema from the way the game state is handled on the client.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from src.core.shared_types import ChangeAction, EndStatus, Status

# Type aliases to make the models easier to read
PlayerId = str
SquareName = str

# An open seat is stored as an empty string
OPEN_SEAT: PlayerId = ""


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class GameModel:
    """Writable fields of a game record, as sent to the store when creating one."""

    position: str
    move_log: str
    white_player: PlayerId
    black_player: PlayerId
    status: Status
    last_move: Optional[tuple[SquareName, SquareName]] = None


# Fields of a stored GameRecord that can be changed by an update
UPDATABLE_FIELDS = frozenset(
    {"position", "move_log", "white_player", "black_player", "status", "last_move"}
)


@dataclass(frozen=True)
class GameRecord:
    """The single source of truth for one game instance, as stored centrally."""

    id: UUID
    position: str  # FEN
    move_log: str  # PGN
    white_player: PlayerId
    black_player: PlayerId
    status: Status
    last_move: Optional[tuple[SquareName, SquareName]] = None
    created_at: datetime = field(default_factory=utc_now)


@dataclass(frozen=True)
class HistoryRecord:
    """Audit entry written once per concluded game. Never mutated."""

    id: UUID
    winner: Optional[PlayerId]
    loser: Optional[PlayerId]
    end_status: EndStatus
    created_at: datetime = field(default_factory=utc_now)


@dataclass(frozen=True)
class ChangeEvent:
    """
    Notification pushed by the store after a write.

    NOTE carries no field values: subscribers have to re-fetch the record.
    """

    collection: str
    action: ChangeAction
    record_id: UUID
