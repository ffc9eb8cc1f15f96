"""Protocol repositories (implemented with SQLAlchemy in sql_repository.py, mocked in the tests)"""

from typing import Any, Optional, Protocol
from uuid import UUID

from src.core.models import GameModel, GameRecord, HistoryRecord, PlayerId
from src.core.shared_types import EndStatus
from src.db.change_feed import OnChange, SubscriptionHandle


class GameRecordStore(Protocol):
    """Persistence of the shared game record + change notifications."""

    def get_game(self, game_id: UUID) -> GameRecord | None:
        """Get game by ID, if record exists."""
        ...

    def get_latest_game(self) -> GameRecord | None:
        """Most recently created game, if any."""
        ...

    def create_game(self, game: GameModel) -> GameRecord:
        """Store new game and return the stored record (with its newly created ID)."""
        ...

    def update_game(self, game_id: UUID, **changes: Any) -> GameRecord | None:
        """Overwrite the given fields of an existing record. Last writer wins."""
        ...

    def subscribe(self, pattern: str, on_change: OnChange) -> SubscriptionHandle:
        """Get notified after every create/update of a game record matching the pattern ('*' or an ID)."""
        ...


class HistoryStore(Protocol):
    """Append-only persistence of concluded games."""

    def create_history(
        self, winner: Optional[PlayerId], loser: Optional[PlayerId], end_status: EndStatus
    ) -> HistoryRecord:
        """Store a new history entry."""
        ...

    def list_history(self, limit: int) -> list[HistoryRecord]:
        """Newest entries first."""
        ...
