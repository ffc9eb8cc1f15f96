"""Summary records of concluded games."""

import logging
from typing import Optional

from src.core.exceptions import GameStateError, RepositoryError
from src.core.models import GameRecord, HistoryRecord, PlayerId
from src.core.shared_types import EndStatus, Status
from src.db.repository import HistoryStore
from src.rules import engine
from src.services.turn_authority import seat_owner

log = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 50


class HistoryLogger:
    """Writes one HistoryRecord per concluded game and lists the most recent ones."""

    def __init__(self, store: HistoryStore, limit: int = DEFAULT_HISTORY_LIMIT) -> None:
        self.store = store
        self.limit = limit

    def log_conclusion(self, record: GameRecord, final_status: Status) -> Optional[HistoryRecord]:
        """
        Record how the game ended.
        ----

        Called once, right after the move that ended the game was written.
        A failing write is logged and None is returned: the game's terminal state is already committed
        and is the authoritative fact, the history entry may lag or be missing.
        """
        if not final_status.is_terminal:
            raise GameStateError(f"Cannot log conclusion of a game that has not ended. status: {final_status}")

        winner, loser = self._outcome(record, final_status)
        end_status = self._end_status(final_status)
        try:
            entry = self.store.create_history(winner, loser, end_status)
        except RepositoryError:
            log.exception("Could not write history for game %s (%s)", record.id, end_status)
            return None

        log.info(
            "Game %s concluded: %s (winner=%s, loser=%s)",
            record.id,
            end_status,
            winner,
            loser,
        )
        return entry

    def recent(self, limit: Optional[int] = None) -> list[HistoryRecord]:
        """Most recent concluded games, newest first."""
        return self.store.list_history(limit or self.limit)

    @staticmethod
    def _outcome(
        record: GameRecord, final_status: Status
    ) -> tuple[Optional[PlayerId], Optional[PlayerId]]:
        """(winner, loser). Only a checkmate has a winner: the side that is NOT to move in the mated position."""
        if final_status != Status.CHECKMATE:
            return None, None
        mated = engine.side_to_move(engine.load_position(record.position))
        winner = seat_owner(record, mated.opponent) or None
        loser = seat_owner(record, mated) or None
        return winner, loser

    @staticmethod
    def _end_status(final_status: Status) -> EndStatus:
        if final_status == Status.CHECKMATE:
            return EndStatus.CHECKMATE
        if final_status == Status.STALEMATE:
            return EndStatus.STALEMATE
        return EndStatus.OTHER
