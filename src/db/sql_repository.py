"""Implementation of the record stores using SQLAlchemy"""

import logging
from contextlib import contextmanager
from typing import Any, Iterator, Optional
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.core.exceptions import (
    HistoryWriteError,
    RepositoryError,
    StoreUnavailableError,
)
from src.core.models import (
    UPDATABLE_FIELDS,
    ChangeEvent,
    GameModel,
    GameRecord,
    HistoryRecord,
    PlayerId,
)
from src.core.shared_types import (
    GAME_COLLECTION,
    HISTORY_COLLECTION,
    ChangeAction,
    EndStatus,
    Status,
)
from src.db.change_feed import ChangeFeed, OnChange, SubscriptionHandle
from src.db.schema import DBGameRecord, DBHistoryRecord

log = logging.getLogger(__name__)


class _SQLStore:
    """Shared session handling: every backend failure is rolled back and surfaces as StoreUnavailableError."""

    def __init__(self, db_session: Session, feed: Optional[ChangeFeed] = None) -> None:
        self.db = db_session
        self.feed = feed if feed is not None else ChangeFeed()

    @contextmanager
    def _backend(
        self, action: str, error: type[StoreUnavailableError] = StoreUnavailableError
    ) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as e:
            self.db.rollback()
            log.error("Record store failed to %s: %s", action, e)
            raise error(f"Could not {action}.") from e


class SQLGameRecordStore(_SQLStore):
    """Game records stored using SQL / change notifications published on the feed after each commit."""

    def get_game(self, game_id: UUID) -> GameRecord | None:
        """Get game by ID, if record exists."""
        with self._backend("read game"):
            game_db = self._fetch_game(game_id)
        if game_db:
            return self._to_record(game_db)
        return None

    def get_latest_game(self) -> GameRecord | None:
        """Most recently created game, if any."""
        query = select(DBGameRecord).order_by(DBGameRecord.created_at.desc()).limit(1)
        with self._backend("read latest game"):
            game_db = self.db.scalar(query)
        if game_db:
            return self._to_record(game_db)
        return None

    def create_game(self, game: GameModel) -> GameRecord:
        """Store new game and return the stored record."""
        game_db = DBGameRecord(
            id=uuid4(),
            position=game.position,
            move_log=game.move_log,
            white_player=game.white_player,
            black_player=game.black_player,
            status=game.status,
            last_move=list(game.last_move) if game.last_move else None,
        )
        with self._backend("create game"):
            self.db.add(game_db)
            self.db.commit()
            self.db.refresh(game_db)
        record = self._to_record(game_db)
        log.info("Created game record %s", record.id)
        self.feed.publish(ChangeEvent(GAME_COLLECTION, ChangeAction.CREATE, record.id))
        return record

    def update_game(self, game_id: UUID, **changes: Any) -> GameRecord | None:
        """Overwrite the given fields of an existing record."""
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise RepositoryError(f"Cannot update unknown field(s): {', '.join(sorted(unknown))}")

        with self._backend("update game"):
            game_db = self._fetch_game(game_id)
            if not game_db:
                return None
            for name, value in changes.items():
                if name == "last_move" and value is not None:
                    value = list(value)
                setattr(game_db, name, value)
            self.db.commit()
            self.db.refresh(game_db)
        record = self._to_record(game_db)
        self.feed.publish(ChangeEvent(GAME_COLLECTION, ChangeAction.UPDATE, record.id))
        return record

    def subscribe(self, pattern: str, on_change: OnChange) -> SubscriptionHandle:
        return self.feed.subscribe(GAME_COLLECTION, pattern, on_change)

    def _fetch_game(self, game_id: UUID) -> DBGameRecord | None:
        query = select(DBGameRecord).where(DBGameRecord.id == game_id)
        return self.db.scalar(query)

    def _to_record(self, game_db: DBGameRecord) -> GameRecord:
        """Convert SQLAlchemy model to data transfer model."""
        return GameRecord(
            id=game_db.id,
            position=game_db.position,
            move_log=game_db.move_log,
            white_player=game_db.white_player,
            black_player=game_db.black_player,
            status=Status(game_db.status),
            last_move=tuple(game_db.last_move) if game_db.last_move else None,
            created_at=game_db.created_at,
        )


class SQLHistoryStore(_SQLStore):
    """History records stored using SQL. There is deliberately no update / delete."""

    def create_history(
        self, winner: Optional[PlayerId], loser: Optional[PlayerId], end_status: EndStatus
    ) -> HistoryRecord:
        history_db = DBHistoryRecord(
            id=uuid4(), winner=winner, loser=loser, end_status=end_status
        )
        with self._backend("create history record", HistoryWriteError):
            self.db.add(history_db)
            self.db.commit()
            self.db.refresh(history_db)
        record = self._to_record(history_db)
        self.feed.publish(ChangeEvent(HISTORY_COLLECTION, ChangeAction.CREATE, record.id))
        return record

    def list_history(self, limit: int) -> list[HistoryRecord]:
        query = (
            select(DBHistoryRecord)
            .order_by(DBHistoryRecord.created_at.desc())
            .limit(limit)
        )
        with self._backend("list history"):
            rows = self.db.scalars(query).all()
        return [self._to_record(row) for row in rows]

    def _to_record(self, history_db: DBHistoryRecord) -> HistoryRecord:
        return HistoryRecord(
            id=history_db.id,
            winner=history_db.winner,
            loser=history_db.loser,
            end_status=EndStatus(history_db.end_status),
            created_at=history_db.created_at,
        )
