"""Database tables / schema"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import JSON
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from src.core.models import utc_now
from src.core.shared_types import GAME_COLLECTION, HISTORY_COLLECTION


class Base(DeclarativeBase):
    pass


class DBGameRecord(Base):
    __tablename__ = GAME_COLLECTION
    id: Mapped[UUID] = mapped_column(primary_key=True)
    position: Mapped[str]
    move_log: Mapped[str] = mapped_column(default="")
    white_player: Mapped[str] = mapped_column(default="")
    black_player: Mapped[str] = mapped_column(default="")
    status: Mapped[str]
    last_move: Mapped[Optional[list[str]]] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(default=utc_now, index=True)


class DBHistoryRecord(Base):
    __tablename__ = HISTORY_COLLECTION
    id: Mapped[UUID] = mapped_column(primary_key=True)
    winner: Mapped[Optional[str]]
    loser: Mapped[Optional[str]]
    end_status: Mapped[str]
    created_at: Mapped[datetime] = mapped_column(default=utc_now, index=True)
