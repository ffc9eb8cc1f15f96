"""Construct the services for one client, at process start. Nothing is looked up globally."""

from typing import Optional

from sqlalchemy.orm import Session

from src.core.config import Settings, get_settings
from src.core.log_setup import configure_logging
from src.db.change_feed import ChangeFeed
from src.db.database import create_db_engine, init_db
from src.db.sql_repository import SQLGameRecordStore, SQLHistoryStore
from src.services.auth import AuthProvider
from src.services.history_logger import HistoryLogger
from src.services.notifier import HttpTurnNotifier, NullNotifier, TurnNotifier
from src.services.sync_service import StateSynchronizer


def build_notifier(settings: Settings) -> TurnNotifier:
    if not settings.notify_url:
        return NullNotifier()
    return HttpTurnNotifier(settings.notify_url, timeout=settings.notify_timeout)


def build_synchronizer(
    settings: Settings,
    db_session: Session,
    auth: AuthProvider,
    feed: Optional[ChangeFeed] = None,
    notifier: Optional[TurnNotifier] = None,
) -> StateSynchronizer:
    """
    Wire a StateSynchronizer to SQL stores.

    Clients that should see each other's writes must share the feed (and the database).
    """
    feed = feed if feed is not None else ChangeFeed()
    store = SQLGameRecordStore(db_session, feed)
    history = HistoryLogger(SQLHistoryStore(db_session, feed), limit=settings.history_limit)
    return StateSynchronizer(
        store=store,
        history=history,
        notifier=notifier if notifier is not None else build_notifier(settings),
        auth=auth,
    )


def open_client(
    auth: AuthProvider,
    settings: Optional[Settings] = None,
    feed: Optional[ChangeFeed] = None,
) -> StateSynchronizer:
    """Process entry point: logging, database and a started synchronizer, all from the settings."""
    settings = settings if settings is not None else get_settings()
    configure_logging(settings)
    session_factory = init_db(create_db_engine(settings))
    synchronizer = build_synchronizer(settings, session_factory(), auth, feed=feed)
    synchronizer.start()
    return synchronizer
