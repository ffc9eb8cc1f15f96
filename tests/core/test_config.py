"""Unit tests for src/core/config.py and src/core/log_setup.py"""

import logging

import pytest

from src.core.config import Settings
from src.core.log_setup import configure_logging
from src.core.shared_types import Status


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ["CHESS_DATABASE_URL", "CHESS_NOTIFY_URL", "CHESS_HISTORY_LIMIT"]:
        monkeypatch.delenv(name, raising=False)
    settings = Settings(_env_file=None)
    assert settings.database_url.startswith("sqlite:///")
    assert settings.notify_url == ""
    assert settings.history_limit == 50


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CHESS_DATABASE_URL", "sqlite:///:memory:")
    monkeypatch.setenv("CHESS_NOTIFY_URL", "https://example.com/notify")
    monkeypatch.setenv("CHESS_HISTORY_LIMIT", "10")

    settings = Settings(_env_file=None)
    assert settings.database_url == "sqlite:///:memory:"
    assert settings.notify_url == "https://example.com/notify"
    assert settings.history_limit == 10


def test_configure_logging_quiets_sqlalchemy() -> None:
    configure_logging(Settings(_env_file=None, log_level="debug", database_echo=False))
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING


@pytest.mark.parametrize(
    "status, terminal",
    [
        (Status.NEW, False),
        (Status.WHITE_TO_MOVE, False),
        (Status.BLACK_TO_MOVE, False),
        (Status.IN_CHECK, False),
        (Status.CHECKMATE, True),
        (Status.STALEMATE, True),
        (Status.DRAW, True),
    ],
)
def test_terminal_statuses(status: Status, terminal: bool) -> None:
    assert status.is_terminal == terminal
