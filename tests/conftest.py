"""
Pytest will auto-discover / import this file called 'conftest.py'.
This file defines fixtures/variables required for testing multiple layers.
"""

from typing import Generator

import pytest
from sqlalchemy import StaticPool, create_engine
from sqlalchemy.orm import Session, sessionmaker

from src.db.change_feed import ChangeFeed
from src.db.schema import Base

# Setup an in-memory SQLite database for testing
DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autoflush=False, bind=engine)

# Scholar's mate, as (from, to) squares
SCHOLARS_MATE = [
    ("e2", "e4"),
    ("e7", "e5"),
    ("f1", "c4"),
    ("f8", "c5"),
    ("d1", "h5"),
    ("g8", "f6"),
    ("h5", "f7"),
]

# Shortest known stalemate (Sam Loyd): 1. e3 a5 2. Qh5 Ra6 3. Qxa5 h5 4. h4 Rah6 5. Qxc7 f6
# 6. Qxd7+ Kf7 7. Qxb7 Qd3 8. Qxb8 Qh7 9. Qxc8 Kg6 10. Qe6
STALEMATE = [
    ("e2", "e3"),
    ("a7", "a5"),
    ("d1", "h5"),
    ("a8", "a6"),
    ("h5", "a5"),
    ("h7", "h5"),
    ("h2", "h4"),
    ("a6", "h6"),
    ("a5", "c7"),
    ("f7", "f6"),
    ("c7", "d7"),
    ("e8", "f7"),
    ("d7", "b7"),
    ("d8", "d3"),
    ("b7", "b8"),
    ("d3", "h7"),
    ("b8", "c8"),
    ("f7", "g6"),
    ("c8", "e6"),
]


@pytest.fixture
def db_session_repo() -> Generator[Session, None, None]:
    """Connection to a test database. Tables are removed at teardown to make unit tests of repository independent of each other."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def feed() -> ChangeFeed:
    return ChangeFeed()


@pytest.fixture
def scholars_mate() -> list[tuple[str, str]]:
    return list(SCHOLARS_MATE)


@pytest.fixture
def stalemate_moves() -> list[tuple[str, str]]:
    return list(STALEMATE)
