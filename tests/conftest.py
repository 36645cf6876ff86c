"""
Pytest will auto-discover / import this file called 'conftest.py'. ]
This file defines fixtures/variables required for testing multiple layers.
"""

import os

# Must be set before anything from src is imported: the app module opens its database at import time
os.environ["DATABASE_URL"] = "sqlite://"

from typing import Callable, Generator

import pytest
from sqlalchemy import StaticPool, create_engine
from sqlalchemy.orm import Session, sessionmaker

from src.baduk import initializers
from src.baduk.session import GameSession, GameSettings, PlayerRef
from src.core.shared_types import GameCategory, GameMode
from src.db.schema import Base

# Setup an in-memory SQLite database for testing
DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autoflush=False, bind=engine)

# Start of every game built by `new_session`, in epoch ms
NOW = 1_000_000


@pytest.fixture
def db_session_repo() -> Generator[Session, None, None]:
    """Connection to a test database. Tables are removed at teardown to make unit tests of repository independent of each other."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        Base.metadata.drop_all(bind=engine)
        db.close()


@pytest.fixture
def db_session_shared() -> Generator[Session, None, None]:
    """Connection to a test database. Mock real setup with multiple sessions connecting to the same engine / database tables."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def session_factory() -> Generator[sessionmaker, None, None]:
    """Factory for independent connections to the same (fresh) test database, as the app and the game loop use it."""
    Base.metadata.create_all(bind=engine)
    try:
        yield TestingSessionLocal
    finally:
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def now() -> int:
    """Start time of the games built by `new_session`."""
    return NOW


@pytest.fixture
def new_session() -> Callable[..., GameSession]:
    """
    Build a fresh game between "p1" (the challenger) and "p2" on a 9x9 board, started at NOW.

    "p2" is the AI unless the category is normal. Keyword arguments other than mode/category/now are game settings.
    """

    def factory(
        mode: GameMode = GameMode.STANDARD,
        category: GameCategory = GameCategory.AI,
        now: int = NOW,
        **settings,
    ) -> GameSession:
        settings.setdefault("board_size", 9)
        return initializers.create_session(
            game_id="game-1",
            mode=mode,
            settings=GameSettings(**settings),
            player1=PlayerRef("p1", "Alice"),
            player2=PlayerRef("p2", "Bot", is_ai=category != GameCategory.NORMAL),
            now=now,
            category=category,
        )

    return factory
