"""Database tables / schema"""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class DBSession(Base):
    """A live game: the whole aggregate as one JSON document, plus the columns we filter on."""

    __tablename__ = "game_sessions"
    id: Mapped[str] = mapped_column(primary_key=True)
    mode: Mapped[str]
    status: Mapped[str] = mapped_column(index=True)
    state: Mapped[dict[str, Any]] = mapped_column(JSON)
    created_at: Mapped[datetime] = mapped_column(default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(default=utc_now, onupdate=utc_now)


class DBUser(Base):
    __tablename__ = "users"
    id: Mapped[str] = mapped_column(primary_key=True)
    nickname: Mapped[str]
    gold: Mapped[int] = mapped_column(default=0)
    is_ai: Mapped[bool] = mapped_column(default=False)
