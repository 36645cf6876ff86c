"""Implementation of SessionRepository using SQLAlchemy"""

from sqlalchemy import select
from sqlalchemy.orm import Session

from src.core.models import SessionId, SessionModel, UserId, UserModel
from src.core.shared_types import FINISHED_STATUSES
from src.db.schema import DBSession, DBUser


class SQLSessionRepository:
    """Data stored using SQL / methods implemented using SQLAlchemy"""

    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    # -- Sessions --
    def get_session(self, session_id: SessionId) -> SessionModel | None:
        session_db = self._fetch_session(session_id)
        if session_db:
            return self._to_model(session_db)
        return None

    def create_session(self, session: SessionModel) -> SessionModel:
        session_db = DBSession(
            id=session.id,
            mode=session.mode,
            status=session.status,
            state=session.state,
        )
        self.db.add(session_db)
        self.db.commit()
        self.db.refresh(session_db)
        return self._to_model(session_db)

    def save_session(self, session: SessionModel) -> SessionModel | None:
        session_db = self._fetch_session(session.id)
        if not session_db:
            return None
        session_db.mode = session.mode
        session_db.status = session.status
        session_db.state = session.state
        self.db.commit()
        self.db.refresh(session_db)
        return self._to_model(session_db)

    def list_active_sessions(self) -> list[SessionModel]:
        finished = [status.value for status in FINISHED_STATUSES]
        query = (
            select(DBSession)
            .where(DBSession.status.not_in(finished))
            .execution_options(populate_existing=True)
        )
        return [self._to_model(row) for row in self.db.scalars(query)]

    # -- Users --
    def get_user(self, user_id: UserId) -> UserModel | None:
        user_db = self.db.get(DBUser, user_id, populate_existing=True)
        if user_db:
            return UserModel(
                id=user_db.id,
                nickname=user_db.nickname,
                gold=user_db.gold,
                is_ai=user_db.is_ai,
            )
        return None

    def update_user(self, user: UserModel) -> UserModel | None:
        user_db = self.db.get(DBUser, user.id, populate_existing=True)
        if not user_db:
            return None
        user_db.nickname = user.nickname
        user_db.gold = user.gold
        user_db.is_ai = user.is_ai
        self.db.commit()
        return user

    def add_user(self, user: UserModel) -> UserModel:
        """Register a user record (accounts themselves are managed elsewhere)."""
        self.db.add(
            DBUser(id=user.id, nickname=user.nickname, gold=user.gold, is_ai=user.is_ai)
        )
        self.db.commit()
        return user

    # -- Internal helpers --
    def _fetch_session(self, session_id: SessionId) -> DBSession | None:
        query = (
            select(DBSession)
            .where(DBSession.id == session_id)
            .execution_options(populate_existing=True)
        )
        return self.db.scalar(query)

    def _to_model(self, session_db: DBSession) -> SessionModel:
        """Convert SQLAlchemy model to data transfer model."""
        return SessionModel(
            id=session_db.id,
            mode=session_db.mode,
            status=session_db.status,
            state=session_db.state,
        )
