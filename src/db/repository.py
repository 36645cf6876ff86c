"""Protocol repository (SQLAlchemy implementation in sql_repository.py, in-memory fakes in the tests)"""

from typing import Protocol

from src.core.models import SessionId, SessionModel, UserId, UserModel


class SessionRepository(Protocol):
    """Persistence layer orchestration"""

    def get_session(self, session_id: SessionId) -> SessionModel | None:
        """Get a live game session by ID, if record exists."""
        ...

    def create_session(self, session: SessionModel) -> SessionModel:
        """Store a new session (its ID is chosen by the caller)."""
        ...

    def save_session(self, session: SessionModel) -> SessionModel | None:
        """Overwrite the stored state of an existing session."""
        ...

    def list_active_sessions(self) -> list[SessionModel]:
        """Every session that has not ended yet (what the game loop ticks)."""
        ...

    def get_user(self, user_id: UserId) -> UserModel | None:
        ...

    def update_user(self, user: UserModel) -> UserModel | None:
        ...
