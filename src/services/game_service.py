"""Orchestration of communication from API router to business logic, engines and persistence layers (and the reverse direction)."""

import logging
import time
from typing import Callable, Optional
from uuid import uuid4

from src.api.models import ActionRequest, ActionResponse, CreateSessionRequest, SessionResponse
from src.baduk import clock, dispatch, initializers
from src.baduk.actions import GameAction
from src.baduk.ai import planner
from src.baduk.modes import hidden
from src.baduk.session import GameSession, PlayerRef
from src.core.exceptions import GameError, GameStateError, RepositoryError
from src.core.models import SessionId, UserId
from src.core.shared_types import GameStatus
from src.db.repository import SessionRepository
from src.engine.analysis import AnalysisClient
from src.engine.pool import GoEnginePool
from src.services.locks import SessionLocks
from src.services.scoring_service import ScoringService

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


class GameService:
    """
    Orchestration of layers for live games.
    ----
    Every mutation of a stored session goes: lock -> load -> handler -> engines/scoring -> save.
    A rejected action (any GameError) is reported back and nothing is saved.
    """

    def __init__(
        self,
        repository: SessionRepository,
        engines: Optional[GoEnginePool] = None,
        scoring: Optional[ScoringService] = None,
        locks: Optional[SessionLocks] = None,
        clock_ms: Callable[[], int] = now_ms,
    ) -> None:
        self.repo = repository
        self.engines = engines or GoEnginePool()
        self.scoring = scoring or ScoringService(AnalysisClient())
        self.locks = locks or SessionLocks()
        self.now = clock_ms

    # -- API routes logic ---
    async def create_game(self, request: CreateSessionRequest) -> SessionResponse:
        """Both players agreed on mode and settings: build the session and store it."""
        session = initializers.create_session(
            game_id=uuid4().hex,
            mode=request.mode,
            settings=request.settings,
            player1=self._player_ref(request.player1_id),
            player2=self._player_ref(request.player2_id),
            now=self.now(),
            category=request.category,
        )
        self.repo.create_session(session.to_model())
        return self._session_response(session, request.player1_id)

    async def handle_action(self, game_id: SessionId, request: ActionRequest) -> ActionResponse:
        """Single entry point for every player action, whatever the mode."""
        async with self.locks(game_id):
            session = self._fetch_session(game_id)
            try:
                data = self.apply(session, request.to_action(), self.now())
            except GameError as exc:
                return ActionResponse(ok=False, error=str(exc))
            self.repo.save_session(session.to_model())
        return ActionResponse(ok=True, data=data)

    async def get_snapshot(
        self, game_id: SessionId, viewer_id: Optional[UserId] = None
    ) -> SessionResponse:
        """
        Current state of the game as `viewer_id` may see it.
        ----
        Used in "polling" loop by frontend to re-render whenever something changed.
        """
        session = self._fetch_session(game_id)
        return self._session_response(session, viewer_id)

    async def disconnect(self, game_id: SessionId, user_id: UserId) -> SessionResponse:
        async with self.locks(game_id):
            session = self._fetch_session(game_id)
            session.assert_participant(user_id)
            clock.register_disconnect(session, user_id, self.now())
            self.after_change(session, len(session.move_history))
            self.repo.save_session(session.to_model())
        return self._session_response(session, user_id)

    async def reconnect(self, game_id: SessionId, user_id: UserId) -> SessionResponse:
        async with self.locks(game_id):
            session = self._fetch_session(game_id)
            session.assert_participant(user_id)
            clock.register_reconnect(session, user_id)
            self.repo.save_session(session.to_model())
        return self._session_response(session, user_id)

    # -- Shared with the game loop --
    def apply(self, session: GameSession, action: GameAction, now: int) -> Optional[dict]:
        """Run one action on a loaded session (no locking, no saving)."""
        history_before = len(session.move_history)
        data = dispatch.handle_action(session, action, now)
        if data and data.get("gold_cost"):
            self._charge_gold(action.user_id, data.pop("gold_cost"))
        self.after_change(session, history_before)
        return data

    def after_change(self, session: GameSession, history_before: int) -> None:
        """
        Side effects of a state change outside the session itself. Engine work only ever starts here,
        it runs in background tasks.
        ----
        1. new moves are queued for the game's engine
        2. a game waiting for scoring gets its analysis started, and is settled once the analysis is back
        3. a finished game releases its engine
        """
        if session.id in self.engines and planner.uses_engine(session):
            self.engines.mirror(
                session,
                [
                    (move.player, move.point)
                    for move in session.move_history[history_before:]
                    if not move.point.is_resign
                ],
            )
        if session.status == GameStatus.SCORING and self.scoring.collect(session) is None:
            self.scoring.start(session)
        if session.is_finished:
            self.engines.release(session.id)

    # -- Internal helpers --
    def _charge_gold(self, user_id: UserId, cost: int) -> None:
        user = self.repo.get_user(user_id)
        if user is None:
            raise RepositoryError(f"User with {user_id=} not found.")
        if user.gold < cost:
            raise GameStateError("Not enough gold.")
        user.gold -= cost
        self.repo.update_user(user)

    def _player_ref(self, user_id: UserId) -> PlayerRef:
        user = self.repo.get_user(user_id)
        if user is None:
            raise RepositoryError(f"User with {user_id=} not found.")
        return PlayerRef(id=user.id, nickname=user.nickname, is_ai=user.is_ai)

    def _session_response(
        self, session: GameSession, viewer_id: Optional[UserId]
    ) -> SessionResponse:
        return SessionResponse(
            game_id=session.id,
            mode=session.mode,
            status=session.status,
            state=hidden.masked_snapshot(session, viewer_id),
        )

    def _fetch_session(self, game_id: SessionId) -> GameSession:
        """Attempt to find the game in the repository and raise error if it fails."""
        model = self.repo.get_session(game_id)
        if model is None:
            raise RepositoryError(f"Game with {game_id=} not found.")
        return GameSession.from_model(model)
