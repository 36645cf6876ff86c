"""HTTP routes: thin wrappers that hand requests to the GameService."""

from typing import Generator, Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from src.api.models import (
    ActionRequest,
    ActionResponse,
    ConnectionRequest,
    CreateSessionRequest,
    SessionResponse,
)
from src.db.sql_repository import SQLSessionRepository
from src.services.game_service import GameService

router = APIRouter(prefix="/games", tags=["games"])


def get_db(request: Request) -> Generator[Session, None, None]:
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def get_game_service(request: Request, db: Session = Depends(get_db)) -> GameService:
    """Per-request service around the process-wide engines, scoring and locks."""
    state = request.app.state
    return GameService(
        SQLSessionRepository(db),
        engines=state.engines,
        scoring=state.scoring,
        locks=state.locks,
    )


@router.post("", response_model=SessionResponse, status_code=201)
async def create_game(
    request: CreateSessionRequest, service: GameService = Depends(get_game_service)
) -> SessionResponse:
    return await service.create_game(request)


@router.get("/{game_id}", response_model=SessionResponse)
async def get_game(
    game_id: str,
    viewer_id: Optional[str] = None,
    service: GameService = Depends(get_game_service),
) -> SessionResponse:
    return await service.get_snapshot(game_id, viewer_id)


@router.post("/{game_id}/actions", response_model=ActionResponse)
async def post_action(
    game_id: str, request: ActionRequest, service: GameService = Depends(get_game_service)
) -> ActionResponse:
    return await service.handle_action(game_id, request)


@router.post("/{game_id}/disconnect", response_model=SessionResponse)
async def disconnect(
    game_id: str, request: ConnectionRequest, service: GameService = Depends(get_game_service)
) -> SessionResponse:
    return await service.disconnect(game_id, request.user_id)


@router.post("/{game_id}/reconnect", response_model=SessionResponse)
async def reconnect(
    game_id: str, request: ConnectionRequest, service: GameService = Depends(get_game_service)
) -> SessionResponse:
    return await service.reconnect(game_id, request.user_id)
