"""
Baduk arena backend - FastAPI application.

Run with `uvicorn src.main:app`. The lifespan owns the process-wide resources: engine pool, analysis client,
per-session locks and the background game loop.
"""

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from src.api.routes import router
from src.core.config import Config
from src.core.exceptions import GameError, RepositoryError
from src.db.database import SessionLocal
from src.db.sql_repository import SQLSessionRepository
from src.engine.analysis import AnalysisClient
from src.engine.pool import GoEnginePool
from src.services.game_loop import GameLoop
from src.services.game_service import GameService
from src.services.locks import SessionLocks
from src.services.scoring_service import ScoringService

logging.basicConfig(
    level=Config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(session_factory: Callable[[], Session], run_loop: bool = True) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        app.state.session_factory = session_factory
        app.state.engines = GoEnginePool()
        app.state.analysis = AnalysisClient()
        app.state.scoring = ScoringService(app.state.analysis)
        app.state.locks = SessionLocks()

        loop_db = session_factory()
        loop_task = None
        if run_loop:
            service = GameService(
                SQLSessionRepository(loop_db),
                engines=app.state.engines,
                scoring=app.state.scoring,
                locks=app.state.locks,
            )
            loop_task = asyncio.create_task(GameLoop(service).run_forever())
        try:
            yield
        finally:
            if loop_task is not None:
                loop_task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await loop_task
            await app.state.scoring.shutdown()
            await app.state.engines.shutdown()
            await app.state.analysis.close()
            loop_db.close()
            logger.info("Shut down")

    app = FastAPI(
        title="Baduk Arena",
        description="Live Go and Go-variant game sessions",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.include_router(router)

    @app.exception_handler(RepositoryError)
    async def not_found(request: Request, exc: RepositoryError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(GameError)
    async def rejected(request: Request, exc: GameError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


app = create_app(SessionLocal)
