import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from sprintboard.api.routes.auth import router as auth_router
from sprintboard.api.routes.coach_balance import router as coach_balance_router
from sprintboard.api.routes.coach_runs import router as coach_runs_router
from sprintboard.api.routes.coach_users import router as coach_users_router
from sprintboard.api.routes.me import router as me_router
from sprintboard.api.routes.player import router as player_router
from sprintboard.api.routes.runs import router as runs_router
from sprintboard.api.routes.system import router as system_router
from sprintboard.core.config import Settings, settings as default_settings
from sprintboard.core.errors import SprintboardError, Unauthenticated, UpstreamFailure
from sprintboard.core.logging import setup_logging
from sprintboard.db.init_db import init_db
from sprintboard.db.session import Database

logger = logging.getLogger(__name__)


def _error_body(exc: SprintboardError) -> dict:
    body = {"detail": exc.detail, "code": exc.code}
    if isinstance(exc, UpstreamFailure):
        body["retryable"] = True
    return body


def _wants_page(request: Request) -> bool:
    return not request.url.path.startswith("/api") and "text/html" in request.headers.get("accept", "")


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(SprintboardError)
    async def sprintboard_error(request: Request, exc: SprintboardError):
        if isinstance(exc, Unauthenticated) and _wants_page(request):
            return RedirectResponse(app.state.settings.LOGIN_URL, status_code=303)
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc))

    # Store unreachable / timed out: surfaced, never turned into empty data
    @app.exception_handler(OperationalError)
    @app.exception_handler(InterfaceError)
    @app.exception_handler(PoolTimeoutError)
    async def store_unavailable(request: Request, exc: Exception):
        logger.error("Store failure on %s %s", request.method, request.url.path, exc_info=exc)
        err = UpstreamFailure()
        return JSONResponse(status_code=err.status_code, content=_error_body(err))


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or default_settings
    setup_logging(settings.LOG_LEVEL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        database = Database(settings)
        init_db(database)
        app.state.database = database
        logger.info("Store ready (timezone=%s, team totals=%s)", settings.TIMEZONE, settings.TEAM_TOTALS_SCOPE)
        try:
            yield
        finally:
            database.dispose()

    app = FastAPI(title="Sprintboard", lifespan=lifespan)
    app.state.settings = settings

    @app.middleware("http")
    async def no_store(request: Request, call_next):
        response = await call_next(request)
        # Aggregates must reflect the latest writes on every read
        if request.url.path.startswith("/api"):
            response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, max-age=0"
        return response

    register_exception_handlers(app)

    app.include_router(system_router)
    app.include_router(auth_router)
    app.include_router(me_router)
    app.include_router(runs_router)
    app.include_router(player_router)
    app.include_router(coach_users_router)
    app.include_router(coach_runs_router)
    app.include_router(coach_balance_router)
    return app


app = create_app()
