import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .api.v1.api import api_router
from .config import Settings, get_settings
from .core.exceptions import ConnectXError, InternalConsistencyError, ValidationError
from .core.sessions import SessionStore, build_session_store, run_session_sweeper
from .schemas.base import format_errors
from .services.auth_service import AuthService
from .storage import Storage

logger = logging.getLogger(__name__)


def _error_response(exc: ConnectXError) -> JSONResponse:
    body = {"detail": exc.detail}
    if isinstance(exc, ValidationError):
        body["errors"] = exc.errors
    return JSONResponse(status_code=exc.status_code, content=body, headers=exc.headers)


def register_exception_handlers(app: FastAPI) -> None:
    """Map the ConnectX error taxonomy onto HTTP responses."""

    @app.exception_handler(ConnectXError)
    async def handle_connectx_error(request: Request, exc: ConnectXError) -> JSONResponse:
        if isinstance(exc, InternalConsistencyError):
            logger.error(
                f"Internal consistency error on {request.method} {request.url.path}: {exc.detail}"
            )
            return _error_response(InternalConsistencyError())
        return _error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _error_response(ValidationError(format_errors(exc.errors())))

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )


def create_app(
    settings: Optional[Settings] = None,
    storage: Optional[Storage] = None,
    session_store: Optional[SessionStore] = None,
) -> FastAPI:
    """
    Build the application with an explicit storage engine and session store.

    Both default to what `settings` describes; tests pass their own.
    """
    settings = settings or get_settings()
    logging.basicConfig(level=settings.LOG_LEVEL)

    storage = storage or Storage.from_url(settings.DATABASE_URL, echo=settings.DEBUG)
    session_store = session_store or build_session_store(settings.SESSION_DATABASE_URL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        storage.create_all()
        sweeper = asyncio.create_task(
            run_session_sweeper(session_store, settings.SESSION_PRUNE_INTERVAL_SECONDS)
        )
        logger.info(f"{settings.API_TITLE} {settings.API_VERSION} started")
        try:
            yield
        finally:
            sweeper.cancel()
            try:
                await sweeper
            except asyncio.CancelledError:
                pass
            session_store.close()
            storage.dispose()

    app = FastAPI(
        title=settings.API_TITLE,
        version=settings.API_VERSION,
        debug=settings.DEBUG,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.storage = storage
    app.state.session_store = session_store
    app.state.auth_service = AuthService(
        storage,
        session_store,
        secret_key=settings.SECRET_KEY,
        session_ttl=timedelta(hours=settings.SESSION_TTL_HOURS),
    )

    register_exception_handlers(app)
    app.include_router(api_router, prefix=settings.API_PREFIX)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        """API health check"""
        return {"status": "healthy"}

    return app
