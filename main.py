"""
School Gradebook API

Main FastAPI application for the school gradebook.
Exposes login, role dashboards, roster management, grades, schedules,
homework and statistics over HTTP/JSON.
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import Settings, settings
from api import auth_router, roster_router, grades_router, academics_router, stats_router
from tools import (
    AppState,
    create_app_state,
    AuthorizationError,
    ValidationError,
    EntityNotFoundError,
    ClassInUseError,
    FeatureNotAvailableError,
)

logger = logging.getLogger(__name__)


def configure_logging(app_settings: Settings) -> None:
    """Configure root logging once from settings."""
    logging.basicConfig(
        level=app_settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _error(status_code: int, exc: Exception, detail: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"detail": detail, "error_type": type(exc).__name__}
    )


def create_app(app_settings: Optional[Settings] = None, state: Optional[AppState] = None) -> FastAPI:
    """
    Build the FastAPI application around a fresh (or given) AppState.

    Each app owns its own in-memory store, so tests can create as many as
    they need.
    """
    app_settings = app_settings or settings

    # --------------- Lifespan ---------------

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifespan handler – log startup and shutdown."""
        logger.info("Gradebook API starting")
        yield
        app.state.gradebook.engine.dispose()
        logger.info("Gradebook API stopped")

    app = FastAPI(
        title="School Gradebook API",
        description="""
API for a school gradebook with role-specific views.

## Roles
- **Admin**: Manages classes, teachers and students; sees every statistic
- **Teacher**: Creates classes and adds students to them, records grades in
  the subjects they teach, plans lessons and homework
- **Student**: Sees their own grades, averages, timetable and homework

## Behaviour
- All data lives in memory for the lifetime of the process
- Operations a role may not perform answer 403 and change nothing
- Grades are append-only: there is no update or delete
        """,
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.gradebook = state or create_app_state(app_settings)

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return _error(400, exc, exc.message)

    @app.exception_handler(AuthorizationError)
    async def authorization_error_handler(request: Request, exc: AuthorizationError):
        return _error(401, exc, exc.message)

    @app.exception_handler(EntityNotFoundError)
    async def not_found_handler(request: Request, exc: EntityNotFoundError):
        return _error(404, exc, str(exc))

    @app.exception_handler(FeatureNotAvailableError)
    async def not_available_handler(request: Request, exc: FeatureNotAvailableError):
        return _error(405, exc, str(exc))

    @app.exception_handler(ClassInUseError)
    async def class_in_use_handler(request: Request, exc: ClassInUseError):
        return _error(409, exc, str(exc))

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Global exception handler."""
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error(500, exc, str(exc))

    # Include routers
    app.include_router(auth_router)
    app.include_router(roster_router)
    app.include_router(grades_router)
    app.include_router(academics_router)
    app.include_router(stats_router)

    @app.get("/", tags=["Health"])
    async def root():
        """Root endpoint - API health check."""
        return {
            "status": "online",
            "service": "School Gradebook API",
            "version": "1.0.0"
        }

    @app.get("/health", tags=["Health"])
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


configure_logging(settings)
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
    )
