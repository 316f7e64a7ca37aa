"""Main FastAPI application."""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from program_tracker import __version__
from program_tracker.config.settings import get_settings
from program_tracker.core.error_handlers import domain_error_handler
from program_tracker.core.exceptions import DomainError
from program_tracker.core.logging import configure_logging, get_logger
from program_tracker.db.database import close_all_engines, init_db

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    configure_logging()

    # Startup: Initialize database
    await init_db()
    logger.info("application_started", app=app.title, version=__version__)

    yield

    # Shutdown: Close database connections
    await close_all_engines()
    logger.info("application_stopped")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Program enrollment and day-by-day progression tracking for training plans",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(DomainError, domain_error_handler)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "app": settings.app_name}

    from program_tracker.api.routes import (
        enrollments_router,
        programs_router,
        substitutions_router,
        users_router,
    )

    app.include_router(programs_router, prefix="/programs", tags=["Programs"])
    app.include_router(enrollments_router, prefix="/enrollments", tags=["Enrollments"])
    app.include_router(substitutions_router, prefix="/substitutions", tags=["Substitutions"])
    app.include_router(users_router, prefix="/users", tags=["Users"])

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("program_tracker.main:app", host="0.0.0.0", port=8000, reload=True)
