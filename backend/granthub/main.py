"""GrantHub API application.

``create_app`` wires routes, middleware and exception handlers; the module
level ``app`` is what uvicorn serves (``uvicorn granthub.main:app``).
"""

import os
import subprocess
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from granthub.api import middleware
from granthub.api.router import TrailingSlashRouter
from granthub.api.v1.api import api_router
from granthub.core.config import settings
from granthub.core.exceptions import (
    ContactValidationError,
    GrantHubException,
    NotFoundException,
    PermissionException,
)
from granthub.core.logging import logger
from granthub.db.session import Database

BACKEND_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

EXCEPTION_HANDLERS = (
    (RequestValidationError, middleware.validation_exception_handler),
    (ValidationError, middleware.validation_exception_handler),
    (PermissionException, middleware.permission_exception_handler),
    (NotFoundException, middleware.not_found_exception_handler),
    (ContactValidationError, middleware.contact_validation_exception_handler),
    (GrantHubException, middleware.granthub_exception_handler),
)


def run_migrations() -> None:
    """Upgrade the database schema to the latest alembic revision."""
    logger.info("Applying alembic migrations")
    subprocess.run(
        ["alembic", "upgrade", "head"],
        check=True,
        cwd=BACKEND_DIR,
        env={**os.environ, "PYTHONPATH": BACKEND_DIR},
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the database on startup and dispose its pool on shutdown.

    A database already placed on ``app.state`` (as tests do) is reused.
    """
    if settings.RUN_ALEMBIC_MIGRATIONS:
        run_migrations()

    if getattr(app.state, "db", None) is None:
        app.state.db = Database.from_settings(settings)
    try:
        yield
    finally:
        await app.state.db.dispose()


def create_app() -> FastAPI:
    """Build the GrantHub FastAPI application."""
    app = FastAPI(
        title=settings.PROJECT_NAME,
        openapi_url="/openapi.json",
        lifespan=lifespan,
        router=TrailingSlashRouter(),
        redirect_slashes=False,
    )
    app.include_router(api_router)

    for http_middleware in (
        middleware.log_requests,
        middleware.add_request_id,
        middleware.exception_logging_middleware,
    ):
        app.middleware("http")(http_middleware)

    for exc_type, handler in EXCEPTION_HANDLERS:
        app.add_exception_handler(exc_type, handler)

    app.add_middleware(middleware.DynamicCORSMiddleware, default_origins=settings.cors_origins)
    return app


app = create_app()
