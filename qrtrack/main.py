"""Application factory and top-level wiring for the QR tool room service.

This module brings together configuration, database setup, API routers,
middleware and error handling. A newcomer can read it top to bottom to see
*what* pieces exist, *when* they start (the lifespan hook), *why* they are
needed, and *how* a request reaches the transaction engine.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import models  # noqa: F401  (registers every table on Base.metadata)
from .core.config import AppSettings, get_settings
from .core.errors import (
    TrackerError,
    http_exception_handler,
    tracker_error_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from .core.logging import setup_logging
from .crud.sequence import ensure_sequence
from .db.migrate import run_migrations
from .db.session import Base, build_engine, build_session_factory
from .deps.auth import get_app_settings
from .middlewares import RequestIdMiddleware, SecurityHeadersMiddleware
from .routers import api_items, api_scan, api_workers

logger = logging.getLogger(__name__)


def init_storage(engine: Engine) -> None:
    """Create tables, apply additive migrations and seed the code counter."""

    Base.metadata.create_all(bind=engine)
    run_migrations(engine)
    session = build_session_factory(engine)()
    try:
        ensure_sequence(session)
        session.commit()
    finally:
        session.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: AppSettings = app.state.settings
    # The engine belongs to this process; each app instance owns its own.
    engine = build_engine(settings.database_url)
    init_storage(engine)
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    logger.info("app.started", extra={"extra_data": {"env": settings.APP_ENV}})
    try:
        yield
    finally:
        engine.dispose()
        logger.info("app.stopped")


def create_app(settings: AppSettings | None = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.LOG_LEVEL)

    app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
    app.state.settings = settings

    app.add_middleware(SecurityHeadersMiddleware)
    if settings.ALLOWED_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.ALLOWED_ORIGINS,
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
        )
    # Added last so it wraps the others and every log line carries a request id.
    app.add_middleware(RequestIdMiddleware)

    app.add_exception_handler(TrackerError, tracker_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(api_scan.router)
    app.include_router(api_items.router)
    app.include_router(api_workers.router)

    @app.get("/health")
    def health(request: Request, app_settings: AppSettings = Depends(get_app_settings)) -> dict[str, object]:
        db_ok = True
        session = request.app.state.session_factory()
        try:
            session.execute(text("SELECT 1"))
        except SQLAlchemyError:
            logger.exception("health.db_failed")
            db_ok = False
        finally:
            session.close()
        return {"ok": db_ok, "app": app_settings.APP_NAME, "database": "up" if db_ok else "down"}

    Instrumentator().instrument(app).expose(app, include_in_schema=False)
    return app


app = create_app()
