"""SQLAlchemy engine, session and unit-of-work helpers.

Nothing here opens a connection at import time. ``create_app`` builds the
engine and session factory during startup and parks them on ``app.state``;
tests build their own against throwaway SQLite databases.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from ..core.errors import ConflictError, InternalError, TrackerError

logger = logging.getLogger(__name__)

# ``Base`` is the parent class for every SQLAlchemy model defined in qrtrack/models.
Base = declarative_base()


def build_engine(url: str) -> Engine:
    """Create the engine; SQLite connections are shared across worker threads."""

    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, connect_args=connect_args, pool_pre_ping=True)


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


def get_db(request: Request) -> Iterator[Session]:
    """FastAPI dependency that yields a session and guarantees cleanup."""

    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def atomic(db: Session, *, integrity_message: str | None = None) -> Iterator[Session]:
    """Commit everything done inside the block, or nothing at all.

    Domain errors roll back and propagate unchanged. Driver errors roll back
    and surface as ``InternalError``; an ``IntegrityError`` becomes a
    ``ConflictError`` when ``integrity_message`` is given.
    """

    try:
        yield db
        db.commit()
    except TrackerError:
        db.rollback()
        raise
    except IntegrityError as exc:
        db.rollback()
        if integrity_message:
            raise ConflictError(integrity_message) from exc
        logger.exception("db.integrity_error")
        raise InternalError("Integrity constraint violated") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("db.error")
        raise InternalError("Database operation failed") from exc
    except Exception:
        db.rollback()
        raise
