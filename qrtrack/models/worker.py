"""SQLAlchemy models for enrolled workers and their clock-in/clock-out log."""

from __future__ import annotations

from sqlalchemy import Column, ForeignKey, Integer, Text

from ..core.lifecycle import ATTENDANCE_OUT, ROLE_WORKER
from ..db.session import Base


class Worker(Base):
    __tablename__ = "workers"

    id = Column(Integer, primary_key=True, index=True)
    qr_code = Column(Text, nullable=False, unique=True, index=True)
    name = Column(Text, nullable=False)
    position = Column(Text, nullable=False, default="")
    pin = Column(Text, nullable=False)
    role = Column(Text, nullable=False, default=ROLE_WORKER)
    # Mirrors the newest attendance row so the toggle can guard its write on it.
    last_action = Column(Text, nullable=False, default=ATTENDANCE_OUT)
    created_at = Column(Text, nullable=False)


class AttendanceEntry(Base):
    __tablename__ = "attendance"

    id = Column(Integer, primary_key=True, index=True)
    worker_id = Column(Integer, ForeignKey("workers.id"), nullable=False, index=True)
    action = Column(Text, nullable=False)
    timestamp = Column(Text, nullable=False)
    notes = Column(Text, nullable=False, default="")


__all__ = ["AttendanceEntry", "Worker"]
