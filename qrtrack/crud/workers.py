"""Worker directory: enrollment, lookups and the attendance log."""

from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from ..core.clock import utcnow_iso
from ..core.codes import normalize_code
from ..models.worker import AttendanceEntry, Worker


def get_worker_by_code(db: Session, code: str | None) -> Worker | None:
    cleaned = normalize_code(code)
    if not cleaned:
        return None
    stmt = select(Worker).where(Worker.qr_code == cleaned)
    return db.execute(stmt).scalars().first()


def list_workers(db: Session) -> list[Worker]:
    stmt = select(Worker).order_by(Worker.name, Worker.id)
    return db.execute(stmt).scalars().all()


def add_worker(db: Session, **fields: object) -> Worker:
    fields.setdefault("created_at", utcnow_iso())
    worker = Worker(**fields)
    db.add(worker)
    db.flush()
    return worker


def list_attendance(db: Session, worker_id: int) -> list[AttendanceEntry]:
    stmt = (
        select(AttendanceEntry)
        .where(AttendanceEntry.worker_id == worker_id)
        .order_by(AttendanceEntry.timestamp, AttendanceEntry.id)
    )
    return db.execute(stmt).scalars().all()


def swap_last_action(db: Session, worker_id: int, expected: str, new: str) -> bool:
    """Set ``last_action`` to ``new`` only if it still reads ``expected``."""

    result = db.execute(
        update(Worker)
        .where(Worker.id == worker_id, Worker.last_action == expected)
        .values(last_action=new)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def append_attendance(db: Session, *, worker_id: int, action: str, notes: str | None = None) -> AttendanceEntry:
    entry = AttendanceEntry(worker_id=worker_id, action=action, timestamp=utcnow_iso(), notes=notes or "")
    db.add(entry)
    return entry
