"""Clock-in/clock-out toggle and worker enrollment."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from ..core.codes import normalize_code
from ..core.errors import ConflictError, NotFoundError, ValidationError
from ..core.lifecycle import ATTENDANCE_OUT, ROLE_CHOICES, ROLE_WORKER, flip_attendance
from ..core.security import hash_pin
from ..crud.workers import add_worker, append_attendance, get_worker_by_code, swap_last_action
from ..db.session import atomic
from ..models.worker import Worker

logger = logging.getLogger(__name__)


def enroll_worker(
    db: Session,
    *,
    qr_code: str,
    name: str,
    pin: str,
    position: str = "",
    role: str = ROLE_WORKER,
) -> Worker:
    code = normalize_code(qr_code)
    if not code:
        raise ValidationError("qrCode is required", details={"field": "qrCode"})
    name = (name or "").strip()
    if not name:
        raise ValidationError("name is required", details={"field": "name"})
    if not (pin or "").strip():
        raise ValidationError("pin is required", details={"field": "pin"})
    if role not in ROLE_CHOICES:
        raise ValidationError(f"role must be one of {', '.join(ROLE_CHOICES)}", details={"field": "role"})

    with atomic(db, integrity_message="QR code is already enrolled"):
        if get_worker_by_code(db, code) is not None:
            raise ConflictError("QR code is already enrolled", details={"qrCode": code})
        worker = add_worker(
            db,
            qr_code=code,
            name=name,
            position=(position or "").strip(),
            pin=hash_pin(pin.strip()),
            role=role,
            last_action=ATTENDANCE_OUT,
        )
    db.refresh(worker)
    logger.info("worker.enrolled", extra={"extra_data": {"qr_code": worker.qr_code, "role": worker.role}})
    return worker


def toggle_attendance(db: Session, code: str, *, notes: str | None = None) -> tuple[Worker, str]:
    """Flip the worker's attendance and log the new action.

    The first scan after enrollment clocks the worker IN. The flip is
    written only if ``last_action`` still holds the value read here, so two
    simultaneous scans cannot both record the same action.
    """

    if not normalize_code(code):
        raise ValidationError("qrCode is required", details={"field": "qrCode"})
    worker = get_worker_by_code(db, code)
    if worker is None:
        raise NotFoundError("Worker not found", details={"qrCode": normalize_code(code)})

    observed = worker.last_action or ATTENDANCE_OUT
    action = flip_attendance(observed)
    with atomic(db):
        if not swap_last_action(db, worker.id, observed, action):
            logger.warning(
                "attendance.conflict",
                extra={"extra_data": {"qr_code": worker.qr_code, "observed": observed}},
            )
            raise ConflictError(
                "Attendance changed while processing, scan again",
                details={"qrCode": worker.qr_code, "lastAction": observed},
            )
        append_attendance(db, worker_id=worker.id, action=action, notes=notes)
    db.refresh(worker)
    logger.info("attendance.toggled", extra={"extra_data": {"qr_code": worker.qr_code, "action": action}})
    return worker, action
