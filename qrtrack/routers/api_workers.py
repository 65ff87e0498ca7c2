from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..core.errors import NotFoundError
from ..crud.workers import get_worker_by_code, list_attendance, list_workers
from ..db.session import get_db
from ..deps.auth import require_api_key
from ..schemas.worker import (
    AttendanceEntryOut,
    AttendanceRequest,
    AttendanceToggleOut,
    WorkerCreate,
    WorkerOut,
)
from ..services.attendance import enroll_worker, toggle_attendance

router = APIRouter(prefix="/api", tags=["workers"], dependencies=[Depends(require_api_key)])


@router.get("/workers", response_model=list[WorkerOut])
def api_list_workers(db: Session = Depends(get_db)):
    return list_workers(db)


@router.post("/workers", response_model=WorkerOut, status_code=201)
def api_enroll_worker(payload: WorkerCreate, db: Session = Depends(get_db)):
    return enroll_worker(
        db,
        qr_code=payload.qr_code,
        name=payload.name,
        pin=payload.pin,
        position=payload.position,
        role=payload.role,
    )


@router.post("/attendance", response_model=AttendanceToggleOut)
def api_toggle_attendance(payload: AttendanceRequest, db: Session = Depends(get_db)):
    worker, action = toggle_attendance(db, payload.qr_code, notes=payload.notes)
    return AttendanceToggleOut(worker=WorkerOut.model_validate(worker), action=action)


@router.get("/workers/{code}/attendance", response_model=list[AttendanceEntryOut])
def api_worker_attendance(code: str, db: Session = Depends(get_db)):
    worker = get_worker_by_code(db, code)
    if worker is None:
        raise NotFoundError("Worker not found", details={"qrCode": code})
    return list_attendance(db, worker.id)
