from __future__ import annotations

from typing import Literal, Optional

from pydantic import Field

from .item import CamelModel, NonBlankStr


class WorkerCreate(CamelModel):
    qr_code: NonBlankStr
    name: NonBlankStr
    position: str = ""
    pin: str = Field(min_length=4, max_length=12, pattern=r"^\d+$")
    role: Literal["SuperAdmin", "Warehouse-keeper", "Worker"] = "Worker"


class WorkerOut(CamelModel):
    """Public view of a worker; the PIN hash is never serialized."""

    id: int
    qr_code: str
    name: str
    position: str
    role: str
    last_action: str
    created_at: str


class AttendanceRequest(CamelModel):
    qr_code: NonBlankStr
    notes: Optional[str] = None


class AttendanceEntryOut(CamelModel):
    id: int
    action: str
    timestamp: str
    notes: str


class AttendanceToggleOut(CamelModel):
    worker: WorkerOut
    action: Literal["IN", "OUT"]
