"""Resolve a scanned code to whatever it identifies."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.orm import Session

from ..core.codes import normalize_code
from ..core.errors import ValidationError
from ..core.lifecycle import ITEM_STATUS_BORROWED, ITEM_STATUS_REPAIR
from ..crud.items import find_item
from ..crud.workers import get_worker_by_code
from ..models.item import Item
from ..models.worker import Worker

KIND_ITEM = "item"
KIND_WORKER = "worker"
KIND_NONE = "none"


@dataclass
class ScanResult:
    kind: str
    code: str
    data: Item | Worker | None = None
    next_action: str = "register"


def suggest_action(item: Item) -> str:
    """What the scanning client should offer next for this item."""

    if item.is_consumable:
        return "consume"
    if item.status == ITEM_STATUS_BORROWED:
        return "return"
    if item.status == ITEM_STATUS_REPAIR:
        return "complete_repair"
    return "borrow"


def resolve(db: Session, code: str | None, *, allow_name_fallback: bool = False) -> ScanResult:
    """Look the code up among items first, then workers.

    Item and worker codes are expected not to overlap. If one does, the
    item wins.
    """

    cleaned = normalize_code(code)
    if not cleaned:
        raise ValidationError("qrCode is required", details={"field": "qrCode"})
    item = find_item(db, cleaned, allow_name_fallback=allow_name_fallback)
    if item is not None:
        return ScanResult(kind=KIND_ITEM, code=cleaned, data=item, next_action=suggest_action(item))
    worker = get_worker_by_code(db, cleaned)
    if worker is not None:
        return ScanResult(kind=KIND_WORKER, code=cleaned, data=worker, next_action="attendance")
    return ScanResult(kind=KIND_NONE, code=cleaned)
