from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..core.config import AppSettings
from ..core.errors import NotFoundError
from ..crud.history import list_for_item
from ..crud.items import find_item, list_items
from ..db.session import get_db
from ..deps.auth import get_app_settings, require_api_key
from ..schemas.item import BorrowRequest, HistoryEntryOut, ItemAction, ItemOut, ItemRegister
from ..services.transactions import (
    OP_BORROW,
    OP_COMPLETE_REPAIR,
    OP_REPAIR,
    OP_RETURN,
    register_item,
    transact,
)

router = APIRouter(prefix="/api", tags=["items"], dependencies=[Depends(require_api_key)])


def _run(db: Session, settings: AppSettings, operation: str, payload: ItemAction, quantity: int = 1):
    return transact(
        db,
        operation,
        payload.qr_code,
        payload.person,
        payload.validated_by or settings.SYSTEM_ACTOR,
        quantity,
        notes=payload.notes,
        allow_name_fallback=settings.ALLOW_NAME_FALLBACK,
    )


@router.post("/register", response_model=ItemOut, status_code=201)
def api_register(
    payload: ItemRegister,
    db: Session = Depends(get_db),
    settings: AppSettings = Depends(get_app_settings),
):
    return register_item(
        db,
        name=payload.name,
        category=payload.category,
        description=payload.description,
        registered_by=payload.registered_by,
        is_consumable=payload.is_consumable,
        stock=payload.stock,
        qr_code=payload.qr_code,
        validated_by=settings.SYSTEM_ACTOR,
        notes=payload.notes,
    )


@router.post("/borrow", response_model=ItemOut)
def api_borrow(
    payload: BorrowRequest,
    db: Session = Depends(get_db),
    settings: AppSettings = Depends(get_app_settings),
):
    return _run(db, settings, OP_BORROW, payload, payload.quantity)


@router.post("/return", response_model=ItemOut)
def api_return(
    payload: ItemAction,
    db: Session = Depends(get_db),
    settings: AppSettings = Depends(get_app_settings),
):
    return _run(db, settings, OP_RETURN, payload)


@router.post("/repair", response_model=ItemOut)
def api_send_to_repair(
    payload: ItemAction,
    db: Session = Depends(get_db),
    settings: AppSettings = Depends(get_app_settings),
):
    return _run(db, settings, OP_REPAIR, payload)


@router.post("/repair/complete", response_model=ItemOut)
def api_complete_repair(
    payload: ItemAction,
    db: Session = Depends(get_db),
    settings: AppSettings = Depends(get_app_settings),
):
    return _run(db, settings, OP_COMPLETE_REPAIR, payload)


@router.get("/items", response_model=list[ItemOut])
def api_list_items(db: Session = Depends(get_db)):
    return list_items(db)


@router.get("/history/{code}", response_model=list[HistoryEntryOut])
def api_item_history(
    code: str,
    db: Session = Depends(get_db),
    settings: AppSettings = Depends(get_app_settings),
):
    item = find_item(db, code, allow_name_fallback=settings.ALLOW_NAME_FALLBACK)
    if item is None:
        raise NotFoundError("Item not found", details={"qrCode": code})
    return list(list_for_item(db, item.id))
