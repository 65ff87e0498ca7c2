from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..core.config import AppSettings
from ..db.session import get_db
from ..deps.auth import get_app_settings, require_api_key
from ..schemas.item import ItemOut
from ..schemas.scan import EmptyScan, ItemScan, ScanRequest, ScanResultOut, WorkerScan
from ..schemas.worker import WorkerOut
from ..services.scan import KIND_ITEM, KIND_WORKER, resolve

router = APIRouter(prefix="/api", tags=["scan"], dependencies=[Depends(require_api_key)])


@router.post("/scan", response_model=ScanResultOut)
def api_scan(
    payload: ScanRequest,
    db: Session = Depends(get_db),
    settings: AppSettings = Depends(get_app_settings),
):
    result = resolve(db, payload.qr_code, allow_name_fallback=settings.ALLOW_NAME_FALLBACK)
    if result.kind == KIND_ITEM:
        return ItemScan(code=result.code, data=ItemOut.model_validate(result.data), next_action=result.next_action)
    if result.kind == KIND_WORKER:
        return WorkerScan(code=result.code, data=WorkerOut.model_validate(result.data))
    return EmptyScan(code=result.code)
