from __future__ import annotations

import hmac

from fastapi import Depends, Header, HTTPException, Request, status

from ..core.config import AppSettings
from ..middlewares import principal_ctx_var


def get_app_settings(request: Request) -> AppSettings:
    return request.app.state.settings


def _set_principal(request: Request, principal: str) -> None:
    principal_ctx_var.set(principal)
    request.state.principal = principal


async def require_api_key(
    request: Request,
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
    settings: AppSettings = Depends(get_app_settings),
) -> str:
    """Check ``X-API-Key`` when a key is configured; otherwise the API is open."""

    configured = (settings.API_KEY or "").strip()
    if not configured:
        _set_principal(request, "anonymous")
        return "anonymous"
    provided = (x_api_key or "").strip()
    if provided and hmac.compare_digest(provided, configured):
        _set_principal(request, "api-key")
        return "api-key"
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")
