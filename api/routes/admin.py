"""
api/routes/admin.py -- Operator endpoints.

Routes:
  GET  /admin/metrics -- HTML page with the request hit count
  POST /admin/reset   -- zero the counter and delete all users (PLATFORM=dev only)
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import HTMLResponse, PlainTextResponse

from auth.store import AuthStore
from core.config import get_settings
from core.metrics import HitCounter

logger = logging.getLogger("chirpy.api")

router = APIRouter()

_METRICS_PAGE = (
    "<html><body><h1>Welcome, Chirpy Admin</h1>"
    "<p>Chirpy has been visited {hits} times!</p></body></html>"
)


@router.get("/metrics", response_class=HTMLResponse)
async def metrics(request: Request) -> HTMLResponse:
    hits: HitCounter = request.app.state.hits
    return HTMLResponse(_METRICS_PAGE.format(hits=hits.value))


@router.post("/reset", response_class=PlainTextResponse)
def reset(request: Request) -> PlainTextResponse:
    """Destructive: wipes every account. Refused unless PLATFORM=dev."""
    if get_settings().platform != "dev":
        raise HTTPException(status_code=403, detail={"code": "forbidden", "message": "Reset is disabled."})
    store: AuthStore = request.app.state.store
    deleted = store.delete_users()
    request.app.state.hits.reset()
    logger.warning("Dev reset: deleted %d users and zeroed the hit counter", deleted)
    return PlainTextResponse("Reset hit counter.\nDeleted users.\n")
