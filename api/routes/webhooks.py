"""
api/routes/webhooks.py -- Inbound webhooks from the Polka payment provider.

Routes:
  POST /api/polka/webhooks -- Authorization: ApiKey <POLKA_KEY>

Only "user.upgraded" changes state. Every other event is acknowledged with 204
so Polka does not keep retrying events we do not care about, whatever their
data carries. An upgrade with no user_id is a 404, same as an unknown user.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from api.models import PolkaWebhook
from auth.dependencies import require_webhook_key
from auth.store import AuthStore

logger = logging.getLogger("chirpy.api")

router = APIRouter()

_UPGRADE_EVENT = "user.upgraded"


@router.post("/polka/webhooks", status_code=204, dependencies=[Depends(require_webhook_key)])
def polka_webhook(request: Request, body: PolkaWebhook) -> Response:
    if body.event != _UPGRADE_EVENT:
        return Response(status_code=204)
    user_id = body.data.user_id
    store: AuthStore = request.app.state.store
    if user_id is None or not store.upgrade_to_chirpy_red(user_id):
        raise HTTPException(status_code=404, detail={"code": "not_found", "message": "User not found."})
    logger.info("User %s upgraded to Chirpy Red", user_id)
    return Response(status_code=204)
