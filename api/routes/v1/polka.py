"""
api/routes/v1/polka.py -- Billing webhook from Polka, the payment provider.

Routes:
  POST /api/polka/webhooks -- ApiKey header required

Only "user.upgraded" changes anything; every other event is acknowledged
with 204 so Polka stops retrying it. An unknown user_id is 404, which Polka
treats as a retryable failure.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from api.models import PolkaWebhook
from auth.dependencies import require_polka_key
from auth.store import AuthStore

logger = logging.getLogger("chirpy.api.polka")

UPGRADE_EVENT = "user.upgraded"

router = APIRouter(dependencies=[Depends(require_polka_key)])


@router.post("/polka/webhooks", status_code=204)
async def polka_webhook(request: Request, body: PolkaWebhook) -> Response:
    if body.event != UPGRADE_EVENT:
        return Response(status_code=204)
    auth_store: AuthStore = request.app.state.auth_store
    if not auth_store.upgrade_to_chirpy_red(body.data.user_id):
        raise HTTPException(
            status_code=404,
            detail={"code": "not_found", "message": "User not found."},
        )
    logger.info("User %s upgraded to Chirpy Red", body.data.user_id)
    return Response(status_code=204)
