"""Payment router: /api/payment/webhook for checkout confirmations."""

import json
import logging

from fastapi import APIRouter, HTTPException
from fastapi.responses import PlainTextResponse
from starlette.requests import Request

from optik_arcade.deps import get_server
from optik_arcade.errors import PersistenceError, ValidationError
from optik_arcade.webhook import (
    WebhookPayloadError,
    WebhookSignatureError,
    parse_purchase_event,
    verify_signature,
)

router = APIRouter()

logger = logging.getLogger("webhook")


@router.post("/api/payment/webhook", response_class=PlainTextResponse)
async def payment_webhook(request: Request):
    srv = get_server(request)
    body = await request.body()

    if srv.webhook_secret:
        try:
            verify_signature(body, request.headers.get("stripe-signature", ""), srv.webhook_secret)
        except WebhookSignatureError as e:
            logger.warning("Webhook signature verification failed: %s", e)
            raise HTTPException(status_code=400, detail="Invalid signature")

    try:
        event = json.loads(body)
        purchase = parse_purchase_event(event)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise HTTPException(status_code=400, detail="Invalid JSON payload")
    except WebhookPayloadError as e:
        logger.error("Rejected webhook event: %s", e)
        raise HTTPException(status_code=400, detail=str(e))

    if purchase is None:
        return "OK"

    try:
        result = await srv.ledger.credit_purchase(
            wallet_address=purchase.wallet_address,
            external_id=purchase.external_id,
            optik_amount=purchase.optik_amount,
            amount_cents=purchase.amount_cents,
            currency=purchase.currency,
        )
    except ValidationError as e:
        logger.error("Invalid purchase %s: %s", purchase.external_id, e)
        raise HTTPException(status_code=400, detail=str(e))
    except PersistenceError:
        # non-2xx makes the provider redeliver
        raise HTTPException(status_code=500, detail="Database Error")

    if result["status"] == "duplicate":
        return "Already processed"
    return "OK"
