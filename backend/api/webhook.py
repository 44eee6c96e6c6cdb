"""
Stripe webhook endpoint

The raw request body is needed for signature verification, so the payload
is read from the request rather than parsed by a model.
"""
import logging

import stripe
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.dependencies import get_webhook_service
from services.webhook_service import WebhookService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["webhook"])


@router.post("/webhook")
async def stripe_webhook(request: Request, webhooks: WebhookService = Depends(get_webhook_service)):
    signature = request.headers.get("stripe-signature")
    if not signature:
        return JSONResponse(status_code=400, content={"error": "Missing stripe-signature header"})

    payload = await request.body()
    try:
        event = webhooks.construct_event(payload, signature)
    except (ValueError, stripe.SignatureVerificationError) as e:
        logger.warning(f"⚠️ Rejected webhook: {e}")
        return JSONResponse(status_code=400, content={"error": f"Webhook Error: {e}"})

    try:
        return await webhooks.process_event(event)
    except Exception as e:
        logger.error(f"❌ Webhook processing failed for {event.get('type')}: {e}", exc_info=True)
        return JSONResponse(status_code=500, content={"error": "Webhook processing failed"})
