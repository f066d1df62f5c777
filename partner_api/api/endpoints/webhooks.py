import json
import logging
from typing import Any, Dict

from fastapi import APIRouter, HTTPException, Request, status

from partner_api.integrations.policy.response_wrappers import IntegrationResponseError, normalize_webhook_event
from partner_api.integrations.webhooks import WebhookDispatcher, WebhookSignatureError, verify_signature
from partner_api.utils.config_loader import WebhookConfig

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/webhooks/partner", tags=["Webhooks"])
async def partner_webhook(request: Request) -> Dict[str, Any]:
    """
    Partner API webhook receiver.
    - Verifies the HMAC-SHA256 signature over the raw body (401 on failure).
    - Drops redeliveries of an event we already processed (200, duplicate=true).
    - Dispatches the event to registered handlers; a handler failure returns 500
      so the vendor redelivers it later.
    """
    config: WebhookConfig = request.app.state.webhook_config
    dispatcher: WebhookDispatcher = request.app.state.webhook_dispatcher
    event_store = request.app.state.webhook_event_store

    body = await request.body()
    try:
        verify_signature(
            config.secret,
            body,
            request.headers.get(config.signature_header),
            timestamp=request.headers.get(config.timestamp_header),
            tolerance_seconds=config.tolerance_seconds,
        )
    except WebhookSignatureError as e:
        logger.warning("Rejected webhook delivery: %s", e)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid webhook signature")

    try:
        event = normalize_webhook_event(json.loads(body))
    except (ValueError, IntegrationResponseError) as e:
        logger.warning("Malformed webhook payload: %s", e)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Malformed webhook payload")

    if not event_store.mark_seen(event.id):
        logger.info("Duplicate webhook delivery %s (%s) ignored", event.id, event.event)
        return {"received": True, "duplicate": True, "event_id": event.id}

    try:
        handled = dispatcher.dispatch(event)
    except Exception:
        logger.exception("Webhook handler failed for event %s (%s)", event.id, event.event)
        event_store.forget(event.id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Webhook handler failed")

    logger.info("Processed webhook %s (%s) with %d handler(s)", event.id, event.event, handled)
    return {"received": True, "duplicate": False, "event_id": event.id}
