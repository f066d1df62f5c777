"""
FastAPI application - webhook receiver entry point
"""

from dotenv import load_dotenv

load_dotenv()

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI

from partner_api.api.endpoints.webhooks import router as webhooks_router
from partner_api.database import get_event_store
from partner_api.integrations.webhooks import WebhookDispatcher
from partner_api.utils.config_loader import PartnerAPIConfig, load_partner_config

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def create_app(
    config: Optional[PartnerAPIConfig] = None,
    dispatcher: Optional[WebhookDispatcher] = None,
    event_store: Any = None,
) -> FastAPI:
    config = config or load_partner_config()
    if not config.webhook.secret:
        logger.warning("PARTNER_WEBHOOK_SECRET is not set; every webhook delivery will be rejected.")

    app = FastAPI(
        title="Partner API Webhook Receiver",
        description="Receives signed property-transaction events from the Partner API",
        version="1.0.0",
    )
    app.state.webhook_config = config.webhook
    app.state.webhook_dispatcher = dispatcher or WebhookDispatcher()
    app.state.webhook_event_store = event_store if event_store is not None else get_event_store()

    app.include_router(webhooks_router, prefix="/api/v1")

    @app.get("/health")
    async def health() -> Dict[str, Any]:
        return {"status": "ok", "event_store": app.state.webhook_event_store.ping()}

    return app


app = create_app()
