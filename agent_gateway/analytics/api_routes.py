"""
FastAPI routes for the merchant dashboard and Shopify webhooks.
"""

import json
import logging

from fastapi import APIRouter, HTTPException, Request
from fastapi.concurrency import run_in_threadpool

from .webhook_handler import process_webhook

logger = logging.getLogger(__name__)

analytics_router = APIRouter(prefix="/app", tags=["Analytics"])


@analytics_router.get("/{shop}/dashboard")
async def get_dashboard(shop: str, request: Request):
    """
    Dashboard data for a shop.

    Returns revenue, conversion rate, recent interactions and top missed searches.
    """
    try:
        return await run_in_threadpool(request.app.state.analytics_service.get_dashboard, shop)
    except Exception as e:
        logger.error(f"Error getting dashboard for {shop}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


# Webhook endpoints router
webhooks_router = APIRouter(tags=["Webhooks"])


@webhooks_router.post("/webhooks")
async def shopify_webhook(request: Request):
    """
    Shopify webhook endpoint (orders/create, app/uninstalled).

    Answers 200 for every parseable delivery so Shopify does not retry.
    """
    topic = request.headers.get("x-shopify-topic", "")
    shop = request.headers.get("x-shopify-shop-domain", "")

    body = await request.body()
    try:
        payload = json.loads(body) if body else {}
    except ValueError as e:
        logger.error(f"Invalid JSON in webhook {topic} for {shop}: {e}")
        raise HTTPException(status_code=400, detail="Invalid JSON")

    return await run_in_threadpool(process_webhook, request.app.state.recorder, topic, shop, payload)
