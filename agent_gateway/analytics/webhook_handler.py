"""
Shopify webhook processing for order attribution and app lifecycle.

Failures are logged and swallowed: a non-2xx answer makes Shopify redeliver the
webhook, and a payload that failed once will fail again.
"""

import logging
from typing import Dict, Any

from ..errors import GatewayError
from .cart_attribution import extract_attribution_from_order, order_id, order_total
from .tracking_service import InteractionRecorder

logger = logging.getLogger(__name__)

ORDERS_CREATE = "ORDERS_CREATE"
APP_UNINSTALLED = "APP_UNINSTALLED"


def normalize_topic(topic: str) -> str:
    """'orders/create' (header form) and 'ORDERS_CREATE' (enum form) compare equal."""
    return (topic or "").strip().upper().replace("/", "_")


def handle_order_create(recorder: InteractionRecorder, shop: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    Mark the interaction behind an agent-created order as converted.

    Returns:
        Status dict describing what was done
    """
    try:
        attribution = extract_attribution_from_order(payload)

        if not attribution["is_agent_attributed"]:
            logger.debug(f"Order {payload.get('id')} on {shop} is not attributed to agent - skipping")
            return {"status": "skipped", "message": "Order not attributed to agent"}

        interaction_id = attribution["interaction_id"]
        if not interaction_id:
            logger.warning(f"⚠️ AI order without interaction ID for {shop}")
            return {"status": "skipped", "message": "Order has no interaction id"}

        value = order_total(payload)
        recorder.attribute_conversion(shop, interaction_id, order_id(payload), value)

        logger.info(
            f"💰 AI Agent generated sale on {shop}: order {payload.get('id')}, "
            f"{payload.get('currency', '')} {value}, interaction {interaction_id}"
        )
        return {
            "status": "success",
            "order_id": order_id(payload),
            "interaction_id": interaction_id,
            "revenue": value,
        }

    except GatewayError as e:
        logger.error(f"Error processing order webhook for {shop}: {e.message}")
        return {"status": "error", "message": e.message}
    except Exception as e:
        logger.error(f"Error processing order webhook for {shop}: {e}", exc_info=True)
        return {"status": "error", "message": str(e)}


def handle_app_uninstalled(recorder: InteractionRecorder, shop: str) -> Dict[str, Any]:
    """Delete the shop's profile, interactions, sessions and missed opportunities."""
    try:
        logger.info(f"🗑️ App uninstalled from {shop}, cleaning up...")
        deleted = recorder.cleanup_shop(shop)
        return {"status": "success", "deleted": deleted}
    except Exception as e:
        logger.error(f"Error cleaning up after uninstall for {shop}: {e}", exc_info=True)
        return {"status": "error", "message": str(e)}


def process_webhook(recorder: InteractionRecorder, topic: str, shop: str, payload: Any) -> Dict[str, Any]:
    """Route a webhook delivery by topic."""
    normalized = normalize_topic(topic)
    logger.info(f"📬 Received webhook: {normalized} for {shop}")

    if not shop:
        logger.warning(f"Webhook {normalized} without shop domain - ignoring")
        return {"status": "skipped", "message": "Missing shop domain"}

    if normalized == ORDERS_CREATE:
        if not isinstance(payload, dict):
            logger.warning(f"Order webhook for {shop} has a non-object payload - ignoring")
            return {"status": "skipped", "message": "Invalid order payload"}
        return handle_order_create(recorder, shop, payload)

    if normalized == APP_UNINSTALLED:
        return handle_app_uninstalled(recorder, shop)

    logger.info(f"Unhandled webhook topic: {normalized}")
    return {"status": "ignored", "topic": normalized}
