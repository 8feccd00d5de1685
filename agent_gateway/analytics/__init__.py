"""
Agent analytics package.

Provides:
- Cart attribution for linking orders to agent interactions
- Interaction recorder for tool calls and missed searches
- Dashboard analytics for merchants
- Webhook handlers for Shopify order and uninstall events
"""

from .cart_attribution import (
    add_attribution_to_cart_input,
    extract_attribution_from_order,
)
from .tracking_service import InteractionRecorder
from .analytics_service import AnalyticsService
from .webhook_handler import process_webhook
from .api_routes import analytics_router, webhooks_router

__all__ = [
    # Attribution
    "add_attribution_to_cart_input",
    "extract_attribution_from_order",
    # Services
    "InteractionRecorder",
    "AnalyticsService",
    "process_webhook",
    # API
    "analytics_router",
    "webhooks_router",
]
