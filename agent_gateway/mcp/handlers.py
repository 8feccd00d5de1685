"""
Tool handlers behind tools/call.

Each handler takes the raw tool arguments and the tenant's ToolContext, logs an
interaction, and returns one MCP content block: {"type", "text", "data"?}.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from ..analytics.cart_attribution import verify_cart_attribution
from ..analytics.tracking_service import InteractionRecorder
from ..errors import InvalidToolCall
from ..tools.models import ShopCredentials
from ..tools.shopify_tool import ShopifyClient, MAX_PAGE_SIZE
from .prompt import (
    MerchantContext,
    format_products_for_ai,
    format_product_detail,
    format_checkout,
    format_store_info,
)

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_LIMIT = 10
STORE_INFO_TOPICS = ("shipping", "returns", "brand", "all")


@dataclass(frozen=True)
class ToolContext:
    """Everything a handler needs about the tenant it is serving."""
    merchant_id: str
    credentials: ShopCredentials
    merchant: MerchantContext
    client: ShopifyClient
    recorder: InteractionRecorder
    user_agent: Optional[str] = None

    @property
    def shop(self) -> str:
        return self.credentials.shop


def _content(text: str, data: Any = None) -> Dict[str, Any]:
    block = {"type": "text", "text": text}
    if data is not None:
        block["data"] = data
    return block


def _search_limit(value) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        return DEFAULT_SEARCH_LIMIT
    return min(value, MAX_PAGE_SIZE)


def search_products(arguments: Dict[str, Any], ctx: ToolContext) -> Dict[str, Any]:
    query = str(arguments["query"])
    limit = _search_limit(arguments.get("limit"))

    products = ctx.client.search_products(ctx.credentials, query, limit)

    if not products:
        ctx.recorder.mark_missed(ctx.shop, query)

    ctx.recorder.record(ctx.merchant_id, "search_products", query, user_agent=ctx.user_agent)

    if not products:
        return _content(f'No products found for "{query}". Try a different search term.')

    return _content(
        format_products_for_ai(products),
        [product.to_payload() for product in products],
    )


def get_product(arguments: Dict[str, Any], ctx: ToolContext) -> Dict[str, Any]:
    handle = str(arguments["handle"])
    product = ctx.client.get_product_by_handle(ctx.credentials, handle)

    ctx.recorder.record(ctx.merchant_id, "get_product", handle, user_agent=ctx.user_agent)

    if product is None:
        return _content(f'Product with handle "{handle}" not found.')

    return _content(format_product_detail(product), product.to_payload())


def create_checkout(arguments: Dict[str, Any], ctx: ToolContext) -> Dict[str, Any]:
    variant_ids = arguments["variant_ids"]
    if isinstance(variant_ids, str):
        variant_ids = [variant_ids]
    if not isinstance(variant_ids, list) or not variant_ids or not all(isinstance(v, str) and v for v in variant_ids):
        raise InvalidToolCall("variant_ids must be a non-empty array of variant IDs")

    quantities = arguments.get("quantities")
    if not isinstance(quantities, list):
        quantities = [1 for _ in variant_ids]

    # Phase 1: mint the interaction id the cart is tagged with
    interaction_id = ctx.recorder.record(
        ctx.merchant_id,
        "create_checkout",
        json.dumps({"variantIds": variant_ids, "quantities": quantities}),
        user_agent=ctx.user_agent,
    )

    checkout = ctx.client.create_checkout(ctx.credentials, variant_ids, quantities, interaction_id)
    if not verify_cart_attribution(checkout.attributes, interaction_id):
        logger.warning(f"Cart {checkout.checkout_id} on {ctx.shop} came back without interaction {interaction_id}")

    # Phase 2: attach the cart to the same interaction
    ctx.recorder.update_checkout(interaction_id, checkout)

    return _content(
        format_checkout(checkout),
        {
            "checkoutUrl": checkout.checkout_url,
            "checkoutId": checkout.checkout_id,
            "totalPrice": checkout.total_price,
            "currencyCode": checkout.currency_code,
            "interactionId": interaction_id,
        },
    )


def get_store_info(arguments: Dict[str, Any], ctx: ToolContext) -> Dict[str, Any]:
    topic = arguments.get("topic") or "all"
    if topic not in STORE_INFO_TOPICS:
        raise InvalidToolCall(f"Unknown topic: {topic}. Expected one of {', '.join(STORE_INFO_TOPICS)}")

    text = format_store_info(ctx.merchant, topic)

    ctx.recorder.record(ctx.merchant_id, "get_store_info", topic, user_agent=ctx.user_agent)

    return _content(text)


HANDLERS: Dict[str, Callable[[Dict[str, Any], ToolContext], Dict[str, Any]]] = {
    "search_products": search_products,
    "get_product": get_product,
    "create_checkout": create_checkout,
    "get_store_info": get_store_info,
}
