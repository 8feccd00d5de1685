"""
Universal Commerce Protocol profile for a shop.
Served through the Shopify app proxy at /apps/agent/.well-known/ucp.
"""

from typing import Any, Dict, Optional
from urllib.parse import quote

UCP_VERSION = "1.0"
CACHE_MAX_AGE = 300

# Same tools as the MCP registry, described for UCP consumers
UCP_TOOLS = (
    {
        "name": "search_products",
        "description": "Search for products in the store catalog",
        "parameters": {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "Search query (e.g., 'red dress under $50')",
                },
                "limit": {
                    "type": "integer",
                    "description": "Maximum number of results (default: 10)",
                    "default": 10,
                },
            },
            "required": ["query"],
        },
    },
    {
        "name": "get_product",
        "description": "Get detailed information about a specific product",
        "parameters": {
            "type": "object",
            "properties": {
                "handle": {"type": "string", "description": "Product handle/slug"},
            },
            "required": ["handle"],
        },
    },
    {
        "name": "create_checkout",
        "description": "Create an instant checkout link for products",
        "parameters": {
            "type": "object",
            "properties": {
                "variant_ids": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Array of product variant IDs to add to cart",
                },
                "quantities": {
                    "type": "array",
                    "items": {"type": "integer"},
                    "description": "Array of quantities for each variant",
                },
            },
            "required": ["variant_ids"],
        },
    },
    {
        "name": "get_store_info",
        "description": "Get information about the store (shipping, returns, etc.)",
        "parameters": {
            "type": "object",
            "properties": {
                "topic": {
                    "type": "string",
                    "enum": ["shipping", "returns", "brand", "all"],
                    "description": "Topic to get information about",
                },
            },
        },
    },
)

CAPABILITIES = (
    ("discovery", "Search and browse products"),
    ("checkout", "Create instant checkout links"),
    ("inquiry", "Answer questions about products, shipping, and returns"),
)


def build_ucp_profile(shop: str, profile: Optional[Any], app_url: str) -> Dict[str, Any]:
    """
    Build the UCP document for a shop.

    Args:
        shop: Shop domain (e.g. "example.myshopify.com")
        profile: The shop's MerchantProfile, or None
        app_url: Public base URL of this app

    Returns:
        The full profile, or a minimal disabled document when the agent is off
    """
    if profile is None or not profile.is_enabled:
        return {
            "ucp_version": UCP_VERSION,
            "status": "disabled",
            "message": "AI Agent is currently disabled for this store.",
        }

    mcp_endpoint = f"{app_url.rstrip('/')}/api/mcp/{quote(shop, safe='')}"

    return {
        "ucp_version": UCP_VERSION,
        "store": {
            "name": shop.replace(".myshopify.com", ""),
            "domain": shop,
        },
        "capabilities": [
            {"type": kind, "description": description, "mcp_endpoint": mcp_endpoint}
            for kind, description in CAPABILITIES
        ],
        "tools": [dict(tool) for tool in UCP_TOOLS],
        "metadata": {
            "brand_voice": profile.brand_voice,
            "free_shipping_threshold": profile.min_free_shipping,
            "last_updated": profile.updated_at.isoformat() if profile.updated_at else None,
        },
    }
