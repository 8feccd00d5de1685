"""
Static registry of the tools every tenant exposes over MCP.
"""

import copy
from types import MappingProxyType
from typing import Any, Dict, List, Optional, Tuple


def _tool(name: str, description: str, input_schema: Dict[str, Any]):
    return MappingProxyType({
        "name": name,
        "description": description,
        "inputSchema": input_schema,
    })


TOOLS: Tuple[MappingProxyType, ...] = (
    _tool(
        "search_products",
        "Search for products in the store catalog. Use this to find products matching a query.",
        {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "Search query (e.g., 'red dress', 'gifts under $50')",
                },
                "limit": {
                    "type": "integer",
                    "description": "Maximum number of results to return",
                    "default": 10,
                },
            },
            "required": ["query"],
        },
    ),
    _tool(
        "get_product",
        "Get detailed information about a specific product by its handle/slug.",
        {
            "type": "object",
            "properties": {
                "handle": {
                    "type": "string",
                    "description": "The product handle (URL slug)",
                },
            },
            "required": ["handle"],
        },
    ),
    _tool(
        "create_checkout",
        "Create an instant checkout link for one or more products. "
        "Returns a URL the customer can use to purchase.",
        {
            "type": "object",
            "properties": {
                "variant_ids": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Array of Shopify variant GIDs (e.g., 'gid://shopify/ProductVariant/12345')",
                },
                "quantities": {
                    "type": "array",
                    "items": {"type": "integer"},
                    "description": "Array of quantities for each variant (defaults to 1 for each)",
                },
            },
            "required": ["variant_ids"],
        },
    ),
    _tool(
        "get_store_info",
        "Get information about the store's policies and details.",
        {
            "type": "object",
            "properties": {
                "topic": {
                    "type": "string",
                    "enum": ["shipping", "returns", "brand", "all"],
                    "description": "The topic to get information about",
                },
            },
        },
    ),
)


def list_tools() -> List[Dict[str, Any]]:
    """Tool descriptors in registry order, as plain JSON-ready dicts."""
    return [copy.deepcopy(dict(tool)) for tool in TOOLS]


def tool_names() -> List[str]:
    return [tool["name"] for tool in TOOLS]


def get_tool(name: str) -> Optional[MappingProxyType]:
    # Four entries; a scan is all the lookup needs
    for tool in TOOLS:
        if tool["name"] == name:
            return tool
    return None


def missing_arguments(tool, arguments: Dict[str, Any]) -> List[str]:
    """Required fields of a tool's input schema that are absent or null."""
    required = tool["inputSchema"].get("required", [])
    return [field for field in required if arguments.get(field) in (None, "")]
