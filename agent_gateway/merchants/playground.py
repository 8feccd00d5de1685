"""
Merchant-facing playground: try the agent's catalog search from the admin.
Keyword intent detection only; nothing here is logged as an interaction.
"""

import re
import logging
from typing import Dict, Any

from ..errors import GatewayError
from ..mcp.prompt import format_products_for_ai
from ..tools.models import ShopCredentials
from ..tools.shopify_tool import ShopifyClient

logger = logging.getLogger(__name__)

PLAYGROUND_RESULT_LIMIT = 5

SEARCH_TRIGGERS = ("find", "search", "looking for", "show me", "want", "need")
_FILLER = re.compile(r"find|search|looking for|show me|i want|i need|can you|please", re.IGNORECASE)

HELP_TEXT = (
    'I understand you\'re asking about "{message}". Try asking me to:\n\n'
    '• **Find products**: "Show me red dresses under $50"\n'
    '• **Get details**: "Tell me about the vintage jacket"\n'
    '• **Create checkout**: "I want to buy the blue sweater"\n\n'
    "How can I help you shop today?"
)


def is_search_intent(message: str) -> bool:
    lowered = message.lower()
    return any(trigger in lowered for trigger in SEARCH_TRIGGERS)


def extract_search_terms(message: str) -> str:
    return re.sub(r"\s+", " ", _FILLER.sub("", message)).strip()


def respond(client: ShopifyClient, credentials: ShopCredentials, message: str) -> Dict[str, Any]:
    """
    Answer one playground message.

    Returns:
        Dict with "response", "type" (products, text, help or error) and optional "data"
    """
    if not is_search_intent(message):
        return {"response": HELP_TEXT.format(message=message), "type": "help"}

    terms = extract_search_terms(message)
    try:
        products = client.search_products(credentials, terms or message, PLAYGROUND_RESULT_LIMIT)
    except GatewayError as e:
        logger.error(f"Playground search failed for {credentials.shop}: {e.message}")
        return {"response": "Sorry, I encountered an error. Please try again.", "type": "error"}

    if not products:
        return {
            "response": f'I couldn\'t find any products matching "{terms}". Would you like me to try a different search?',
            "type": "text",
        }

    return {
        "response": f"Here's what I found:\n\n{format_products_for_ai(products)}",
        "type": "products",
        "data": [product.to_payload() for product in products],
    }
