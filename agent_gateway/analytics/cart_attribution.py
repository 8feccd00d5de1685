"""
Cart attribution for tracking agent-generated sales.
Adds the interaction id to Shopify carts and reads it back from orders.
"""

from typing import Dict, Any, Optional, List
import logging

logger = logging.getLogger(__name__)

ATTRIBUTION_SOURCE = "universal_agent_gateway"
SOURCE_KEY = "_source"
INTERACTION_KEY = "_interaction_id"
CART_NOTE = "Generated by AI Agent via Universal Agent Gateway"


def attribution_attributes(interaction_id: str) -> List[Dict[str, str]]:
    """The (source, interaction id) pair attached to every agent cart."""
    return [
        {"key": SOURCE_KEY, "value": ATTRIBUTION_SOURCE},
        {"key": INTERACTION_KEY, "value": interaction_id},
    ]


def add_attribution_to_cart_input(
    cart_input: Dict[str, Any],
    interaction_id: str,
) -> Dict[str, Any]:
    """
    Add attribution metadata to cart creation input.

    Shopify copies cart attributes onto the order's note_attributes, which is
    how the orders/create webhook finds the interaction again.

    Args:
        cart_input: The CartInput dict for the cartCreate mutation
        interaction_id: Interaction that is creating the cart

    Returns:
        The same cart_input with attribution attributes and note set
    """
    if not interaction_id:
        raise ValueError("interaction_id is required for cart attribution")

    attributes = [
        attr for attr in cart_input.get("attributes", [])
        if attr.get("key") not in (SOURCE_KEY, INTERACTION_KEY)
    ]
    attributes.extend(attribution_attributes(interaction_id))
    cart_input["attributes"] = attributes
    cart_input.setdefault("note", CART_NOTE)

    logger.debug(f"Added attribution to cart input for interaction {interaction_id}")
    return cart_input


def extract_attribution_from_order(order_data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Extract agent attribution data from a Shopify order payload.

    Args:
        order_data: Shopify order data from webhook or API

    Returns:
        Dict with source, interaction_id and is_agent_attributed
    """
    attribution = {
        "source": None,
        "interaction_id": None,
        "is_agent_attributed": False,
    }

    # Webhooks use note_attributes with name/value, GraphQL uses customAttributes with key/value
    note_attributes = order_data.get("note_attributes") or order_data.get("noteAttributes") or []
    custom_attributes = order_data.get("customAttributes") or order_data.get("custom_attributes") or []

    for attr in list(note_attributes) + list(custom_attributes):
        key = attr.get("name", attr.get("key", ""))
        value = attr.get("value")

        if key == SOURCE_KEY:
            attribution["source"] = value
        elif key == INTERACTION_KEY:
            attribution["interaction_id"] = value

    attribution["is_agent_attributed"] = attribution["source"] == ATTRIBUTION_SOURCE

    if attribution["is_agent_attributed"]:
        logger.info(f"Order {order_data.get('id')} attributed to agent interaction: {attribution['interaction_id']}")

    return attribution


def verify_cart_attribution(cart_attributes: List[Dict[str, Any]], expected_interaction_id: str) -> bool:
    """Check that a cart carries the expected interaction id."""
    for attr in cart_attributes:
        if attr.get("key") == INTERACTION_KEY:
            return attr.get("value") == expected_interaction_id
    return False


def order_total(order_data: Dict[str, Any]) -> float:
    """Order value as a float; missing or malformed totals count as zero."""
    try:
        return float(order_data.get("total_price") or 0)
    except (TypeError, ValueError):
        logger.warning(f"Unparseable total_price on order {order_data.get('id')}: {order_data.get('total_price')!r}")
        return 0.0


def order_id(order_data: Dict[str, Any]) -> Optional[str]:
    value = order_data.get("id")
    return str(value) if value is not None else None
