"""
Text rendering for agents: the store-context system prompt and product listings.
"""

from dataclasses import dataclass
from typing import List, Optional

from ..tools.models import Product, CheckoutResult

DEFAULT_BRAND_VOICE = "friendly and professional"

AGENT_GUIDELINES = (
    "Always be helpful and guide customers to find what they're looking for.",
    "When suggesting products, include prices and availability.",
    "If you can't find what the customer wants, suggest alternatives.",
)


@dataclass(frozen=True)
class MerchantContext:
    """Profile fields an agent needs to speak for a store."""
    shop: str
    brand_voice: str = DEFAULT_BRAND_VOICE
    return_policy: Optional[str] = None
    shipping_info: Optional[str] = None
    min_free_shipping: float = 0.0
    custom_prompt: Optional[str] = None

    @classmethod
    def from_profile(cls, shop: str, profile) -> "MerchantContext":
        if profile is None:
            return cls(shop=shop)
        return cls(
            shop=shop,
            brand_voice=profile.brand_voice or DEFAULT_BRAND_VOICE,
            return_policy=profile.return_policy or None,
            shipping_info=profile.shipping_info or None,
            min_free_shipping=profile.min_free_shipping or 0.0,
            custom_prompt=profile.custom_prompt or None,
        )


def _money(value: float) -> str:
    return f"{value:g}" if float(value).is_integer() else f"{value:.2f}"


def build_system_prompt(context: MerchantContext) -> str:
    """System prompt served as the shop://{shop}/context resource."""
    parts = [
        f"You are a helpful shopping assistant for {context.shop}.",
        f"Your tone should be {context.brand_voice}.",
    ]

    if context.return_policy:
        parts.append(f"Return Policy: {context.return_policy}")

    if context.shipping_info:
        parts.append(f"Shipping Information: {context.shipping_info}")

    if context.min_free_shipping > 0:
        parts.append(f"Free shipping is available on orders over ${_money(context.min_free_shipping)}.")

    if context.custom_prompt:
        parts.append(context.custom_prompt)

    parts.extend(AGENT_GUIDELINES)
    return "\n\n".join(parts)


def format_products_for_ai(products: List[Product]) -> str:
    """Numbered product list for search results."""
    if not products:
        return "No products found matching your search."

    entries = []
    for index, product in enumerate(products, start=1):
        min_price = product.price_range.min_variant_price
        lines = [
            f"{index}. **{product.title}**",
            f"   - Price: {min_price.currency_code} {min_price.amount}",
            f"   - {len(product.available_variants)} variant(s) available",
            f"   - Handle: {product.handle}",
        ]
        if product.description:
            lines.append(f"   - Description: {product.description[:150]}...")
        entries.append("\n".join(lines))

    return "\n\n".join(entries)


def format_product_detail(product: Product) -> str:
    min_price = product.price_range.min_variant_price
    available = product.available_variants

    variant_lines = "\n".join(f"- {v.title}: {v.price} (ID: {v.id})" for v in available)

    return (
        f"**{product.title}**\n\n"
        f"{product.description or 'No description available.'}\n\n"
        f"Price: {min_price.currency_code} {min_price.amount}\n"
        f"{len(available)} variant(s) in stock\n\n"
        f"Variants:\n{variant_lines}"
    )


def format_checkout(checkout: CheckoutResult) -> str:
    return (
        "✅ Checkout created!\n\n"
        f"**Total:** {checkout.currency_code} {checkout.total_price}\n"
        f"**Checkout URL:** {checkout.checkout_url}\n\n"
        "Share this link with the customer to complete their purchase."
    )


def format_store_info(context: MerchantContext, topic: str = "all") -> str:
    """Policy text for get_store_info; topic is shipping, returns, brand or all."""
    info = ""

    if topic in ("all", "brand"):
        info += f"**Brand Voice:** {context.brand_voice}\n\n"

    if topic in ("all", "shipping"):
        if context.shipping_info:
            info += f"**Shipping:** {context.shipping_info}\n"
        else:
            info += "**Shipping:** Contact the store for shipping information.\n"
        if context.min_free_shipping > 0:
            info += f"Free shipping on orders over ${_money(context.min_free_shipping)}.\n"
        info += "\n"

    if topic in ("all", "returns"):
        if context.return_policy:
            info += f"**Returns:** {context.return_policy}\n"
        else:
            info += "**Returns:** Contact the store for return policy information.\n"

    return info.strip() or "No store information available."
