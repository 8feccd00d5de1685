from .models import ShopCredentials, Product, Variant, CheckoutResult
from .shopify_tool import ShopifyClient


__all__ = [
    "ShopifyClient",
    "ShopCredentials",
    "Product",
    "Variant",
    "CheckoutResult",
]
