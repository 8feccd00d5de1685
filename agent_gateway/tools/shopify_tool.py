"""
Shopify GraphQL client used by the MCP tools.
Translates normalized tool requests into Admin and Storefront API calls.
"""

import json
import logging
from typing import Dict, Any, Optional, List, Sequence

import requests

from ..analytics.cart_attribution import add_attribution_to_cart_input
from ..errors import UpstreamError
from .models import ShopCredentials, Product, CheckoutResult

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 250

_PRODUCT_FIELDS = """
    id
    title
    description
    handle
    featuredImage {
        url
        altText
    }
    priceRange {
        minVariantPrice {
            amount
            currencyCode
        }
        maxVariantPrice {
            amount
            currencyCode
        }
    }
"""

SEARCH_PRODUCTS_QUERY = """
query SearchProducts($query: String!, $first: Int!) {
    products(first: $first, query: $query) {
        nodes {
            %s
            variants(first: 10) {
                nodes {
                    id
                    title
                    price
                    availableForSale
                    sku
                }
            }
        }
    }
}
""" % _PRODUCT_FIELDS

GET_PRODUCT_BY_HANDLE_QUERY = """
query GetProductByHandle($handle: String!) {
    productByIdentifier(identifier: {handle: $handle}) {
        %s
        variants(first: 50) {
            nodes {
                id
                title
                price
                availableForSale
                sku
            }
        }
    }
}
""" % _PRODUCT_FIELDS

CART_CREATE_MUTATION = """
mutation CartCreate($input: CartInput!) {
    cartCreate(input: $input) {
        cart {
            id
            checkoutUrl
            attributes {
                key
                value
            }
            cost {
                totalAmount {
                    amount
                    currencyCode
                }
            }
        }
        userErrors {
            code
            field
            message
        }
    }
}
"""


def _normalize_product(node: Dict[str, Any]) -> Product:
    variants = (node.get("variants") or {}).get("nodes", [])
    return Product.model_validate({**node, "description": node.get("description") or "", "variants": variants})


class ShopifyClient:
    """
    Thin GraphQL client for a tenant's store.

    One instance is shared by all tenants; credentials are passed per call.
    Nothing is retried: a cartCreate is not idempotent.
    """

    def __init__(self, api_version: str = "2025-01", timeout: float = 30.0):
        self.api_version = api_version
        self.timeout = timeout

    def _endpoint(self, credentials: ShopCredentials, api: str) -> tuple:
        if api == "admin":
            url = f"https://{credentials.shop}/admin/api/{self.api_version}/graphql.json"
            headers = {
                "Content-Type": "application/json",
                "X-Shopify-Access-Token": credentials.access_token,
            }
        else:  # storefront
            url = f"https://{credentials.shop}/api/{self.api_version}/graphql.json"
            headers = {"Content-Type": "application/json"}
            # Tokenless Storefront access covers products and carts
            if credentials.storefront_token:
                headers["X-Shopify-Storefront-Access-Token"] = credentials.storefront_token
        return url, headers

    def execute_graphql(
        self,
        credentials: ShopCredentials,
        query: str,
        variables: Optional[Dict[str, Any]] = None,
        api: str = "admin",
    ) -> Dict[str, Any]:
        """
        Execute a GraphQL query against one of the shop's APIs.

        Args:
            credentials: Shop domain and tokens
            query: GraphQL query string
            variables: Query variables
            api: "admin" or "storefront"

        Returns:
            The "data" object of the GraphQL response

        Raises:
            UpstreamError: On transport failure, non-2xx status or GraphQL errors
        """
        url, headers = self._endpoint(credentials, api)
        payload = {"query": query, "variables": variables or {}}

        logger.debug(f"Executing {api} GraphQL query to: {url}")

        try:
            response = requests.post(url, json=payload, headers=headers, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.error(f"GraphQL request to {credentials.shop} failed: {e}")
            raise UpstreamError(f"Shopify API request failed: {e}") from e

        if not response.ok:
            logger.error(f"Shopify API error for {credentials.shop}: {response.status_code} {response.text[:500]}")
            raise UpstreamError(
                f"Shopify API error: {response.status_code} {response.reason}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamError(f"Shopify API returned invalid JSON: {e}") from e

        if data.get("errors"):
            logger.error(f"GraphQL returned errors: {json.dumps(data['errors'])}")
            raise UpstreamError(f"GraphQL errors: {json.dumps(data['errors'])}")

        return data.get("data") or {}

    def search_products(self, credentials: ShopCredentials, query_text: str, limit: int = 10) -> List[Product]:
        """Search the catalog. Returns an empty list when nothing matches."""
        first = max(1, min(int(limit), MAX_PAGE_SIZE))
        data = self.execute_graphql(
            credentials, SEARCH_PRODUCTS_QUERY, {"query": query_text, "first": first}
        )
        nodes = (data.get("products") or {}).get("nodes") or []
        products = [_normalize_product(node) for node in nodes]
        logger.info(f"Search '{query_text}' on {credentials.shop} returned {len(products)} product(s)")
        return products

    def get_product_by_handle(self, credentials: ShopCredentials, handle: str) -> Optional[Product]:
        """Look up one product by handle. Returns None when the handle does not resolve."""
        data = self.execute_graphql(credentials, GET_PRODUCT_BY_HANDLE_QUERY, {"handle": handle})
        node = data.get("productByIdentifier")
        if not node:
            return None
        return _normalize_product(node)

    def create_checkout(
        self,
        credentials: ShopCredentials,
        variant_ids: Sequence[str],
        quantities: Optional[Sequence[Any]],
        interaction_id: str,
    ) -> CheckoutResult:
        """
        Create a cart tagged with the interaction id and return its checkout link.

        Args:
            credentials: Shop domain and tokens
            variant_ids: ProductVariant GIDs
            quantities: Quantities aligned with variant_ids; missing entries default to 1
            interaction_id: Interaction that the resulting order is attributed to

        Raises:
            UpstreamError: If Shopify rejects the cart (invalid variant, etc.)
        """
        quantities = list(quantities or [])
        lines = []
        for index, variant_id in enumerate(variant_ids):
            quantity = quantities[index] if index < len(quantities) else None
            if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
                quantity = 1
            lines.append({"merchandiseId": variant_id, "quantity": quantity})

        cart_input = add_attribution_to_cart_input({"lines": lines}, interaction_id)

        data = self.execute_graphql(
            credentials, CART_CREATE_MUTATION, {"input": cart_input}, api="storefront"
        )
        cart_create = data.get("cartCreate") or {}

        user_errors = cart_create.get("userErrors") or []
        if user_errors:
            messages = "; ".join(err.get("message", "") for err in user_errors)
            logger.warning(f"Cart creation rejected for {credentials.shop}: {messages}")
            raise UpstreamError(f"Cart creation failed: {messages}")

        cart = cart_create.get("cart")
        if not cart:
            raise UpstreamError("Cart creation failed: Shopify returned no cart")

        total = cart["cost"]["totalAmount"]
        result = CheckoutResult(
            checkout_url=cart["checkoutUrl"],
            checkout_id=cart["id"],
            total_price=total["amount"],
            currency_code=total["currencyCode"],
            attributes=cart.get("attributes") or cart_input["attributes"],
        )
        logger.info(f"Created cart {result.checkout_id} on {credentials.shop} for interaction {interaction_id}")
        return result
