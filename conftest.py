"""
Shared fixtures: an in-memory database seeded with two installed shops and a
fake Shopify GraphQL transport.
"""

import json
from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from agent_gateway.app import create_application
from agent_gateway.analytics.tracking_service import InteractionRecorder
from agent_gateway.config import Settings
from agent_gateway.database import DatabaseManager, Session, MerchantProfile
from agent_gateway.mcp.dispatcher import RpcDispatcher
from agent_gateway.tools import shopify_tool
from agent_gateway.tools.shopify_tool import ShopifyClient

ENABLED_SHOP = "enabled-store.myshopify.com"
DISABLED_SHOP = "disabled-store.myshopify.com"
APP_URL = "https://gateway.test"


class FakeResponse:
    """Stands in for requests.Response."""

    def __init__(self, payload=None, status_code=200, text=None):
        self._payload = payload
        self.status_code = status_code
        self.ok = 200 <= status_code < 300
        self.reason = "OK" if self.ok else "Error"
        self.text = text if text is not None else json.dumps(payload)

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


class FakeShopify:
    """Queue of canned GraphQL responses plus a log of what was posted."""

    def __init__(self):
        self.responses = []
        self.calls = []

    def reply(self, data=None, errors=None, status_code=200):
        payload = {}
        if data is not None:
            payload["data"] = data
        if errors is not None:
            payload["errors"] = errors
        self.responses.append(FakeResponse(payload, status_code=status_code))

    def post(self, url, json=None, headers=None, timeout=None):
        self.calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        if not self.responses:
            raise AssertionError(f"Unexpected Shopify call to {url}")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        if callable(response):
            # Built from the request, e.g. a cart echoing its attributes
            return FakeResponse({"data": response(json)})
        return response


def product_node(handle="silk-scarf", title="Silk Scarf", available=True):
    return {
        "id": f"gid://shopify/Product/{handle}",
        "title": title,
        "description": "Hand-rolled edges, 100% mulberry silk.",
        "handle": handle,
        "featuredImage": {"url": f"https://cdn.shopify.com/{handle}.jpg", "altText": None},
        "priceRange": {
            "minVariantPrice": {"amount": "45.0", "currencyCode": "USD"},
            "maxVariantPrice": {"amount": "55.0", "currencyCode": "USD"},
        },
        "variants": {
            "nodes": [
                {
                    "id": "gid://shopify/ProductVariant/111",
                    "title": "Blue",
                    "price": "45.00",
                    "availableForSale": available,
                    "sku": "SCARF-BLUE",
                },
                {
                    "id": "gid://shopify/ProductVariant/112",
                    "title": "Red",
                    "price": "55.00",
                    "availableForSale": False,
                    "sku": None,
                },
            ]
        },
    }


def cart_response(request, total="90.0"):
    """cartCreate payload echoing the attributes the request was sent with."""
    return {
        "cartCreate": {
            "cart": {
                "id": "gid://shopify/Cart/abc123",
                "checkoutUrl": f"https://{ENABLED_SHOP}/cart/c/abc123",
                "attributes": request["variables"]["input"]["attributes"],
                "cost": {"totalAmount": {"amount": total, "currencyCode": "USD"}},
            },
            "userErrors": [],
        }
    }


@pytest.fixture
def db_manager():
    manager = DatabaseManager("sqlite://")
    manager.create_tables()

    session = manager.get_session()
    session.add_all([
        Session(id=f"offline_{ENABLED_SHOP}", shop=ENABLED_SHOP, access_token="shpat_enabled"),
        Session(id=f"offline_{DISABLED_SHOP}", shop=DISABLED_SHOP, access_token="shpat_disabled"),
        MerchantProfile(
            shop=ENABLED_SHOP,
            brand_voice="warm and caring",
            return_policy="30-day returns on unworn items.",
            shipping_info="Ships in 2 business days.",
            min_free_shipping=75.0,
            is_enabled=True,
            updated_at=datetime(2025, 1, 15, 12, 0, 0),
        ),
        MerchantProfile(shop=DISABLED_SHOP, is_enabled=False),
    ])
    session.commit()
    session.close()

    yield manager
    manager.dispose()


@pytest.fixture
def fake_shopify(monkeypatch):
    fake = FakeShopify()
    monkeypatch.setattr(shopify_tool.requests, "post", fake.post)
    return fake


@pytest.fixture
def recorder(db_manager):
    return InteractionRecorder(db_manager)


@pytest.fixture
def dispatcher(db_manager, recorder, fake_shopify):
    return RpcDispatcher(db_manager, ShopifyClient(), recorder=recorder, app_url=APP_URL)


@pytest.fixture
def settings():
    return Settings(database_url="sqlite://", app_url=APP_URL)


@pytest.fixture
def client(settings, db_manager, fake_shopify):
    app = create_application(settings=settings, db_manager=db_manager)
    with TestClient(app) as test_client:
        yield test_client
