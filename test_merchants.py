from agent_gateway.database import MerchantProfile

from conftest import ENABLED_SHOP, DISABLED_SHOP, product_node

NEW_SHOP = "fresh-store.myshopify.com"


def test_settings_defaults_for_new_shop(client):
    response = client.get(f"/app/{NEW_SHOP}/settings")

    assert response.status_code == 200
    profile = response.json()["profile"]
    assert profile["brand_voice"] == "friendly and professional"
    assert profile["is_enabled"] is False
    assert "storefront_access_token" not in profile


def test_save_settings_creates_enabled_profile(client, db_manager):
    response = client.post(f"/app/{NEW_SHOP}/settings", json={
        "brand_voice": "casual and fun",
        "return_policy": "No returns on sale items.",
        "min_free_shipping": 40,
        "storefront_access_token": "sf_public",
    })

    assert response.status_code == 200
    profile = response.json()["profile"]
    assert profile["brand_voice"] == "casual and fun"
    assert profile["is_enabled"] is True

    session = db_manager.get_session()
    row = session.query(MerchantProfile).filter_by(shop=NEW_SHOP).one()
    assert row.storefront_access_token == "sf_public"
    assert row.min_free_shipping == 40.0
    session.close()


def test_save_settings_rejects_negative_threshold(client):
    response = client.post(f"/app/{ENABLED_SHOP}/settings", json={"min_free_shipping": -5})
    assert response.status_code == 422


def test_toggle_agent(client):
    response = client.post(f"/app/{DISABLED_SHOP}/agent", json={"is_enabled": True})
    assert response.json() == {"status": "success", "isEnabled": True}

    mcp = client.post(f"/api/mcp/{DISABLED_SHOP}", json={"jsonrpc": "2.0", "method": "tools/list", "id": 1})
    assert "result" in mcp.json()


def test_toggle_creates_default_profile(client, db_manager):
    client.post(f"/app/{NEW_SHOP}/agent", json={"is_enabled": False})

    session = db_manager.get_session()
    row = session.query(MerchantProfile).filter_by(shop=NEW_SHOP).one()
    assert row.is_enabled is False
    assert row.min_free_shipping == 50.0
    session.close()


def test_prompt_preview(client):
    response = client.get(f"/app/{ENABLED_SHOP}/prompt")
    assert response.status_code == 200
    assert "Free shipping is available on orders over $75." in response.json()["prompt"]

    assert client.get(f"/app/{NEW_SHOP}/prompt").status_code == 404


def test_dashboard(client, recorder, db_manager):
    session = db_manager.get_session()
    merchant_id = session.query(MerchantProfile).filter_by(shop=ENABLED_SHOP).one().id
    session.close()

    converted = recorder.record(merchant_id, "create_checkout", potential_value=80.0)
    recorder.record(merchant_id, "search_products", "scarf")
    recorder.record(merchant_id, "get_store_info", "all")
    recorder.attribute_conversion(ENABLED_SHOP, converted, "1001", 75.5)
    for term in ("red dress", "red dress", "linen shirt"):
        recorder.mark_missed(ENABLED_SHOP, term)

    response = client.get(f"/app/{ENABLED_SHOP}/dashboard")

    assert response.status_code == 200
    body = response.json()
    assert body["agent_enabled"] is True
    assert body["is_setup_complete"] is True
    assert body["stats"] == {
        "total_revenue": 75.5,
        "potential_revenue": 80.0,
        "total_interactions": 3,
        "conversions": 1,
        "conversion_rate": 33.3,
    }
    assert len(body["recent_interactions"]) == 3
    assert [(m["search_term"], m["count"]) for m in body["missed_opportunities"]] == [
        ("red dress", 2), ("linen shirt", 1),
    ]


def test_dashboard_for_unknown_shop(client):
    body = client.get(f"/app/{NEW_SHOP}/dashboard").json()
    assert body["stats"]["total_interactions"] == 0
    assert body["stats"]["conversion_rate"] == 0
    assert body["agent_enabled"] is False


def test_playground_search(client, fake_shopify):
    fake_shopify.reply({"products": {"nodes": [product_node()]}})

    response = client.post(f"/app/{ENABLED_SHOP}/playground", json={"message": "Show me silk scarves"})

    body = response.json()
    assert body["type"] == "products"
    assert body["data"][0]["title"] == "Silk Scarf"
    assert fake_shopify.calls[0]["json"]["variables"] == {"query": "silk scarves", "first": 5}


def test_playground_help(client, fake_shopify):
    body = client.post(f"/app/{ENABLED_SHOP}/playground", json={"message": "hello"}).json()
    assert body["type"] == "help"
    assert fake_shopify.calls == []


def test_playground_unknown_shop(client):
    response = client.post(f"/app/{NEW_SHOP}/playground", json={"message": "find hats"})
    assert response.status_code == 404


def test_playground_empty_message(client):
    response = client.post(f"/app/{ENABLED_SHOP}/playground", json={"message": ""})
    assert response.status_code == 422
