import json

from agent_gateway.database import AgentInteraction, MissedOpportunity, Session
from agent_gateway.mcp.dispatcher import PROTOCOL_VERSION

from conftest import ENABLED_SHOP, DISABLED_SHOP, APP_URL, product_node, cart_response


def _call(dispatcher, method, params=None, request_id=1, shop=ENABLED_SHOP, user_agent=None):
    payload = {"jsonrpc": "2.0", "method": method, "id": request_id}
    if params is not None:
        payload["params"] = params
    return dispatcher.dispatch(shop, payload, user_agent)


def _tool_call(dispatcher, name, arguments, **kwargs):
    return _call(dispatcher, "tools/call", {"name": name, "arguments": arguments}, **kwargs)


def test_initialize(dispatcher):
    response = _call(dispatcher, "initialize", {"protocolVersion": PROTOCOL_VERSION})

    result = response["result"]
    assert response["id"] == 1
    assert result["protocolVersion"] == "2024-11-05"
    assert result["capabilities"] == {"tools": {}, "resources": {}}
    assert result["serverInfo"]["name"] == "Universal Agent Gateway"


def test_tools_list_is_stable(dispatcher):
    first = _call(dispatcher, "tools/list")
    second = _call(dispatcher, "tools/list", request_id=2)

    assert json.dumps(first["result"], sort_keys=True) == json.dumps(second["result"], sort_keys=True)
    assert [t["name"] for t in first["result"]["tools"]] == [
        "search_products", "get_product", "create_checkout", "get_store_info",
    ]


def test_zero_result_search_records_missed_opportunity(dispatcher, fake_shopify, db_manager):
    fake_shopify.reply({"products": {"nodes": []}})

    response = _tool_call(dispatcher, "search_products", {"query": "red dress", "limit": 5})

    assert response == {
        "jsonrpc": "2.0",
        "id": 1,
        "result": {
            "content": [
                {"type": "text", "text": 'No products found for "red dress". Try a different search term.'}
            ]
        },
    }
    assert fake_shopify.calls[0]["json"]["variables"] == {"query": "red dress", "first": 5}

    session = db_manager.get_session()
    rows = session.query(MissedOpportunity).filter_by(shop=ENABLED_SHOP).all()
    assert [(r.search_term, r.count) for r in rows] == [("red dress", 1)]
    assert session.query(AgentInteraction).filter_by(user_intent="search_products").count() == 1
    session.close()


def test_repeated_zero_result_search_increments_count(dispatcher, fake_shopify, db_manager):
    for _ in range(3):
        fake_shopify.reply({"products": {"nodes": []}})
        _tool_call(dispatcher, "search_products", {"query": "red dress"})

    session = db_manager.get_session()
    rows = session.query(MissedOpportunity).filter_by(shop=ENABLED_SHOP).all()
    assert [(r.search_term, r.count) for r in rows] == [("red dress", 3)]
    session.close()


def test_search_with_results(dispatcher, fake_shopify, db_manager):
    fake_shopify.reply({"products": {"nodes": [product_node()]}})

    response = _tool_call(dispatcher, "search_products", {"query": "scarf"}, user_agent="GPTBot/1.0")

    block = response["result"]["content"][0]
    assert block["type"] == "text"
    assert "1. **Silk Scarf**" in block["text"]
    assert "USD 45.0" in block["text"]
    assert block["data"][0]["handle"] == "silk-scarf"

    session = db_manager.get_session()
    assert session.query(MissedOpportunity).count() == 0
    interaction = session.query(AgentInteraction).one()
    assert interaction.user_agent == "GPTBot/1.0"
    session.close()


def test_get_product_not_found(dispatcher, fake_shopify):
    fake_shopify.reply({"productByIdentifier": None})

    response = _tool_call(dispatcher, "get_product", {"handle": "ghost"})

    assert response["result"]["content"] == [
        {"type": "text", "text": 'Product with handle "ghost" not found.'}
    ]


def test_checkout_is_attributed_to_recorded_interaction(dispatcher, fake_shopify, db_manager):
    fake_shopify.responses.append(cart_response)

    response = _tool_call(
        dispatcher,
        "create_checkout",
        {"variant_ids": ["gid://shopify/ProductVariant/111"], "quantities": [2]},
    )

    data = response["result"]["content"][0]["data"]
    interaction_id = data["interactionId"]
    sent_attributes = fake_shopify.calls[0]["json"]["variables"]["input"]["attributes"]
    assert {"key": "_interaction_id", "value": interaction_id} in sent_attributes
    assert data["checkoutUrl"] == f"https://{ENABLED_SHOP}/cart/c/abc123"

    session = db_manager.get_session()
    interaction = session.get(AgentInteraction, interaction_id)
    assert interaction.user_intent == "create_checkout"
    assert interaction.checkout_id == "gid://shopify/Cart/abc123"
    assert interaction.potential_value == 90.0
    assert json.loads(interaction.input_query) == {
        "variantIds": ["gid://shopify/ProductVariant/111"],
        "quantities": [2],
    }
    session.close()


def test_checkout_failure_is_internal_error(dispatcher, fake_shopify):
    fake_shopify.reply({
        "cartCreate": {"cart": None, "userErrors": [{"message": "Variant is sold out"}]}
    })

    response = _tool_call(dispatcher, "create_checkout", {"variant_ids": ["gid://shopify/ProductVariant/1"]})

    assert response["error"] == {"code": -32603, "message": "Cart creation failed: Variant is sold out"}


def test_checkout_with_no_variants_is_rejected(dispatcher, fake_shopify, db_manager):
    response = _tool_call(dispatcher, "create_checkout", {"variant_ids": []})

    assert response["error"] == {"code": -32603, "message": "variant_ids must be a non-empty array of variant IDs"}
    assert fake_shopify.calls == []

    session = db_manager.get_session()
    assert session.query(AgentInteraction).count() == 0
    session.close()


def test_store_info(dispatcher):
    response = _tool_call(dispatcher, "get_store_info", {"topic": "shipping"})

    text = response["result"]["content"][0]["text"]
    assert "**Shipping:** Ships in 2 business days." in text
    assert "Free shipping on orders over $75." in text
    assert "Returns" not in text


def test_store_info_invalid_topic(dispatcher):
    response = _tool_call(dispatcher, "get_store_info", {"topic": "taxes"})
    assert response["error"]["code"] == -32603


def test_unknown_tool(dispatcher):
    response = _tool_call(dispatcher, "delete_store", {})
    assert response["error"] == {"code": -32603, "message": "Unknown tool: delete_store"}


def test_missing_required_argument(dispatcher, fake_shopify):
    response = _tool_call(dispatcher, "search_products", {})

    assert response["error"]["code"] == -32603
    assert "query" in response["error"]["message"]
    assert fake_shopify.calls == []


def test_resources_list_and_read(dispatcher):
    listed = _call(dispatcher, "resources/list")["result"]["resources"]
    assert listed[0]["uri"] == f"shop://{ENABLED_SHOP}/context"

    response = _call(dispatcher, "resources/read", {"uri": f"shop://{ENABLED_SHOP}/context"})
    content = response["result"]["contents"][0]
    assert content["mimeType"] == "text/plain"
    assert "Your tone should be warm and caring." in content["text"]
    assert "Return Policy: 30-day returns on unworn items." in content["text"]


def test_resources_read_wrong_uri(dispatcher):
    response = _call(dispatcher, "resources/read", {"uri": f"shop://{DISABLED_SHOP}/context"}, request_id=7)

    assert response == {
        "jsonrpc": "2.0",
        "id": 7,
        "error": {"code": -32602, "message": "Resource not found"},
    }


def test_unknown_method(dispatcher):
    response = _call(dispatcher, "prompts/list", request_id="abc")

    assert response == {
        "jsonrpc": "2.0",
        "id": "abc",
        "error": {"code": -32601, "message": "Method not found: prompts/list"},
    }


def test_unknown_shop(dispatcher):
    response = _call(dispatcher, "tools/list", shop="nobody.myshopify.com")
    assert response["error"] == {"code": -32001, "message": "Shop not found"}


def test_disabled_shop_is_rejected_before_routing(dispatcher, fake_shopify):
    response = _tool_call(dispatcher, "search_products", {"query": "scarf"}, shop=DISABLED_SHOP)

    assert response["id"] == 1
    assert response["error"] == {"code": -32002, "message": "AI Agent is disabled for this store"}
    assert fake_shopify.calls == []

    unknown_method = _call(dispatcher, "prompts/list", shop=DISABLED_SHOP)
    assert unknown_method["error"]["code"] == -32002


def test_shop_without_profile_is_disabled(dispatcher, db_manager):
    session = db_manager.get_session()
    session.add(Session(id="offline_new.myshopify.com", shop="new.myshopify.com", access_token="shpat_new"))
    session.commit()
    session.close()

    response = _call(dispatcher, "tools/list", shop="new.myshopify.com")
    assert response["error"]["code"] == -32002


def test_fractional_request_id_is_echoed(dispatcher):
    response = _call(dispatcher, "tools/list", request_id=1.5)
    assert response["id"] == 1.5

    assert _call(dispatcher, "tools/list", request_id=True)["id"] is None


def test_non_scalar_request_id_is_null(dispatcher):
    response = _call(dispatcher, "tools/list", request_id={"nested": True})
    assert response["id"] is None
    assert "result" in response


def test_describe(dispatcher):
    document = dispatcher.describe(ENABLED_SHOP)

    assert document["status"] == "active"
    assert document["agentEnabled"] is True
    assert document["mcp"]["endpoint"] == f"{APP_URL}/api/mcp/{ENABLED_SHOP}"
    assert dispatcher.describe("nobody.myshopify.com") is None
    assert dispatcher.describe(DISABLED_SHOP)["agentEnabled"] is False
