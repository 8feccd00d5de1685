"""
JSON-RPC 2.0 dispatcher for the per-shop MCP endpoint.

Each request is handled on its own: resolve the tenant, route by method, and
turn the outcome into a response envelope. Nothing raised below dispatch()
escapes it.
"""

import logging
from typing import Any, Dict, Optional, Tuple
from urllib.parse import quote

from sqlalchemy.exc import SQLAlchemyError

from .. import __version__
from ..analytics.tracking_service import InteractionRecorder
from ..database import DatabaseManager, find_session, find_profile
from ..errors import (
    GatewayError,
    TenantNotFound,
    AgentDisabled,
    MethodNotFound,
    ResourceNotFound,
    InvalidToolCall,
    PersistenceError,
    INTERNAL_ERROR,
)
from ..tools.models import ShopCredentials
from ..tools.shopify_tool import ShopifyClient
from . import registry
from .handlers import HANDLERS, ToolContext
from .prompt import MerchantContext, build_system_prompt

logger = logging.getLogger(__name__)

PROTOCOL_VERSION = "2024-11-05"
SERVER_NAME = "Universal Agent Gateway"


def context_uri(shop: str) -> str:
    return f"shop://{shop}/context"


def success(request_id, result: Dict[str, Any]) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "id": request_id, "result": result}


def failure(request_id, code: int, message: str) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "id": request_id, "error": {"code": code, "message": message}}


def _request_id(payload: Any):
    if isinstance(payload, dict):
        request_id = payload.get("id")
        if isinstance(request_id, (str, int, float)) and not isinstance(request_id, bool):
            return request_id
    return None


class RpcDispatcher:
    """Routes MCP JSON-RPC requests for any tenant."""

    def __init__(
        self,
        db_manager: DatabaseManager,
        shopify_client: ShopifyClient,
        recorder: Optional[InteractionRecorder] = None,
        app_url: str = "",
    ):
        self.db_manager = db_manager
        self.shopify_client = shopify_client
        self.recorder = recorder or InteractionRecorder(db_manager)
        self.app_url = app_url.rstrip("/")

    # =========================================================================
    # Tenant resolution
    # =========================================================================

    def _load_tenant(self, shop_id: str) -> Tuple[ShopCredentials, str, MerchantContext, Optional[bool]]:
        db = self.db_manager.get_session()
        try:
            session = find_session(db, shop_id)
            if session is None:
                raise TenantNotFound()

            profile = find_profile(db, session.shop)
            credentials = ShopCredentials(
                shop=session.shop,
                access_token=session.access_token,
                storefront_token=profile.storefront_access_token if profile else None,
            )
            merchant = MerchantContext.from_profile(session.shop, profile)
            merchant_id = profile.id if profile else None
            enabled = profile.is_enabled if profile else None
            return credentials, merchant_id, merchant, enabled
        except SQLAlchemyError as e:
            logger.error(f"Error loading tenant {shop_id}: {e}")
            raise PersistenceError(f"Failed to load shop: {e}") from e
        finally:
            db.close()

    def resolve_tenant(self, shop_id: str, user_agent: Optional[str] = None) -> ToolContext:
        """
        Authenticate a shop for an MCP call.

        Raises:
            TenantNotFound: No Shopify session is stored for the shop
            AgentDisabled: The shop has no profile or turned the agent off
        """
        credentials, merchant_id, merchant, enabled = self._load_tenant(shop_id)
        if not enabled:
            raise AgentDisabled()

        return ToolContext(
            merchant_id=merchant_id,
            credentials=credentials,
            merchant=merchant,
            client=self.shopify_client,
            recorder=self.recorder,
            user_agent=user_agent,
        )

    # =========================================================================
    # Dispatch
    # =========================================================================

    def dispatch(self, shop_id: str, payload: Any, user_agent: Optional[str] = None) -> Dict[str, Any]:
        """
        Handle one JSON-RPC request and return its response envelope.

        Args:
            shop_id: Shop domain from the request path
            payload: Decoded JSON body
            user_agent: Caller's User-Agent header, stored on interactions
        """
        request_id = _request_id(payload)

        try:
            if not isinstance(payload, dict):
                raise GatewayError("Invalid request: expected a JSON object")

            ctx = self.resolve_tenant(shop_id, user_agent)

            method = payload.get("method")
            params = payload.get("params")
            if not isinstance(params, dict):
                params = {}

            logger.info(f"MCP {method} for {ctx.shop} (id={request_id})")
            return success(request_id, self._route(method, params, ctx))

        except GatewayError as e:
            if e.code == INTERNAL_ERROR:
                logger.error(f"MCP request failed for {shop_id}: {e.message}")
            else:
                logger.info(f"MCP request rejected for {shop_id}: {e.message}")
            return failure(request_id, e.code, e.message)

        except Exception as e:
            logger.error(f"Unhandled MCP error for {shop_id}: {e}", exc_info=True)
            return failure(request_id, INTERNAL_ERROR, str(e) or "Internal error")

    def _route(self, method, params: Dict[str, Any], ctx: ToolContext) -> Dict[str, Any]:
        if method == "initialize":
            return {
                "protocolVersion": PROTOCOL_VERSION,
                "capabilities": {"tools": {}, "resources": {}},
                "serverInfo": {"name": SERVER_NAME, "version": __version__},
            }

        if method == "tools/list":
            return {"tools": registry.list_tools()}

        if method == "tools/call":
            return self._call_tool(params, ctx)

        if method == "resources/list":
            return {
                "resources": [
                    {
                        "uri": context_uri(ctx.shop),
                        "name": "Store Context",
                        "description": "Brand voice and policy information for this store",
                        "mimeType": "text/plain",
                    }
                ]
            }

        if method == "resources/read":
            uri = params.get("uri")
            if uri != context_uri(ctx.shop):
                raise ResourceNotFound()
            return {
                "contents": [
                    {
                        "uri": uri,
                        "mimeType": "text/plain",
                        "text": build_system_prompt(ctx.merchant),
                    }
                ]
            }

        raise MethodNotFound(method)

    def _call_tool(self, params: Dict[str, Any], ctx: ToolContext) -> Dict[str, Any]:
        name = params.get("name")
        tool = registry.get_tool(name) if isinstance(name, str) else None
        if tool is None:
            raise InvalidToolCall(f"Unknown tool: {name}")

        arguments = params.get("arguments")
        if not isinstance(arguments, dict):
            arguments = {}

        missing = registry.missing_arguments(tool, arguments)
        if missing:
            raise InvalidToolCall(f"Missing required argument(s) for {name}: {', '.join(missing)}")

        block = HANDLERS[name](arguments, ctx)
        return {"content": [block]}

    # =========================================================================
    # Capability document
    # =========================================================================

    def endpoint_url(self, shop: str) -> str:
        return f"{self.app_url}/api/mcp/{quote(shop, safe='')}"

    def describe(self, shop_id: str) -> Optional[Dict[str, Any]]:
        """Health/capability document for GET requests; None for unknown shops."""
        try:
            credentials, _, _, enabled = self._load_tenant(shop_id)
        except TenantNotFound:
            return None

        return {
            "status": "active",
            "shop": credentials.shop,
            "agentEnabled": bool(enabled),
            "mcp": {
                "version": PROTOCOL_VERSION,
                "transport": "http",
                "endpoint": self.endpoint_url(credentials.shop),
            },
            "tools": registry.tool_names(),
        }
