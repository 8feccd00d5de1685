from .dispatcher import RpcDispatcher, PROTOCOL_VERSION
from .registry import list_tools, get_tool, tool_names
from .routes import mcp_router

__all__ = [
    "RpcDispatcher",
    "PROTOCOL_VERSION",
    "list_tools",
    "get_tool",
    "tool_names",
    "mcp_router",
]
