"""
Error taxonomy shared by the MCP endpoint and the services behind it.
Every error carries the JSON-RPC code it is reported with.
"""

# JSON-RPC 2.0 codes
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

# Implementation-defined server errors
TENANT_NOT_FOUND = -32001
AGENT_DISABLED = -32002


class GatewayError(Exception):
    """Base class for errors reported as JSON-RPC error objects."""

    code = INTERNAL_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class TenantNotFound(GatewayError):
    code = TENANT_NOT_FOUND

    def __init__(self, message: str = "Shop not found"):
        super().__init__(message)


class AgentDisabled(GatewayError):
    code = AGENT_DISABLED

    def __init__(self, message: str = "AI Agent is disabled for this store"):
        super().__init__(message)


class MethodNotFound(GatewayError):
    code = METHOD_NOT_FOUND

    def __init__(self, method):
        super().__init__(f"Method not found: {method}")
        self.method = method


class ResourceNotFound(GatewayError):
    code = INVALID_PARAMS

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message)


class InvalidToolCall(GatewayError):
    """Unknown tool name or missing tool arguments."""


class UpstreamError(GatewayError):
    """Shopify returned a bad status, GraphQL errors or user errors."""

    def __init__(self, message: str, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class PersistenceError(GatewayError):
    """Reading or writing agent analytics failed."""


class InteractionNotFound(PersistenceError):
    def __init__(self, interaction_id: str):
        super().__init__(f"Interaction not found: {interaction_id}")
        self.interaction_id = interaction_id
