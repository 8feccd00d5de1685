"""
Universal Agent Gateway: exposes Shopify stores to AI agents over MCP and UCP.
"""

__version__ = "1.0.0"
