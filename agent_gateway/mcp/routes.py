"""
FastAPI routes for the per-shop MCP endpoint.
"""

import json
import logging

from fastapi import APIRouter, HTTPException, Request
from fastapi.concurrency import run_in_threadpool

from ..errors import INTERNAL_ERROR
from .dispatcher import failure

logger = logging.getLogger(__name__)

mcp_router = APIRouter(prefix="/api/mcp", tags=["MCP"])


@mcp_router.post("/{shop_id}")
async def mcp_call(shop_id: str, request: Request):
    """
    JSON-RPC 2.0 over HTTP.

    Always answers 200 with a JSON-RPC envelope, including for bodies that are
    not valid JSON.
    """
    body = await request.body()
    try:
        payload = json.loads(body)
    except ValueError as e:
        logger.warning(f"Invalid JSON on MCP endpoint for {shop_id}: {e}")
        return failure(None, INTERNAL_ERROR, f"Parse error: {e}")

    dispatcher = request.app.state.dispatcher
    return await run_in_threadpool(
        dispatcher.dispatch, shop_id, payload, request.headers.get("user-agent")
    )


@mcp_router.get("/{shop_id}")
async def mcp_status(shop_id: str, request: Request):
    """Health check and capability discovery for a shop's MCP endpoint."""
    dispatcher = request.app.state.dispatcher
    try:
        document = await run_in_threadpool(dispatcher.describe, shop_id)
    except Exception as e:
        logger.error(f"Error describing MCP endpoint for {shop_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")

    if document is None:
        raise HTTPException(status_code=404, detail="Shop not found")
    return document
