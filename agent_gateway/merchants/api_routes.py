"""
Admin routes for merchant settings, the agent toggle and the playground.
Requests reach these routes already authenticated by the embedded-app layer.
"""

import logging

from fastapi import APIRouter, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, Field

from ..errors import GatewayError
from ..mcp.prompt import build_system_prompt
from . import playground
from .profile_service import MerchantSettings, BRAND_VOICE_OPTIONS

logger = logging.getLogger(__name__)

merchants_router = APIRouter(prefix="/app", tags=["Merchants"])


class AgentToggle(BaseModel):
    is_enabled: bool


class PlaygroundMessage(BaseModel):
    message: str = Field(min_length=1)


@merchants_router.get("/{shop}/settings")
async def get_settings(shop: str, request: Request):
    """Current agent settings plus the brand voice choices."""
    settings = await run_in_threadpool(request.app.state.profile_service.get_settings, shop)
    return {"shop": shop, "profile": settings, "brand_voice_options": list(BRAND_VOICE_OPTIONS)}


@merchants_router.post("/{shop}/settings")
async def save_settings(shop: str, settings: MerchantSettings, request: Request):
    try:
        profile = await run_in_threadpool(request.app.state.profile_service.save_settings, shop, settings)
    except GatewayError as e:
        raise HTTPException(status_code=500, detail=e.message)
    return {"status": "success", "message": "Settings saved!", "profile": profile}


@merchants_router.post("/{shop}/agent")
async def toggle_agent(shop: str, toggle: AgentToggle, request: Request):
    """Turn the AI agent on or off for a shop."""
    try:
        enabled = await run_in_threadpool(
            request.app.state.profile_service.set_agent_enabled, shop, toggle.is_enabled
        )
    except GatewayError as e:
        raise HTTPException(status_code=500, detail=e.message)
    return {"status": "success", "isEnabled": enabled}


@merchants_router.get("/{shop}/prompt")
async def preview_prompt(shop: str, request: Request):
    """The system prompt agents receive from resources/read."""
    context = await run_in_threadpool(request.app.state.profile_service.get_merchant_context, shop)
    if context is None:
        raise HTTPException(status_code=404, detail="Shop not found")
    return {"shop": shop, "prompt": build_system_prompt(context)}


@merchants_router.post("/{shop}/playground")
async def playground_message(shop: str, body: PlaygroundMessage, request: Request):
    credentials = await run_in_threadpool(request.app.state.profile_service.get_credentials, shop)
    if credentials is None:
        raise HTTPException(status_code=404, detail="Shop not found")

    return await run_in_threadpool(
        playground.respond, request.app.state.shopify_client, credentials, body.message
    )
