"""
App proxy routes serving the UCP discovery document.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Query, Request, Response
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from ..database import find_session, find_profile
from .ucp import build_ucp_profile, CACHE_MAX_AGE

logger = logging.getLogger(__name__)

proxy_router = APIRouter(prefix="/api/proxy", tags=["Discovery"])

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


def _load_profile_document(db_manager, shop: str, app_url: str) -> Optional[dict]:
    db = db_manager.get_session()
    try:
        if find_session(db, shop) is None:
            return None
        return build_ucp_profile(shop, find_profile(db, shop), app_url)
    finally:
        db.close()


async def _ucp_response(request: Request, shop: Optional[str]) -> JSONResponse:
    if not shop:
        return JSONResponse({"error": "Unauthorized"}, status_code=401)

    try:
        document = await run_in_threadpool(
            _load_profile_document,
            request.app.state.db_manager,
            shop,
            request.app.state.settings.app_url,
        )
    except Exception as e:
        logger.error(f"UCP profile error for {shop}: {e}", exc_info=True)
        return JSONResponse({"error": "Internal server error"}, status_code=500)

    if document is None:
        return JSONResponse({"error": "Unauthorized"}, status_code=401)

    return JSONResponse(
        document,
        headers={
            "Cache-Control": f"public, max-age={CACHE_MAX_AGE}",
            "Access-Control-Allow-Origin": "*",
        },
    )


@proxy_router.get("/ucp")
@proxy_router.get("/.well-known/ucp")
async def ucp_profile(request: Request, shop: Optional[str] = Query(None, description="Shop domain added by the app proxy")):
    """UCP discovery document for the shop the app proxy request came from."""
    return await _ucp_response(request, shop)


@proxy_router.options("/ucp")
@proxy_router.options("/.well-known/ucp")
async def ucp_preflight():
    return Response(status_code=204, headers=CORS_HEADERS)
