from .ucp import build_ucp_profile, UCP_VERSION, CACHE_MAX_AGE
from .api_routes import proxy_router

__all__ = ["build_ucp_profile", "UCP_VERSION", "CACHE_MAX_AGE", "proxy_router"]
