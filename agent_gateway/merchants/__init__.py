from .profile_service import ProfileService, MerchantSettings, BRAND_VOICE_OPTIONS
from .api_routes import merchants_router

__all__ = ["ProfileService", "MerchantSettings", "BRAND_VOICE_OPTIONS", "merchants_router"]
