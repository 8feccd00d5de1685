"""
Merchant profile management behind the settings page and agent toggle.
"""

from datetime import datetime
from typing import Dict, Any, Optional
import logging

from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..database import DatabaseManager, MerchantProfile, find_session, find_profile
from ..errors import PersistenceError
from ..mcp.prompt import DEFAULT_BRAND_VOICE, MerchantContext
from ..tools.models import ShopCredentials

logger = logging.getLogger(__name__)

BRAND_VOICE_OPTIONS = (
    "friendly and professional",
    "casual and fun",
    "luxury and sophisticated",
    "urgent and action-oriented",
    "warm and caring",
    "technical and detailed",
)

# Free-shipping threshold given to profiles created by the dashboard toggle
TOGGLE_DEFAULT_FREE_SHIPPING = 50.0


class MerchantSettings(BaseModel):
    """Fields a merchant edits on the settings page."""
    brand_voice: str = DEFAULT_BRAND_VOICE
    return_policy: str = ""
    shipping_info: str = ""
    min_free_shipping: float = Field(default=0.0, ge=0)
    custom_prompt: str = ""
    storefront_access_token: Optional[str] = None


def _settings_view(profile: Optional[MerchantProfile]) -> Dict[str, Any]:
    if profile is None:
        return {**MerchantSettings().model_dump(exclude={"storefront_access_token"}), "is_enabled": False}
    return {
        "brand_voice": profile.brand_voice,
        "return_policy": profile.return_policy or "",
        "shipping_info": profile.shipping_info or "",
        "min_free_shipping": profile.min_free_shipping or 0.0,
        "custom_prompt": profile.custom_prompt or "",
        "is_enabled": profile.is_enabled,
    }


class ProfileService:
    """Reads and writes MerchantProfile rows."""

    def __init__(self, db_manager: DatabaseManager):
        self.db_manager = db_manager

    def get_session(self) -> Session:
        return self.db_manager.get_session()

    def get_settings(self, shop: str) -> Dict[str, Any]:
        """Current settings, or the defaults shown for a shop that never saved any."""
        session = self.get_session()
        try:
            return _settings_view(find_profile(session, shop))
        finally:
            session.close()

    def save_settings(self, shop: str, settings: MerchantSettings) -> Dict[str, Any]:
        """Upsert the profile from the settings form. New profiles start enabled."""
        session = self.get_session()
        try:
            profile = find_profile(session, shop)
            if profile is None:
                profile = MerchantProfile(shop=shop, is_enabled=True)
                session.add(profile)

            profile.brand_voice = settings.brand_voice or DEFAULT_BRAND_VOICE
            profile.return_policy = settings.return_policy
            profile.shipping_info = settings.shipping_info
            profile.min_free_shipping = settings.min_free_shipping
            profile.custom_prompt = settings.custom_prompt
            if settings.storefront_access_token is not None:
                profile.storefront_access_token = settings.storefront_access_token or None
            profile.updated_at = datetime.utcnow()

            session.commit()
            logger.info(f"Saved settings for {shop}")
            return _settings_view(profile)
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Error saving settings for {shop}: {e}")
            raise PersistenceError(f"Failed to save settings: {e}") from e
        finally:
            session.close()

    def set_agent_enabled(self, shop: str, enabled: bool) -> bool:
        """Turn the agent on or off, creating a default profile on first use."""
        session = self.get_session()
        try:
            profile = find_profile(session, shop)
            if profile is None:
                profile = MerchantProfile(
                    shop=shop,
                    brand_voice=DEFAULT_BRAND_VOICE,
                    min_free_shipping=TOGGLE_DEFAULT_FREE_SHIPPING,
                )
                session.add(profile)

            profile.is_enabled = enabled
            session.commit()
            logger.info(f"AI Agent {'enabled' if enabled else 'disabled'} for {shop}")
            return enabled
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Error toggling agent for {shop}: {e}")
            raise PersistenceError(f"Failed to update agent status: {e}") from e
        finally:
            session.close()

    def get_merchant_context(self, shop: str) -> Optional[MerchantContext]:
        """Prompt context for an installed shop; None when the shop has no session."""
        session = self.get_session()
        try:
            if find_session(session, shop) is None:
                return None
            return MerchantContext.from_profile(shop, find_profile(session, shop))
        finally:
            session.close()

    def get_credentials(self, shop: str) -> Optional[ShopCredentials]:
        session = self.get_session()
        try:
            shop_session = find_session(session, shop)
            if shop_session is None:
                return None
            profile = find_profile(session, shop)
            return ShopCredentials(
                shop=shop_session.shop,
                access_token=shop_session.access_token,
                storefront_token=profile.storefront_access_token if profile else None,
            )
        finally:
            session.close()
