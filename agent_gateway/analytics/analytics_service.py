"""
Merchant dashboard metrics: revenue driven by the agent, conversion rate and
searches the catalog could not answer.
"""

from typing import Dict, Any, List
import logging

from sqlalchemy import func, desc
from sqlalchemy.orm import Session

from ..database import (
    DatabaseManager,
    MerchantProfile,
    AgentInteraction,
    MissedOpportunity,
)

logger = logging.getLogger(__name__)

RECENT_INTERACTIONS = 10
TOP_MISSED = 5


def _interaction_row(interaction: AgentInteraction) -> Dict[str, Any]:
    return {
        "id": interaction.id,
        "timestamp": interaction.timestamp.isoformat() if interaction.timestamp else None,
        "intent": interaction.user_intent,
        "query": interaction.input_query,
        "checkout_url": interaction.checkout_url,
        "potential_value": interaction.potential_value,
        "converted": interaction.converted,
        "order_value": interaction.order_value,
    }


class AnalyticsService:
    """Service for generating merchant dashboard analytics."""

    def __init__(self, db_manager: DatabaseManager):
        self.db_manager = db_manager

    def get_session(self) -> Session:
        """Get database session."""
        return self.db_manager.get_session()

    def get_dashboard(self, shop: str) -> Dict[str, Any]:
        """
        Dashboard data for one shop.

        Args:
            shop: Shop domain

        Returns:
            Dict with stats, recent interactions, missed opportunities and setup status
        """
        session = self.get_session()
        try:
            profile = session.query(MerchantProfile).filter_by(shop=shop).first()

            rows = session.query(
                AgentInteraction.converted,
                func.count(AgentInteraction.id),
                func.sum(AgentInteraction.order_value),
                func.sum(AgentInteraction.potential_value),
            ).join(
                MerchantProfile, AgentInteraction.merchant_id == MerchantProfile.id
            ).filter(
                MerchantProfile.shop == shop
            ).group_by(AgentInteraction.converted).all()

            total_interactions = sum(count for _, count, _, _ in rows)
            conversions = sum(count for converted, count, _, _ in rows if converted)
            total_revenue = sum(revenue or 0.0 for _, _, revenue, _ in rows)
            potential_revenue = sum(potential or 0.0 for _, _, _, potential in rows)

            conversion_rate = (conversions / total_interactions * 100) if total_interactions > 0 else 0

            recent: List[AgentInteraction] = []
            if profile is not None:
                recent = session.query(AgentInteraction).filter_by(
                    merchant_id=profile.id
                ).order_by(desc(AgentInteraction.timestamp)).limit(RECENT_INTERACTIONS).all()

            missed = session.query(MissedOpportunity).filter_by(shop=shop).order_by(
                desc(MissedOpportunity.count)
            ).limit(TOP_MISSED).all()

            return {
                "shop": shop,
                "agent_enabled": bool(profile and profile.is_enabled),
                "is_setup_complete": bool(profile and profile.return_policy and profile.brand_voice),
                "stats": {
                    "total_revenue": round(total_revenue, 2),
                    "potential_revenue": round(potential_revenue, 2),
                    "total_interactions": total_interactions,
                    "conversions": conversions,
                    "conversion_rate": round(conversion_rate, 1),
                },
                "recent_interactions": [_interaction_row(i) for i in recent],
                "missed_opportunities": [
                    {
                        "search_term": m.search_term,
                        "count": m.count,
                        "last_seen": m.last_seen.isoformat() if m.last_seen else None,
                    }
                    for m in missed
                ],
            }
        finally:
            session.close()
