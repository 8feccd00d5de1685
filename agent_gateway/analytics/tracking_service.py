"""
Interaction tracking for agent tool calls.
Records every tool invocation, counts zero-result searches and attributes orders.
"""

import uuid
from datetime import datetime
from typing import Optional
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..database import (
    DatabaseManager,
    Session as ShopSession,
    MerchantProfile,
    AgentInteraction,
    MissedOpportunity,
)
from ..errors import PersistenceError, InteractionNotFound
from ..tools.models import CheckoutResult

logger = logging.getLogger(__name__)


def _upsert_statement(dialect: str):
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise PersistenceError(f"Missed-opportunity upsert is not supported on {dialect}")
    return insert(MissedOpportunity)


class InteractionRecorder:
    """Persists agent interactions and missed opportunities."""

    def __init__(self, db_manager: DatabaseManager):
        self.db_manager = db_manager

    def get_session(self) -> Session:
        """Get database session."""
        return self.db_manager.get_session()

    # =========================================================================
    # Interactions
    # =========================================================================

    def record(
        self,
        merchant_id: str,
        intent: str,
        query: Optional[str] = None,
        checkout_id: Optional[str] = None,
        checkout_url: Optional[str] = None,
        potential_value: Optional[float] = None,
        user_agent: Optional[str] = None,
    ) -> str:
        """
        Record one tool invocation.

        Args:
            merchant_id: MerchantProfile id
            intent: Tool name
            query: Free-text input of the call
            checkout_id: Cart id, when already known
            checkout_url: Checkout URL, when already known
            potential_value: Cart total, when already known
            user_agent: Caller's User-Agent header

        Returns:
            The new interaction id

        Raises:
            PersistenceError: If the row could not be written
        """
        session = self.get_session()
        try:
            interaction_id = str(uuid.uuid4())
            interaction = AgentInteraction(
                id=interaction_id,
                merchant_id=merchant_id,
                user_intent=intent,
                input_query=query,
                checkout_id=checkout_id,
                checkout_url=checkout_url,
                potential_value=potential_value,
                user_agent=user_agent,
                timestamp=datetime.utcnow(),
            )
            session.add(interaction)
            session.commit()
            logger.debug(f"Recorded {intent} interaction {interaction_id} for merchant {merchant_id}")
            return interaction_id
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Error recording {intent} interaction: {e}")
            raise PersistenceError(f"Failed to record interaction: {e}") from e
        finally:
            session.close()

    def update_checkout(self, interaction_id: str, checkout: CheckoutResult):
        """Second phase of a checkout write: attach the created cart to its interaction."""
        session = self.get_session()
        try:
            interaction = session.get(AgentInteraction, interaction_id)
            if interaction is None:
                raise InteractionNotFound(interaction_id)

            interaction.checkout_id = checkout.checkout_id
            interaction.checkout_url = checkout.checkout_url
            try:
                interaction.potential_value = float(checkout.total_price)
            except ValueError:
                interaction.potential_value = None
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Error updating checkout on interaction {interaction_id}: {e}")
            raise PersistenceError(f"Failed to update interaction: {e}") from e
        finally:
            session.close()

    def attribute_conversion(self, shop: str, interaction_id: str, order_id: str, order_value: float):
        """
        Mark an interaction as converted into an order placed on shop.

        Raises:
            InteractionNotFound: If no interaction of this shop has this id
            PersistenceError: If the update could not be written
        """
        session = self.get_session()
        try:
            # Cart attributes are buyer-editable; the interaction must belong to the ordering shop
            interaction = session.query(AgentInteraction).join(
                MerchantProfile, AgentInteraction.merchant_id == MerchantProfile.id
            ).filter(
                AgentInteraction.id == interaction_id,
                MerchantProfile.shop == shop,
            ).first()
            if interaction is None:
                logger.warning(f"Order {order_id} on {shop} names interaction {interaction_id} of another or no shop")
                raise InteractionNotFound(interaction_id)

            interaction.converted = True
            interaction.order_id = order_id
            interaction.order_value = order_value
            session.commit()
            logger.info(f"Attributed order {order_id} ({order_value}) to interaction {interaction_id}")
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Error attributing order {order_id}: {e}")
            raise PersistenceError(f"Failed to attribute conversion: {e}") from e
        finally:
            session.close()

    # =========================================================================
    # Missed opportunities
    # =========================================================================

    def mark_missed(self, shop: str, search_term: str):
        """
        Count a zero-result search for (shop, search_term).

        A single INSERT ... ON CONFLICT DO UPDATE, so concurrent identical
        searches never lose an increment.
        """
        now = datetime.utcnow()
        stmt = _upsert_statement(self.db_manager.dialect).values(
            shop=shop,
            search_term=search_term,
            count=1,
            first_seen=now,
            last_seen=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[MissedOpportunity.shop, MissedOpportunity.search_term],
            set_={
                "count": MissedOpportunity.count + 1,
                "last_seen": now,
            },
        )

        session = self.get_session()
        try:
            session.execute(stmt)
            session.commit()
            logger.info(f"Missed opportunity on {shop}: '{search_term}'")
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Error tracking missed opportunity for {shop}: {e}")
            raise PersistenceError(f"Failed to track missed opportunity: {e}") from e
        finally:
            session.close()

    # =========================================================================
    # Tenant cleanup
    # =========================================================================

    def cleanup_shop(self, shop: str) -> dict:
        """
        Delete everything stored for an uninstalled shop.

        Returns:
            Count of deleted rows per table
        """
        session = self.get_session()
        try:
            profiles = session.query(MerchantProfile).filter_by(shop=shop).all()
            for profile in profiles:
                # ORM delete cascades to the profile's interactions
                session.delete(profile)

            sessions_deleted = session.query(ShopSession).filter_by(shop=shop).delete(synchronize_session=False)
            missed_deleted = session.query(MissedOpportunity).filter_by(shop=shop).delete(synchronize_session=False)
            session.commit()

            deleted = {
                "profiles": len(profiles),
                "sessions": sessions_deleted,
                "missed_opportunities": missed_deleted,
            }
            logger.info(f"Cleanup complete for {shop}: {deleted}")
            return deleted
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Error cleaning up {shop}: {e}")
            raise PersistenceError(f"Failed to clean up shop data: {e}") from e
        finally:
            session.close()
