"""
Database models shared by the MCP endpoint, webhooks and merchant dashboard.
Sessions are written by the Shopify auth layer; everything else is owned here.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    create_engine,
    Column,
    String,
    Integer,
    Float,
    DateTime,
    Boolean,
    Text,
    ForeignKey,
    Index,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker
from sqlalchemy.pool import StaticPool

Base = declarative_base()


def _new_id() -> str:
    return str(uuid.uuid4())


class Session(Base):
    """Shopify OAuth session for an installed shop."""
    __tablename__ = "sessions"

    id = Column(String(255), primary_key=True)
    shop = Column(String(255), nullable=False)
    access_token = Column(String(255), nullable=False)
    scope = Column(Text, nullable=True)
    is_online = Column(Boolean, default=False, nullable=False)
    expires = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index("idx_session_shop", "shop"),
    )


class MerchantProfile(Base):
    """Per-shop agent configuration edited from the settings page."""
    __tablename__ = "merchant_profiles"

    id = Column(String(36), primary_key=True, default=_new_id)
    shop = Column(String(255), unique=True, nullable=False)

    brand_voice = Column(String(255), default="friendly and professional", nullable=False)
    return_policy = Column(Text, nullable=True)
    shipping_info = Column(Text, nullable=True)
    min_free_shipping = Column(Float, default=0.0, nullable=False)
    custom_prompt = Column(Text, nullable=True)
    storefront_access_token = Column(String(255), nullable=True)
    is_enabled = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    interactions = relationship(
        "AgentInteraction",
        back_populates="merchant",
        cascade="all, delete-orphan",
    )


class AgentInteraction(Base):
    """One tool invocation by an AI agent, possibly attributed to an order later."""
    __tablename__ = "agent_interactions"

    id = Column(String(36), primary_key=True, default=_new_id)
    merchant_id = Column(
        String(36), ForeignKey("merchant_profiles.id", ondelete="CASCADE"), nullable=False
    )

    user_intent = Column(String(100), nullable=False)  # tool name
    input_query = Column(Text, nullable=True)
    user_agent = Column(Text, nullable=True)
    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Checkout details, filled in after the cart exists
    checkout_id = Column(String(255), nullable=True)
    checkout_url = Column(Text, nullable=True)
    potential_value = Column(Float, nullable=True)

    # Conversion tracking, filled in by the orders/create webhook
    converted = Column(Boolean, default=False, nullable=False)
    order_id = Column(String(255), nullable=True)
    order_value = Column(Float, nullable=True)

    merchant = relationship("MerchantProfile", back_populates="interactions")

    __table_args__ = (
        Index("idx_interaction_merchant_id", "merchant_id"),
        Index("idx_interaction_timestamp", "timestamp"),
        Index("idx_interaction_converted", "converted"),
    )


class MissedOpportunity(Base):
    """Search term that returned no products, counted per shop."""
    __tablename__ = "missed_opportunities"

    id = Column(Integer, primary_key=True, autoincrement=True)
    shop = Column(String(255), nullable=False)
    search_term = Column(String(500), nullable=False)
    count = Column(Integer, default=1, nullable=False)
    first_seen = Column(DateTime, default=datetime.utcnow, nullable=False)
    last_seen = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("shop", "search_term", name="uq_missed_shop_search_term"),
        Index("idx_missed_shop_count", "shop", "count"),
    )


class DatabaseManager:
    """Manages database connections and sessions."""

    def __init__(self, database_url: str, echo: bool = False):
        """
        Initialize database manager.

        Args:
            database_url: SQLAlchemy database URL.
            echo: Log SQL statements.
        """
        engine_kwargs = {"echo": echo}
        if database_url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if ":memory:" in database_url or database_url in ("sqlite://", "sqlite:///"):
                # Single shared connection so every session sees the same in-memory DB
                engine_kwargs["poolclass"] = StaticPool
        else:
            engine_kwargs["pool_pre_ping"] = True  # Verify connections before using

        self.engine = create_engine(database_url, **engine_kwargs)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    @property
    def dialect(self) -> str:
        return self.engine.dialect.name

    def create_tables(self):
        """Create all database tables."""
        Base.metadata.create_all(bind=self.engine)

    def get_session(self):
        """Get a new database session."""
        return self.SessionLocal()

    def dispose(self):
        self.engine.dispose()


def find_session(db, shop: str) -> Optional[Session]:
    """Return the stored Shopify session for a shop domain, if any."""
    return db.query(Session).filter_by(shop=shop).first()


def find_profile(db, shop: str) -> Optional[MerchantProfile]:
    return db.query(MerchantProfile).filter_by(shop=shop).first()
