"""
CakeOrder and CakeTier models.

A confirmed cake order contributes one demand unit per tier to batch
planning. Rush orders may list stages they are allowed to skip.
"""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from .base import BaseModel
from .enums import OrderStatus


class CakeOrder(BaseModel):
    """
    A customer cake order.

    Attributes:
        customer_name: Customer display name
        status: Order lifecycle status
        event_date: Date the cake is due
        is_delivery: Delivery (True) or pickup (False)
        pickup_time: Pickup time on the event date (pickup orders)
        delivery_time: Delivery time on the event date (delivery orders)
        is_rush: Rush orders may skip stages listed in rush_skip_stages
        rush_skip_stages: JSON-encoded list of stage codes (nullable)
        occasion: Free-form occasion
        theme: Free-form theme
        tiers: Tiers of this order, ordered by tier_index
    """

    __tablename__ = "cake_orders"

    customer_name = Column(String(200), nullable=True)
    status = Column(SQLEnum(OrderStatus), nullable=False, default=OrderStatus.QUOTE)
    event_date = Column(Date, nullable=False)
    is_delivery = Column(Boolean, nullable=False, default=False)
    pickup_time = Column(DateTime, nullable=True)
    delivery_time = Column(DateTime, nullable=True)
    is_rush = Column(Boolean, nullable=False, default=False)
    rush_skip_stages = Column(Text, nullable=True)
    occasion = Column(String(200), nullable=True)
    theme = Column(String(200), nullable=True)

    tiers = relationship(
        "CakeTier",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="CakeTier.tier_index",
    )

    __table_args__ = (
        Index("idx_cake_order_status", "status"),
        Index("idx_cake_order_event_date", "event_date"),
    )

    @property
    def due_time(self):
        """Pickup or delivery time, whichever applies to this order."""
        return self.delivery_time if self.is_delivery else self.pickup_time


class CakeTier(BaseModel):
    """
    One tier of a cake order.

    Attributes:
        order_id: Owning order (CASCADE delete)
        tier_index: Position from the bottom (1-based)
        tier_size_id: Size of the tier
        batter_recipe_id: Batter recipe (BAKE)
        filling_recipe_id: Filling recipe (PREP)
        frosting_recipe_id: Frosting recipe (PREP, preferred over filling)
        finish_type: How the frosting is applied (e.g. "Buttercream - Textured")
        frosting_complexity: 1=light, 2=medium, 3=heavy
    """

    __tablename__ = "cake_tiers"

    order_id = Column(
        Integer, ForeignKey("cake_orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    tier_index = Column(Integer, nullable=False, default=1)
    tier_size_id = Column(Integer, ForeignKey("tier_sizes.id"), nullable=True)
    batter_recipe_id = Column(Integer, ForeignKey("recipes.id"), nullable=True)
    filling_recipe_id = Column(Integer, ForeignKey("recipes.id"), nullable=True)
    frosting_recipe_id = Column(Integer, ForeignKey("recipes.id"), nullable=True)
    finish_type = Column(String(100), nullable=True)
    frosting_complexity = Column(Integer, nullable=True)

    order = relationship("CakeOrder", back_populates="tiers")
    tier_size = relationship("TierSize")
    batter_recipe = relationship("Recipe", foreign_keys=[batter_recipe_id])
    filling_recipe = relationship("Recipe", foreign_keys=[filling_recipe_id])
    frosting_recipe = relationship("Recipe", foreign_keys=[frosting_recipe_id])
    batch_links = relationship(
        "ProductionBatchTier", back_populates="tier", cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint(
            "frosting_complexity IS NULL OR frosting_complexity BETWEEN 1 AND 3",
            name="ck_cake_tier_complexity_range",
        ),
    )
