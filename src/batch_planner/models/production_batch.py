"""
ProductionBatch model for committed batches.

A suggested batch becomes a ProductionBatch once an operator commits it.
Tiers are linked through ProductionBatchTier; stock tasks point at the batch
directly.
"""

from decimal import Decimal

from sqlalchemy import (
    Column,
    DateTime,
    Enum as SQLEnum,
    Float,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .base import BaseModel
from .enums import BatchStatus


class ProductionBatch(BaseModel):
    """
    A committed production batch.

    Attributes:
        name: Operator-facing batch name
        batch_type: Stage code (BAKE, PREP, ...)
        recipe_name: Recipe produced by the batch
        scheduled_date: Production date (nullable until scheduled)
        status: Batch lifecycle status
        assigned_to: Worker name (nullable)
        notes: Free-form notes
        total_tiers, total_servings, total_surface_area, total_frosting_oz,
        total_stock_quantity_oz: Totals recalculated on membership changes
    """

    __tablename__ = "production_batches"

    name = Column(String(200), nullable=False)
    batch_type = Column(String(32), nullable=False, index=True)
    recipe_name = Column(String(200), nullable=True)
    scheduled_date = Column(DateTime, nullable=True)
    status = Column(SQLEnum(BatchStatus), nullable=False, default=BatchStatus.UNSCHEDULED)
    assigned_to = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)

    total_tiers = Column(Integer, nullable=False, default=0)
    total_servings = Column(Integer, nullable=False, default=0)
    total_surface_area = Column(Float, nullable=False, default=0.0)
    total_frosting_oz = Column(Float, nullable=False, default=0.0)
    total_stock_quantity_oz = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))

    tier_links = relationship(
        "ProductionBatchTier", back_populates="batch", cascade="all, delete-orphan"
    )
    stock_tasks = relationship("StockProductionTask", back_populates="production_batch")

    __table_args__ = (Index("idx_production_batch_scheduled", "scheduled_date"),)


class ProductionBatchTier(BaseModel):
    """Link between a committed batch and a cake tier."""

    __tablename__ = "production_batch_tiers"

    batch_id = Column(
        Integer, ForeignKey("production_batches.id", ondelete="CASCADE"), nullable=False, index=True
    )
    tier_id = Column(
        Integer, ForeignKey("cake_tiers.id", ondelete="CASCADE"), nullable=False, index=True
    )

    batch = relationship("ProductionBatch", back_populates="tier_links")
    tier = relationship("CakeTier", back_populates="batch_links")

    __table_args__ = (UniqueConstraint("batch_id", "tier_id", name="uq_production_batch_tier"),)
