"""
Stock production models.

Pre-made inventory items (cupcakes, cookies, jars of buttercream) are
restocked through StockProductionTask rows. Each item lists the recipes it
consumes and how much of each per unit.
"""

from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .base import BaseModel
from .enums import StockTaskStatus


class InventoryItem(BaseModel):
    """A stocked product made ahead of orders."""

    __tablename__ = "inventory_items"

    name = Column(String(200), nullable=False)
    product_type = Column(String(50), nullable=True)

    recipe_links = relationship(
        "InventoryItemRecipe", back_populates="inventory_item", cascade="all, delete-orphan"
    )


class InventoryItemRecipe(BaseModel):
    """
    Recipe consumed by an inventory item.

    Attributes:
        inventory_item_id: The stocked item
        recipe_id: The recipe consumed
        quantity_per_unit: Ounces of recipe per unit of the item
    """

    __tablename__ = "inventory_item_recipes"

    inventory_item_id = Column(
        Integer, ForeignKey("inventory_items.id", ondelete="CASCADE"), nullable=False, index=True
    )
    recipe_id = Column(Integer, ForeignKey("recipes.id"), nullable=False)
    quantity_per_unit = Column(Numeric(10, 4), nullable=False, default=Decimal("0.0000"))

    inventory_item = relationship("InventoryItem", back_populates="recipe_links")
    recipe = relationship("Recipe")

    __table_args__ = (
        UniqueConstraint("inventory_item_id", "recipe_id", name="uq_inventory_item_recipe"),
    )


class StockProductionTask(BaseModel):
    """
    Request to produce a quantity of an inventory item.

    Attributes:
        inventory_item_id: Item to produce
        target_quantity: Units to produce
        scheduled_date: When the stock is needed (nullable)
        status: Task lifecycle status
        assigned_to: Worker name (nullable)
        production_batch_id: Committed batch this task belongs to (nullable)
    """

    __tablename__ = "stock_production_tasks"

    inventory_item_id = Column(
        Integer, ForeignKey("inventory_items.id"), nullable=False, index=True
    )
    target_quantity = Column(Integer, nullable=False, default=0)
    scheduled_date = Column(DateTime, nullable=True)
    status = Column(SQLEnum(StockTaskStatus), nullable=False, default=StockTaskStatus.PENDING)
    assigned_to = Column(String(100), nullable=True)
    production_batch_id = Column(
        Integer, ForeignKey("production_batches.id", ondelete="SET NULL"), nullable=True, index=True
    )

    inventory_item = relationship("InventoryItem")
    production_batch = relationship("ProductionBatch", back_populates="stock_tasks")

    __table_args__ = (
        CheckConstraint("target_quantity >= 0", name="ck_stock_task_quantity_non_negative"),
    )
