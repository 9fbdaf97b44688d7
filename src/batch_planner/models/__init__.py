"""
Database models package.

This package contains all SQLAlchemy ORM models for the application.
"""

from .base import Base, BaseModel
from .enums import BatchStatus, OrderStatus, RecipeRole, StockTaskStatus
from .batch_type import BatchType
from .recipe import Recipe, TierSize
from .cake_order import CakeOrder, CakeTier
from .stock import InventoryItem, InventoryItemRecipe, StockProductionTask
from .production_batch import ProductionBatch, ProductionBatchTier

__all__ = [
    "Base",
    "BaseModel",
    # Enums
    "BatchStatus",
    "OrderStatus",
    "RecipeRole",
    "StockTaskStatus",
    # Configuration
    "BatchType",
    # Reference data
    "Recipe",
    "TierSize",
    # Demand sources
    "CakeOrder",
    "CakeTier",
    "InventoryItem",
    "InventoryItemRecipe",
    "StockProductionTask",
    # Committed batches
    "ProductionBatch",
    "ProductionBatchTier",
]
