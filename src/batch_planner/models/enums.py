"""
Enumerations for production planning.

This module contains enums used across order, stock and batch models:
- OrderStatus: Lifecycle of a cake order
- StockTaskStatus: Lifecycle of a stock production task
- BatchStatus: Lifecycle of a production batch
- RecipeRole: Which part of a cake a recipe produces
"""

from enum import Enum


class OrderStatus(str, Enum):
    """
    Cake order lifecycle status.

    Only CONFIRMED and IN_PROGRESS orders feed batch planning.
    """

    QUOTE = "quote"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class StockTaskStatus(str, Enum):
    """Stock production task status."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class BatchStatus(str, Enum):
    """
    Production batch status.

    Suggested batches are always UNSCHEDULED; only a committed
    ProductionBatch moves through the other states.

    Values:
        UNSCHEDULED: No production date yet
        SCHEDULED: Committed with a production date
        IN_PROGRESS: Work has started
        COMPLETED: Batch produced
    """

    UNSCHEDULED = "unscheduled"
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class RecipeRole(str, Enum):
    """
    Role a recipe plays in a cake.

    Values:
        BATTER: Baked into layers (BAKE stage)
        FILLING: Spread between layers (PREP stage)
        FROSTING: Outside coat (PREP stage)
        FINISH: Finishing material such as glaze (PREP stage)
    """

    BATTER = "batter"
    FILLING = "filling"
    FROSTING = "frosting"
    FINISH = "finish"

    @classmethod
    def from_category(cls, category) -> "RecipeRole":
        """Map a free-form recipe category to a role, defaulting to FROSTING."""
        if isinstance(category, cls):
            return category
        normalized = (category or "").strip().lower()
        for role in cls:
            if role.value == normalized:
                return role
        return cls.FROSTING
