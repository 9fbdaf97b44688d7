"""Builders for in-memory scheduling tests (no database)."""

from datetime import datetime

import pytest

from batch_planner.services.scheduling.demand import StockDemand, StockRecipeLink, TierDemand
from batch_planner.services.scheduling.registry import registry_from_dicts
from batch_planner.utils.constants import DEFAULT_BATCH_TYPES


@pytest.fixture
def registry():
    """Registry of the default BAKE/PREP/STACK/ASSEMBLE/DECORATE stages."""
    return registry_from_dicts(DEFAULT_BATCH_TYPES)


@pytest.fixture
def make_tier():
    """Factory for TierDemand with sensible defaults."""

    def _make(tier_id, *, order_id=1, due=datetime(2025, 7, 1, 10, 0), **kwargs):
        kwargs.setdefault("size_name", "8 inch round")
        kwargs.setdefault("servings", 24)
        kwargs.setdefault("customer_name", "Alice")
        return TierDemand.from_size(tier_id=tier_id, order_id=order_id, due=due, **kwargs)

    return _make


@pytest.fixture
def make_stock():
    """Factory for StockDemand; recipes are (name, category, qty_per_unit) tuples."""

    def _make(stock_task_id, recipes, *, target_quantity=24, scheduled_date=None, **kwargs):
        return StockDemand(
            stock_task_id=stock_task_id,
            inventory_item_id=kwargs.pop("inventory_item_id", 100 + stock_task_id),
            item_name=kwargs.pop("item_name", "Vanilla Cupcake"),
            target_quantity=target_quantity,
            scheduled_date=scheduled_date,
            recipes=tuple(StockRecipeLink(*recipe) for recipe in recipes),
            **kwargs,
        )

    return _make
