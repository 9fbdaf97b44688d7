"""Pytest configuration and fixtures for batch planner tests."""

from datetime import date, datetime
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import scoped_session, sessionmaker
from sqlalchemy.pool import StaticPool

from batch_planner.models import (
    CakeOrder,
    CakeTier,
    InventoryItem,
    InventoryItemRecipe,
    OrderStatus,
    Recipe,
    RecipeRole,
    StockProductionTask,
    StockTaskStatus,
    TierSize,
)
from batch_planner.models.base import Base
from batch_planner.utils.config import reset_config


@pytest.fixture(autouse=True)
def clean_config(monkeypatch):
    """Isolate every test from environment overrides and the config singleton."""
    monkeypatch.delenv("BATCH_PLANNER_DEFAULT_LEAD_TIME", raising=False)
    monkeypatch.delenv("BATCH_PLANNER_DATABASE_URL", raising=False)
    monkeypatch.delenv("BATCH_PLANNER_ENV", raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture(scope="function")
def test_db():
    """Provide a clean test database for each test function.

    This fixture:
    1. Creates an in-memory SQLite database
    2. Creates all tables
    3. Swaps the module-level session factory for one bound to it
    4. Drops all tables after the test completes
    """
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)

    session_factory = sessionmaker(bind=engine, expire_on_commit=False)
    Session = scoped_session(session_factory)

    import batch_planner.services.database as db_module

    original_get_session_factory = db_module.get_session_factory
    db_module.get_session_factory = lambda: Session

    yield Session

    Session.remove()
    Base.metadata.drop_all(engine)
    db_module.get_session_factory = original_get_session_factory


class _FailingSession:
    """Session stand-in whose every query fails as a locked database would."""

    def query(self, *args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("database is locked"))


@pytest.fixture
def failing_session():
    """A session that raises OperationalError on any query."""
    return _FailingSession()


@pytest.fixture
def default_batch_types(test_db):
    """Seed BAKE, PREP, STACK, ASSEMBLE and DECORATE."""
    from batch_planner.services import batch_type_service

    batch_type_service.seed_default_batch_types()
    return batch_type_service.list_batch_types()


@pytest.fixture
def recipes(test_db):
    """Create batter, filling and frosting recipes keyed by name."""
    session = test_db()
    rows = {
        "Vanilla": Recipe(name="Vanilla", recipe_type=RecipeRole.BATTER),
        "Chocolate": Recipe(name="Chocolate", recipe_type=RecipeRole.BATTER),
        "Raspberry": Recipe(name="Raspberry", recipe_type=RecipeRole.FILLING),
        "Swiss Buttercream": Recipe(name="Swiss Buttercream", recipe_type=RecipeRole.FROSTING),
        "White Fondant": Recipe(name="White Fondant", recipe_type=RecipeRole.FROSTING),
    }
    session.add_all(rows.values())
    session.commit()
    return rows


@pytest.fixture
def tier_sizes(test_db):
    """Create 6, 8 and 10 inch tier sizes keyed by diameter."""
    session = test_db()
    rows = {
        6: TierSize(name="6 inch round", servings=12),
        8: TierSize(name="8 inch round", servings=24),
        10: TierSize(name="10 inch round", servings=38),
    }
    session.add_all(rows.values())
    session.commit()
    return rows


@pytest.fixture
def make_order(test_db, recipes, tier_sizes):
    """Factory creating an order with one tier per entry in ``tiers``.

    Each tier is a dict with optional keys size (6/8/10), batter, filling,
    frosting (recipe names) and complexity.
    """

    def _make(
        event_date,
        tiers,
        *,
        customer_name="Alice",
        status=OrderStatus.CONFIRMED,
        is_rush=False,
        rush_skip_stages=None,
        pickup_time=None,
    ):
        session = test_db()
        order = CakeOrder(
            customer_name=customer_name,
            status=status,
            event_date=event_date,
            pickup_time=pickup_time,
            is_rush=is_rush,
            rush_skip_stages=rush_skip_stages,
        )
        for index, tier_data in enumerate(tiers, start=1):
            order.tiers.append(
                CakeTier(
                    tier_index=index,
                    tier_size=tier_sizes[tier_data.get("size", 8)],
                    batter_recipe=recipes.get(tier_data.get("batter")),
                    filling_recipe=recipes.get(tier_data.get("filling")),
                    frosting_recipe=recipes.get(tier_data.get("frosting")),
                    frosting_complexity=tier_data.get("complexity"),
                )
            )
        session.add(order)
        session.commit()
        return order

    return _make


@pytest.fixture
def cupcake_task(test_db, recipes):
    """A pending task for 24 cupcakes using Vanilla batter and buttercream."""
    session = test_db()
    item = InventoryItem(name="Vanilla Cupcake", product_type="cupcake")
    item.recipe_links.append(
        InventoryItemRecipe(recipe=recipes["Vanilla"], quantity_per_unit=Decimal("1.5"))
    )
    item.recipe_links.append(
        InventoryItemRecipe(recipe=recipes["Swiss Buttercream"], quantity_per_unit=Decimal("0.75"))
    )
    task = StockProductionTask(
        inventory_item=item,
        target_quantity=24,
        scheduled_date=datetime(2025, 7, 2, 9, 0),
        status=StockTaskStatus.PENDING,
    )
    session.add(task)
    session.commit()
    return task


@pytest.fixture
def july_dates():
    """Event dates used across scheduling tests."""
    return {"first": date(2025, 7, 1), "third": date(2025, 7, 3)}
