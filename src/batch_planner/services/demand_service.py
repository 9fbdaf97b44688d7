"""Demand collection for batch planning.

Reads the planning inputs from the database and converts them into the
immutable snapshots the scheduling engine works on:
- Tiers of confirmed / in-progress orders -> TierDemand
- Rush orders' skip lists (raw, parsed leniently by the aggregator)
- Pending / in-progress stock tasks not yet in a batch -> StockDemand
- Committed production batches -> CommittedBatch

Any database failure while fetching is raised as DemandFetchError naming the
fetch that failed. Everything else (missing recipes, bad JSON) is left for
the engine to absorb.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, contains_eager, joinedload, selectinload

from batch_planner.models import (
    CakeOrder,
    CakeTier,
    InventoryItem,
    InventoryItemRecipe,
    OrderStatus,
    ProductionBatch,
    ProductionBatchTier,
    StockProductionTask,
    StockTaskStatus,
)
from batch_planner.services.batch_type_service import load_registry
from batch_planner.services.exceptions import DemandFetchError
from batch_planner.services.logging_utils import get_service_logger
from batch_planner.services.scheduling.aggregation import earlier
from batch_planner.services.scheduling.demand import (
    DemandUnit,
    StockDemand,
    StockRecipeLink,
    TierDemand,
    to_decimal,
)
from batch_planner.services.scheduling.reconciliation import CommittedBatch
from batch_planner.services.scheduling.registry import BatchTypeRegistry
from batch_planner.utils.constants import ORDER_STATUSES_IN_SCOPE, STOCK_TASK_STATUSES_IN_SCOPE
from batch_planner.utils.datetime_utils import combine_due, to_naive_utc

logger = get_service_logger(__name__)

_ORDER_STATUSES = [OrderStatus(value) for value in ORDER_STATUSES_IN_SCOPE]
_STOCK_STATUSES = [StockTaskStatus(value) for value in STOCK_TASK_STATUSES_IN_SCOPE]


def _recipe_name(recipe) -> Optional[str]:
    return recipe.name if recipe is not None else None


def tier_demand_from_model(tier: CakeTier) -> TierDemand:
    """Snapshot a CakeTier (with its order loaded) as a TierDemand."""
    order = tier.order
    size = tier.tier_size
    assigned = frozenset(
        link.batch.batch_type for link in tier.batch_links if link.batch is not None
    )
    return TierDemand.from_size(
        size_name=size.name if size is not None else None,
        complexity=tier.frosting_complexity,
        tier_id=tier.id,
        order_id=order.id,
        customer_name=order.customer_name or "Unknown",
        due=combine_due(order.event_date, order.due_time),
        is_delivery=bool(order.is_delivery),
        servings=size.servings if size is not None else 0,
        batter_recipe=_recipe_name(tier.batter_recipe),
        filling_recipe=_recipe_name(tier.filling_recipe),
        frosting_recipe=_recipe_name(tier.frosting_recipe),
        assigned_stages=assigned,
        tier_index=tier.tier_index,
        finish_type=tier.finish_type,
        occasion=order.occasion,
        theme=order.theme,
    )


def fetch_tier_demands(session: Session) -> List[TierDemand]:
    """Tiers of orders in planning scope, by event date then tier index.

    Raises:
        DemandFetchError: source "orders" when the query fails
    """
    try:
        tiers = (
            session.query(CakeTier)
            .join(CakeTier.order)
            .filter(CakeOrder.status.in_(_ORDER_STATUSES))
            .options(
                contains_eager(CakeTier.order),
                joinedload(CakeTier.tier_size),
                joinedload(CakeTier.batter_recipe),
                joinedload(CakeTier.filling_recipe),
                joinedload(CakeTier.frosting_recipe),
                selectinload(CakeTier.batch_links).joinedload(ProductionBatchTier.batch),
            )
            .order_by(CakeOrder.event_date, CakeOrder.id, CakeTier.tier_index, CakeTier.id)
            .all()
        )
        return [tier_demand_from_model(tier) for tier in tiers]
    except SQLAlchemyError as e:
        logger.error(f"Failed to fetch order tiers: {e}")
        raise DemandFetchError("orders", e) from e


def fetch_rush_skips(session: Session) -> Dict[int, Any]:
    """Raw rush-skip stage lists keyed by order ID, for rush orders in scope.

    Raises:
        DemandFetchError: source "orders" when the query fails
    """
    try:
        rows = (
            session.query(CakeOrder.id, CakeOrder.rush_skip_stages)
            .filter(CakeOrder.status.in_(_ORDER_STATUSES), CakeOrder.is_rush.is_(True))
            .order_by(CakeOrder.id)
            .all()
        )
        return {order_id: raw for order_id, raw in rows if raw}
    except SQLAlchemyError as e:
        logger.error(f"Failed to fetch rush orders: {e}")
        raise DemandFetchError("orders", e) from e


def stock_demand_from_model(task: StockProductionTask) -> StockDemand:
    """Snapshot a StockProductionTask (with item and recipes loaded)."""
    item = task.inventory_item
    links = []
    for link in item.recipe_links:
        recipe = link.recipe
        if recipe is None:
            continue
        links.append(
            StockRecipeLink(
                recipe_name=recipe.name,
                recipe_category=recipe.recipe_type.value if recipe.recipe_type else None,
                quantity_per_unit=to_decimal(link.quantity_per_unit),
            )
        )
    return StockDemand(
        stock_task_id=task.id,
        inventory_item_id=item.id,
        item_name=item.name,
        target_quantity=task.target_quantity or 0,
        scheduled_date=to_naive_utc(task.scheduled_date),
        status=task.status.value,
        assigned_to=task.assigned_to,
        recipes=tuple(links),
    )


def fetch_stock_demands(session: Session) -> List[StockDemand]:
    """Pending / in-progress stock tasks not yet assigned to a batch.

    Raises:
        DemandFetchError: source "stock_tasks" when the query fails
    """
    try:
        tasks = (
            session.query(StockProductionTask)
            .filter(
                StockProductionTask.status.in_(_STOCK_STATUSES),
                StockProductionTask.production_batch_id.is_(None),
            )
            .options(
                joinedload(StockProductionTask.inventory_item)
                .selectinload(InventoryItem.recipe_links)
                .joinedload(InventoryItemRecipe.recipe)
            )
            .order_by(StockProductionTask.scheduled_date, StockProductionTask.id)
            .all()
        )
        return [stock_demand_from_model(task) for task in tasks if task.inventory_item is not None]
    except SQLAlchemyError as e:
        logger.error(f"Failed to fetch stock tasks: {e}")
        raise DemandFetchError("stock_tasks", e) from e


def committed_batch_from_model(batch: ProductionBatch) -> CommittedBatch:
    """Snapshot a ProductionBatch with its linked tiers and stock tasks."""
    tier_ids = []
    earliest = None
    for link in sorted(batch.tier_links, key=lambda l: l.tier_id):
        tier_ids.append(link.tier_id)
        order = link.tier.order if link.tier is not None else None
        if order is not None:
            earliest = earlier(earliest, combine_due(order.event_date, order.due_time))

    stock_task_ids = []
    for task in sorted(batch.stock_tasks, key=lambda t: t.id):
        stock_task_ids.append(task.id)
        earliest = earlier(earliest, task.scheduled_date)

    return CommittedBatch(
        id=batch.id,
        name=batch.name,
        stage_code=batch.batch_type,
        recipe_name=batch.recipe_name,
        scheduled_date=to_naive_utc(batch.scheduled_date),
        status=batch.status,
        assigned_to=batch.assigned_to,
        notes=batch.notes,
        tier_ids=tuple(tier_ids),
        stock_task_ids=tuple(stock_task_ids),
        total_tiers=batch.total_tiers or 0,
        total_servings=batch.total_servings or 0,
        total_surface_area_sq_in=batch.total_surface_area or 0.0,
        total_frosting_oz=batch.total_frosting_oz or 0.0,
        total_stock_quantity_oz=to_decimal(batch.total_stock_quantity_oz),
        earliest_due_date=earliest,
    )


def fetch_committed_batches(session: Session) -> List[CommittedBatch]:
    """All committed production batches, by scheduled date then stage.

    Raises:
        DemandFetchError: source "committed_batches" when the query fails
    """
    try:
        batches = (
            session.query(ProductionBatch)
            .options(
                selectinload(ProductionBatch.tier_links)
                .joinedload(ProductionBatchTier.tier)
                .joinedload(CakeTier.order),
                selectinload(ProductionBatch.stock_tasks),
            )
            .order_by(ProductionBatch.scheduled_date, ProductionBatch.batch_type, ProductionBatch.id)
            .all()
        )
        return [committed_batch_from_model(batch) for batch in batches]
    except SQLAlchemyError as e:
        logger.error(f"Failed to fetch committed batches: {e}")
        raise DemandFetchError("committed_batches", e) from e


@dataclass
class PlanningSnapshot:
    """Every input of one planning pass, read in one session."""

    registry: BatchTypeRegistry
    tier_demands: List[TierDemand] = field(default_factory=list)
    stock_demands: List[StockDemand] = field(default_factory=list)
    rush_skips: Dict[int, Any] = field(default_factory=dict)
    committed_batches: List[CommittedBatch] = field(default_factory=list)

    @property
    def demand_units(self) -> List[DemandUnit]:
        return list(self.tier_demands) + list(self.stock_demands)


def load_planning_snapshot(session: Session) -> PlanningSnapshot:
    """Read all planning inputs within the caller's session.

    Transaction boundary: Inherits session from caller (required parameter).

    Raises:
        DemandFetchError: When any of the underlying fetches fails
    """
    return PlanningSnapshot(
        registry=load_registry(session),
        tier_demands=fetch_tier_demands(session),
        stock_demands=fetch_stock_demands(session),
        rush_skips=fetch_rush_skips(session),
        committed_batches=fetch_committed_batches(session),
    )
