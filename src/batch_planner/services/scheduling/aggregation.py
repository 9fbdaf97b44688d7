"""
Batch key aggregation for production planning.

This module provides functions for:
- Grouping cake tiers and stock tasks into suggested batches keyed by
  (stage code, recipe name)
- Accumulating batch totals (tiers, servings, surface area, frosting,
  stock recipe mass) and the earliest due date
- Applying rush-order stage skips and existing batch assignments
- Restricting a suggested batch to a subset of its demand (reconciliation)

Everything here is a pure function of its inputs: the accumulator map is
local to one call and the result is a freshly sorted list.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Mapping, Optional, Set

from batch_planner.models.enums import BatchStatus, RecipeRole
from batch_planner.services.logging_utils import get_service_logger, log_operation
from batch_planner.services.scheduling.demand import (
    DemandKey,
    DemandUnit,
    STOCK_KEY,
    StockDemand,
    TierDemand,
    clean_recipe_name,
)
from batch_planner.services.scheduling.registry import BatchTypeRegistry, parse_stage_list
from batch_planner.utils.datetime_utils import to_iso_date, to_iso_datetime, to_naive_utc

logger = get_service_logger(__name__)


@dataclass(frozen=True)
class StockItem:
    """A stock task's contribution to one batch.

    Attributes:
        stock_task_id: StockProductionTask ID
        inventory_item_id: Item being restocked
        item_name: Item display name
        quantity: Units to produce
        recipe_quantity_oz: Recipe mass this task needs from the batch
        scheduled_date: When the stock is needed (optional)
        status: Task status value
    """

    stock_task_id: int
    inventory_item_id: int
    item_name: str
    quantity: int
    recipe_quantity_oz: Decimal
    scheduled_date: Optional[datetime] = None
    status: str = "pending"

    @property
    def key(self) -> DemandKey:
        return (STOCK_KEY, self.stock_task_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stock_task_id": self.stock_task_id,
            "inventory_item_id": self.inventory_item_id,
            "item_name": self.item_name,
            "quantity": self.quantity,
            "recipe_quantity_oz": float(self.recipe_quantity_oz),
            "scheduled_date": to_iso_date(self.scheduled_date),
            "status": self.status,
        }


@dataclass
class AggregatedBatch:
    """A suggested batch: demand sharing one stage and one recipe.

    Suggested batches have no identity beyond their key and are recomputed
    on every pass. They are always UNSCHEDULED with no scheduled date; only
    committing them (production_batch_service) gives them a date.

    Attributes:
        batch_id: "{stage_code}-{recipe_name}"
        stage_code: Production stage
        recipe_name: Recipe produced
        recipe_role: Role of the recipe, set by the first contributing unit
        tiers: Contained tier demands
        stock_items: Contained stock contributions
        earliest_due_date: Earliest due moment across contained demand
    """

    batch_id: str
    stage_code: str
    recipe_name: str
    recipe_role: RecipeRole
    tiers: List[TierDemand] = field(default_factory=list)
    stock_items: List[StockItem] = field(default_factory=list)
    total_tiers: int = 0
    total_servings: int = 0
    total_surface_area_sq_in: float = 0.0
    total_frosting_oz: float = 0.0
    total_stock_quantity_oz: Decimal = Decimal("0")
    earliest_due_date: Optional[datetime] = None
    assigned_to: Optional[str] = None
    status: BatchStatus = BatchStatus.UNSCHEDULED
    scheduled_date: Optional[date] = None

    is_committed = False

    @property
    def is_empty(self) -> bool:
        return not self.tiers and not self.stock_items

    def demand_keys(self) -> FrozenSet[DemandKey]:
        keys = {tier.key for tier in self.tiers}
        keys.update(item.key for item in self.stock_items)
        return frozenset(keys)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.batch_id,
            "stage_code": self.stage_code,
            "recipe": self.recipe_name,
            "recipe_type": self.recipe_role.value,
            "scheduled_date": to_iso_date(self.scheduled_date),
            "tiers": [tier.to_dict() for tier in self.tiers],
            "stock_items": [item.to_dict() for item in self.stock_items],
            "total_tiers": self.total_tiers,
            "total_servings": self.total_servings,
            "total_surface_area_sq_in": self.total_surface_area_sq_in,
            "total_frosting_oz": round(self.total_frosting_oz, 1),
            "total_stock_quantity_oz": float(round(self.total_stock_quantity_oz, 2)),
            "earliest_due_date": to_iso_datetime(self.earliest_due_date),
            "assigned_to": self.assigned_to,
            "status": self.status.value,
            "committed": False,
        }


def batch_key(stage_code: str, recipe_name: str) -> str:
    """Key shared by all demand for one stage and recipe.

    Example:
        >>> batch_key("BAKE", "Vanilla")
        'BAKE-Vanilla'
    """
    return f"{stage_code}-{recipe_name}"


def earlier(current: Optional[datetime], candidate: Optional[datetime]) -> Optional[datetime]:
    """Chronological minimum of two optional datetimes; None never wins."""
    candidate = to_naive_utc(candidate)
    if candidate is None:
        return current
    if current is None or candidate < current:
        return candidate
    return current


def _new_batch(stage_code: str, recipe_name: str, role: RecipeRole) -> AggregatedBatch:
    return AggregatedBatch(
        batch_id=batch_key(stage_code, recipe_name),
        stage_code=stage_code,
        recipe_name=recipe_name,
        recipe_role=role,
    )


def _add_tier(batch: AggregatedBatch, tier: TierDemand) -> None:
    batch.tiers.append(tier)
    batch.total_tiers += 1
    batch.total_servings += tier.servings
    batch.total_surface_area_sq_in += tier.surface_area_sq_in
    batch.total_frosting_oz += tier.frosting_oz
    batch.earliest_due_date = earlier(batch.earliest_due_date, tier.due)


def _add_stock(batch: AggregatedBatch, item: StockItem) -> None:
    batch.stock_items.append(item)
    batch.total_stock_quantity_oz += item.recipe_quantity_oz
    batch.earliest_due_date = earlier(batch.earliest_due_date, item.scheduled_date)


def normalize_rush_skips(rush_skip: Optional[Mapping[int, Any]]) -> Dict[int, Set[str]]:
    """Normalize order_id -> skip list, parsing JSON values leniently.

    Malformed JSON for an order means that order skips nothing.
    """
    normalized: Dict[int, Set[str]] = {}
    for order_id, raw in (rush_skip or {}).items():
        codes = parse_stage_list(raw, field_name="rush_skip_stages", owner=order_id)
        if codes:
            normalized[order_id] = set(codes)
    return normalized


def _tier_contributions(
    tier: TierDemand,
    registry: BatchTypeRegistry,
    skips: Mapping[int, Set[str]],
    stage_filter: Optional[str],
):
    order_skips = skips.get(tier.order_id, set())
    for stage_code, recipe_name, role in tier.stage_recipes():
        if stage_filter and stage_code != stage_filter:
            continue
        if not registry.is_groupable(stage_code):
            continue
        if stage_code in tier.assigned_stages:
            log_operation(
                logger, "aggregate", "tier_already_assigned", level=logging.DEBUG,
                tier_id=tier.tier_id, stage_code=stage_code,
            )
            continue
        if stage_code in order_skips:
            log_operation(
                logger, "aggregate", "rush_skip", level=logging.DEBUG,
                tier_id=tier.tier_id, order_id=tier.order_id, stage_code=stage_code,
            )
            continue
        yield stage_code, recipe_name, role


def _stock_contributions(
    demand: StockDemand,
    registry: BatchTypeRegistry,
    stage_filter: Optional[str],
):
    for link in demand.recipes:
        recipe_name = clean_recipe_name(link.recipe_name)
        if recipe_name is None:
            continue
        stage_code = link.stage_code
        if stage_filter and stage_code != stage_filter:
            continue
        if not registry.is_groupable(stage_code):
            continue
        item = StockItem(
            stock_task_id=demand.stock_task_id,
            inventory_item_id=demand.inventory_item_id,
            item_name=demand.item_name,
            quantity=demand.target_quantity,
            recipe_quantity_oz=demand.recipe_quantity(link),
            scheduled_date=to_naive_utc(demand.scheduled_date),
            status=demand.status,
        )
        yield stage_code, recipe_name, link.role, item


def sort_batches(batches: Iterable, registry: BatchTypeRegistry) -> List:
    """Canonical output order: stage order, earliest due date, then key.

    Batches without a due date sort last within their stage.
    """

    def sort_key(batch):
        due = batch.earliest_due_date
        return (
            registry.stage_rank(batch.stage_code),
            due is None,
            due or datetime.min,
            batch.batch_id,
        )

    return sorted(batches, key=sort_key)


def aggregate(
    demand_units: Iterable[DemandUnit],
    batch_type_configs,
    rush_skip: Optional[Mapping[int, Any]] = None,
    *,
    stage_code: Optional[str] = None,
) -> List[AggregatedBatch]:
    """Collapse demand units into suggested batches.

    Transaction boundary: Pure computation (no database access).

    A tier contributes to BAKE (by batter) and PREP (by frosting, else
    filling; fondant excluded). A tier is left out of a stage when it is
    already committed to a batch of that stage, its order is a rush order
    skipping that stage, or it has no recipe for that stage. A stock task
    contributes once per linked recipe (batter -> BAKE, anything else ->
    PREP). Only active, groupable stages in the registry receive batches.

    Args:
        demand_units: TierDemand and StockDemand instances
        batch_type_configs: BatchTypeRegistry or iterable of BatchTypeConfig
        rush_skip: order_id -> stage codes the rush order skips (list or JSON)
        stage_code: Only build batches for this stage

    Returns:
        Non-empty batches in stage order, then earliest due date

    Example:
        Two tiers with batter "Vanilla" due 2025-07-01 and 2025-07-03 give
        one "BAKE-Vanilla" batch with total_tiers=2 and earliest due date
        2025-07-01.
    """
    registry = BatchTypeRegistry.coerce(batch_type_configs)
    skips = normalize_rush_skips(rush_skip)

    batches: Dict[str, AggregatedBatch] = {}

    def batch_for(stage: str, recipe_name: str, role: RecipeRole) -> AggregatedBatch:
        key = batch_key(stage, recipe_name)
        if key not in batches:
            batches[key] = _new_batch(stage, recipe_name, role)
        return batches[key]

    for unit in demand_units:
        if isinstance(unit, TierDemand):
            for stage, recipe_name, role in _tier_contributions(unit, registry, skips, stage_code):
                _add_tier(batch_for(stage, recipe_name, role), unit)
        elif isinstance(unit, StockDemand):
            for stage, recipe_name, role, item in _stock_contributions(unit, registry, stage_code):
                _add_stock(batch_for(stage, recipe_name, role), item)
        else:
            raise TypeError(f"Unsupported demand unit: {type(unit).__name__}")

    result = sort_batches((b for b in batches.values() if not b.is_empty), registry)

    log_operation(
        logger,
        operation="aggregate",
        outcome="success",
        level=logging.DEBUG,
        batch_count=len(result),
        stage_code=stage_code,
    )
    return result


def restrict_batch(
    batch: AggregatedBatch, keep: Callable[[DemandKey], bool]
) -> Optional[AggregatedBatch]:
    """Rebuild a batch from the demand ``keep`` accepts.

    Totals and the earliest due date are recalculated from scratch.

    Returns:
        The rebuilt batch, the original batch when nothing was removed, or
        None when nothing is left.
    """
    tiers = [tier for tier in batch.tiers if keep(tier.key)]
    stock_items = [item for item in batch.stock_items if keep(item.key)]
    if len(tiers) == len(batch.tiers) and len(stock_items) == len(batch.stock_items):
        return batch
    if not tiers and not stock_items:
        return None

    rebuilt = _new_batch(batch.stage_code, batch.recipe_name, batch.recipe_role)
    for tier in tiers:
        _add_tier(rebuilt, tier)
    for item in stock_items:
        _add_stock(rebuilt, item)
    return rebuilt
