"""
Production Batch Service for committing and managing production batches.

This module provides functions for:
- Committing a suggested batch (or an explicit set of tiers and stock
  tasks) as a persisted ProductionBatch
- Scheduling, assigning and progressing committed batches
- Deleting a batch, which releases its tiers and stock tasks back to
  planning
- Recalculating stored batch totals from batch membership

Once committed, a tier or stock task no longer appears in suggested
batches of the same stage (see scheduling.reconciliation).
"""

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, List, Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload, selectinload

from batch_planner.models import (
    BatchStatus,
    CakeTier,
    InventoryItem,
    InventoryItemRecipe,
    ProductionBatch,
    ProductionBatchTier,
    StockProductionTask,
)
from batch_planner.services import geometry
from batch_planner.services.batch_type_service import load_registry
from batch_planner.services.database import session_scope
from batch_planner.services.demand_service import committed_batch_from_model
from batch_planner.services.exceptions import (
    DatabaseError,
    ProductionBatchNotFound,
    ValidationError,
)
from batch_planner.services.logging_utils import get_service_logger, log_operation
from batch_planner.services.scheduling.aggregation import AggregatedBatch
from batch_planner.services.scheduling.demand import to_decimal
from batch_planner.services.scheduling.reconciliation import CommittedBatch

logger = get_service_logger(__name__)

# Distinguishes "not passed" from an explicit None (clear the field)
_UNSET = object()

DateLike = Union[date, datetime]


def _as_datetime(value: Optional[DateLike]) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.combine(value, datetime.min.time())


def _load_batch(session: Session, batch_id: int) -> ProductionBatch:
    batch = (
        session.query(ProductionBatch)
        .options(
            selectinload(ProductionBatch.tier_links)
            .joinedload(ProductionBatchTier.tier)
            .joinedload(CakeTier.order),
            selectinload(ProductionBatch.stock_tasks),
        )
        .filter(ProductionBatch.id == batch_id)
        .first()
    )
    if batch is None:
        raise ProductionBatchNotFound(batch_id)
    return batch


# =============================================================================
# Totals
# =============================================================================


def _stock_quantity_oz(task: StockProductionTask, recipe_name: Optional[str]) -> Decimal:
    """Recipe mass a stock task needs, limited to one recipe when given."""
    item = task.inventory_item
    if item is None:
        return Decimal("0")
    total = Decimal("0")
    for link in item.recipe_links:
        if recipe_name and (link.recipe is None or link.recipe.name != recipe_name):
            continue
        total += to_decimal(link.quantity_per_unit) * (task.target_quantity or 0)
    return total


def recalculate_batch_totals(batch: ProductionBatch) -> ProductionBatch:
    """Recompute a batch's stored totals from its tiers and stock tasks.

    Tier totals use the same geometry estimates as suggested batches.
    Stock mass counts only the batch's recipe when the batch names one.

    Transaction boundary: Mutates the given ORM object; caller flushes.
    """
    total_tiers = 0
    total_servings = 0
    total_surface_area = 0.0
    total_frosting_oz = 0.0

    for link in batch.tier_links:
        tier = link.tier
        if tier is None:
            continue
        size = tier.tier_size
        diameter = geometry.parse_diameter(size.name if size is not None else None)
        complexity = geometry.normalize_complexity(tier.frosting_complexity)
        total_tiers += 1
        total_servings += size.servings if size is not None else 0
        total_surface_area += geometry.calculate_surface_area(diameter)
        total_frosting_oz += geometry.estimate_frosting_oz(diameter, complexity=complexity)

    batch.total_tiers = total_tiers
    batch.total_servings = total_servings
    batch.total_surface_area = total_surface_area
    batch.total_frosting_oz = round(total_frosting_oz, 1)
    batch.total_stock_quantity_oz = round(
        sum(
            (_stock_quantity_oz(task, batch.recipe_name) for task in batch.stock_tasks),
            Decimal("0"),
        ),
        2,
    )
    return batch


# =============================================================================
# Commit
# =============================================================================


def commit_batch(
    stage_code: str,
    *,
    name: Optional[str] = None,
    recipe_name: Optional[str] = None,
    tier_ids: Iterable[int] = (),
    stock_task_ids: Iterable[int] = (),
    scheduled_date: Optional[DateLike] = None,
    assigned_to: Optional[str] = None,
    notes: Optional[str] = None,
    session: Optional[Session] = None,
) -> CommittedBatch:
    """
    Persist a production batch for a stage.

    Args:
        stage_code: Active stage code from the batch type registry
        name: Batch name (default: "{stage} - {recipe}")
        recipe_name: Recipe produced
        tier_ids: Tiers to link
        stock_task_ids: Stock tasks to assign
        scheduled_date: Production date; given -> SCHEDULED, else UNSCHEDULED
        assigned_to: Worker name
        notes: Free-form notes
        session: Optional database session

    Returns:
        The committed batch snapshot

    Raises:
        ValidationError: Unknown stage, no members, missing tiers or stock
            tasks, or members already committed to a batch of this stage
        DatabaseError: If the write fails
    """
    try:
        if session is not None:
            return _commit_batch_impl(
                stage_code, name, recipe_name, tier_ids, stock_task_ids,
                scheduled_date, assigned_to, notes, session,
            )
        with session_scope() as session:
            return _commit_batch_impl(
                stage_code, name, recipe_name, tier_ids, stock_task_ids,
                scheduled_date, assigned_to, notes, session,
            )
    except SQLAlchemyError as e:
        logger.error(f"Failed to commit batch: {e}")
        raise DatabaseError(f"Failed to commit batch: {e}", e) from e


def _commit_batch_impl(
    stage_code, name, recipe_name, tier_ids, stock_task_ids,
    scheduled_date, assigned_to, notes, session: Session,
) -> CommittedBatch:
    tier_ids = sorted(set(tier_ids))
    stock_task_ids = sorted(set(stock_task_ids))

    errors: List[str] = []
    registry = load_registry(session)
    if stage_code not in registry:
        errors.append(f"Unknown or inactive stage: {stage_code}")
    if not tier_ids and not stock_task_ids:
        errors.append("A batch needs at least one tier or stock task")

    tiers = []
    if tier_ids:
        tiers = (
            session.query(CakeTier)
            .options(
                joinedload(CakeTier.tier_size),
                selectinload(CakeTier.batch_links).joinedload(ProductionBatchTier.batch),
            )
            .filter(CakeTier.id.in_(tier_ids))
            .all()
        )
        missing = sorted(set(tier_ids) - {tier.id for tier in tiers})
        if missing:
            errors.append(f"Tier(s) not found: {', '.join(str(i) for i in missing)}")
        for tier in tiers:
            if any(
                link.batch is not None and link.batch.batch_type == stage_code
                for link in tier.batch_links
            ):
                errors.append(f"Tier {tier.id} is already in a {stage_code} batch")

    tasks = []
    if stock_task_ids:
        tasks = (
            session.query(StockProductionTask)
            .options(
                joinedload(StockProductionTask.inventory_item)
                .selectinload(InventoryItem.recipe_links)
                .joinedload(InventoryItemRecipe.recipe)
            )
            .filter(StockProductionTask.id.in_(stock_task_ids))
            .all()
        )
        missing = sorted(set(stock_task_ids) - {task.id for task in tasks})
        if missing:
            errors.append(f"Stock task(s) not found: {', '.join(str(i) for i in missing)}")
        for task in tasks:
            if task.production_batch_id is not None:
                errors.append(f"Stock task {task.id} is already in a batch")

    if errors:
        raise ValidationError(errors)

    batch = ProductionBatch(
        name=name or f"{stage_code} - {recipe_name or 'Mixed'}",
        batch_type=stage_code,
        recipe_name=recipe_name,
        scheduled_date=_as_datetime(scheduled_date),
        status=BatchStatus.SCHEDULED if scheduled_date is not None else BatchStatus.UNSCHEDULED,
        assigned_to=assigned_to,
        notes=notes,
    )
    session.add(batch)
    for tier in tiers:
        batch.tier_links.append(ProductionBatchTier(tier=tier))
    for task in tasks:
        batch.stock_tasks.append(task)

    recalculate_batch_totals(batch)
    session.flush()

    log_operation(
        logger,
        operation="commit_batch",
        outcome="success",
        batch_id=batch.id,
        stage_code=stage_code,
        recipe_name=recipe_name,
        tiers=len(tiers),
        stock_tasks=len(tasks),
    )
    return committed_batch_from_model(batch)


def commit_suggested_batch(
    batch: AggregatedBatch,
    *,
    scheduled_date: Optional[DateLike] = None,
    assigned_to: Optional[str] = None,
    notes: Optional[str] = None,
    session: Optional[Session] = None,
) -> CommittedBatch:
    """Commit every tier and stock task of a suggested batch."""
    return commit_batch(
        batch.stage_code,
        recipe_name=batch.recipe_name,
        tier_ids=[tier.tier_id for tier in batch.tiers],
        stock_task_ids=[item.stock_task_id for item in batch.stock_items],
        scheduled_date=scheduled_date,
        assigned_to=assigned_to,
        notes=notes,
        session=session,
    )


# =============================================================================
# Read / Update / Delete
# =============================================================================


def get_batch(batch_id: int, session: Optional[Session] = None) -> CommittedBatch:
    """
    Get a committed batch by ID.

    Raises:
        ProductionBatchNotFound: If the batch doesn't exist
    """
    if session is not None:
        return committed_batch_from_model(_load_batch(session, batch_id))
    with session_scope() as session:
        return committed_batch_from_model(_load_batch(session, batch_id))


def update_batch(
    batch_id: int,
    *,
    scheduled_date=_UNSET,
    status=_UNSET,
    assigned_to=_UNSET,
    notes=_UNSET,
    name=_UNSET,
    session: Optional[Session] = None,
) -> CommittedBatch:
    """
    Update scheduling fields of a committed batch.

    Only the arguments passed are changed. Setting a date without a status
    marks an unscheduled batch SCHEDULED; clearing the date of a scheduled
    batch moves it back to UNSCHEDULED.

    Args:
        batch_id: ProductionBatch ID
        scheduled_date: New production date, or None to clear it
        status: BatchStatus or its string value
        assigned_to: Worker name, or None to clear it
        notes: Notes, or None to clear them
        name: New batch name
        session: Optional database session

    Raises:
        ProductionBatchNotFound: If the batch doesn't exist
        ValidationError: Unknown status or blank name
        DatabaseError: If the write fails
    """
    try:
        if session is not None:
            return _update_batch_impl(
                batch_id, scheduled_date, status, assigned_to, notes, name, session
            )
        with session_scope() as session:
            return _update_batch_impl(
                batch_id, scheduled_date, status, assigned_to, notes, name, session
            )
    except SQLAlchemyError as e:
        logger.error(f"Failed to update batch: {e}")
        raise DatabaseError(f"Failed to update batch: {e}", e) from e


def _update_batch_impl(
    batch_id, scheduled_date, status, assigned_to, notes, name, session: Session
) -> CommittedBatch:
    batch = _load_batch(session, batch_id)

    new_status = None
    if status is not _UNSET:
        try:
            new_status = BatchStatus(status)
        except ValueError:
            raise ValidationError([f"Unknown batch status: {status}"])

    if name is not _UNSET:
        if not name or not name.strip():
            raise ValidationError(["Batch name is required"])
        batch.name = name.strip()

    if scheduled_date is not _UNSET:
        batch.scheduled_date = _as_datetime(scheduled_date)
        if new_status is None:
            if scheduled_date is not None and batch.status is BatchStatus.UNSCHEDULED:
                new_status = BatchStatus.SCHEDULED
            elif scheduled_date is None and batch.status is BatchStatus.SCHEDULED:
                new_status = BatchStatus.UNSCHEDULED

    if new_status is not None:
        batch.status = new_status
    if assigned_to is not _UNSET:
        batch.assigned_to = assigned_to
    if notes is not _UNSET:
        batch.notes = notes

    session.flush()
    log_operation(
        logger,
        operation="update_batch",
        outcome="success",
        batch_id=batch.id,
        status=batch.status.value,
    )
    return committed_batch_from_model(batch)


def delete_batch(batch_id: int, session: Optional[Session] = None) -> None:
    """
    Delete a committed batch.

    Tier links are removed and stock tasks are released, so their demand
    shows up again in suggested batches.

    Raises:
        ProductionBatchNotFound: If the batch doesn't exist
        DatabaseError: If the write fails
    """
    try:
        if session is not None:
            return _delete_batch_impl(batch_id, session)
        with session_scope() as session:
            return _delete_batch_impl(batch_id, session)
    except SQLAlchemyError as e:
        logger.error(f"Failed to delete batch: {e}")
        raise DatabaseError(f"Failed to delete batch: {e}", e) from e


def _delete_batch_impl(batch_id: int, session: Session) -> None:
    batch = _load_batch(session, batch_id)
    released = 0
    for task in list(batch.stock_tasks):
        task.production_batch_id = None
        batch.stock_tasks.remove(task)
        released += 1
    session.delete(batch)
    session.flush()

    log_operation(
        logger,
        operation="delete_batch",
        outcome="success",
        level=logging.INFO,
        batch_id=batch_id,
        released_stock_tasks=released,
    )
