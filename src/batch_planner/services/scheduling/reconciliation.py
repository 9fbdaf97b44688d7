"""
Reconciliation of committed and suggested batches.

Two kinds of batch reach the planner:
- CommittedBatch: persisted by an operator, with a stable ID, a status and
  (usually) a scheduled date.
- AggregatedBatch (suggested): recomputed on every pass from uncommitted
  demand, always unscheduled.

reconcile() keeps every committed batch and trims suggested batches down to
the demand no committed batch of the same stage already covers.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple

from batch_planner.models.enums import BatchStatus
from batch_planner.services.scheduling.aggregation import AggregatedBatch, restrict_batch
from batch_planner.services.scheduling.demand import STOCK_KEY, TIER_KEY, DemandKey
from batch_planner.utils.datetime_utils import to_iso_date, to_iso_datetime, to_naive_utc


@dataclass
class CommittedBatch:
    """A persisted production batch.

    Attributes:
        id: ProductionBatch ID
        name: Operator-facing name
        stage_code: Production stage
        recipe_name: Recipe produced (optional)
        scheduled_date: Production date (optional)
        status: Batch status
        tier_ids: Linked tier IDs
        stock_task_ids: Linked stock task IDs
        earliest_due_date: Earliest due moment across linked demand
    """

    id: int
    name: str
    stage_code: str
    recipe_name: Optional[str] = None
    scheduled_date: Optional[datetime] = None
    status: BatchStatus = BatchStatus.UNSCHEDULED
    assigned_to: Optional[str] = None
    notes: Optional[str] = None
    tier_ids: Tuple[int, ...] = field(default_factory=tuple)
    stock_task_ids: Tuple[int, ...] = field(default_factory=tuple)
    total_tiers: int = 0
    total_servings: int = 0
    total_surface_area_sq_in: float = 0.0
    total_frosting_oz: float = 0.0
    total_stock_quantity_oz: Decimal = Decimal("0")
    earliest_due_date: Optional[datetime] = None

    is_committed = True

    @property
    def batch_id(self) -> str:
        return committed_batch_id(self.id)

    def demand_keys(self) -> FrozenSet[DemandKey]:
        keys = {(TIER_KEY, tier_id) for tier_id in self.tier_ids}
        keys.update((STOCK_KEY, task_id) for task_id in self.stock_task_ids)
        return frozenset(keys)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.batch_id,
            "batch_id": self.id,
            "name": self.name,
            "stage_code": self.stage_code,
            "recipe": self.recipe_name,
            "scheduled_date": to_iso_date(self.scheduled_date),
            "status": self.status.value,
            "assigned_to": self.assigned_to,
            "notes": self.notes,
            "tier_ids": list(self.tier_ids),
            "stock_task_ids": list(self.stock_task_ids),
            "total_tiers": self.total_tiers,
            "total_servings": self.total_servings,
            "total_surface_area_sq_in": self.total_surface_area_sq_in,
            "total_frosting_oz": round(self.total_frosting_oz, 1),
            "total_stock_quantity_oz": float(round(self.total_stock_quantity_oz, 2)),
            "earliest_due_date": to_iso_datetime(self.earliest_due_date),
            "committed": True,
        }


def committed_batch_id(batch_id: int) -> str:
    """Identifier used for committed batches in edges and chains."""
    return f"batch:{batch_id}"


@dataclass
class BatchSummary:
    """Batch counts by status."""

    total_batches: int = 0
    unscheduled: int = 0
    scheduled: int = 0
    in_progress: int = 0
    completed: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "total_batches": self.total_batches,
            "unscheduled": self.unscheduled,
            "scheduled": self.scheduled,
            "in_progress": self.in_progress,
            "completed": self.completed,
        }


def summarize(batches: Iterable) -> BatchSummary:
    """Count batches by status. An empty input gives an all-zero summary."""
    summary = BatchSummary()
    for batch in batches:
        summary.total_batches += 1
        if batch.status is BatchStatus.UNSCHEDULED:
            summary.unscheduled += 1
        elif batch.status is BatchStatus.SCHEDULED:
            summary.scheduled += 1
        elif batch.status is BatchStatus.IN_PROGRESS:
            summary.in_progress += 1
        elif batch.status is BatchStatus.COMPLETED:
            summary.completed += 1
    return summary


@dataclass
class ReconciledBatches:
    """Committed batches plus the suggested batches they do not cover."""

    committed: List[CommittedBatch] = field(default_factory=list)
    suggested: List[AggregatedBatch] = field(default_factory=list)

    @property
    def all_batches(self) -> List:
        return list(self.committed) + list(self.suggested)


def reconcile(
    committed: Iterable[CommittedBatch], suggested: Iterable[AggregatedBatch]
) -> ReconciledBatches:
    """Prefer committed batches; surface suggestions only for uncovered demand.

    A demand unit is covered for a stage when any committed batch of that
    stage contains it. Suggested batches losing all their demand are
    dropped; those losing some are rebuilt with fresh totals.
    """
    committed = list(committed)
    covered = {
        (batch.stage_code, key) for batch in committed for key in batch.demand_keys()
    }

    remaining: List[AggregatedBatch] = []
    for batch in suggested:
        trimmed = restrict_batch(batch, lambda key, stage=batch.stage_code: (stage, key) not in covered)
        if trimmed is not None:
            remaining.append(trimmed)

    return ReconciledBatches(committed=committed, suggested=remaining)


def _in_range(value: Optional[datetime], start: Optional[date], end: Optional[date]) -> bool:
    if start is None and end is None:
        return True
    if value is None:
        return False
    day = to_naive_utc(value).date() if isinstance(value, datetime) else value
    if start is not None and day < start:
        return False
    if end is not None and day > end:
        return False
    return True


def filter_batches(
    batches: Iterable,
    stage_code: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> List:
    """Filter batches by stage and an inclusive date range.

    Committed batches are matched on their scheduled date, suggested
    batches on their earliest due date. Batches without the relevant date
    are excluded only when a range is given.
    """
    selected = []
    for batch in batches:
        if stage_code and batch.stage_code != stage_code:
            continue
        anchor = batch.scheduled_date if batch.is_committed else batch.earliest_due_date
        if not _in_range(anchor, start_date, end_date):
            continue
        selected.append(batch)
    return selected
