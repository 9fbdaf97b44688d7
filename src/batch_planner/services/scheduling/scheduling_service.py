"""
Scheduling facade: the entry points callers use for batch planning.

Each function reads one planning snapshot (batch types, in-scope demand,
committed batches) inside a single session, then runs the pure pipeline:

    demand -> aggregate() -> reconcile() -> suggest() / build_edges()

Nothing here persists anything; committing and scheduling batches is done
through production_batch_service.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, FrozenSet, List, Optional, Set

from sqlalchemy.orm import Session

from batch_planner.models.enums import BatchStatus
from batch_planner.services.database import session_scope
from batch_planner.services.demand_service import PlanningSnapshot, load_planning_snapshot
from batch_planner.services.logging_utils import get_service_logger, log_operation
from batch_planner.services.scheduling import auto_scheduler, chain_resolver
from batch_planner.services.scheduling.aggregation import aggregate, sort_batches
from batch_planner.services.scheduling.auto_scheduler import ScheduleSuggestion
from batch_planner.services.scheduling.chain_resolver import DependencyEdge
from batch_planner.services.scheduling.reconciliation import (
    BatchSummary,
    CommittedBatch,
    ReconciledBatches,
    filter_batches,
    reconcile,
    summarize,
)
from batch_planner.services.scheduling.registry import BatchTypeConfig
from batch_planner.utils.datetime_utils import to_iso_date

logger = get_service_logger(__name__)


# =============================================================================
# Result types
# =============================================================================


@dataclass
class BatchOverview:
    """Batches for display plus counts by status.

    Attributes:
        batches: Committed and suggested batches, in stage order
        committed: The committed subset of ``batches``
        summary: Counts by status over ``batches``
    """

    batches: List = field(default_factory=list)
    committed: List[CommittedBatch] = field(default_factory=list)
    summary: BatchSummary = field(default_factory=BatchSummary)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "batches": [batch.to_dict() for batch in self.batches],
            "committed": [batch.to_dict() for batch in self.committed],
            "summary": self.summary.to_dict(),
        }


@dataclass
class AutoScheduleResult:
    """Suggested dates plus the configuration they were computed from.

    Attributes:
        suggestions: One suggestion per batch
        batch_types: Registry snapshot used
        message: Operator-facing summary line
        cycles: Dependency cycles found in the stored configuration
    """

    suggestions: List[ScheduleSuggestion] = field(default_factory=list)
    batch_types: List[BatchTypeConfig] = field(default_factory=list)
    message: str = ""
    cycles: List[List[str]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "suggestions": [s.to_dict() for s in self.suggestions],
            "batch_types": [config.to_dict() for config in self.batch_types],
            "message": self.message,
            "cycles": [list(cycle) for cycle in self.cycles],
        }


# =============================================================================
# Pure pipeline
# =============================================================================


def plan_batches(snapshot: PlanningSnapshot, stage_code: Optional[str] = None) -> ReconciledBatches:
    """Aggregate the snapshot's demand and reconcile it with committed batches.

    Transaction boundary: Pure computation (no database access).
    """
    suggested = aggregate(
        snapshot.demand_units,
        snapshot.registry,
        snapshot.rush_skips,
        stage_code=stage_code,
    )
    committed = snapshot.committed_batches
    if stage_code:
        committed = [batch for batch in committed if batch.stage_code == stage_code]
    reconciled = reconcile(committed, suggested)
    reconciled.committed = sort_batches(reconciled.committed, snapshot.registry)
    return reconciled


def _ordered(reconciled: ReconciledBatches, snapshot: PlanningSnapshot) -> List:
    return sort_batches(reconciled.all_batches, snapshot.registry)


# =============================================================================
# Batches
# =============================================================================


def get_batches(
    stage_code: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    *,
    session: Optional[Session] = None,
) -> BatchOverview:
    """
    List committed and suggested batches with a status summary.

    Args:
        stage_code: Only batches of this stage
        start_date: Inclusive lower bound (scheduled date for committed
            batches, earliest due date for suggested ones)
        end_date: Inclusive upper bound
        session: Optional database session

    Returns:
        BatchOverview; empty inputs give no batches and an all-zero summary

    Raises:
        DemandFetchError: If a collaborator query fails
    """
    if session is not None:
        return _get_batches_impl(stage_code, start_date, end_date, session)
    with session_scope() as session:
        return _get_batches_impl(stage_code, start_date, end_date, session)


def _get_batches_impl(stage_code, start_date, end_date, session: Session) -> BatchOverview:
    snapshot = load_planning_snapshot(session)
    reconciled = plan_batches(snapshot, stage_code)
    batches = filter_batches(_ordered(reconciled, snapshot), stage_code, start_date, end_date)
    committed = [batch for batch in batches if batch.is_committed]

    overview = BatchOverview(batches=batches, committed=committed, summary=summarize(batches))
    log_operation(
        logger,
        operation="get_batches",
        outcome="success",
        stage_code=stage_code,
        start_date=to_iso_date(start_date),
        end_date=to_iso_date(end_date),
        batch_count=len(batches),
        committed_count=len(committed),
    )
    return overview


# =============================================================================
# Auto-schedule
# =============================================================================


def auto_schedule(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    *,
    as_of: Optional[date] = None,
    session: Optional[Session] = None,
) -> AutoScheduleResult:
    """
    Suggest production dates for every open batch in a date range.

    Covers suggested batches and committed batches that are not yet
    completed. Suggestions are advisory; nothing is persisted.

    Args:
        start_date: Inclusive lower bound of the range
        end_date: Inclusive upper bound of the range
        as_of: Stand-in due date for batches without one (default: today)
        session: Optional database session

    Returns:
        AutoScheduleResult with suggestions, the batch types used, a
        summary message and any dependency cycles in the configuration

    Raises:
        DemandFetchError: If a collaborator query fails
    """
    if session is not None:
        return _auto_schedule_impl(start_date, end_date, as_of, session)
    with session_scope() as session:
        return _auto_schedule_impl(start_date, end_date, as_of, session)


def _auto_schedule_impl(start_date, end_date, as_of, session: Session) -> AutoScheduleResult:
    snapshot = load_planning_snapshot(session)
    registry = snapshot.registry
    graph = registry.graph()

    cycles = graph.find_cycles()
    if cycles:
        log_operation(
            logger,
            operation="auto_schedule",
            outcome="dependency_cycle",
            level=logging.WARNING,
            cycles=[" -> ".join(cycle) for cycle in cycles],
        )

    batches = filter_batches(
        _ordered(plan_batches(snapshot), snapshot),
        start_date=start_date,
        end_date=end_date,
    )
    batches = [batch for batch in batches if batch.status is not BatchStatus.COMPLETED]

    suggestions = auto_scheduler.suggest(
        batches,
        graph,
        registry.lead_times(),
        as_of=as_of,
        default_lead_time=registry.default_lead_time,
    )

    result = AutoScheduleResult(
        suggestions=suggestions,
        batch_types=list(registry.configs),
        message=f"Generated {len(suggestions)} scheduling suggestions",
        cycles=cycles,
    )
    log_operation(
        logger,
        operation="auto_schedule",
        outcome="success",
        start_date=to_iso_date(start_date),
        end_date=to_iso_date(end_date),
        suggestions=len(suggestions),
        missing_dependencies=sum(1 for s in suggestions if s.missing_dependencies),
    )
    return result


# =============================================================================
# Dependency chains
# =============================================================================


def _edges_impl(session: Session):
    snapshot = load_planning_snapshot(session)
    batches = _ordered(plan_batches(snapshot), snapshot)
    return batches, chain_resolver.build_edges(batches, snapshot.registry.graph())


def get_dependency_edges(*, session: Optional[Session] = None) -> List[DependencyEdge]:
    """Edges between all current batches, prerequisite -> dependent."""
    if session is not None:
        return _edges_impl(session)[1]
    with session_scope() as session:
        return _edges_impl(session)[1]


def get_chain(batch_id: str, *, session: Optional[Session] = None) -> Set[str]:
    """
    Batch IDs in the same production chain as ``batch_id``.

    Args:
        batch_id: Suggested batch key (e.g. "BAKE-Vanilla") or committed
            batch ID (e.g. "batch:12")
        session: Optional database session

    Returns:
        Connected batch IDs; always contains ``batch_id`` itself
    """
    if session is not None:
        return _get_chain_impl(batch_id, session)
    with session_scope() as session:
        return _get_chain_impl(batch_id, session)


def _get_chain_impl(batch_id: str, session: Session) -> Set[str]:
    _, edges = _edges_impl(session)
    chain = chain_resolver.chain_of(batch_id, edges)
    log_operation(
        logger,
        operation="get_chain",
        outcome="success",
        level=logging.DEBUG,
        batch_id=batch_id,
        chain_size=len(chain),
    )
    return chain


def get_chains(*, session: Optional[Session] = None) -> Dict[str, FrozenSet[str]]:
    """Map every current batch ID to the chain it belongs to."""
    if session is not None:
        return _get_chains_impl(session)
    with session_scope() as session:
        return _get_chains_impl(session)


def _get_chains_impl(session: Session) -> Dict[str, FrozenSet[str]]:
    batches, edges = _edges_impl(session)
    return chain_resolver.chains([batch.batch_id for batch in batches], edges)
