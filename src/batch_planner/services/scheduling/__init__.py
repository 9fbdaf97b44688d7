"""
Scheduling engine for production batch planning.

This package provides:
- Demand units (cake tiers and stock tasks) and their namespaced keys
- The batch type registry and the stage dependency graph
- Batch key aggregation into suggested batches
- Reconciliation of suggested batches with committed ones
- Lead-time based date suggestions with missing-dependency warnings
- Dependency edges between batches and chain (component) resolution

Everything exported here is pure computation over in-memory snapshots.
The database-backed entry points live in the scheduling_service facade:

    from batch_planner.services.scheduling import scheduling_service

    overview = scheduling_service.get_batches(stage_code="BAKE")
    result = scheduling_service.auto_schedule(start_date, end_date)
    chain = scheduling_service.get_chain("BAKE-Vanilla")

Usage of the pure pipeline:
    from batch_planner.services.scheduling import (
        aggregate,
        registry_from_dicts,
        suggest,
        build_edges,
        chain_of,
    )
"""

from .demand import (
    STOCK_KEY,
    TIER_KEY,
    DemandKey,
    DemandUnit,
    StockDemand,
    StockRecipeLink,
    TierDemand,
)
from .dependency_graph import DependencyGraph, build_graph, find_cycles
from .registry import (
    BatchTypeConfig,
    BatchTypeRegistry,
    parse_stage_list,
    registry_from_dicts,
)
from .aggregation import (
    AggregatedBatch,
    StockItem,
    aggregate,
    batch_key,
    restrict_batch,
    sort_batches,
)
from .reconciliation import (
    BatchSummary,
    CommittedBatch,
    ReconciledBatches,
    committed_batch_id,
    filter_batches,
    reconcile,
    summarize,
)
from .auto_scheduler import MissingDependency, ScheduleSuggestion, suggest
from .chain_resolver import DependencyEdge, build_edges, chain_of, chains

__all__ = [
    # Demand
    "DemandKey",
    "DemandUnit",
    "STOCK_KEY",
    "TIER_KEY",
    "StockDemand",
    "StockRecipeLink",
    "TierDemand",
    # Registry and graph
    "BatchTypeConfig",
    "BatchTypeRegistry",
    "DependencyGraph",
    "build_graph",
    "find_cycles",
    "parse_stage_list",
    "registry_from_dicts",
    # Aggregation
    "AggregatedBatch",
    "StockItem",
    "aggregate",
    "batch_key",
    "restrict_batch",
    "sort_batches",
    # Reconciliation
    "BatchSummary",
    "CommittedBatch",
    "ReconciledBatches",
    "committed_batch_id",
    "filter_batches",
    "reconcile",
    "summarize",
    # Auto-scheduler
    "MissingDependency",
    "ScheduleSuggestion",
    "suggest",
    # Chains
    "DependencyEdge",
    "build_edges",
    "chain_of",
    "chains",
]
