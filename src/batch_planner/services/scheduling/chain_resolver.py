"""
Dependency chain resolver.

Links batches that share demand across a prerequisite relationship: when
stage S depends on stage P, every batch of P that contains at least one of
the tiers or stock tasks of an S batch gets an edge P -> S. A chain is the
connected component of a batch in the undirected view of those edges, used
to highlight a full production chain.
"""

from collections import defaultdict, deque
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Set, Union

from batch_planner.services.scheduling.dependency_graph import DependencyGraph
from batch_planner.utils.datetime_utils import to_naive_utc


@dataclass(frozen=True)
class DependencyEdge:
    """Directed edge from a prerequisite batch to a dependent batch.

    Attributes:
        from_batch_id: Prerequisite batch
        to_batch_id: Dependent batch
        from_stage: Prerequisite stage
        to_stage: Dependent stage
        missing: True when the prerequisite is not scheduled, or is
            scheduled after the dependent batch
    """

    from_batch_id: str
    to_batch_id: str
    from_stage: str
    to_stage: str
    missing: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from_batch_id": self.from_batch_id,
            "to_batch_id": self.to_batch_id,
            "from_stage": self.from_stage,
            "to_stage": self.to_stage,
            "missing": self.missing,
        }


def _scheduled(batch) -> Optional[datetime]:
    value = batch.scheduled_date
    if value is None:
        return None
    if not isinstance(value, datetime):
        value = datetime.combine(value, datetime.min.time())
    return to_naive_utc(value)


def is_missing_prerequisite(prerequisite, dependent) -> bool:
    """Whether a prerequisite batch fails to precede its dependent.

    Same-day scheduling is allowed.
    """
    prerequisite_date = _scheduled(prerequisite)
    if prerequisite_date is None:
        return True
    dependent_date = _scheduled(dependent)
    return dependent_date is not None and prerequisite_date.date() > dependent_date.date()


def build_edges(
    batches: Iterable,
    graph: Union[DependencyGraph, Mapping[str, Sequence[str]]],
) -> List[DependencyEdge]:
    """Build prerequisite -> dependent edges between batches.

    Transaction boundary: Pure computation (no database access).

    Args:
        batches: Objects with batch_id, stage_code, scheduled_date and
            demand_keys() (suggested and committed batches alike)
        graph: Stage dependency graph

    Returns:
        Edges in batch order, then prerequisite order. Reverse-direction
        duplicates are kept.
    """
    if not isinstance(graph, DependencyGraph):
        graph = DependencyGraph(graph or {})

    batches = list(batches)
    by_stage: Dict[str, List] = defaultdict(list)
    keys: Dict[str, FrozenSet] = {}
    for batch in batches:
        by_stage[batch.stage_code].append(batch)
        keys[batch.batch_id] = batch.demand_keys()

    edges: List[DependencyEdge] = []
    for batch in batches:
        batch_keys = keys[batch.batch_id]
        if not batch_keys:
            continue
        for prerequisite_stage in graph.prerequisites_of(batch.stage_code):
            for candidate in by_stage.get(prerequisite_stage, ()):
                if candidate.batch_id == batch.batch_id:
                    continue
                if keys[candidate.batch_id].isdisjoint(batch_keys):
                    continue
                edges.append(
                    DependencyEdge(
                        from_batch_id=candidate.batch_id,
                        to_batch_id=batch.batch_id,
                        from_stage=prerequisite_stage,
                        to_stage=batch.stage_code,
                        missing=is_missing_prerequisite(candidate, batch),
                    )
                )
    return edges


def _adjacency(edges: Iterable[DependencyEdge]) -> Dict[str, Set[str]]:
    adjacency: Dict[str, Set[str]] = defaultdict(set)
    for edge in edges:
        adjacency[edge.from_batch_id].add(edge.to_batch_id)
        adjacency[edge.to_batch_id].add(edge.from_batch_id)
    return adjacency


def _component(seed: str, adjacency: Mapping[str, Set[str]]) -> Set[str]:
    seen = {seed}
    queue = deque([seed])
    while queue:
        current = queue.popleft()
        for neighbour in adjacency.get(current, ()):
            if neighbour not in seen:
                seen.add(neighbour)
                queue.append(neighbour)
    return seen


def chain_of(batch_id: str, edges: Iterable[DependencyEdge]) -> Set[str]:
    """All batches connected to ``batch_id`` through edges in either direction.

    Breadth-first search, O(V+E). The seed is always part of its chain.

    Example:
        Edges A->B, B->C, D->E: chain_of("A") == {"A", "B", "C"}.
    """
    return _component(batch_id, _adjacency(edges))


def chains(batch_ids: Iterable[str], edges: Iterable[DependencyEdge]) -> Dict[str, FrozenSet[str]]:
    """Partition batches into chains, mapping every batch to its component."""
    adjacency = _adjacency(edges)
    result: Dict[str, FrozenSet[str]] = {}
    for batch_id in batch_ids:
        if batch_id in result:
            continue
        component = frozenset(_component(batch_id, adjacency))
        for member in component:
            result[member] = component
    return result
