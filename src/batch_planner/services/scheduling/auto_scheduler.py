"""
Auto-scheduler: suggested production dates from stage lead times.

For each batch the suggested date is its earliest due date minus the lead
time of its stage, in calendar days. Each prerequisite stage gets a
hypothetical date computed against the same due date; a prerequisite whose
lead time is strictly greater than the batch's own is reported as a missing
dependency for the operator to check.

Suggestions are advisory. Nothing is rejected and nothing is persisted;
whether a real batch of the prerequisite exists is answered by the chain
resolver, not here.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from batch_planner.services.scheduling.dependency_graph import DependencyGraph
from batch_planner.utils.constants import DEFAULT_LEAD_TIME_DAYS
from batch_planner.utils.datetime_utils import subtract_days, to_iso_date, to_naive_utc, utc_now


@dataclass(frozen=True)
class MissingDependency:
    """A prerequisite stage that must start before the dependent batch."""

    stage_code: str
    suggested_date: date
    lead_time: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.stage_code,
            "suggested_date": to_iso_date(self.suggested_date),
            "lead_time": self.lead_time,
        }


@dataclass
class ScheduleSuggestion:
    """Suggested production date for one batch.

    Attributes:
        batch_id: Batch identifier
        stage_code: Batch stage
        current_date: Date already scheduled, if any
        suggested_date: Earliest due date minus the stage lead time
        lead_time: Lead time used
        reason: Human-readable justification
        dependencies: Direct prerequisite stages of the batch's stage
        missing_dependencies: Prerequisites with a longer lead time, or None
    """

    batch_id: str
    stage_code: str
    current_date: Optional[date]
    suggested_date: date
    lead_time: int
    reason: str
    dependencies: List[str] = field(default_factory=list)
    missing_dependencies: Optional[List[MissingDependency]] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "batch_id": self.batch_id,
            "batch_type": self.stage_code,
            "current_date": to_iso_date(self.current_date),
            "suggested_date": to_iso_date(self.suggested_date),
            "lead_time": self.lead_time,
            "reason": self.reason,
            "dependencies": list(self.dependencies),
        }
        if self.missing_dependencies:
            result["missing_dependencies"] = [m.to_dict() for m in self.missing_dependencies]
        return result


def lead_time_for(
    stage_code: str,
    lead_times: Mapping[str, int],
    default: int = DEFAULT_LEAD_TIME_DAYS,
) -> int:
    """Lead time for a stage, falling back to ``default`` when unknown."""
    value = lead_times.get(stage_code)
    return default if value is None else value


def _as_graph(graph: Union[DependencyGraph, Mapping[str, Sequence[str]]]) -> DependencyGraph:
    if isinstance(graph, DependencyGraph):
        return graph
    return DependencyGraph(graph or {})


def _as_date(value: Optional[Union[date, datetime]]) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return to_naive_utc(value).date()
    return value


def suggest_for_batch(
    batch,
    graph: DependencyGraph,
    lead_times: Mapping[str, int],
    *,
    as_of: date,
    default_lead_time: int = DEFAULT_LEAD_TIME_DAYS,
) -> ScheduleSuggestion:
    """Suggest a production date for one batch.

    Args:
        batch: Object with batch_id, stage_code, earliest_due_date and
            scheduled_date attributes
        graph: Stage dependency graph
        lead_times: stage -> lead time days
        as_of: Due date used when the batch has none
        default_lead_time: Lead time for stages missing from lead_times

    Example:
        Due 2025-06-14 with lead time 3 -> suggested 2025-06-11.
    """
    due = _as_date(batch.earliest_due_date) or as_of
    lead_time = lead_time_for(batch.stage_code, lead_times, default_lead_time)
    suggested = subtract_days(due, lead_time)

    dependencies = graph.prerequisites_of(batch.stage_code)
    missing: List[MissingDependency] = []
    for dependency in dependencies:
        dependency_lead = lead_time_for(dependency, lead_times, default_lead_time)
        if dependency_lead > lead_time:
            missing.append(
                MissingDependency(
                    stage_code=dependency,
                    suggested_date=subtract_days(due, dependency_lead),
                    lead_time=dependency_lead,
                )
            )

    return ScheduleSuggestion(
        batch_id=batch.batch_id,
        stage_code=batch.stage_code,
        current_date=_as_date(batch.scheduled_date),
        suggested_date=suggested,
        lead_time=lead_time,
        reason=f"{lead_time} day(s) before earliest due date ({due.isoformat()})",
        dependencies=dependencies,
        missing_dependencies=missing or None,
    )


def suggest(
    batches: Iterable,
    graph: Union[DependencyGraph, Mapping[str, Sequence[str]]],
    lead_times: Mapping[str, int],
    *,
    as_of: Optional[date] = None,
    default_lead_time: int = DEFAULT_LEAD_TIME_DAYS,
) -> List[ScheduleSuggestion]:
    """Suggest production dates for a list of batches.

    Transaction boundary: Pure computation (no database access).

    Args:
        batches: Suggested and/or committed batches, in display order
        graph: DependencyGraph or stage -> prerequisites mapping
        lead_times: stage -> lead time days
        as_of: Stand-in due date for batches without one (default: today UTC)
        default_lead_time: Lead time for unknown stages

    Returns:
        One suggestion per batch, in input order
    """
    graph = _as_graph(graph)
    if as_of is None:
        as_of = utc_now().date()
    return [
        suggest_for_batch(
            batch, graph, lead_times, as_of=as_of, default_lead_time=default_lead_time
        )
        for batch in batches
    ]
