"""
Batch type registry: the ordered set of production stage definitions.

The registry is an immutable snapshot of the active BatchType rows for one
planning pass. It answers the questions the aggregator and scheduler ask:
which stages exist, which are groupable, in what order they run, how long
before the due date each happens, and what each depends on.

Malformed stored configuration never aborts planning: unparseable
dependency JSON becomes an empty list and self references are dropped,
with a warning logged either way.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from batch_planner.services.logging_utils import get_service_logger, log_operation
from batch_planner.services.scheduling.dependency_graph import DependencyGraph
from batch_planner.utils.constants import DEFAULT_LEAD_TIME_DAYS, STAGE_ORDER

logger = get_service_logger(__name__)


def parse_stage_list(raw: Any, *, field_name: str = "stage list", owner: Optional[Any] = None) -> List[str]:
    """Parse a JSON-encoded (or already decoded) list of stage codes.

    Used for both BatchType.depends_on and CakeOrder.rush_skip_stages.

    Args:
        raw: None, a JSON string, or an iterable of codes
        field_name: Field name for the warning log
        owner: Identifier of the owning row for the warning log

    Returns:
        Stage codes in their original order without duplicates or blanks.
        Anything unparseable yields an empty list.

    Examples:
        >>> parse_stage_list('["BAKE", "PREP"]')
        ['BAKE', 'PREP']
        >>> parse_stage_list("not json")
        []
    """
    if raw is None or raw == "":
        return []

    value = raw
    if isinstance(raw, (str, bytes)):
        try:
            value = json.loads(raw)
        except (TypeError, ValueError):
            log_operation(
                logger,
                operation="parse_stage_list",
                outcome="invalid_json",
                level=logging.WARNING,
                field=field_name,
                owner=owner,
            )
            return []

    if value is None:
        return []
    if isinstance(value, str) or not isinstance(value, (list, tuple, set, frozenset)):
        log_operation(
            logger,
            operation="parse_stage_list",
            outcome="not_a_list",
            level=logging.WARNING,
            field=field_name,
            owner=owner,
        )
        return []

    codes: List[str] = []
    for item in value:
        if not isinstance(item, str):
            continue
        code = item.strip()
        if code and code not in codes:
            codes.append(code)
    return codes


@dataclass(frozen=True)
class BatchTypeConfig:
    """Snapshot of one production stage definition.

    Attributes:
        code: Unique stage code
        name: Display name
        lead_time_days: Days before the due date the stage happens (>= 0)
        depends_on: Prerequisite stage codes (never includes ``code``)
        is_batchable: Whether items are grouped into shared batches
        sort_order: Position in the production sequence
        is_active: Inactive stages are left out of the registry
        color: Display color
        description: Optional longer description
    """

    code: str
    name: str
    lead_time_days: int = DEFAULT_LEAD_TIME_DAYS
    depends_on: Tuple[str, ...] = field(default_factory=tuple)
    is_batchable: bool = True
    sort_order: int = 0
    is_active: bool = True
    color: Optional[str] = None
    description: Optional[str] = None

    def __post_init__(self):
        if self.code in self.depends_on:
            log_operation(
                logger,
                operation="load_batch_type",
                outcome="self_dependency_dropped",
                level=logging.WARNING,
                code=self.code,
            )
            object.__setattr__(
                self, "depends_on", tuple(c for c in self.depends_on if c != self.code)
            )
        elif not isinstance(self.depends_on, tuple):
            object.__setattr__(self, "depends_on", tuple(self.depends_on))

    @classmethod
    def from_model(cls, model) -> "BatchTypeConfig":
        """Snapshot a BatchType ORM row."""
        return cls(
            code=model.code,
            name=model.name,
            lead_time_days=model.lead_time_days if model.lead_time_days is not None else DEFAULT_LEAD_TIME_DAYS,
            depends_on=tuple(
                parse_stage_list(model.depends_on, field_name="depends_on", owner=model.code)
            ),
            is_batchable=bool(model.is_batchable),
            sort_order=model.sort_order or 0,
            is_active=bool(model.is_active),
            color=model.color,
            description=model.description,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "name": self.name,
            "description": self.description,
            "lead_time_days": self.lead_time_days,
            "depends_on": list(self.depends_on),
            "is_batchable": self.is_batchable,
            "sort_order": self.sort_order,
            "is_active": self.is_active,
            "color": self.color,
        }


class BatchTypeRegistry:
    """Ordered, read-only set of active stage definitions.

    Configs are ordered by (sort_order, code). Inactive configs are dropped;
    when a code appears twice the first occurrence wins.
    """

    def __init__(
        self,
        configs: Iterable[BatchTypeConfig],
        default_lead_time: int = DEFAULT_LEAD_TIME_DAYS,
    ):
        self.default_lead_time = default_lead_time
        by_code: Dict[str, BatchTypeConfig] = {}
        for config in configs:
            if not config.is_active:
                continue
            if config.code in by_code:
                log_operation(
                    logger,
                    operation="build_registry",
                    outcome="duplicate_code_ignored",
                    level=logging.WARNING,
                    code=config.code,
                )
                continue
            by_code[config.code] = config
        self._configs: Tuple[BatchTypeConfig, ...] = tuple(
            sorted(by_code.values(), key=lambda c: (c.sort_order, c.code))
        )
        self._by_code = {config.code: config for config in self._configs}
        self._rank = {config.code: index for index, config in enumerate(self._configs)}

    @classmethod
    def coerce(cls, value) -> "BatchTypeRegistry":
        """Accept either a registry or an iterable of configs."""
        if isinstance(value, cls):
            return value
        return cls(value or ())

    def __iter__(self) -> Iterator[BatchTypeConfig]:
        return iter(self._configs)

    def __len__(self) -> int:
        return len(self._configs)

    def __contains__(self, code: str) -> bool:
        return code in self._by_code

    @property
    def configs(self) -> Tuple[BatchTypeConfig, ...]:
        return self._configs

    @property
    def codes(self) -> List[str]:
        return [config.code for config in self._configs]

    def get(self, code: str) -> Optional[BatchTypeConfig]:
        return self._by_code.get(code)

    def lead_time(self, code: str) -> int:
        """Lead time for a stage; unknown stages fall back to the default."""
        config = self._by_code.get(code)
        return config.lead_time_days if config is not None else self.default_lead_time

    def lead_times(self) -> Dict[str, int]:
        return {config.code: config.lead_time_days for config in self._configs}

    def prerequisites(self, code: str) -> List[str]:
        config = self._by_code.get(code)
        return list(config.depends_on) if config is not None else []

    def is_groupable(self, code: str) -> bool:
        config = self._by_code.get(code)
        return config is not None and config.is_batchable

    def stage_rank(self, code: str) -> Tuple[int, int]:
        """Sort key placing registry stages first, then canonical stages, then the rest."""
        if code in self._rank:
            return (0, self._rank[code])
        if code in STAGE_ORDER:
            return (1, STAGE_ORDER.index(code))
        return (2, 0)

    def graph(self) -> DependencyGraph:
        return DependencyGraph.from_configs(self._configs)

    def to_list(self) -> List[Dict[str, Any]]:
        return [config.to_dict() for config in self._configs]

    def __repr__(self) -> str:
        return f"BatchTypeRegistry({self.codes!r})"


def registry_from_dicts(rows: Sequence[Dict[str, Any]], **kwargs) -> BatchTypeRegistry:
    """Build a registry from plain dicts (e.g. DEFAULT_BATCH_TYPES)."""
    configs = []
    for row in rows:
        configs.append(
            BatchTypeConfig(
                code=row["code"],
                name=row.get("name", row["code"]),
                lead_time_days=row.get("lead_time_days", DEFAULT_LEAD_TIME_DAYS),
                depends_on=tuple(parse_stage_list(row.get("depends_on"), owner=row["code"])),
                is_batchable=row.get("is_batchable", True),
                sort_order=row.get("sort_order", 0),
                is_active=row.get("is_active", True),
                color=row.get("color"),
                description=row.get("description"),
            )
        )
    return BatchTypeRegistry(configs, **kwargs)
