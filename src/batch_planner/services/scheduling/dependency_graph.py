"""
Dependency graph between production stages.

Built from the batch type registry: each stage code maps to the stage codes
that must happen before it. Every prerequisite referenced anywhere is also a
key (possibly with no prerequisites of its own), so lookups never fail.

Cycle detection is a depth-first search that tracks the current recursion
stack; a back edge to a stage still on the stack closes a cycle.
"""

from collections import deque
from typing import Dict, Iterable, List, Mapping, Sequence

from batch_planner.services.exceptions import DependencyCycleError


def build_graph(configs: Iterable) -> Dict[str, List[str]]:
    """Build the stage -> prerequisites adjacency from batch type configs.

    Args:
        configs: Objects with ``code`` and ``depends_on`` attributes, in
            registry order

    Returns:
        Dict in registry order; prerequisites referenced but not configured
        are appended as keys with empty lists. Self references are dropped.

    Example:
        >>> build_graph([BatchTypeConfig("STACK", "Stack", depends_on=("BAKE",))])
        {'STACK': ['BAKE'], 'BAKE': []}
    """
    graph: Dict[str, List[str]] = {}
    for config in configs:
        prerequisites: List[str] = []
        for code in config.depends_on or ():
            if code != config.code and code not in prerequisites:
                prerequisites.append(code)
        graph[config.code] = prerequisites

    missing: List[str] = []
    for prerequisites in graph.values():
        for code in prerequisites:
            if code not in graph and code not in missing:
                missing.append(code)
    for code in missing:
        graph[code] = []

    return graph


def find_cycles(graph: Mapping[str, Sequence[str]]) -> List[List[str]]:
    """Find dependency cycles in a stage graph.

    Args:
        graph: stage -> prerequisites mapping

    Returns:
        One list per back edge found, each starting and ending with the same
        stage code (e.g. ["A", "B", "A"]). Empty when the graph is acyclic.
    """
    unvisited, on_stack, done = 0, 1, 2
    state: Dict[str, int] = {code: unvisited for code in graph}
    path: List[str] = []
    cycles: List[List[str]] = []

    def visit(code: str) -> None:
        state[code] = on_stack
        path.append(code)
        for prerequisite in graph.get(code, ()):
            prerequisite_state = state.get(prerequisite, unvisited)
            if prerequisite_state == on_stack:
                start = path.index(prerequisite)
                cycles.append(path[start:] + [prerequisite])
            elif prerequisite_state == unvisited:
                visit(prerequisite)
        path.pop()
        state[code] = done

    for code in graph:
        if state[code] == unvisited:
            visit(code)

    return cycles


class DependencyGraph:
    """Read-only view over a stage -> prerequisites adjacency."""

    def __init__(self, adjacency: Mapping[str, Sequence[str]]):
        self._adjacency: Dict[str, List[str]] = {}
        for code, prerequisites in adjacency.items():
            unique: List[str] = []
            for prerequisite in prerequisites:
                if prerequisite != code and prerequisite not in unique:
                    unique.append(prerequisite)
            self._adjacency[code] = unique
        for prerequisites in list(self._adjacency.values()):
            for code in prerequisites:
                self._adjacency.setdefault(code, [])

    @classmethod
    def from_configs(cls, configs: Iterable) -> "DependencyGraph":
        return cls(build_graph(configs))

    @property
    def stages(self) -> List[str]:
        return list(self._adjacency)

    def __contains__(self, code: str) -> bool:
        return code in self._adjacency

    def prerequisites_of(self, code: str) -> List[str]:
        """Direct prerequisites of a stage; empty for unknown stages."""
        return list(self._adjacency.get(code, ()))

    def dependents_of(self, code: str) -> List[str]:
        """Stages that list ``code`` as a direct prerequisite."""
        return [stage for stage, prereqs in self._adjacency.items() if code in prereqs]

    def all_prerequisites(self, code: str) -> List[str]:
        """Transitive prerequisites of a stage in breadth-first order.

        Terminates on cyclic graphs; the stage itself is never included.
        """
        seen = {code}
        ordered: List[str] = []
        queue = deque(self._adjacency.get(code, ()))
        while queue:
            current = queue.popleft()
            if current in seen:
                continue
            seen.add(current)
            ordered.append(current)
            queue.extend(self._adjacency.get(current, ()))
        return ordered

    def find_cycles(self) -> List[List[str]]:
        return find_cycles(self._adjacency)

    @property
    def has_cycles(self) -> bool:
        return bool(self.find_cycles())

    def validate(self) -> None:
        """Raise DependencyCycleError for the first cycle found."""
        cycles = self.find_cycles()
        if cycles:
            raise DependencyCycleError(cycles[0])

    def topological_order(self) -> List[str]:
        """Stages ordered so every prerequisite precedes its dependents.

        Ties keep registry order.

        Raises:
            DependencyCycleError: If the graph has a cycle
        """
        self.validate()
        remaining: Dict[str, int] = {
            code: len(prereqs) for code, prereqs in self._adjacency.items()
        }
        ordered: List[str] = []
        while remaining:
            ready = next(code for code, count in remaining.items() if count == 0)
            ordered.append(ready)
            del remaining[ready]
            for dependent in self.dependents_of(ready):
                if dependent in remaining:
                    remaining[dependent] -= 1
        return ordered

    def as_dict(self) -> Dict[str, List[str]]:
        return {code: list(prereqs) for code, prereqs in self._adjacency.items()}

    def __repr__(self) -> str:
        return f"DependencyGraph({self.as_dict()!r})"
