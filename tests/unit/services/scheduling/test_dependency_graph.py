"""Tests for the stage dependency graph."""

import pytest

from batch_planner.services.exceptions import DependencyCycleError
from batch_planner.services.scheduling.dependency_graph import (
    DependencyGraph,
    build_graph,
    find_cycles,
)
from batch_planner.services.scheduling.registry import BatchTypeConfig


class TestBuildGraph:
    """Test adjacency construction from configs."""

    def test_default_stages(self, registry):
        graph = build_graph(registry)

        assert graph == {
            "BAKE": [],
            "PREP": [],
            "STACK": ["BAKE", "PREP"],
            "ASSEMBLE": ["STACK"],
            "DECORATE": ["ASSEMBLE"],
        }

    def test_referenced_prerequisites_become_keys(self):
        graph = build_graph([BatchTypeConfig("STACK", "Stack", depends_on=("BAKE", "CHILL"))])

        assert graph == {"STACK": ["BAKE", "CHILL"], "BAKE": [], "CHILL": []}

    def test_every_prerequisite_is_a_key(self, registry):
        graph = build_graph(registry)

        for prerequisites in graph.values():
            for code in prerequisites:
                assert code in graph


class TestFindCycles:
    """Test DFS cycle detection."""

    def test_acyclic(self, registry):
        assert find_cycles(build_graph(registry)) == []

    def test_two_stage_cycle(self):
        cycles = find_cycles({"A": ["B"], "B": ["A"]})

        assert cycles == [["A", "B", "A"]]

    def test_longer_cycle(self):
        cycles = find_cycles({"A": ["B"], "B": ["C"], "C": ["A"], "D": []})

        assert cycles == [["A", "B", "C", "A"]]

    def test_diamond_is_not_a_cycle(self):
        graph = {"D": ["B", "C"], "B": ["A"], "C": ["A"], "A": []}

        assert find_cycles(graph) == []


class TestDependencyGraph:
    """Test graph lookups and ordering."""

    def test_self_references_and_duplicates_are_dropped(self):
        graph = DependencyGraph({"A": ["A", "B", "B"]})

        assert graph.prerequisites_of("A") == ["B"]
        assert "B" in graph

    def test_unknown_stage_has_no_prerequisites(self, registry):
        assert registry.graph().prerequisites_of("GLAZE") == []

    def test_all_prerequisites(self, registry):
        graph = registry.graph()

        assert graph.all_prerequisites("DECORATE") == ["ASSEMBLE", "STACK", "BAKE", "PREP"]
        assert graph.all_prerequisites("BAKE") == []

    def test_all_prerequisites_terminates_on_cycle(self):
        graph = DependencyGraph({"A": ["B"], "B": ["A"]})

        assert graph.all_prerequisites("A") == ["B"]

    def test_dependents_of(self, registry):
        assert registry.graph().dependents_of("BAKE") == ["STACK"]

    def test_topological_order(self, registry):
        order = registry.graph().topological_order()

        assert order == ["BAKE", "PREP", "STACK", "ASSEMBLE", "DECORATE"]

    def test_validate_raises_on_cycle(self):
        graph = DependencyGraph({"STACK": ["BAKE"], "BAKE": ["STACK"]})

        assert graph.has_cycles
        with pytest.raises(DependencyCycleError) as exc_info:
            graph.validate()
        assert exc_info.value.cycle == ["STACK", "BAKE", "STACK"]
        assert "STACK -> BAKE -> STACK" in str(exc_info.value)

    def test_topological_order_rejects_cycles(self):
        with pytest.raises(DependencyCycleError):
            DependencyGraph({"A": ["B"], "B": ["A"]}).topological_order()
