"""Tests for dependency edges and production chains."""

from dataclasses import dataclass, field
from datetime import date
from typing import FrozenSet, Optional

from batch_planner.services.scheduling.chain_resolver import (
    DependencyEdge,
    build_edges,
    chain_of,
    chains,
    is_missing_prerequisite,
)


@dataclass
class FakeBatch:
    batch_id: str
    stage_code: str
    keys: FrozenSet = field(default_factory=frozenset)
    scheduled_date: Optional[date] = None

    def demand_keys(self):
        return self.keys


def _edge(a, b):
    return DependencyEdge(from_batch_id=a, to_batch_id=b, from_stage="X", to_stage="Y")


class TestChainOf:
    """Test connected component lookup."""

    def test_chain_is_component_of_seed(self):
        edges = [_edge("A", "B"), _edge("B", "C"), _edge("D", "E")]

        assert chain_of("A", edges) == {"A", "B", "C"}
        assert chain_of("C", edges) == {"A", "B", "C"}
        assert chain_of("E", edges) == {"D", "E"}

    def test_seed_without_edges(self):
        assert chain_of("Z", [_edge("A", "B")]) == {"Z"}
        assert chain_of("Z", []) == {"Z"}

    def test_repeatable(self):
        edges = [_edge("A", "B"), _edge("C", "B")]

        assert chain_of("A", edges) == chain_of("A", edges) == {"A", "B", "C"}

    def test_chains_partition(self):
        edges = [_edge("A", "B"), _edge("B", "C"), _edge("D", "E")]

        result = chains(["A", "B", "C", "D", "E", "F"], edges)

        assert result["A"] == frozenset({"A", "B", "C"})
        assert result["A"] is result["C"]
        assert result["D"] == frozenset({"D", "E"})
        assert result["F"] == frozenset({"F"})


class TestBuildEdges:
    """Test edges between batches sharing demand across prerequisites."""

    def test_edges_from_prerequisite_batches(self, registry):
        bake = FakeBatch("BAKE-Vanilla", "BAKE", frozenset({("tier", 1), ("tier", 2)}))
        prep = FakeBatch("PREP-Swiss", "PREP", frozenset({("tier", 1)}))
        stack = FakeBatch("STACK-Alice", "STACK", frozenset({("tier", 1)}))
        other = FakeBatch("STACK-Bob", "STACK", frozenset({("tier", 3)}))

        edges = build_edges([bake, prep, stack, other], registry.graph())

        assert [(e.from_batch_id, e.to_batch_id) for e in edges] == [
            ("BAKE-Vanilla", "STACK-Alice"),
            ("PREP-Swiss", "STACK-Alice"),
        ]
        assert edges[0].from_stage == "BAKE"
        assert edges[0].to_stage == "STACK"

    def test_no_edges_without_shared_demand(self, registry):
        bake = FakeBatch("BAKE-Vanilla", "BAKE", frozenset({("tier", 1)}))
        stack = FakeBatch("STACK-Bob", "STACK", frozenset({("stock", 1)}))

        assert build_edges([bake, stack], registry.graph()) == []

    def test_no_edges_between_unrelated_stages(self, registry):
        bake = FakeBatch("BAKE-Vanilla", "BAKE", frozenset({("tier", 1)}))
        prep = FakeBatch("PREP-Swiss", "PREP", frozenset({("tier", 1)}))

        assert build_edges([bake, prep], registry.graph()) == []

    def test_edges_feed_chain(self, registry):
        bake = FakeBatch("BAKE-Vanilla", "BAKE", frozenset({("tier", 1)}))
        stack = FakeBatch("STACK-Alice", "STACK", frozenset({("tier", 1)}))
        assemble = FakeBatch("ASSEMBLE-Alice", "ASSEMBLE", frozenset({("tier", 1)}))
        lone = FakeBatch("BAKE-Chocolate", "BAKE", frozenset({("tier", 9)}))
        batches = [bake, stack, assemble, lone]

        edges = build_edges(batches, registry.graph())

        assert chain_of("BAKE-Vanilla", edges) == {"BAKE-Vanilla", "STACK-Alice", "ASSEMBLE-Alice"}
        assert chain_of("BAKE-Chocolate", edges) == {"BAKE-Chocolate"}

    def test_accepts_plain_mapping(self):
        bake = FakeBatch("BAKE-Vanilla", "BAKE", frozenset({("tier", 1)}))
        stack = FakeBatch("STACK-Alice", "STACK", frozenset({("tier", 1)}))

        edges = build_edges([bake, stack], {"STACK": ["BAKE"]})

        assert len(edges) == 1


class TestMissingFlag:
    """Test whether a prerequisite batch precedes its dependent."""

    def test_unscheduled_prerequisite_is_missing(self):
        prerequisite = FakeBatch("BAKE-Vanilla", "BAKE")
        dependent = FakeBatch("STACK-Alice", "STACK", scheduled_date=date(2025, 7, 1))

        assert is_missing_prerequisite(prerequisite, dependent)

    def test_earlier_or_same_day_is_fine(self):
        dependent = FakeBatch("STACK-Alice", "STACK", scheduled_date=date(2025, 7, 2))

        assert not is_missing_prerequisite(
            FakeBatch("a", "BAKE", scheduled_date=date(2025, 7, 1)), dependent
        )
        assert not is_missing_prerequisite(
            FakeBatch("b", "BAKE", scheduled_date=date(2025, 7, 2)), dependent
        )

    def test_later_prerequisite_is_missing(self):
        prerequisite = FakeBatch("BAKE-Vanilla", "BAKE", scheduled_date=date(2025, 7, 3))
        dependent = FakeBatch("STACK-Alice", "STACK", scheduled_date=date(2025, 7, 2))

        assert is_missing_prerequisite(prerequisite, dependent)

    def test_edge_carries_flag(self, registry):
        bake = FakeBatch("BAKE-Vanilla", "BAKE", frozenset({("tier", 1)}))
        stack = FakeBatch("STACK-Alice", "STACK", frozenset({("tier", 1)}))

        edge = build_edges([bake, stack], registry.graph())[0]

        assert edge.missing is True
        assert edge.to_dict()["missing"] is True
