"""Tests for reconciling committed and suggested batches."""

from datetime import date, datetime

from batch_planner.models.enums import BatchStatus
from batch_planner.services.scheduling.aggregation import aggregate
from batch_planner.services.scheduling.reconciliation import (
    CommittedBatch,
    filter_batches,
    reconcile,
    summarize,
)


def _committed(id, stage_code, tier_ids=(), stock_task_ids=(), **kwargs):
    return CommittedBatch(
        id=id,
        name=f"{stage_code} batch {id}",
        stage_code=stage_code,
        tier_ids=tuple(tier_ids),
        stock_task_ids=tuple(stock_task_ids),
        **kwargs,
    )


class TestReconcile:
    """Test that committed batches win over suggestions."""

    def test_covered_tier_removed_from_same_stage(self, registry, make_tier):
        tiers = [
            make_tier(1, due=datetime(2025, 7, 1), batter_recipe="Vanilla", frosting_recipe="Swiss"),
            make_tier(2, due=datetime(2025, 7, 3), batter_recipe="Vanilla"),
        ]
        suggested = aggregate(tiers, registry)
        committed = [_committed(10, "BAKE", tier_ids=[1])]

        result = reconcile(committed, suggested)

        by_id = {b.batch_id: b for b in result.suggested}
        assert [t.tier_id for t in by_id["BAKE-Vanilla"].tiers] == [2]
        assert by_id["BAKE-Vanilla"].earliest_due_date == datetime(2025, 7, 3)
        # tier 1 is not committed to PREP, so it still needs a PREP batch
        assert [t.tier_id for t in by_id["PREP-Swiss"].tiers] == [1]
        assert result.committed == committed

    def test_fully_covered_batch_dropped(self, registry, make_tier):
        suggested = aggregate([make_tier(1, batter_recipe="Vanilla")], registry)

        result = reconcile([_committed(10, "BAKE", tier_ids=[1])], suggested)

        assert result.suggested == []
        assert [b.batch_id for b in result.all_batches] == ["batch:10"]

    def test_stock_key_does_not_cover_tier_with_same_id(self, registry, make_tier):
        suggested = aggregate([make_tier(1, batter_recipe="Vanilla")], registry)

        result = reconcile([_committed(10, "BAKE", stock_task_ids=[1])], suggested)

        assert [b.batch_id for b in result.suggested] == ["BAKE-Vanilla"]

    def test_nothing_committed(self, registry, make_tier):
        suggested = aggregate([make_tier(1, batter_recipe="Vanilla")], registry)

        result = reconcile([], suggested)

        assert result.suggested[0] is suggested[0]


class TestSummarize:
    """Test counts by status."""

    def test_empty(self):
        assert summarize([]).to_dict() == {
            "total_batches": 0,
            "unscheduled": 0,
            "scheduled": 0,
            "in_progress": 0,
            "completed": 0,
        }

    def test_counts(self, registry, make_tier):
        batches = aggregate([make_tier(1, batter_recipe="Vanilla")], registry) + [
            _committed(1, "BAKE", status=BatchStatus.SCHEDULED),
            _committed(2, "PREP", status=BatchStatus.SCHEDULED),
            _committed(3, "STACK", status=BatchStatus.COMPLETED),
        ]

        summary = summarize(batches)

        assert summary.total_batches == 4
        assert summary.unscheduled == 1
        assert summary.scheduled == 2
        assert summary.in_progress == 0
        assert summary.completed == 1


class TestFilterBatches:
    """Test stage and date range filters."""

    def test_stage_filter(self, registry, make_tier):
        batches = aggregate(
            [make_tier(1, batter_recipe="Vanilla", frosting_recipe="Swiss")], registry
        )

        assert [b.stage_code for b in filter_batches(batches, "PREP")] == ["PREP"]

    def test_suggested_batches_use_due_date(self, registry, make_tier):
        batches = aggregate(
            [
                make_tier(1, due=datetime(2025, 7, 1, 18), batter_recipe="Vanilla"),
                make_tier(2, due=datetime(2025, 7, 8), batter_recipe="Chocolate"),
            ],
            registry,
        )

        selected = filter_batches(batches, start_date=date(2025, 7, 1), end_date=date(2025, 7, 7))

        assert [b.batch_id for b in selected] == ["BAKE-Vanilla"]

    def test_committed_batches_use_scheduled_date(self):
        early = _committed(1, "BAKE", scheduled_date=datetime(2025, 6, 28))
        late = _committed(2, "BAKE", scheduled_date=datetime(2025, 7, 5))
        undated = _committed(3, "BAKE")

        selected = filter_batches([early, late, undated], end_date=date(2025, 6, 30))

        assert selected == [early]

    def test_no_range_keeps_undated(self):
        undated = _committed(3, "BAKE")

        assert filter_batches([undated]) == [undated]
