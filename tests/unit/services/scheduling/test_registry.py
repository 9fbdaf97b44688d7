"""Tests for the batch type registry and stage list parsing."""

import logging

import pytest

from batch_planner.services.scheduling.registry import (
    BatchTypeConfig,
    BatchTypeRegistry,
    parse_stage_list,
    registry_from_dicts,
)


class TestParseStageList:
    """Test lenient parsing of JSON stage lists."""

    def test_json_string(self):
        assert parse_stage_list('["BAKE", "PREP"]') == ["BAKE", "PREP"]

    def test_already_decoded_list(self):
        assert parse_stage_list(["BAKE", "PREP"]) == ["BAKE", "PREP"]

    @pytest.mark.parametrize("raw", [None, "", "null", "[]"])
    def test_empty_values(self, raw):
        assert parse_stage_list(raw) == []

    def test_blanks_duplicates_and_non_strings_are_dropped(self):
        assert parse_stage_list('["BAKE", " ", "BAKE", 3, " PREP "]') == ["BAKE", "PREP"]

    def test_malformed_json_is_empty_and_logged(self, caplog):
        with caplog.at_level(logging.WARNING):
            assert parse_stage_list("[BAKE", field_name="depends_on", owner="STACK") == []

        record = next(r for r in caplog.records if "invalid_json" in r.getMessage())
        assert record.levelno == logging.WARNING
        assert record.owner == "STACK"

    def test_json_that_is_not_a_list(self, caplog):
        with caplog.at_level(logging.WARNING):
            assert parse_stage_list('{"BAKE": 1}') == []
            assert parse_stage_list('"BAKE"') == []

        assert sum("not_a_list" in r.getMessage() for r in caplog.records) == 2


class TestBatchTypeConfig:
    """Test stage definition snapshots."""

    def test_self_dependency_is_dropped(self, caplog):
        with caplog.at_level(logging.WARNING):
            config = BatchTypeConfig("STACK", "Stack", depends_on=("BAKE", "STACK"))

        assert config.depends_on == ("BAKE",)
        assert any("self_dependency_dropped" in r.getMessage() for r in caplog.records)

    def test_list_dependencies_become_tuple(self):
        config = BatchTypeConfig("STACK", "Stack", depends_on=["BAKE"])

        assert config.depends_on == ("BAKE",)

    def test_to_dict(self):
        config = BatchTypeConfig("BAKE", "Bake Cakes", lead_time_days=3, color="orange")

        assert config.to_dict()["depends_on"] == []
        assert config.to_dict()["lead_time_days"] == 3
        assert config.to_dict()["color"] == "orange"


class TestBatchTypeRegistry:
    """Test registry ordering and lookups."""

    def test_default_stages_in_sort_order(self, registry):
        assert registry.codes == ["BAKE", "PREP", "STACK", "ASSEMBLE", "DECORATE"]

    def test_inactive_configs_are_excluded(self):
        registry = BatchTypeRegistry(
            [BatchTypeConfig("BAKE", "Bake"), BatchTypeConfig("OLD", "Old", is_active=False)]
        )

        assert "OLD" not in registry
        assert len(registry) == 1

    def test_first_duplicate_wins(self):
        registry = BatchTypeRegistry(
            [
                BatchTypeConfig("BAKE", "Bake", lead_time_days=3),
                BatchTypeConfig("BAKE", "Bake again", lead_time_days=9),
            ]
        )

        assert registry.lead_time("BAKE") == 3

    def test_sort_order_then_code(self):
        registry = BatchTypeRegistry(
            [
                BatchTypeConfig("ZEST", "Zest", sort_order=1),
                BatchTypeConfig("APPLE", "Apple", sort_order=1),
                BatchTypeConfig("BAKE", "Bake", sort_order=0),
            ]
        )

        assert registry.codes == ["BAKE", "APPLE", "ZEST"]

    def test_lead_times(self, registry):
        assert registry.lead_times() == {
            "BAKE": 3,
            "PREP": 2,
            "STACK": 2,
            "ASSEMBLE": 1,
            "DECORATE": 1,
        }

    def test_unknown_stage_falls_back(self, registry):
        assert registry.lead_time("GLAZE") == 1
        assert registry.prerequisites("GLAZE") == []
        assert registry.get("GLAZE") is None
        assert not registry.is_groupable("GLAZE")

    def test_custom_default_lead_time(self):
        registry = BatchTypeRegistry([], default_lead_time=4)

        assert registry.lead_time("GLAZE") == 4

    def test_groupable(self, registry):
        assert registry.is_groupable("BAKE")
        assert not registry.is_groupable("DECORATE")

    def test_stage_rank(self, registry):
        assert registry.stage_rank("BAKE") < registry.stage_rank("PREP")
        assert registry.stage_rank("DECORATE") < registry.stage_rank("FROST")
        assert registry.stage_rank("FROST") < registry.stage_rank("UNKNOWN")

    def test_graph(self, registry):
        graph = registry.graph()

        assert graph.prerequisites_of("STACK") == ["BAKE", "PREP"]
        assert graph.prerequisites_of("BAKE") == []

    def test_coerce(self, registry):
        assert BatchTypeRegistry.coerce(registry) is registry
        assert BatchTypeRegistry.coerce(None).codes == []

    def test_registry_from_dicts_parses_json_dependencies(self):
        registry = registry_from_dicts(
            [
                {"code": "BAKE", "name": "Bake"},
                {"code": "STACK", "name": "Stack", "depends_on": '["BAKE"]'},
            ]
        )

        assert registry.prerequisites("STACK") == ["BAKE"]
