"""Tests for the batch-planner command line."""

import json
import logging
from datetime import date

import pytest

from batch_planner import cli
from batch_planner.services import batch_type_service
from batch_planner.services.exceptions import BatchTypeValidationError


class TestCli:
    """Test CLI commands against the test database."""

    def test_seed_and_list(self, test_db, capsys):
        assert cli.main(["seed-batch-types"]) == 0
        assert json.loads(capsys.readouterr().out) == {"created": 5, "updated": 0}

        assert cli.main(["batch-types"]) == 0
        codes = [row["code"] for row in json.loads(capsys.readouterr().out)]
        assert codes == ["BAKE", "PREP", "STACK", "ASSEMBLE", "DECORATE"]

    def test_batches(self, test_db, default_batch_types, make_order, capsys):
        make_order(date(2025, 7, 1), [{"batter": "Vanilla"}])

        assert cli.main(["batches", "--stage", "BAKE", "--start", "2025-07-01"]) == 0

        payload = json.loads(capsys.readouterr().out)
        assert [b["id"] for b in payload["batches"]] == ["BAKE-Vanilla"]
        assert payload["summary"]["total_batches"] == 1

    def test_auto_schedule(self, test_db, default_batch_types, make_order, capsys):
        make_order(date(2025, 7, 1), [{"batter": "Vanilla"}])

        assert cli.main(["auto-schedule"]) == 0

        payload = json.loads(capsys.readouterr().out)
        assert payload["suggestions"][0]["suggested_date"] == "2025-06-28"
        assert payload["message"] == "Generated 1 scheduling suggestions"

    def test_chain(self, test_db, default_batch_types, capsys):
        assert cli.main(["chain", "BAKE-Vanilla"]) == 0

        assert json.loads(capsys.readouterr().out) == {
            "batch_id": "BAKE-Vanilla",
            "chain": ["BAKE-Vanilla"],
        }

    def test_validation_error_exit_code(self, test_db, capsys, monkeypatch):
        def reject(active_only=True):
            raise BatchTypeValidationError(["Name is required"])

        monkeypatch.setattr(batch_type_service, "list_batch_types", reject)

        assert cli.main(["batch-types"]) == 1
        assert "Name is required" in capsys.readouterr().err

    def test_bad_date_is_a_usage_error(self, test_db, capsys):
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["batches", "--start", "July 1st"])

        assert exc_info.value.code == 2

    def test_database_url_option(self, tmp_path, monkeypatch, capsys):
        import batch_planner.services.database as db_module

        monkeypatch.setattr(db_module, "_engine", None)
        monkeypatch.setattr(db_module, "_SessionFactory", None)
        url = f"sqlite:///{tmp_path / 'planner.db'}"

        assert cli.main(["--database-url", url, "init-db"]) == 0
        assert cli.main(["--database-url", url, "seed-batch-types"]) == 0
        capsys.readouterr()
        assert cli.main(["--database-url", url, "batch-types"]) == 0

        assert len(json.loads(capsys.readouterr().out)) == 5
        db_module._engine.dispose()

    def test_no_command_prints_help(self, capsys):
        assert cli.main([]) == 1
        assert "batch-planner" in capsys.readouterr().out


class TestCliVerbose:
    def test_verbose_seed(self, test_db, caplog, capsys):
        caplog.set_level(logging.DEBUG)

        assert cli.main(["--verbose", "seed-batch-types"]) == 0

        assert json.loads(capsys.readouterr().out) == {"created": 5, "updated": 0}
        assert "seed_default_batch_types: success" in caplog.text
