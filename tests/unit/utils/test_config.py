"""Tests for environment-driven configuration."""

from pathlib import Path

from batch_planner.utils.config import Config, get_config, reset_config


class TestConfig:
    def test_production_database_in_documents(self):
        config = Config("production")

        assert config.database_dir == Path.home() / "Documents" / "BatchPlanner"
        assert config.database_url.endswith("BatchPlanner/batch_planner.db")
        assert config.database_url.startswith("sqlite:///")

    def test_development_database_in_project(self):
        config = Config("development")

        assert config.database_dir.name == "data"

    def test_database_url_override(self, monkeypatch):
        monkeypatch.setenv("BATCH_PLANNER_DATABASE_URL", "sqlite:///:memory:")

        assert Config().database_url == "sqlite:///:memory:"

    def test_default_lead_time_from_environment(self, monkeypatch):
        monkeypatch.setenv("BATCH_PLANNER_DEFAULT_LEAD_TIME", "2")

        assert Config().default_lead_time_days == 2

    def test_bad_lead_time_falls_back(self, monkeypatch, caplog):
        monkeypatch.setenv("BATCH_PLANNER_DEFAULT_LEAD_TIME", "soon")

        assert Config().default_lead_time_days == 1
        assert "Ignoring non-integer" in caplog.text

    def test_negative_lead_time_falls_back(self, monkeypatch):
        monkeypatch.setenv("BATCH_PLANNER_DEFAULT_LEAD_TIME", "-3")

        assert Config().default_lead_time_days == 1


class TestGetConfig:
    def test_singleton(self):
        assert get_config() is get_config()

    def test_environment_from_variable(self, monkeypatch):
        monkeypatch.setenv("BATCH_PLANNER_ENV", "development")
        reset_config()

        assert get_config().environment == "development"

    def test_later_environment_is_ignored(self):
        config = get_config("production")

        assert get_config("development") is config
        assert config.environment == "production"
