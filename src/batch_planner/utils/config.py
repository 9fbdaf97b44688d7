"""
Configuration for the Bakery Batch Planner.

Settings come from the environment and are read once per process:

- BATCH_PLANNER_ENV: "production" (database in ~/Documents/BatchPlanner) or
  "development" (database in the project's data/ directory)
- BATCH_PLANNER_DATABASE_URL: any SQLAlchemy URL, replacing the SQLite file
- BATCH_PLANNER_DEFAULT_LEAD_TIME: lead time in days for stages the batch
  type registry does not know
"""

import logging
import os
from pathlib import Path
from typing import Optional

from .constants import APP_DIRECTORY_NAME, DATABASE_FILENAME, DEFAULT_LEAD_TIME_DAYS

logger = logging.getLogger(__name__)

ENV_ENVIRONMENT = "BATCH_PLANNER_ENV"
ENV_DATABASE_URL = "BATCH_PLANNER_DATABASE_URL"
ENV_DEFAULT_LEAD_TIME = "BATCH_PLANNER_DEFAULT_LEAD_TIME"


def _read_lead_time(default: int) -> int:
    raw = os.environ.get(ENV_DEFAULT_LEAD_TIME)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Ignoring non-integer {ENV_DEFAULT_LEAD_TIME}={raw!r}; using {default}")
        return default
    if value < 0:
        logger.warning(f"Ignoring negative {ENV_DEFAULT_LEAD_TIME}={raw!r}; using {default}")
        return default
    return value


class Config:
    """
    Planner settings for one environment.

    Args:
        environment: 'production' or 'development'
    """

    def __init__(self, environment: str = "production"):
        self.environment = environment
        if environment == "development":
            # src/batch_planner/utils/config.py -> project root
            self.database_dir = Path(__file__).parent.parent.parent.parent / "data"
        else:
            self.database_dir = Path.home() / "Documents" / APP_DIRECTORY_NAME
        self.database_path = self.database_dir / DATABASE_FILENAME
        self.default_lead_time_days = _read_lead_time(DEFAULT_LEAD_TIME_DAYS)

    def ensure_directories(self):
        """Create the database directory if it doesn't exist."""
        self.database_dir.mkdir(parents=True, exist_ok=True)

    @property
    def database_url(self) -> str:
        """SQLAlchemy URL: the environment override, else the SQLite file."""
        override = os.environ.get(ENV_DATABASE_URL)
        if override:
            return override
        return "sqlite:///" + str(self.database_path).replace("\\", "/")

    def __repr__(self) -> str:
        return f"Config(environment={self.environment!r}, database_url={self.database_url!r})"


_config_instance: Optional[Config] = None


def get_config(environment: Optional[str] = None) -> Config:
    """
    Process-wide configuration, created on first call.

    Args:
        environment: Used only when the singleton is first created; defaults
            to BATCH_PLANNER_ENV, then "production". A different value on a
            later call is logged and ignored so the database never switches
            mid-session.
    """
    global _config_instance

    if _config_instance is None:
        if environment is None:
            environment = os.environ.get(ENV_ENVIRONMENT, "production")
        _config_instance = Config(environment)
    elif environment is not None and environment != _config_instance.environment:
        logger.warning(
            f"get_config(environment={environment!r}) ignored; "
            f"already configured for {_config_instance.environment!r}"
        )

    return _config_instance


def reset_config():
    """Drop the singleton so the next get_config() re-reads the environment."""
    global _config_instance
    _config_instance = None
