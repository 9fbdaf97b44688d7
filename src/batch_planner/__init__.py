"""Bakery Batch Planner: production batch aggregation and scheduling."""

from .utils.constants import APP_VERSION

__version__ = APP_VERSION
