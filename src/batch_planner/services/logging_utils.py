"""Logging helpers for the planner services.

Service modules log through ``get_service_logger(__name__)`` so all planner
output sits under the ``batch_planner.services`` namespace, and report
outcomes with ``log_operation`` so handlers receive the same structured
fields (operation, outcome, plus any context) on every record.

Usage:
    from batch_planner.services.logging_utils import get_service_logger, log_operation

    logger = get_service_logger(__name__)
    log_operation(logger, "auto_schedule", "success", suggestions=12)
"""

import logging
import sys
from typing import Any

SERVICE_LOGGER_PREFIX = "batch_planner.services"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_service_logger(name: str) -> logging.Logger:
    """
    Logger under the service namespace for a module name.

    Only the last dotted component is kept, so scheduling modules and
    top-level services share one flat namespace.

    Example:
        >>> get_service_logger("batch_planner.services.scheduling.aggregation").name
        'batch_planner.services.aggregation'
    """
    return logging.getLogger(f"{SERVICE_LOGGER_PREFIX}.{name.rsplit('.', 1)[-1]}")


def log_operation(
    logger: logging.Logger,
    operation: str,
    outcome: str,
    level: int = logging.INFO,
    **context: Any,
) -> None:
    """
    Log ``"{operation}: {outcome}"`` with the context attached as ``extra``.

    Args:
        logger: Logger to write to
        operation: What ran (e.g. "aggregate", "commit_batch")
        outcome: How it ended (e.g. "success", "invalid_json", "dependency_cycle")
        level: Log level; DEBUG for per-unit skips, WARNING for absorbed
            data problems
        **context: Batch ids, stage codes, counts and similar fields. Names
            must not clash with LogRecord attributes such as ``name``.
    """
    extra = {"operation": operation, "outcome": outcome, **context}
    logger.log(level, f"{operation}: {outcome}", extra=extra)


def configure_cli_logging(verbose: bool = False) -> None:
    """Send log records to stderr: WARNING and up, or everything when verbose."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )
