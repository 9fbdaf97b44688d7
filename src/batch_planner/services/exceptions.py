"""Service layer exception classes for the Bakery Batch Planner.

This module defines all custom exceptions used by the service layer to provide
consistent error handling across the application.

Exception Hierarchy:
    ServiceError (base)
    ├── ValidationError
    │   └── BatchTypeValidationError
    │       └── DependencyCycleError
    ├── BatchTypeNotFound
    ├── ProductionBatchNotFound
    ├── DemandFetchError
    └── DatabaseError  (write failures)
"""

from typing import List, Optional, Sequence


class ServiceError(Exception):
    """Base exception for all service layer errors.

    All service-specific exceptions should inherit from this class.
    """

    pass


class ValidationError(ServiceError):
    """Raised when data validation fails."""

    def __init__(self, errors: list):
        self.errors = errors
        error_msg = "; ".join(errors)
        super().__init__(f"Validation failed: {error_msg}")


class BatchTypeValidationError(ValidationError):
    """Raised when a batch type configuration change is rejected."""

    pass


class DependencyCycleError(BatchTypeValidationError):
    """Raised when a stage dependency change would introduce a cycle.

    Args:
        cycle: Stage codes along the cycle, first code repeated at the end

    Example:
        >>> raise DependencyCycleError(["STACK", "BAKE", "STACK"])
        DependencyCycleError: Validation failed: Dependency cycle: STACK -> BAKE -> STACK
    """

    def __init__(self, cycle: Sequence[str]):
        self.cycle = list(cycle)
        super().__init__([f"Dependency cycle: {' -> '.join(self.cycle)}"])


class BatchTypeNotFound(ServiceError):
    """Raised when a batch type cannot be found by code."""

    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Batch type '{code}' not found")


class ProductionBatchNotFound(ServiceError):
    """Raised when a committed production batch cannot be found by ID."""

    def __init__(self, batch_id: int):
        self.batch_id = batch_id
        super().__init__(f"Production batch with ID {batch_id} not found")


class DemandFetchError(ServiceError):
    """Raised when a collaborator query feeding batch planning fails.

    This is the only fatal condition of a planning computation; callers
    decide how to present it.

    Args:
        source: Which fetch failed ("orders", "stock_tasks", "batch_types",
            "committed_batches")
        original_error: The underlying exception
    """

    def __init__(self, source: str, original_error: Optional[Exception] = None):
        self.source = source
        self.original_error = original_error
        detail = f": {original_error}" if original_error is not None else ""
        super().__init__(f"Failed to fetch {source}{detail}")


class DatabaseError(ServiceError):
    """Raised when a database operation fails."""

    def __init__(self, message: str, original_error: Exception = None):
        self.original_error = original_error
        super().__init__(f"Database error: {message}")


def format_errors(errors: List[str]) -> str:
    """Join validation messages for display."""
    return "\n".join(f"- {error}" for error in errors)
