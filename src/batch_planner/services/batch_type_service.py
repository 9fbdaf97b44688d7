"""Service layer for production stage (batch type) configuration.

Provides CRUD for BatchType rows plus the registry loader used by planning.

Every write validates the resulting configuration as a whole:
- stage codes are upper-case identifiers and unique
- lead times are non-negative integers
- a stage never depends on itself
- every prerequisite is a configured stage
- the dependency graph stays acyclic

Reads are lenient: rows already stored with bad JSON or a self reference
are loaded with the bad part dropped (see registry.BatchTypeConfig).
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from batch_planner.models import BatchType
from batch_planner.services.database import session_scope
from batch_planner.services.exceptions import (
    BatchTypeNotFound,
    BatchTypeValidationError,
    DatabaseError,
    DemandFetchError,
)
from batch_planner.services.logging_utils import get_service_logger, log_operation
from batch_planner.services.scheduling.dependency_graph import DependencyGraph
from batch_planner.services.scheduling.registry import (
    BatchTypeConfig,
    BatchTypeRegistry,
    parse_stage_list,
)
from batch_planner.utils.config import get_config
from batch_planner.utils.constants import DEFAULT_BATCH_TYPES, STAGE_CODE_PATTERN

logger = get_service_logger(__name__)

_CODE_RE = re.compile(STAGE_CODE_PATTERN)

_EDITABLE_FIELDS = (
    "name",
    "description",
    "lead_time_days",
    "depends_on",
    "is_batchable",
    "sort_order",
    "is_active",
    "color",
)


# =============================================================================
# Validation Functions
# =============================================================================


def validate_batch_type_data(data: Dict[str, Any], *, partial: bool = False) -> List[str]:
    """Validate field values of a batch type, independent of other rows.

    Args:
        data: Field values (code, name, lead_time_days, depends_on, ...)
        partial: True for updates, where missing fields are not required

    Returns:
        List of error messages (empty when valid)
    """
    errors: List[str] = []

    if not partial or "code" in data:
        code = data.get("code")
        if not isinstance(code, str) or not _CODE_RE.match(code):
            errors.append(
                "Code must be upper-case letters, digits or underscores, starting with a letter"
            )

    if not partial or "name" in data:
        name = data.get("name")
        if not isinstance(name, str) or not name.strip():
            errors.append("Name is required")

    if "lead_time_days" in data:
        lead_time = data["lead_time_days"]
        if isinstance(lead_time, bool) or not isinstance(lead_time, int) or lead_time < 0:
            errors.append("Lead time must be a whole number of days (>= 0)")

    if "depends_on" in data and data["depends_on"] is not None:
        depends_on = data["depends_on"]
        if not isinstance(depends_on, (list, tuple)) or not all(
            isinstance(code, str) for code in depends_on
        ):
            errors.append("Depends on must be a list of stage codes")

    if "sort_order" in data and data["sort_order"] is not None:
        if isinstance(data["sort_order"], bool) or not isinstance(data["sort_order"], int):
            errors.append("Sort order must be a whole number")

    return errors


def _proposed_graph(
    rows: List[BatchType], code: str, depends_on: List[str]
) -> Dict[str, List[str]]:
    graph = {
        row.code: parse_stage_list(row.depends_on, field_name="depends_on", owner=row.code)
        for row in rows
    }
    graph[code] = list(depends_on)
    return graph


def _validate_dependencies(session: Session, code: str, depends_on: List[str]) -> None:
    """Validate a stage's prerequisites against every configured stage.

    Raises:
        BatchTypeValidationError: Self dependency or unknown prerequisite
        DependencyCycleError: The change would close a cycle
    """
    errors = []
    if code in depends_on:
        errors.append(f"Stage {code} cannot depend on itself")

    rows = session.query(BatchType).all()
    known = {row.code for row in rows} | {code}
    unknown = [dep for dep in depends_on if dep not in known]
    if unknown:
        errors.append(f"Unknown prerequisite stage(s): {', '.join(unknown)}")

    if errors:
        raise BatchTypeValidationError(errors)

    DependencyGraph(_proposed_graph(rows, code, depends_on)).validate()


def _encode_stage_list(codes) -> Optional[str]:
    codes = parse_stage_list(list(codes or []))
    return json.dumps(codes) if codes else None


def _get_model(session: Session, code: str) -> BatchType:
    row = session.query(BatchType).filter(BatchType.code == code).first()
    if row is None:
        raise BatchTypeNotFound(code)
    return row


# =============================================================================
# Read Functions
# =============================================================================


def list_batch_types(active_only: bool = True, session: Optional[Session] = None) -> List[BatchTypeConfig]:
    """List batch types ordered by sort order.

    Args:
        active_only: Leave out inactive stages (default True)
        session: Optional database session

    Returns:
        List of BatchTypeConfig snapshots
    """
    if session is not None:
        return _list_batch_types_impl(active_only, session)
    with session_scope() as session:
        return _list_batch_types_impl(active_only, session)


def _list_batch_types_impl(active_only: bool, session: Session) -> List[BatchTypeConfig]:
    query = session.query(BatchType)
    if active_only:
        query = query.filter(BatchType.is_active.is_(True))
    rows = query.order_by(BatchType.sort_order, BatchType.code).all()
    return [BatchTypeConfig.from_model(row) for row in rows]


def get_batch_type(code: str, session: Optional[Session] = None) -> BatchTypeConfig:
    """Get one batch type by code.

    Raises:
        BatchTypeNotFound: If no stage has this code
    """
    if session is not None:
        return BatchTypeConfig.from_model(_get_model(session, code))
    with session_scope() as session:
        return BatchTypeConfig.from_model(_get_model(session, code))


def load_registry(session: Session) -> BatchTypeRegistry:
    """Load the active batch types as a registry snapshot.

    Transaction boundary: Inherits session from caller (required parameter).

    Raises:
        DemandFetchError: source "batch_types" when the query fails
    """
    try:
        configs = _list_batch_types_impl(True, session)
    except SQLAlchemyError as e:
        logger.error(f"Failed to fetch batch types: {e}")
        raise DemandFetchError("batch_types", e) from e
    return BatchTypeRegistry(configs, default_lead_time=get_config().default_lead_time_days)


# =============================================================================
# Write Functions
# =============================================================================


def create_batch_type(data: Dict[str, Any], session: Optional[Session] = None) -> BatchTypeConfig:
    """Create a new production stage.

    Args:
        data: code and name required; lead_time_days, depends_on (list),
            is_batchable, sort_order, is_active, color, description optional
        session: Optional database session

    Raises:
        BatchTypeValidationError: Invalid fields, duplicate code, bad prerequisites
        DependencyCycleError: The new stage would close a cycle
        DatabaseError: If the write fails
    """
    try:
        if session is not None:
            return _create_batch_type_impl(data, session)
        with session_scope() as session:
            return _create_batch_type_impl(data, session)
    except SQLAlchemyError as e:
        logger.error(f"Failed to create batch type: {e}")
        raise DatabaseError(f"Failed to create batch type: {e}", e) from e


def _create_batch_type_impl(data: Dict[str, Any], session: Session) -> BatchTypeConfig:
    errors = validate_batch_type_data(data)
    if errors:
        raise BatchTypeValidationError(errors)

    code = data["code"]
    if session.query(BatchType).filter(BatchType.code == code).first() is not None:
        raise BatchTypeValidationError([f"Stage code {code} already exists"])

    depends_on = parse_stage_list(list(data.get("depends_on") or []))
    _validate_dependencies(session, code, depends_on)

    row = BatchType(
        code=code,
        name=data["name"].strip(),
        description=data.get("description"),
        lead_time_days=data.get("lead_time_days", get_config().default_lead_time_days),
        depends_on=_encode_stage_list(depends_on),
        is_batchable=data.get("is_batchable", True),
        sort_order=data.get("sort_order", 0),
        is_active=data.get("is_active", True),
        color=data.get("color"),
    )
    session.add(row)
    session.flush()

    log_operation(logger, operation="create_batch_type", outcome="success", code=code)
    return BatchTypeConfig.from_model(row)


def update_batch_type(
    code: str, updates: Dict[str, Any], session: Optional[Session] = None
) -> BatchTypeConfig:
    """Update an existing production stage. The code itself cannot change.

    Raises:
        BatchTypeNotFound: If no stage has this code
        BatchTypeValidationError: Invalid fields or prerequisites
        DependencyCycleError: The change would close a cycle
        DatabaseError: If the write fails
    """
    try:
        if session is not None:
            return _update_batch_type_impl(code, updates, session)
        with session_scope() as session:
            return _update_batch_type_impl(code, updates, session)
    except SQLAlchemyError as e:
        logger.error(f"Failed to update batch type: {e}")
        raise DatabaseError(f"Failed to update batch type: {e}", e) from e


def _update_batch_type_impl(code: str, updates: Dict[str, Any], session: Session) -> BatchTypeConfig:
    if "code" in updates and updates["code"] != code:
        raise BatchTypeValidationError(["Stage code cannot be changed"])

    errors = validate_batch_type_data(updates, partial=True)
    if errors:
        raise BatchTypeValidationError(errors)

    row = _get_model(session, code)

    if "depends_on" in updates:
        depends_on = parse_stage_list(list(updates["depends_on"] or []))
        _validate_dependencies(session, code, depends_on)
        row.depends_on = _encode_stage_list(depends_on)

    for field_name in _EDITABLE_FIELDS:
        if field_name == "depends_on" or field_name not in updates:
            continue
        value = updates[field_name]
        if field_name == "name":
            value = value.strip()
        setattr(row, field_name, value)

    session.flush()
    log_operation(
        logger,
        operation="update_batch_type",
        outcome="success",
        code=code,
        fields=sorted(updates),
    )
    return BatchTypeConfig.from_model(row)


def deactivate_batch_type(code: str, session: Optional[Session] = None) -> BatchTypeConfig:
    """Mark a stage inactive so planning ignores it.

    Raises:
        BatchTypeNotFound: If no stage has this code
    """
    return update_batch_type(code, {"is_active": False}, session=session)


def seed_default_batch_types(session: Optional[Session] = None) -> Dict[str, int]:
    """Create or update the default BAKE/PREP/STACK/ASSEMBLE/DECORATE stages.

    Returns:
        Dict with "created" and "updated" counts

    Raises:
        DatabaseError: If the write fails
    """
    try:
        if session is not None:
            return _seed_default_batch_types_impl(session)
        with session_scope() as session:
            return _seed_default_batch_types_impl(session)
    except SQLAlchemyError as e:
        logger.error(f"Failed to seed batch types: {e}")
        raise DatabaseError(f"Failed to seed batch types: {e}", e) from e


def _seed_default_batch_types_impl(session: Session) -> Dict[str, int]:
    counts = {"created": 0, "updated": 0}
    for default in DEFAULT_BATCH_TYPES:
        values = dict(default)
        values["depends_on"] = _encode_stage_list(values["depends_on"])
        row = session.query(BatchType).filter(BatchType.code == default["code"]).first()
        if row is None:
            session.add(BatchType(is_active=True, **values))
            counts["created"] += 1
        else:
            for key, value in values.items():
                setattr(row, key, value)
            counts["updated"] += 1
    session.flush()

    log_operation(
        logger,
        operation="seed_default_batch_types",
        outcome="success",
        level=logging.INFO,
        created_count=counts["created"],
        updated_count=counts["updated"],
    )
    return counts
