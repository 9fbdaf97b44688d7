"""
BatchType model for configurable production stages.

Each row defines one production stage (BAKE, PREP, STACK, ...), how many
days before the due date it happens, and which stages must come first.
"""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Integer,
    String,
    Text,
)

from .base import BaseModel


class BatchType(BaseModel):
    """
    Production stage configuration.

    Attributes:
        code: Unique stage code (e.g. "BAKE", "COLOR_BC")
        name: Display name
        description: Optional longer description
        lead_time_days: Days before the due date this stage happens
        depends_on: JSON-encoded list of prerequisite stage codes (nullable)
        is_batchable: Whether multiple items can share one batch
        sort_order: Position in the production sequence
        is_active: Inactive stages are ignored by planning
        color: Display color name
    """

    __tablename__ = "batch_type_configs"

    code = Column(String(32), nullable=False, unique=True, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    lead_time_days = Column(Integer, nullable=False, default=1)
    depends_on = Column(Text, nullable=True)
    is_batchable = Column(Boolean, nullable=False, default=True)
    sort_order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    color = Column(String(30), nullable=True)

    __table_args__ = (
        CheckConstraint("lead_time_days >= 0", name="ck_batch_type_lead_time_non_negative"),
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"BatchType(code='{self.code}', lead_time_days={self.lead_time_days})"
