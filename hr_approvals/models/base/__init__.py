"""
Base models package.

Provides base classes and enums for all database models.
"""

from hr_approvals.models.base.base_model import (
    Base,
    BaseModel,
    TimestampModel,
    new_uuid,
    utc_now,
)

from hr_approvals.models.base.enums import (
    ApprovalOutcome,
    ApprovalStatus,
    UserRole,
    WorkflowEntityType,
    enum_values,
)

__all__ = [
    # Base models
    "Base",
    "BaseModel",
    "TimestampModel",
    "new_uuid",
    "utc_now",

    # Enums
    "ApprovalOutcome",
    "ApprovalStatus",
    "UserRole",
    "WorkflowEntityType",
    "enum_values",
]
