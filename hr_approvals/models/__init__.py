"""
Database models.

Importing this package registers every mapped class on `Base.metadata`.
"""

from hr_approvals.models.base import Base
from hr_approvals.models.hr import (
    Employee,
    LeaveRequest,
    PayrollRun,
    PerDiemRequest,
    PromotionRequest,
    UserProfile,
)
from hr_approvals.models.workflows import (
    ApprovalAction,
    ApprovalRequest,
    WorkflowDefinition,
)

__all__ = [
    "Base",
    "Employee",
    "UserProfile",
    "LeaveRequest",
    "PayrollRun",
    "PerDiemRequest",
    "PromotionRequest",
    "ApprovalAction",
    "ApprovalRequest",
    "WorkflowDefinition",
]
