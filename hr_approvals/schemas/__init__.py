from hr_approvals.schemas.workflows import (
    ApprovalDecision,
    ApprovalHistoryEntry,
    ApprovalRequestCreate,
    Principal,
    WorkflowDefinitionCreate,
    WorkflowStep,
)

__all__ = [
    "ApprovalDecision",
    "ApprovalHistoryEntry",
    "ApprovalRequestCreate",
    "Principal",
    "WorkflowDefinitionCreate",
    "WorkflowStep",
]
