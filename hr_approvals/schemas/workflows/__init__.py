from hr_approvals.schemas.workflows.approval import (
    ApprovalDecision,
    ApprovalHistoryEntry,
    ApprovalRequestCreate,
    Principal,
)
from hr_approvals.schemas.workflows.workflow_definition import (
    WorkflowDefinitionCreate,
    WorkflowStep,
    validate_step_sequence,
)

__all__ = [
    "ApprovalDecision",
    "ApprovalHistoryEntry",
    "ApprovalRequestCreate",
    "Principal",
    "WorkflowDefinitionCreate",
    "WorkflowStep",
    "validate_step_sequence",
]
