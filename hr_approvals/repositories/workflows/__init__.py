from .workflow_definition_repository import WorkflowDefinitionRepository
from .approval_request_repository import ApprovalRequestRepository
from .approval_action_repository import ApprovalActionRepository

__all__ = [
    "WorkflowDefinitionRepository",
    "ApprovalRequestRepository",
    "ApprovalActionRepository",
]
