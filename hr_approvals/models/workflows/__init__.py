# models/workflows/__init__.py
from .workflow_definition import WorkflowDefinition
from .approval_request import ApprovalRequest
from .approval_action import ApprovalAction

__all__ = [
    "WorkflowDefinition",
    "ApprovalRequest",
    "ApprovalAction",
]
