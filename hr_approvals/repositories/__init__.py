from hr_approvals.repositories.base import BaseRepository
from hr_approvals.repositories.hr import EntityStatusRepository, UserProfileRepository
from hr_approvals.repositories.workflows import (
    ApprovalActionRepository,
    ApprovalRequestRepository,
    WorkflowDefinitionRepository,
)

__all__ = [
    "BaseRepository",
    "EntityStatusRepository",
    "UserProfileRepository",
    "ApprovalActionRepository",
    "ApprovalRequestRepository",
    "WorkflowDefinitionRepository",
]
