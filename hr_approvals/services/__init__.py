"""
Service layer.

Services own transactions; repositories below them only flush.
"""

from hr_approvals.services.base import BaseService
from hr_approvals.services.workflows import (
    ApprovalQueryService,
    ApprovalWorkflowService,
    DatabaseIdentityProvider,
    EntityStatusSynchronizer,
    IdentityProvider,
    RoleResolver,
    WorkflowDefinitionService,
)

__all__ = [
    "BaseService",
    "ApprovalQueryService",
    "ApprovalWorkflowService",
    "DatabaseIdentityProvider",
    "EntityStatusSynchronizer",
    "IdentityProvider",
    "RoleResolver",
    "WorkflowDefinitionService",
]
