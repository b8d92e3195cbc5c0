"""
Approval workflow services.
"""

from hr_approvals.services.workflows.approval_query_service import ApprovalQueryService
from hr_approvals.services.workflows.approval_workflow_service import ApprovalWorkflowService
from hr_approvals.services.workflows.entity_status_sync import (
    DEFAULT_STATUS_POLICIES,
    LEAVE_POLICY,
    PAYROLL_POLICY,
    PER_DIEM_POLICY,
    PROMOTION_POLICY,
    SINGLE_STEP,
    EntityStatusSynchronizer,
    StatusPolicy,
    StatusTable,
    StatusTransition,
    chain_of,
)
from hr_approvals.services.workflows.identity import DatabaseIdentityProvider, IdentityProvider
from hr_approvals.services.workflows.role_resolver import (
    ApprovalRule,
    LineManagerRule,
    RoleResolver,
    StaticRoleRule,
    SuperRoleRule,
)
from hr_approvals.services.workflows.workflow_definition_service import (
    WorkflowDefinitionService,
    coerce_entity_type,
)

__all__ = [
    "ApprovalQueryService",
    "ApprovalWorkflowService",
    "WorkflowDefinitionService",
    "coerce_entity_type",
    # Status synchronization
    "DEFAULT_STATUS_POLICIES",
    "LEAVE_POLICY",
    "PAYROLL_POLICY",
    "PER_DIEM_POLICY",
    "PROMOTION_POLICY",
    "SINGLE_STEP",
    "EntityStatusSynchronizer",
    "StatusPolicy",
    "StatusTable",
    "StatusTransition",
    "chain_of",
    # Identity and authorization
    "DatabaseIdentityProvider",
    "IdentityProvider",
    "ApprovalRule",
    "LineManagerRule",
    "RoleResolver",
    "StaticRoleRule",
    "SuperRoleRule",
]
