"""
Read side of the approval workflow: status lookups, approver inboxes,
history and authorization checks.
"""

from typing import Dict, List, Optional, Union

from hr_approvals.models.base import WorkflowEntityType
from hr_approvals.models.workflows import ApprovalRequest
from hr_approvals.repositories.workflows import ApprovalActionRepository, ApprovalRequestRepository
from hr_approvals.schemas.workflows import ApprovalHistoryEntry, Principal, WorkflowStep
from hr_approvals.services.base import BaseService
from hr_approvals.services.workflows.role_resolver import RoleResolver
from hr_approvals.services.workflows.workflow_definition_service import (
    WorkflowDefinitionService,
    coerce_entity_type,
)


class ApprovalQueryService(BaseService):
    """Read-only queries over approval requests and their action log."""

    def __init__(
        self,
        db_session,
        role_resolver: Optional[RoleResolver] = None,
        definitions: Optional[WorkflowDefinitionService] = None,
    ):
        super().__init__(db_session)
        self.requests = ApprovalRequestRepository(db_session)
        self.actions = ApprovalActionRepository(db_session)
        self.resolver = role_resolver or RoleResolver()
        self.definitions = definitions or WorkflowDefinitionService(db_session)

    def get_approval_status(
        self,
        entity_type: Union[WorkflowEntityType, str],
        entity_id: str,
    ) -> Optional[ApprovalRequest]:
        """
        Most recent request for an entity, or None if it never had one.

        Raises:
            ValidationError: Unknown entity type
        """
        return self.requests.get_latest_for_entity(coerce_entity_type(entity_type), entity_id)

    def get_pending_approvals_for_user(
        self,
        organization_id: str,
        user_id: str,
        role: str,
        employee_id: Optional[str] = None,
        is_line_manager: bool = False,
    ) -> List[ApprovalRequest]:
        """
        Pending requests whose current step this user may decide, newest first.

        Filters with the same rules as `can_user_approve`, so a request
        shows up here exactly when the user is allowed to act on it.
        """
        principal = Principal(
            user_id=user_id,
            organization_id=organization_id,
            role=role,
            employee_id=employee_id,
            is_line_manager=is_line_manager,
        )

        steps_by_workflow: Dict[Optional[str], List[WorkflowStep]] = {}
        actionable = []
        for request, requester_manager_id in self.requests.list_pending_with_requester_managers(organization_id):
            if request.workflow_id not in steps_by_workflow:
                steps_by_workflow[request.workflow_id] = self.definitions.resolve_steps(request.workflow)
            step = self.definitions.step_at(steps_by_workflow[request.workflow_id], request.current_step)
            if self.resolver.can_approve(step, principal, requester_manager_id):
                actionable.append(request)
        return actionable

    def get_approval_history(
        self,
        entity_type: Union[WorkflowEntityType, str],
        entity_id: str,
    ) -> List[ApprovalHistoryEntry]:
        """
        Decisions on the entity's most recent request, oldest first.

        Raises:
            ValidationError: Unknown entity type
        """
        request = self.requests.get_latest_for_entity(coerce_entity_type(entity_type), entity_id)
        if request is None:
            return []

        history = []
        for action, first_name, last_name in self.actions.history_for_request(request.id):
            name = " ".join(part for part in (first_name, last_name) if part) or None
            history.append(
                ApprovalHistoryEntry(
                    id=action.id,
                    request_id=action.request_id,
                    step_number=action.step_number,
                    approver_id=action.approver_id,
                    approver_name=name,
                    approver_role=action.approver_role,
                    outcome=action.outcome,
                    comments=action.comments,
                    created_at=action.created_at,
                )
            )
        return history

    def can_user_approve(
        self,
        request_id: str,
        role: str,
        employee_id: Optional[str] = None,
        is_line_manager: bool = False,
    ) -> bool:
        """Whether a principal may decide the request's current step right now."""
        found = self.requests.get_with_requester_manager(request_id)
        if found is None:
            return False

        request, requester_manager_id = found
        if not request.is_pending:
            return False

        principal = Principal(
            user_id=employee_id or "",
            organization_id=request.organization_id,
            role=role,
            employee_id=employee_id,
            is_line_manager=is_line_manager,
        )
        steps = self.definitions.resolve_steps(request.workflow)
        step = self.definitions.step_at(steps, request.current_step)
        return self.resolver.can_approve(step, principal, requester_manager_id)
