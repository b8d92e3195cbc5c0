"""
Role resolution for approval steps.

Authorization at a step is the disjunction of small rules evaluated at
check time: a super-role override, a static role match, and the
relationship role "line manager of the requester". The relationship is
looked up when the check runs, so a change of manager after the request
was raised is honoured.
"""

from typing import Iterable, List, Optional, Protocol

from hr_approvals.config.settings import settings
from hr_approvals.models.base import UserRole
from hr_approvals.schemas.workflows import Principal, WorkflowStep


class ApprovalRule(Protocol):
    """Single authorization strategy."""

    def allows(
        self,
        step: WorkflowStep,
        principal: Principal,
        requester_manager_id: Optional[str],
    ) -> bool:
        ...


class SuperRoleRule:
    """The organization's super-role may act on any step."""

    def __init__(self, super_role: str):
        self.super_role = super_role.lower()

    def allows(self, step, principal, requester_manager_id) -> bool:
        return principal.role == self.super_role


class StaticRoleRule:
    """The acting role equals the step's role."""

    def allows(self, step, principal, requester_manager_id) -> bool:
        return step.role != UserRole.LINE_MANAGER and principal.role == step.role.value


class LineManagerRule:
    """The step is for the line manager and the actor manages the requester."""

    def allows(self, step, principal, requester_manager_id) -> bool:
        if step.role != UserRole.LINE_MANAGER:
            return False
        if not principal.is_line_manager or not principal.employee_id:
            return False
        return requester_manager_id is not None and requester_manager_id == principal.employee_id


class RoleResolver:
    """Evaluates the approval rules against a request's current step."""

    def __init__(self, rules: Optional[Iterable[ApprovalRule]] = None, super_role: Optional[str] = None):
        self.super_role = (super_role or settings.SUPER_ROLE).lower()
        self.rules: List[ApprovalRule] = list(rules) if rules is not None else [
            SuperRoleRule(self.super_role),
            StaticRoleRule(),
            LineManagerRule(),
        ]

    def can_approve(
        self,
        step: Optional[WorkflowStep],
        principal: Principal,
        requester_manager_id: Optional[str] = None,
    ) -> bool:
        """
        True if any rule authorizes the principal at `step`.

        A missing step (request past the end of its chain) authorizes
        nobody, not even the super-role.
        """
        if step is None:
            return False
        return any(rule.allows(step, principal, requester_manager_id) for rule in self.rules)
