"""
Approval workflow engine.

Opens approval requests, records decisions step by step and cancels
requests. Every write of one operation (action row, request state and
the originating entity's status) is committed or rolled back together.
"""

from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import ValidationError as PydanticValidationError

from hr_approvals.core.exceptions import (
    AlreadyProcessedError,
    ApprovalPermissionError,
    ConflictError,
    DuplicateEntryError,
    RequestNotFoundError,
    SynchronizationFailure,
    ValidationError,
)
from hr_approvals.models.base import ApprovalOutcome, ApprovalStatus, WorkflowEntityType
from hr_approvals.models.workflows import ApprovalRequest
from hr_approvals.repositories.workflows import ApprovalActionRepository, ApprovalRequestRepository
from hr_approvals.schemas.workflows import ApprovalDecision, ApprovalRequestCreate, Principal, WorkflowStep
from hr_approvals.services.base import BaseService
from hr_approvals.services.workflows.entity_status_sync import (
    EntityStatusSynchronizer,
    StatusTransition,
    chain_of,
)
from hr_approvals.services.workflows.identity import DatabaseIdentityProvider, IdentityProvider
from hr_approvals.services.workflows.role_resolver import RoleResolver
from hr_approvals.services.workflows.workflow_definition_service import WorkflowDefinitionService


class ApprovalWorkflowService(BaseService):
    """
    Service for the approval request lifecycle.

    Collaborators are injectable so callers can plug in their own
    identity provider, authorization rules or status policies.
    """

    def __init__(
        self,
        db_session,
        identity_provider: Optional[IdentityProvider] = None,
        role_resolver: Optional[RoleResolver] = None,
        synchronizer: Optional[EntityStatusSynchronizer] = None,
        definitions: Optional[WorkflowDefinitionService] = None,
    ):
        super().__init__(db_session)
        self.requests = ApprovalRequestRepository(db_session)
        self.actions = ApprovalActionRepository(db_session)
        self.identity = identity_provider or DatabaseIdentityProvider(db_session)
        self.resolver = role_resolver or RoleResolver()
        self.synchronizer = synchronizer or EntityStatusSynchronizer(db_session)
        self.definitions = definitions or WorkflowDefinitionService(db_session)

    # -------------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------------

    def create_approval_request(
        self,
        organization_id: str,
        entity_type: Union[WorkflowEntityType, str],
        entity_id: str,
        requester_id: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> ApprovalRequest:
        """
        Open a request at step 1 and mark the entity as pending.

        Uses the active definition for the organization and entity type,
        or the implicit single-step chain when there is none.

        Raises:
            ValidationError: Malformed input
            ConflictError: The entity already has a pending request
            SynchronizationFailure: The entity status could not be written
        """
        try:
            payload = ApprovalRequestCreate(
                organization_id=organization_id,
                entity_type=entity_type,
                entity_id=entity_id,
                requester_id=requester_id,
                metadata=metadata or {},
            )
        except PydanticValidationError as e:
            raise ValidationError(
                "Invalid approval request",
                field_errors={".".join(map(str, err["loc"])): [err["msg"]] for err in e.errors()},
            ) from e

        try:
            with self.transaction():
                existing = self.requests.get_pending_for_entity(payload.entity_type, payload.entity_id)
                if existing is not None:
                    raise ConflictError(
                        "An approval request is already pending for this record",
                        details={"request_id": existing.id, "entity_id": payload.entity_id},
                    )

                definition = self.definitions.get_active_definition(
                    payload.organization_id, payload.entity_type
                )
                request = ApprovalRequest(
                    organization_id=payload.organization_id,
                    workflow_id=definition.id if definition is not None else None,
                    entity_type=payload.entity_type,
                    entity_id=payload.entity_id,
                    requester_id=payload.requester_id,
                    current_step=1,
                    status=ApprovalStatus.PENDING,
                    request_metadata=payload.metadata,
                )
                self.requests.create(request)

                self.synchronizer.synchronize(
                    StatusTransition(
                        entity_type=payload.entity_type,
                        entity_id=payload.entity_id,
                        chain=chain_of(self.definitions.resolve_steps(definition)),
                        step_at_decision=1,
                        outcome=None,
                        resulting_status=ApprovalStatus.PENDING,
                        resulting_step=1,
                    )
                )
        except SynchronizationFailure as e:
            self._logger.error(
                f"Approval request for {payload.entity_type.value} {payload.entity_id} rolled back: {e.message}",
                extra={"entity_type": payload.entity_type.value, "entity_id": payload.entity_id},
            )
            raise

        self._log_operation(
            "Created approval request",
            request.id,
            {
                "entity_type": payload.entity_type.value,
                "entity_id": payload.entity_id,
                "workflow_id": request.workflow_id,
            },
        )
        return request

    # -------------------------------------------------------------------------
    # Decisions
    # -------------------------------------------------------------------------

    def process_approval(
        self,
        request_id: str,
        approver_id: str,
        outcome: Union[ApprovalOutcome, str],
        comments: Optional[str] = None,
    ) -> ApprovalRequest:
        """
        Record a decision on the request's current step.

        Args:
            request_id: Request to decide
            approver_id: User taking the decision; their role is looked
                up through the identity provider
            outcome: approved or rejected
            comments: Mandatory for rejections

        Returns:
            The request in its new state

        Raises:
            ValidationError: Rejection without comments, or unknown outcome
            RequestNotFoundError: No such request
            AlreadyProcessedError: The request is no longer pending, or
                another decision landed first
            ApprovalPermissionError: The approver may not act on this step
            SynchronizationFailure: The entity status could not be written;
                nothing was persisted
        """
        try:
            decision = ApprovalDecision(
                request_id=request_id,
                approver_id=approver_id,
                outcome=outcome,
                comments=comments,
            )
        except PydanticValidationError as e:
            raise ValidationError(
                "Invalid approval decision",
                field_errors={".".join(map(str, err["loc"])) or "__root__": [err["msg"]] for err in e.errors()},
            ) from e

        try:
            with self.transaction():
                request, step_at_decision = self._decide(
                    decision.request_id, decision.approver_id, decision.outcome, decision.comments
                )
        except SynchronizationFailure as e:
            self._logger.error(
                f"Decision on approval request {request_id} rolled back: {e.message}",
                extra={"request_id": request_id, "approver_id": approver_id},
            )
            raise

        self._log_operation(
            f"Approval request {decision.outcome.value} at step {step_at_decision}",
            request_id,
            {
                "approver_id": approver_id,
                "status": request.status.value,
                "current_step": request.current_step,
            },
        )
        return request

    def _decide(
        self,
        request_id: str,
        approver_id: str,
        outcome: ApprovalOutcome,
        comments: Optional[str],
    ) -> Tuple[ApprovalRequest, int]:
        request = self.requests.get_for_update(request_id)
        if request is None:
            raise RequestNotFoundError(request_id)
        if not request.is_pending:
            raise AlreadyProcessedError(request_id, request.status.value)

        steps = self.definitions.resolve_steps(request.workflow)
        observed_step = request.current_step
        step = self.definitions.step_at(steps, observed_step)
        principal = self._authorize(request, approver_id, step)

        try:
            self.actions.append(
                request_id=request.id,
                step_number=observed_step,
                approver_id=approver_id,
                outcome=outcome,
                comments=comments,
                approver_role=principal.role,
            )
        except DuplicateEntryError as e:
            raise AlreadyProcessedError(
                request_id,
                message=f"A decision was already recorded for step {observed_step}",
            ) from e

        new_status, new_step = self._next_state(steps, observed_step, outcome)
        if not self.requests.transition(request, observed_step, new_status, new_step):
            raise AlreadyProcessedError(request_id)

        self.synchronizer.synchronize(
            StatusTransition(
                entity_type=request.entity_type,
                entity_id=request.entity_id,
                chain=chain_of(steps),
                step_at_decision=observed_step,
                outcome=outcome,
                resulting_status=new_status,
                resulting_step=new_step,
                approver_id=approver_id,
                comments=comments,
            )
        )
        return request, observed_step

    def _authorize(
        self,
        request: ApprovalRequest,
        approver_id: str,
        step: Optional[WorkflowStep],
    ) -> Principal:
        principal = self.identity.get_principal(approver_id)
        required_role = step.role.value if step is not None else None

        if principal is None:
            raise ApprovalPermissionError(
                "Approver has no user profile",
                request_id=request.id,
                user_id=approver_id,
                required_role=required_role,
            )
        if principal.organization_id != request.organization_id:
            raise ApprovalPermissionError(
                "Approver belongs to another organization",
                request_id=request.id,
                user_id=approver_id,
                required_role=required_role,
            )

        requester_manager_id = request.requester.manager_id if request.requester else None
        if not self.resolver.can_approve(step, principal, requester_manager_id):
            raise ApprovalPermissionError(
                f"Role '{principal.role}' may not act on step {request.current_step}",
                request_id=request.id,
                user_id=approver_id,
                required_role=required_role,
            )
        return principal

    @staticmethod
    def _next_state(
        steps: List[WorkflowStep],
        current_step: int,
        outcome: ApprovalOutcome,
    ) -> Tuple[ApprovalStatus, int]:
        """
        Status and step after a decision.

        Rejection ends the request at the current step. Approval moves to
        the next step while a required step lies ahead; otherwise the
        request is approved and the step stays where it was.
        """
        if outcome == ApprovalOutcome.REJECTED:
            return ApprovalStatus.REJECTED, current_step

        if any(s.order > current_step and s.required for s in steps):
            return ApprovalStatus.PENDING, current_step + 1
        return ApprovalStatus.APPROVED, current_step

    # -------------------------------------------------------------------------
    # Cancellation
    # -------------------------------------------------------------------------

    def cancel_approval_request(self, request_id: str, requester_id: str) -> None:
        """
        Withdraw a pending request. Only the original requester may cancel.

        The originating entity is left untouched; its owner decides what a
        withdrawn request means for it.

        Raises:
            RequestNotFoundError: No such request
            ApprovalPermissionError: Caller is not the requester
            AlreadyProcessedError: The request is no longer pending
        """
        with self.transaction():
            request = self.requests.get_for_update(request_id)
            if request is None:
                raise RequestNotFoundError(request_id)
            if request.requester_id != requester_id:
                raise ApprovalPermissionError(
                    "Only the requester can cancel an approval request",
                    request_id=request_id,
                    user_id=requester_id,
                )
            if not request.is_pending:
                raise AlreadyProcessedError(request_id, request.status.value)

            if not self.requests.transition(
                request, request.current_step, ApprovalStatus.CANCELLED, request.current_step
            ):
                raise AlreadyProcessedError(request_id)

        self._log_operation("Cancelled approval request", request_id, {"requester_id": requester_id})
