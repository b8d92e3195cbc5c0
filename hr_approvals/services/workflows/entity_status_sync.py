"""
Entity status synchronization.

Each entity type owns a status vocabulary that its own screens and
services understand. A `StatusPolicy` translates workflow progress into
that vocabulary through explicit tables keyed on the shape of the chain
(its ordered roles): every (step, outcome) pair a described chain can
reach is listed, and anything not listed is an error rather than a guess.

Described chains:

    leave       line_manager -> hr
    per_diem    line_manager -> finance -> management
    payroll     finance -> management
    promotion   hr -> management

Any single-step chain, including the implicit admin step, degenerates to
plain pending / approved / rejected.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple, Type

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from hr_approvals.config.logging import get_logger
from hr_approvals.core.exceptions import SynchronizationFailure, UnmappedTransitionError
from hr_approvals.models.base import (
    ApprovalOutcome,
    ApprovalStatus,
    BaseModel,
    UserRole,
    WorkflowEntityType,
    utc_now,
)
from hr_approvals.models.hr import LeaveRequest, PayrollRun, PerDiemRequest, PromotionRequest
from hr_approvals.repositories.hr import EntityStatusRepository

logger = get_logger(__name__)

# (approved_by column, approved_at column)
Stamp = Tuple[str, str]
Chain = Tuple[UserRole, ...]


def chain_of(roles: Sequence[Any]) -> Chain:
    """Normalize steps or role values into a chain tuple."""
    return tuple(UserRole(getattr(item, "role", item)) for item in roles)


@dataclass(frozen=True)
class StatusTransition:
    """Workflow progress to be reflected on the originating entity."""

    entity_type: WorkflowEntityType
    entity_id: str
    chain: Chain
    step_at_decision: int
    outcome: Optional[ApprovalOutcome]  # None when the request was just opened
    resulting_status: ApprovalStatus
    resulting_step: int
    approver_id: Optional[str] = None
    comments: Optional[str] = None


@dataclass(frozen=True)
class StatusTable:
    """
    Labels for one chain shape.

    `roles` of None matches any single-step chain.
    """

    roles: Optional[Chain]
    opened: str
    advanced: Mapping[int, str]
    rejected: Mapping[int, str]
    approved: str = "approved"

    @property
    def step_count(self) -> int:
        return len(self.roles) if self.roles is not None else 1

    def matches(self, chain: Chain) -> bool:
        if self.roles is None:
            return len(chain) == 1
        return self.roles == chain

    def lookup(
        self,
        step_at_decision: int,
        outcome: Optional[ApprovalOutcome],
        resulting_status: ApprovalStatus,
        resulting_step: int,
    ) -> Optional[str]:
        if outcome is None:
            if resulting_status == ApprovalStatus.PENDING and resulting_step == 1:
                return self.opened
        elif outcome == ApprovalOutcome.REJECTED:
            if resulting_status == ApprovalStatus.REJECTED:
                return self.rejected.get(step_at_decision)
        elif resulting_status == ApprovalStatus.APPROVED:
            if 1 <= step_at_decision <= self.step_count:
                return self.approved
        elif resulting_status == ApprovalStatus.PENDING:
            if resulting_step == step_at_decision + 1:
                return self.advanced.get(resulting_step)
        return None


SINGLE_STEP = StatusTable(
    roles=None,
    opened="pending",
    advanced={},
    rejected={1: "rejected"},
)


@dataclass(frozen=True)
class StatusPolicy:
    """Exhaustive status tables for one entity type."""

    entity_type: WorkflowEntityType
    model: Type[BaseModel]
    tables: Tuple[StatusTable, ...]
    rejection_column: str
    stamps: Mapping[UserRole, Stamp] = field(default_factory=dict)
    final_stamp: Optional[Stamp] = None

    def table_for(self, chain: Sequence[Any]) -> Optional[StatusTable]:
        chain = chain_of(chain)
        for table in self.tables:
            if table.matches(chain):
                return table
        return None

    def describes(self, chain: Sequence[Any]) -> bool:
        return self.table_for(chain) is not None

    @property
    def described_chains(self) -> Tuple[str, ...]:
        """Readable chain shapes, for error messages."""
        return tuple(
            " -> ".join(r.value for r in table.roles) if table.roles is not None else "any single step"
            for table in self.tables
        )

    def resolve(
        self,
        chain: Sequence[Any],
        step_at_decision: int,
        outcome: Optional[ApprovalOutcome],
        resulting_status: ApprovalStatus,
        resulting_step: int,
    ) -> str:
        """
        Status value for the entity after a transition.

        Raises:
            UnmappedTransitionError: No table for this chain, or no entry for this transition
        """
        chain = chain_of(chain)
        table = self.table_for(chain)
        status = None
        if table is not None:
            status = table.lookup(step_at_decision, outcome, resulting_status, resulting_step)

        if status is None:
            raise UnmappedTransitionError(
                self.entity_type.value,
                step_at_decision,
                outcome.value if outcome else None,
                resulting_status.value,
                chain=[role.value for role in chain],
            )
        return status

    def values_for(self, transition: StatusTransition, now: datetime) -> Dict[str, Any]:
        """Column values to write for a transition."""
        values: Dict[str, Any] = {
            "status": self.resolve(
                transition.chain,
                transition.step_at_decision,
                transition.outcome,
                transition.resulting_status,
                transition.resulting_step,
            )
        }

        if transition.outcome is None:
            values[self.rejection_column] = None
        elif transition.outcome == ApprovalOutcome.REJECTED:
            values[self.rejection_column] = transition.comments
        else:
            # Stage stamps follow the role the step is gated on
            role = chain_of(transition.chain)[transition.step_at_decision - 1]
            stamp = self.stamps.get(role)
            if stamp:
                values[stamp[0]] = transition.approver_id
                values[stamp[1]] = now
            if transition.resulting_status == ApprovalStatus.APPROVED and self.final_stamp:
                values[self.final_stamp[0]] = transition.approver_id
                values[self.final_stamp[1]] = now

        return values


LEAVE_POLICY = StatusPolicy(
    entity_type=WorkflowEntityType.LEAVE,
    model=LeaveRequest,
    tables=(
        StatusTable(
            roles=(UserRole.LINE_MANAGER, UserRole.HR),
            opened="pending",
            advanced={2: "hr_pending"},
            rejected={1: "manager_rejected", 2: "hr_rejected"},
        ),
        SINGLE_STEP,
    ),
    rejection_column="rejection_reason",
    stamps={
        UserRole.LINE_MANAGER: ("line_manager_approved_by", "line_manager_approved_at"),
        UserRole.HR: ("hr_approved_by", "hr_approved_at"),
    },
)

PER_DIEM_POLICY = StatusPolicy(
    entity_type=WorkflowEntityType.PER_DIEM,
    model=PerDiemRequest,
    tables=(
        StatusTable(
            roles=(UserRole.LINE_MANAGER, UserRole.FINANCE, UserRole.MANAGEMENT),
            opened="pending",
            advanced={2: "finance_pending", 3: "management_pending"},
            rejected={1: "manager_rejected", 2: "finance_rejected", 3: "management_rejected"},
        ),
        SINGLE_STEP,
    ),
    rejection_column="rejection_reason",
    stamps={
        UserRole.LINE_MANAGER: ("line_manager_approved_by", "line_manager_approved_at"),
        UserRole.FINANCE: ("finance_approved_by", "finance_approved_at"),
        UserRole.MANAGEMENT: ("management_approved_by", "management_approved_at"),
    },
)

# Drafting/processing happens on the payroll run before approval is
# requested; the engine owns the review stages only.
PAYROLL_POLICY = StatusPolicy(
    entity_type=WorkflowEntityType.PAYROLL,
    model=PayrollRun,
    tables=(
        StatusTable(
            roles=(UserRole.FINANCE, UserRole.MANAGEMENT),
            opened="finance_pending",
            advanced={2: "mgmt_pending"},
            rejected={1: "finance_rejected", 2: "mgmt_rejected"},
        ),
        SINGLE_STEP,
    ),
    rejection_column="rejection_comments",
    stamps={
        UserRole.FINANCE: ("finance_approved_by", "finance_approved_at"),
        UserRole.MANAGEMENT: ("management_approved_by", "management_approved_at"),
    },
    final_stamp=("approved_by", "approved_at"),
)

PROMOTION_POLICY = StatusPolicy(
    entity_type=WorkflowEntityType.PROMOTION,
    model=PromotionRequest,
    tables=(
        StatusTable(
            roles=(UserRole.HR, UserRole.MANAGEMENT),
            opened="pending",
            advanced={2: "management_pending"},
            rejected={1: "hr_rejected", 2: "management_rejected"},
        ),
        SINGLE_STEP,
    ),
    rejection_column="rejection_reason",
    stamps={
        UserRole.HR: ("hr_approved_by", "hr_approved_at"),
        UserRole.MANAGEMENT: ("management_approved_by", "management_approved_at"),
    },
)

DEFAULT_STATUS_POLICIES: Dict[WorkflowEntityType, StatusPolicy] = {
    policy.entity_type: policy
    for policy in (LEAVE_POLICY, PER_DIEM_POLICY, PAYROLL_POLICY, PROMOTION_POLICY)
}


class EntityStatusSynchronizer:
    """
    Writes the policy-derived status onto the originating entity.

    Runs inside the caller's transaction; any failure is raised as
    `SynchronizationFailure` so the caller rolls the whole unit back.
    """

    def __init__(
        self,
        db: Session,
        policies: Optional[Mapping[WorkflowEntityType, StatusPolicy]] = None,
    ):
        self.entities = EntityStatusRepository(db)
        self.policies: Dict[WorkflowEntityType, StatusPolicy] = dict(
            policies if policies is not None else DEFAULT_STATUS_POLICIES
        )

    def policy_for(self, entity_type: WorkflowEntityType) -> StatusPolicy:
        try:
            return self.policies[entity_type]
        except KeyError:
            raise SynchronizationFailure(
                f"No status policy registered for {entity_type.value}",
                entity_type=entity_type.value,
            ) from None

    def synchronize(self, transition: StatusTransition) -> str:
        """
        Apply a transition to the entity row.

        Returns:
            The status value written
        """
        policy = self.policy_for(transition.entity_type)
        try:
            values = policy.values_for(transition, utc_now())
        except UnmappedTransitionError as e:
            e.details["entity_id"] = transition.entity_id
            raise

        try:
            rows = self.entities.write(policy.model, transition.entity_id, values)
        except SQLAlchemyError as e:
            raise SynchronizationFailure(
                f"Failed to write {transition.entity_type.value} status: {e}",
                entity_type=transition.entity_type.value,
                entity_id=transition.entity_id,
            ) from e

        if rows != 1:
            raise SynchronizationFailure(
                f"{transition.entity_type.value} record not found",
                entity_type=transition.entity_type.value,
                entity_id=transition.entity_id,
            )

        logger.info(
            f"{transition.entity_type.value} status set to {values['status']}",
            extra={"entity_type": transition.entity_type.value, "entity_id": transition.entity_id},
        )
        return values["status"]
