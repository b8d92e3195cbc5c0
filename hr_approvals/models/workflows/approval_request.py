"""
Approval request aggregate.

Holds the workflow's own state for one originating business record:
current step, overall status and a link to the entity.
"""

from typing import TYPE_CHECKING, Any, Dict, List, Optional

from sqlalchemy import Enum, ForeignKey, Index, Integer, JSON, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hr_approvals.models.base import (
    ApprovalStatus,
    TimestampModel,
    WorkflowEntityType,
    enum_values,
)

if TYPE_CHECKING:
    from hr_approvals.models.hr.employee import Employee
    from hr_approvals.models.workflows.approval_action import ApprovalAction
    from hr_approvals.models.workflows.workflow_definition import WorkflowDefinition

__all__ = ["ApprovalRequest"]


class ApprovalRequest(TimestampModel):
    """
    Multi-step approval request for an originating entity.

    Status leaves `pending` at most once; approved, rejected and
    cancelled requests are terminal. Requests are never deleted.
    """

    __tablename__ = "wf_approval_requests"
    __table_args__ = (
        Index("ix_wf_request_entity", "entity_type", "entity_id"),
        Index("ix_wf_request_org_status", "organization_id", "status"),
        Index("ix_wf_request_requester", "requester_id"),
        {"comment": "Approval workflow state per originating entity"},
    )

    organization_id: Mapped[str] = mapped_column(String(36), nullable=False)

    # NULL: governed by the implicit single-step workflow
    workflow_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("wf_definitions.id", ondelete="RESTRICT"),
        nullable=True,
    )

    entity_type: Mapped[WorkflowEntityType] = mapped_column(
        Enum(
            WorkflowEntityType,
            name="wf_entity_type",
            native_enum=False,
            values_callable=enum_values,
            length=20,
        ),
        nullable=False,
    )
    entity_id: Mapped[str] = mapped_column(String(36), nullable=False)

    requester_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("hr_employees.id"),
        nullable=False,
        comment="Employee who raised the request",
    )

    current_step: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    status: Mapped[ApprovalStatus] = mapped_column(
        Enum(
            ApprovalStatus,
            name="wf_approval_status",
            native_enum=False,
            values_callable=enum_values,
            length=20,
        ),
        nullable=False,
        default=ApprovalStatus.PENDING,
    )

    # `metadata` is reserved on declarative classes
    request_metadata: Mapped[Dict[str, Any]] = mapped_column(
        "metadata", JSON, nullable=False, default=dict
    )

    workflow: Mapped[Optional["WorkflowDefinition"]] = relationship()
    requester: Mapped["Employee"] = relationship()
    actions: Mapped[List["ApprovalAction"]] = relationship(
        back_populates="request",
        order_by="ApprovalAction.step_number",
    )

    @property
    def is_pending(self) -> bool:
        return self.status == ApprovalStatus.PENDING
