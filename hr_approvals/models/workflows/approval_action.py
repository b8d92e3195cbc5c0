"""
Approval action log.

Append-only ledger of decisions: one row per decision, never updated or
deleted. The only source of who decided what, when.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, Enum, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from hr_approvals.models.base import ApprovalOutcome, BaseModel, enum_values, utc_now

if TYPE_CHECKING:
    from hr_approvals.models.workflows.approval_request import ApprovalRequest

__all__ = ["ApprovalAction"]


class ApprovalAction(BaseModel):
    """Single decision taken at one step of an approval request."""

    __tablename__ = "wf_approval_actions"
    __table_args__ = (
        # A step is decided at most once
        UniqueConstraint("request_id", "step_number", name="uq_wf_action_request_step"),
        Index("ix_wf_action_approver", "approver_id"),
        {"comment": "Append-only audit trail of approval decisions"},
    )

    request_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("wf_approval_requests.id", ondelete="RESTRICT"),
        nullable=False,
    )
    step_number: Mapped[int] = mapped_column(Integer, nullable=False)

    approver_id: Mapped[str] = mapped_column(
        String(36),
        nullable=False,
        comment="User making the decision",
    )
    approver_role: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
        comment="Role of approver at time of decision",
    )

    outcome: Mapped[ApprovalOutcome] = mapped_column(
        Enum(
            ApprovalOutcome,
            name="wf_approval_outcome",
            native_enum=False,
            values_callable=enum_values,
            length=20,
        ),
        nullable=False,
    )
    comments: Mapped[Optional[str]] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=func.now(),
    )

    request: Mapped["ApprovalRequest"] = relationship(back_populates="actions")
