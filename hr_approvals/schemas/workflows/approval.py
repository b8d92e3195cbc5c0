"""
Approval request, decision and history schemas.
"""

from datetime import datetime
from typing import Any, Dict, Optional, Union

from pydantic import ConfigDict, Field, field_validator, model_validator

from hr_approvals.models.base import ApprovalOutcome, WorkflowEntityType
from hr_approvals.schemas.common.base import BaseCreateSchema, BaseSchema

__all__ = [
    "Principal",
    "ApprovalRequestCreate",
    "ApprovalDecision",
    "ApprovalHistoryEntry",
]


class Principal(BaseSchema):
    """
    Acting user as supplied by the identity/role provider.

    `role` is a plain string so that roles outside the workflow's own
    enumeration (e.g. "accountant") still resolve, they just never match.
    """

    model_config = ConfigDict(frozen=True, validate_assignment=False)

    user_id: str
    organization_id: Optional[str] = None
    role: str
    employee_id: Optional[str] = None
    is_line_manager: bool = False

    @field_validator("role", mode="before")
    @classmethod
    def normalize_role(cls, v: Any) -> str:
        value = getattr(v, "value", v)
        return str(value).strip().lower()


class ApprovalRequestCreate(BaseCreateSchema):
    """Payload an entity service sends when it needs approval."""

    organization_id: str = Field(..., min_length=1)
    entity_type: WorkflowEntityType
    entity_id: str = Field(..., min_length=1)
    requester_id: str = Field(..., min_length=1, description="Employee raising the request")
    metadata: Dict[str, Any] = Field(default_factory=dict)


class ApprovalDecision(BaseCreateSchema):
    """
    Approve or reject the current step of a request.

    Rejections must carry comments. The engine parses every decision
    through this schema before touching the database.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "request_id": "123e4567-e89b-12d3-a456-426614174000",
                "approver_id": "123e4567-e89b-12d3-a456-426614174001",
                "outcome": "rejected",
                "comments": "Insufficient budget"
            }
        }
    )

    request_id: str = Field(..., min_length=1)
    approver_id: str = Field(..., min_length=1, description="User taking the decision")
    outcome: ApprovalOutcome
    comments: Union[str, None] = Field(None, max_length=2000)

    @field_validator("comments")
    @classmethod
    def normalize_comments(cls, v: Union[str, None]) -> Union[str, None]:
        """Treat blank comments as absent."""
        if v is not None:
            v = v.strip()
            return v if v else None
        return None

    @model_validator(mode="after")
    def validate_rejection_comments(self):
        if self.outcome == ApprovalOutcome.REJECTED and not self.comments:
            raise ValueError("comments are required when rejecting a request")
        return self


class ApprovalHistoryEntry(BaseSchema):
    """One action-log row joined with the approver's identity."""

    id: str
    request_id: str
    step_number: int
    approver_id: str
    approver_name: Optional[str] = None
    approver_role: Optional[str] = None
    outcome: ApprovalOutcome
    comments: Optional[str] = None
    created_at: datetime
