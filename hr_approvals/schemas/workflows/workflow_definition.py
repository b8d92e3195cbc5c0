"""
Workflow definition schemas.

Validates the ordered step list of an approval chain before it is
stored as JSON on the definition row.
"""

from typing import List, Optional

from pydantic import ConfigDict, Field, field_validator

from hr_approvals.models.base import UserRole, WorkflowEntityType
from hr_approvals.schemas.common.base import BaseCreateSchema, BaseSchema

__all__ = [
    "WorkflowStep",
    "WorkflowDefinitionCreate",
    "validate_step_sequence",
]


class WorkflowStep(BaseSchema):
    """One role-gated step of an approval chain."""

    model_config = ConfigDict(frozen=True, validate_assignment=False)

    order: int = Field(..., ge=1, description="1-based position in the chain")
    role: UserRole = Field(..., description="Role authorized to decide this step")
    required: bool = Field(default=True, description="Whether approval must pass this step")


def validate_step_sequence(steps: List[WorkflowStep]) -> List[WorkflowStep]:
    """
    Check that a step list forms a usable chain.

    Orders must be unique and contiguous from 1, and step 1 must be
    required so every request has a first approver.
    """
    if not steps:
        raise ValueError("A workflow needs at least one step")

    ordered = sorted(steps, key=lambda s: s.order)
    expected = list(range(1, len(ordered) + 1))
    if [s.order for s in ordered] != expected:
        raise ValueError(f"Step orders must be unique and contiguous starting at 1, got {[s.order for s in ordered]}")

    if not ordered[0].required:
        raise ValueError("Step 1 must be required")

    return ordered


class WorkflowDefinitionCreate(BaseCreateSchema):
    """Payload for publishing a new workflow definition."""

    organization_id: str = Field(..., min_length=1)
    entity_type: WorkflowEntityType
    name: Optional[str] = Field(None, max_length=255)
    steps: List[WorkflowStep]

    @field_validator("steps")
    @classmethod
    def validate_steps(cls, v: List[WorkflowStep]) -> List[WorkflowStep]:
        return validate_step_sequence(v)
