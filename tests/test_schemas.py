import pytest
from pydantic import ValidationError

from hr_approvals.models.base import ApprovalOutcome, UserRole
from hr_approvals.schemas.workflows import (
    ApprovalDecision,
    Principal,
    WorkflowDefinitionCreate,
)
from tests.conftest import ORG_ID


def test_rejection_decision_needs_comments():
    with pytest.raises(ValidationError):
        ApprovalDecision(request_id="r-1", approver_id="u-1", outcome="rejected", comments="   ")


def test_approval_decision_comments_are_optional():
    decision = ApprovalDecision(request_id="r-1", approver_id="u-1", outcome="approved", comments="")

    assert decision.outcome == ApprovalOutcome.APPROVED
    assert decision.comments is None


def test_decision_forbids_unknown_fields():
    with pytest.raises(ValidationError):
        ApprovalDecision(request_id="r-1", approver_id="u-1", outcome="approved", role="admin")


def test_principal_role_is_normalized():
    assert Principal(user_id="u-1", role=" Finance ").role == "finance"
    assert Principal(user_id="u-1", role=UserRole.MANAGEMENT).role == "management"


def test_definition_payload_sorts_steps():
    payload = WorkflowDefinitionCreate(
        organization_id=ORG_ID,
        entity_type="per_diem",
        steps=[
            {"order": 3, "role": "management"},
            {"order": 1, "role": "line_manager"},
            {"order": 2, "role": "finance"},
        ],
    )

    assert [s.role for s in payload.steps] == [UserRole.LINE_MANAGER, UserRole.FINANCE, UserRole.MANAGEMENT]


def test_definition_payload_needs_steps():
    with pytest.raises(ValidationError):
        WorkflowDefinitionCreate(organization_id=ORG_ID, entity_type="leave", steps=[])
