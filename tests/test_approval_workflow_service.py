from dataclasses import replace

import pytest

from hr_approvals.core.exceptions import (
    AlreadyProcessedError,
    ApprovalPermissionError,
    ConflictError,
    DuplicateEntryError,
    RequestNotFoundError,
    SynchronizationFailure,
    UnmappedTransitionError,
    ValidationError,
)
from hr_approvals.models import (
    ApprovalRequest,
    Employee,
    LeaveRequest,
    PayrollRun,
    PerDiemRequest,
    PromotionRequest,
)
from hr_approvals.models.base import ApprovalOutcome, ApprovalStatus, WorkflowEntityType
from hr_approvals.repositories.workflows import ApprovalActionRepository
from hr_approvals.services.workflows import (
    DEFAULT_STATUS_POLICIES,
    LEAVE_POLICY,
    ApprovalWorkflowService,
    EntityStatusSynchronizer,
)
from tests.conftest import ORG_ID

LEAVE = WorkflowEntityType.LEAVE
PER_DIEM = WorkflowEntityType.PER_DIEM
PAYROLL = WorkflowEntityType.PAYROLL
PROMOTION = WorkflowEntityType.PROMOTION

APPROVE = ApprovalOutcome.APPROVED
REJECT = ApprovalOutcome.REJECTED


def actions_for(db, request_id):
    return ApprovalActionRepository(db).find_by(request_id=request_id)


def open_request(workflow, people, entities, entity_type, **kwargs):
    return workflow.create_approval_request(
        ORG_ID, entity_type, entities[entity_type], people["requester_employee"], **kwargs
    )


# -----------------------------------------------------------------------------
# Creation
# -----------------------------------------------------------------------------


def test_create_request_opens_at_step_one(db, workflow, publish, people, entities):
    definition = publish(PROMOTION, "hr", "management")

    request = open_request(workflow, people, entities, PROMOTION, metadata={"reason": "annual review"})

    assert request.status == ApprovalStatus.PENDING
    assert request.current_step == 1
    assert request.workflow_id == definition.id
    assert request.request_metadata == {"reason": "annual review"}
    assert db.get(PromotionRequest, entities[PROMOTION]).status == "pending"


def test_payroll_opens_in_finance_review(db, workflow, publish, people, entities):
    publish(PAYROLL, "finance", "management")

    open_request(workflow, people, entities, PAYROLL)

    assert db.get(PayrollRun, entities[PAYROLL]).status == "finance_pending"


def test_second_pending_request_for_same_entity_is_refused(db, workflow, publish, people, entities):
    publish(LEAVE, "hr")
    first = open_request(workflow, people, entities, LEAVE)

    with pytest.raises(ConflictError) as exc_info:
        open_request(workflow, people, entities, LEAVE)

    assert exc_info.value.details["request_id"] == first.id
    assert db.query(ApprovalRequest).count() == 1


def test_new_request_allowed_after_previous_one_is_closed(workflow, publish, people, entities):
    publish(LEAVE, "hr")
    first = open_request(workflow, people, entities, LEAVE)
    workflow.process_approval(first.id, people["hr"], REJECT, "Dates overlap with audit")

    second = open_request(workflow, people, entities, LEAVE)

    assert second.id != first.id
    assert second.status == ApprovalStatus.PENDING


def test_create_for_missing_entity_rolls_back(db, workflow, people):
    with pytest.raises(SynchronizationFailure) as exc_info:
        workflow.create_approval_request(ORG_ID, LEAVE, "no-such-leave", people["requester_employee"])

    assert exc_info.value.details["rolled_back"] is True
    assert db.query(ApprovalRequest).count() == 0


def test_create_rejects_blank_entity_id(workflow, people):
    with pytest.raises(ValidationError):
        workflow.create_approval_request(ORG_ID, LEAVE, "", people["requester_employee"])


# -----------------------------------------------------------------------------
# Decisions
# -----------------------------------------------------------------------------


def test_hr_then_management_rejection(db, workflow, publish, people, entities):
    publish(PROMOTION, "hr", "management")
    request = open_request(workflow, people, entities, PROMOTION)

    request = workflow.process_approval(request.id, people["hr"], APPROVE)
    assert request.status == ApprovalStatus.PENDING
    assert request.current_step == 2
    actions = actions_for(db, request.id)
    assert [(a.step_number, a.outcome) for a in actions] == [(1, APPROVE)]

    request = workflow.process_approval(request.id, people["management"], REJECT, "insufficient budget")
    assert request.status == ApprovalStatus.REJECTED
    assert request.current_step == 2
    actions = sorted(actions_for(db, request.id), key=lambda a: a.step_number)
    assert len(actions) == 2
    assert actions[1].outcome == REJECT
    assert actions[1].comments == "insufficient budget"

    for approver in ("hr", "management", "admin"):
        with pytest.raises(AlreadyProcessedError):
            workflow.process_approval(request.id, people[approver], APPROVE)
    assert ApprovalActionRepository(db).count_for_request(request.id) == 2

    promotion = db.get(PromotionRequest, entities[PROMOTION])
    assert promotion.status == "management_rejected"
    assert promotion.rejection_reason == "insufficient budget"
    assert promotion.hr_approved_by == people["hr"]


def test_request_approves_after_one_decision_per_required_step(db, workflow, publish, people, entities):
    publish(PER_DIEM, "line_manager", "finance", "management")
    request = open_request(workflow, people, entities, PER_DIEM)
    per_diem = db.get(PerDiemRequest, entities[PER_DIEM])

    request = workflow.process_approval(request.id, people["manager"], APPROVE)
    assert (request.status, request.current_step) == (ApprovalStatus.PENDING, 2)
    db.refresh(per_diem)
    assert per_diem.status == "finance_pending"

    request = workflow.process_approval(request.id, people["finance"], APPROVE)
    assert (request.status, request.current_step) == (ApprovalStatus.PENDING, 3)
    db.refresh(per_diem)
    assert per_diem.status == "management_pending"

    request = workflow.process_approval(request.id, people["management"], APPROVE)
    assert (request.status, request.current_step) == (ApprovalStatus.APPROVED, 3)

    actions = actions_for(db, request.id)
    assert sorted(a.step_number for a in actions) == [1, 2, 3]
    assert all(a.outcome == APPROVE for a in actions)

    db.refresh(per_diem)
    assert per_diem.status == "approved"
    assert per_diem.line_manager_approved_by == people["manager"]
    assert per_diem.finance_approved_by == people["finance"]
    assert per_diem.management_approved_by == people["management"]


def test_payroll_final_approval_stamps_run(db, workflow, publish, people, entities):
    publish(PAYROLL, "finance", "management")
    request = open_request(workflow, people, entities, PAYROLL)

    request = workflow.process_approval(request.id, people["finance"], APPROVE)
    assert db.get(PayrollRun, entities[PAYROLL]).status == "mgmt_pending"

    workflow.process_approval(request.id, people["management"], APPROVE)

    run = db.get(PayrollRun, entities[PAYROLL])
    db.refresh(run)
    assert run.status == "approved"
    assert run.approved_by == people["management"]
    assert run.approved_at is not None


def test_optional_trailing_step_is_skipped(workflow, publish, people, entities):
    publish(PROMOTION, "hr", "management", required=[True, False])
    request = open_request(workflow, people, entities, PROMOTION)

    request = workflow.process_approval(request.id, people["hr"], APPROVE)

    assert request.status == ApprovalStatus.APPROVED
    assert request.current_step == 1


def test_rejection_ends_request_early(db, workflow, publish, people, entities):
    publish(PER_DIEM, "line_manager", "finance", "management")
    request = open_request(workflow, people, entities, PER_DIEM)

    request = workflow.process_approval(request.id, people["manager"], REJECT, "Trip not budgeted")

    assert request.status == ApprovalStatus.REJECTED
    assert request.current_step == 1
    with pytest.raises(AlreadyProcessedError):
        workflow.process_approval(request.id, people["finance"], APPROVE)
    assert len(actions_for(db, request.id)) == 1
    assert db.get(PerDiemRequest, entities[PER_DIEM]).status == "manager_rejected"


def test_decision_on_approved_request_is_refused(db, workflow, publish, people, entities):
    publish(LEAVE, "hr")
    request = open_request(workflow, people, entities, LEAVE)
    workflow.process_approval(request.id, people["hr"], APPROVE)

    with pytest.raises(AlreadyProcessedError) as exc_info:
        workflow.process_approval(request.id, people["hr"], REJECT, "Changed my mind")

    assert exc_info.value.details["status"] == "approved"
    assert len(actions_for(db, request.id)) == 1


@pytest.mark.parametrize("comments", [None, "", "   "])
def test_rejection_requires_comments(db, workflow, publish, people, entities, comments):
    publish(LEAVE, "hr")
    request = open_request(workflow, people, entities, LEAVE)

    with pytest.raises(ValidationError):
        workflow.process_approval(request.id, people["hr"], REJECT, comments)

    db.refresh(request)
    assert request.status == ApprovalStatus.PENDING
    assert request.current_step == 1
    assert actions_for(db, request.id) == []


def test_rejection_comment_checked_before_request_lookup(workflow):
    with pytest.raises(ValidationError):
        workflow.process_approval("no-such-request", "anyone", REJECT)


def test_outcome_accepts_plain_strings(workflow, publish, people, entities):
    publish(LEAVE, "hr")
    request = open_request(workflow, people, entities, LEAVE)

    request = workflow.process_approval(request.id, people["hr"], "approved")

    assert request.status == ApprovalStatus.APPROVED


def test_unknown_outcome(workflow, publish, people, entities):
    publish(LEAVE, "hr")
    request = open_request(workflow, people, entities, LEAVE)

    with pytest.raises(ValidationError) as exc_info:
        workflow.process_approval(request.id, people["hr"], "maybe")

    assert "outcome" in exc_info.value.details["field_errors"]


def test_unknown_request(workflow, people):
    with pytest.raises(RequestNotFoundError):
        workflow.process_approval("no-such-request", people["admin"], APPROVE)


def test_approver_role_recorded_on_action(db, workflow, publish, people, entities):
    publish(LEAVE, "line_manager", "hr")
    request = open_request(workflow, people, entities, LEAVE)

    workflow.process_approval(request.id, people["manager"], APPROVE)
    workflow.process_approval(request.id, people["admin"], APPROVE)

    roles = {a.step_number: a.approver_role for a in actions_for(db, request.id)}
    assert roles == {1: "employee", 2: "admin"}


# -----------------------------------------------------------------------------
# Authorization
# -----------------------------------------------------------------------------


def test_wrong_role_cannot_decide(db, workflow, publish, people, entities):
    publish(PROMOTION, "hr", "management")
    request = open_request(workflow, people, entities, PROMOTION)

    with pytest.raises(ApprovalPermissionError) as exc_info:
        workflow.process_approval(request.id, people["finance"], APPROVE)

    assert isinstance(exc_info.value, ValidationError)
    assert exc_info.value.details["required_role"] == "hr"
    assert actions_for(db, request.id) == []


def test_later_step_role_cannot_skip_ahead(workflow, publish, people, entities):
    publish(PROMOTION, "hr", "management")
    request = open_request(workflow, people, entities, PROMOTION)

    with pytest.raises(ApprovalPermissionError):
        workflow.process_approval(request.id, people["management"], APPROVE)


def test_only_the_requesters_manager_decides_line_manager_step(workflow, publish, people, entities):
    publish(LEAVE, "line_manager", "hr")
    request = open_request(workflow, people, entities, LEAVE)

    with pytest.raises(ApprovalPermissionError):
        workflow.process_approval(request.id, people["other_manager"], APPROVE)

    request = workflow.process_approval(request.id, people["manager"], APPROVE)
    assert request.current_step == 2


def test_line_manager_is_checked_against_current_reporting_line(db, workflow, publish, people, entities):
    publish(LEAVE, "line_manager", "hr")
    request = open_request(workflow, people, entities, LEAVE)

    requester = db.get(Employee, people["requester_employee"])
    requester.manager_id = people["other_manager_employee"]
    db.commit()

    with pytest.raises(ApprovalPermissionError):
        workflow.process_approval(request.id, people["manager"], APPROVE)

    request = workflow.process_approval(request.id, people["other_manager"], APPROVE)
    assert request.current_step == 2


def test_super_role_may_decide_any_step(workflow, publish, people, entities):
    publish(LEAVE, "line_manager", "hr")
    request = open_request(workflow, people, entities, LEAVE)

    request = workflow.process_approval(request.id, people["admin"], APPROVE)
    request = workflow.process_approval(request.id, people["admin"], APPROVE)

    assert request.status == ApprovalStatus.APPROVED


def test_principal_from_another_organization_is_refused(workflow, publish, people, entities):
    publish(LEAVE, "hr")
    request = open_request(workflow, people, entities, LEAVE)

    for outsider in ("foreign_hr", "foreign_admin"):
        with pytest.raises(ApprovalPermissionError):
            workflow.process_approval(request.id, people[outsider], APPROVE)


def test_approver_without_profile_is_refused(workflow, publish, people, entities):
    publish(LEAVE, "hr")
    request = open_request(workflow, people, entities, LEAVE)

    with pytest.raises(ApprovalPermissionError):
        workflow.process_approval(request.id, "ghost-user", APPROVE)


# -----------------------------------------------------------------------------
# Implicit chain
# -----------------------------------------------------------------------------


def test_missing_definition_uses_single_admin_step(db, workflow, people, entities):
    request = open_request(workflow, people, entities, LEAVE)

    assert request.workflow_id is None
    assert request.status == ApprovalStatus.PENDING

    with pytest.raises(ApprovalPermissionError):
        workflow.process_approval(request.id, people["hr"], APPROVE)

    request = workflow.process_approval(request.id, people["admin"], APPROVE)
    assert request.status == ApprovalStatus.APPROVED
    assert len(actions_for(db, request.id)) == 1
    assert db.get(LeaveRequest, entities[LEAVE]).status == "approved"


@pytest.mark.parametrize("entity_type, model", [(LEAVE, LeaveRequest), (PAYROLL, PayrollRun)])
def test_implicit_chain_uses_plain_status_labels(db, workflow, people, entities, entity_type, model):
    request = open_request(workflow, people, entities, entity_type)
    assert db.get(model, entities[entity_type]).status == "pending"

    workflow.process_approval(request.id, people["admin"], REJECT, "Not this quarter")

    assert db.get(model, entities[entity_type]).status == "rejected"


def test_single_step_chain_rejection_names_no_other_stage(db, workflow, publish, people, entities):
    publish(LEAVE, "hr")
    request = open_request(workflow, people, entities, LEAVE)

    workflow.process_approval(request.id, people["hr"], REJECT, "Dates overlap with audit")

    leave = db.get(LeaveRequest, entities[LEAVE])
    assert leave.status == "rejected"
    assert leave.rejection_reason == "Dates overlap with audit"


def test_request_keeps_chain_it_was_opened_with(workflow, publish, people, entities):
    publish(PROMOTION, "hr", "management")
    request = open_request(workflow, people, entities, PROMOTION)
    publish(PROMOTION, "management")

    request = workflow.process_approval(request.id, people["hr"], APPROVE)

    assert request.status == ApprovalStatus.PENDING
    assert request.current_step == 2


# -----------------------------------------------------------------------------
# Atomicity
# -----------------------------------------------------------------------------


def test_entity_write_failure_rolls_back_decision(db, workflow, publish, people, entities):
    publish(LEAVE, "hr")
    request = open_request(workflow, people, entities, LEAVE)
    db.delete(db.get(LeaveRequest, entities[LEAVE]))
    db.commit()

    with pytest.raises(SynchronizationFailure) as exc_info:
        workflow.process_approval(request.id, people["hr"], APPROVE)

    assert exc_info.value.details["rolled_back"] is True
    db.refresh(request)
    assert request.status == ApprovalStatus.PENDING
    assert request.current_step == 1
    assert actions_for(db, request.id) == []


def test_unmapped_status_rolls_back_decision(db, publish, people, entities):
    policies = dict(DEFAULT_STATUS_POLICIES)
    two_step = replace(LEAVE_POLICY.tables[0], advanced={})
    policies[LEAVE] = replace(LEAVE_POLICY, tables=(two_step,))
    workflow = ApprovalWorkflowService(db, synchronizer=EntityStatusSynchronizer(db, policies))
    publish(LEAVE, "line_manager", "hr")
    request = open_request(workflow, people, entities, LEAVE)

    with pytest.raises(UnmappedTransitionError) as exc_info:
        workflow.process_approval(request.id, people["manager"], APPROVE)

    assert exc_info.value.details["entity_id"] == entities[LEAVE]
    db.refresh(request)
    assert request.current_step == 1
    assert actions_for(db, request.id) == []
    assert db.get(LeaveRequest, entities[LEAVE]).status == "pending"


# -----------------------------------------------------------------------------
# Races
# -----------------------------------------------------------------------------


def test_step_is_decided_at_most_once(db, workflow, publish, people, entities):
    publish(LEAVE, "hr")
    request = open_request(workflow, people, entities, LEAVE)
    repository = ApprovalActionRepository(db)
    repository.append(request.id, 1, people["hr"], APPROVE)

    with pytest.raises(DuplicateEntryError):
        repository.append(request.id, 1, people["admin"], APPROVE)
    db.rollback()

