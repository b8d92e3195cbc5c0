"""
Competing writers on separate sessions against a file-backed database.

The first caller's identity lookup hands control to a rival service on
its own session, which commits before the first caller writes anything.
"""

import pytest
from sqlalchemy.orm import sessionmaker

from hr_approvals.config.settings import Settings
from hr_approvals.core.exceptions import AlreadyProcessedError
from hr_approvals.db.session import build_engine, init_db
from hr_approvals.models import ApprovalRequest, LeaveRequest
from hr_approvals.models.base import ApprovalOutcome, ApprovalStatus, WorkflowEntityType
from hr_approvals.repositories.workflows import ApprovalActionRepository
from hr_approvals.services.workflows import ApprovalWorkflowService, DatabaseIdentityProvider
from tests.conftest import ORG_ID

LEAVE = WorkflowEntityType.LEAVE


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(Settings(DATABASE_URL=f"sqlite:///{tmp_path / 'approvals.db'}"))
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def rival_db(engine):
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    yield session
    session.close()


class InterleavingIdentityProvider:
    """Runs a rival operation once, in the middle of the first identity lookup."""

    def __init__(self, db, rival):
        self.inner = DatabaseIdentityProvider(db)
        self.rival = rival

    def get_principal(self, user_id):
        if self.rival is not None:
            rival, self.rival = self.rival, None
            rival()
        return self.inner.get_principal(user_id)


@pytest.fixture
def leave_request(workflow, publish, people, entities):
    publish(LEAVE, "hr")
    request = workflow.create_approval_request(
        ORG_ID, LEAVE, entities[LEAVE], people["requester_employee"]
    )
    return request.id


def test_concurrent_decisions_record_one_action(db, rival_db, people, entities, leave_request):
    rival = ApprovalWorkflowService(rival_db)
    contender = ApprovalWorkflowService(
        db,
        identity_provider=InterleavingIdentityProvider(
            db,
            lambda: rival.process_approval(leave_request, people["admin"], ApprovalOutcome.APPROVED),
        ),
    )

    with pytest.raises(AlreadyProcessedError):
        contender.process_approval(leave_request, people["hr"], ApprovalOutcome.REJECTED, "Overlaps audit")

    db.expire_all()
    actions = ApprovalActionRepository(db).find_by(request_id=leave_request)
    assert len(actions) == 1
    assert actions[0].approver_id == people["admin"]
    assert actions[0].outcome == ApprovalOutcome.APPROVED
    assert db.get(ApprovalRequest, leave_request).status == ApprovalStatus.APPROVED
    assert db.get(LeaveRequest, entities[LEAVE]).status == "approved"


def test_decision_after_concurrent_cancellation_is_rolled_back(db, rival_db, people, entities, leave_request):
    rival = ApprovalWorkflowService(rival_db)
    contender = ApprovalWorkflowService(
        db,
        identity_provider=InterleavingIdentityProvider(
            db,
            lambda: rival.cancel_approval_request(leave_request, people["requester_employee"]),
        ),
    )

    with pytest.raises(AlreadyProcessedError):
        contender.process_approval(leave_request, people["hr"], ApprovalOutcome.APPROVED)

    db.expire_all()
    assert ApprovalActionRepository(db).find_by(request_id=leave_request) == []
    assert db.get(ApprovalRequest, leave_request).status == ApprovalStatus.CANCELLED
    assert db.get(LeaveRequest, entities[LEAVE]).status == "pending"
