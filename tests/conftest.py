"""
Shared fixtures: an in-memory database per test seeded with one
organization's people and a record of each workflow entity type.
"""

import pytest
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from hr_approvals.config.settings import Settings
from hr_approvals.db.session import build_engine, init_db
from hr_approvals.models import (
    Employee,
    LeaveRequest,
    PayrollRun,
    PerDiemRequest,
    PromotionRequest,
    UserProfile,
)
from hr_approvals.models.base import WorkflowEntityType
from hr_approvals.services import (
    ApprovalQueryService,
    ApprovalWorkflowService,
    WorkflowDefinitionService,
)

ORG_ID = "org-acme"
OTHER_ORG_ID = "org-globex"


@pytest.fixture
def engine():
    engine = build_engine(Settings(DATABASE_URL="sqlite://"), poolclass=StaticPool)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    yield session
    session.close()


@pytest.fixture
def people(db):
    """
    Employees and their login profiles.

    Returns a dict of user ids keyed by persona, plus the employee ids
    under "<persona>_employee".
    """
    manager = Employee(organization_id=ORG_ID, first_name="Grace", last_name="Hopper", is_line_manager=True)
    other_manager = Employee(organization_id=ORG_ID, first_name="Alan", last_name="Turing", is_line_manager=True)
    hr_officer = Employee(organization_id=ORG_ID, first_name="Ada", last_name="Lovelace")
    db.add_all([manager, other_manager, hr_officer])
    db.flush()

    requester = Employee(
        organization_id=ORG_ID,
        first_name="Linus",
        last_name="Pauling",
        manager_id=manager.id,
    )
    db.add(requester)
    db.flush()

    profiles = {
        "admin": UserProfile(organization_id=ORG_ID, role="admin"),
        "hr": UserProfile(organization_id=ORG_ID, role="hr", employee_id=hr_officer.id),
        "finance": UserProfile(organization_id=ORG_ID, role="finance"),
        "management": UserProfile(organization_id=ORG_ID, role="management"),
        "manager": UserProfile(organization_id=ORG_ID, role="employee", employee_id=manager.id),
        "other_manager": UserProfile(organization_id=ORG_ID, role="employee", employee_id=other_manager.id),
        "requester": UserProfile(organization_id=ORG_ID, role="employee", employee_id=requester.id),
        "foreign_admin": UserProfile(organization_id=OTHER_ORG_ID, role="admin"),
        "foreign_hr": UserProfile(organization_id=OTHER_ORG_ID, role="hr"),
    }
    db.add_all(profiles.values())
    db.commit()

    ids = {name: profile.id for name, profile in profiles.items()}
    ids.update(
        manager_employee=manager.id,
        other_manager_employee=other_manager.id,
        hr_employee=hr_officer.id,
        requester_employee=requester.id,
    )
    return ids


@pytest.fixture
def entities(db, people):
    """One draft record per workflow entity type, keyed by entity type."""
    requester = people["requester_employee"]
    records = {
        WorkflowEntityType.LEAVE: LeaveRequest(organization_id=ORG_ID, employee_id=requester, days=3),
        WorkflowEntityType.PER_DIEM: PerDiemRequest(
            organization_id=ORG_ID, employee_id=requester, destination="Kisumu"
        ),
        WorkflowEntityType.PAYROLL: PayrollRun(organization_id=ORG_ID, period_month=5, period_year=2024),
        WorkflowEntityType.PROMOTION: PromotionRequest(
            organization_id=ORG_ID,
            employee_id=requester,
            current_title="Analyst",
            proposed_title="Senior Analyst",
        ),
    }
    db.add_all(records.values())
    db.commit()
    return {entity_type: record.id for entity_type, record in records.items()}


@pytest.fixture
def definitions(db):
    return WorkflowDefinitionService(db)


@pytest.fixture
def workflow(db):
    return ApprovalWorkflowService(db)


@pytest.fixture
def queries(db):
    return ApprovalQueryService(db)


@pytest.fixture
def publish(definitions):
    """Publish a chain of roles for an entity type in the seeded organization."""

    def _publish(entity_type, *roles, required=None):
        required = required or [True] * len(roles)
        steps = [
            {"order": order, "role": role, "required": is_required}
            for order, (role, is_required) in enumerate(zip(roles, required), start=1)
        ]
        return definitions.publish_definition(ORG_ID, entity_type, steps)

    return _publish
