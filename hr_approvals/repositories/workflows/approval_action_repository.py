"""
Approval action repository.

Append-only: exposes inserts and reads, never updates or deletes.
"""

from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from hr_approvals.core.exceptions import RepositoryError
from hr_approvals.models.base import ApprovalOutcome
from hr_approvals.models.hr import Employee, UserProfile
from hr_approvals.models.workflows import ApprovalAction
from hr_approvals.repositories.base.base_repository import BaseRepository


class ApprovalActionRepository(BaseRepository[ApprovalAction]):
    """Repository for the approval decision ledger."""

    def __init__(self, db: Session):
        super().__init__(ApprovalAction, db)

    def append(
        self,
        request_id: str,
        step_number: int,
        approver_id: str,
        outcome: ApprovalOutcome,
        comments: Optional[str] = None,
        approver_role: Optional[str] = None,
    ) -> ApprovalAction:
        """
        Record a decision.

        Raises:
            DuplicateEntryError: The step already has a decision on record
        """
        action = ApprovalAction(
            request_id=request_id,
            step_number=step_number,
            approver_id=approver_id,
            approver_role=approver_role,
            outcome=outcome,
            comments=comments,
        )
        return self.create(action)

    def count_for_request(self, request_id: str) -> int:
        stmt = select(func.count(ApprovalAction.id)).where(
            ApprovalAction.request_id == request_id
        )
        return self.db.execute(stmt).scalar_one()

    def history_for_request(
        self,
        request_id: str,
    ) -> List[Tuple[ApprovalAction, Optional[str], Optional[str]]]:
        """
        Ordered action log (oldest first) joined with the approver's
        employee name where the approving user is linked to one.
        """
        stmt = (
            select(ApprovalAction, Employee.first_name, Employee.last_name)
            .outerjoin(UserProfile, UserProfile.id == ApprovalAction.approver_id)
            .outerjoin(Employee, Employee.id == UserProfile.employee_id)
            .where(ApprovalAction.request_id == request_id)
            .order_by(ApprovalAction.step_number.asc(), ApprovalAction.created_at.asc())
        )
        try:
            return [(row[0], row[1], row[2]) for row in self.db.execute(stmt).all()]
        except SQLAlchemyError as e:
            raise RepositoryError(
                f"Query failed: {str(e)}", operation="history_for_request", table=self.table_name
            ) from e
