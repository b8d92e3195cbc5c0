"""
Approval request repository.

Besides plain reads, provides the conditional state update that makes
decisions and cancellations race-safe: a write only lands if the row
still has the status and step the caller observed.
"""

from typing import List, Optional, Tuple

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from hr_approvals.core.exceptions import RepositoryError
from hr_approvals.models.base import ApprovalStatus, WorkflowEntityType, utc_now
from hr_approvals.models.hr import Employee
from hr_approvals.models.workflows import ApprovalRequest
from hr_approvals.repositories.base.base_repository import BaseRepository


class ApprovalRequestRepository(BaseRepository[ApprovalRequest]):
    """Repository for the approval request aggregate."""

    def __init__(self, db: Session):
        super().__init__(ApprovalRequest, db)

    # ============================================================================
    # LOOKUPS
    # ============================================================================

    def get_for_update(self, request_id: str) -> Optional[ApprovalRequest]:
        """
        Load a request and lock its row for the rest of the transaction.

        Backends without row locks (SQLite) ignore FOR UPDATE; the
        conditional update in `transition` still guards those.
        """
        stmt = (
            select(ApprovalRequest)
            .where(ApprovalRequest.id == request_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return self._first(stmt, "get_for_update")

    def get_latest_for_entity(
        self,
        entity_type: WorkflowEntityType,
        entity_id: str,
    ) -> Optional[ApprovalRequest]:
        """Most recent request raised for an entity (any status)."""
        stmt = (
            select(ApprovalRequest)
            .where(
                ApprovalRequest.entity_type == entity_type,
                ApprovalRequest.entity_id == entity_id,
            )
            .order_by(ApprovalRequest.created_at.desc())
            .limit(1)
        )
        return self._first(stmt, "get_latest_for_entity")

    def get_pending_for_entity(
        self,
        entity_type: WorkflowEntityType,
        entity_id: str,
    ) -> Optional[ApprovalRequest]:
        stmt = select(ApprovalRequest).where(
            ApprovalRequest.entity_type == entity_type,
            ApprovalRequest.entity_id == entity_id,
            ApprovalRequest.status == ApprovalStatus.PENDING,
        )
        return self._first(stmt, "get_pending_for_entity")

    def get_with_requester_manager(
        self,
        request_id: str,
    ) -> Optional[Tuple[ApprovalRequest, Optional[str]]]:
        """Request together with its requester's current manager id."""
        stmt = (
            select(ApprovalRequest, Employee.manager_id)
            .outerjoin(Employee, Employee.id == ApprovalRequest.requester_id)
            .where(ApprovalRequest.id == request_id)
        )
        row = self.db.execute(stmt).first()
        if row is None:
            return None
        return row[0], row[1]

    def list_pending_with_requester_managers(
        self,
        organization_id: str,
    ) -> List[Tuple[ApprovalRequest, Optional[str]]]:
        """All open requests of an organization, newest first."""
        stmt = (
            select(ApprovalRequest, Employee.manager_id)
            .outerjoin(Employee, Employee.id == ApprovalRequest.requester_id)
            .where(
                ApprovalRequest.organization_id == organization_id,
                ApprovalRequest.status == ApprovalStatus.PENDING,
            )
            .order_by(ApprovalRequest.created_at.desc())
        )
        try:
            return [(row[0], row[1]) for row in self.db.execute(stmt).all()]
        except SQLAlchemyError as e:
            raise RepositoryError(
                f"Query failed: {str(e)}",
                operation="list_pending_with_requester_managers",
                table=self.table_name,
            ) from e

    # ============================================================================
    # STATE TRANSITIONS
    # ============================================================================

    def transition(
        self,
        request: ApprovalRequest,
        expected_step: int,
        new_status: ApprovalStatus,
        new_step: int,
    ) -> bool:
        """
        Compare-and-swap the request's status and step.

        Returns False (and changes nothing) when the row is no longer
        pending at `expected_step`.
        """
        stmt = (
            update(ApprovalRequest)
            .where(
                ApprovalRequest.id == request.id,
                ApprovalRequest.status == ApprovalStatus.PENDING,
                ApprovalRequest.current_step == expected_step,
            )
            .values(status=new_status, current_step=new_step, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.db.execute(stmt)
        except SQLAlchemyError as e:
            raise RepositoryError(
                f"Update failed: {str(e)}", operation="transition", table=self.table_name
            ) from e

        if result.rowcount != 1:
            return False

        self.db.refresh(request)
        return True
