"""
Workflow definition repository.

Read access to the active definition per (organization, entity type)
and the versioning helpers used when publishing a new chain.
"""

from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from hr_approvals.models.base import WorkflowEntityType
from hr_approvals.models.workflows import ApprovalRequest, WorkflowDefinition
from hr_approvals.repositories.base.base_repository import BaseRepository


class WorkflowDefinitionRepository(BaseRepository[WorkflowDefinition]):
    """Repository for versioned workflow definitions."""

    def __init__(self, db: Session):
        super().__init__(WorkflowDefinition, db)

    def get_active(
        self,
        organization_id: str,
        entity_type: WorkflowEntityType,
    ) -> Optional[WorkflowDefinition]:
        """Return the single active definition, or None when there is none."""
        stmt = (
            select(WorkflowDefinition)
            .where(
                WorkflowDefinition.organization_id == organization_id,
                WorkflowDefinition.entity_type == entity_type,
                WorkflowDefinition.is_active.is_(True),
            )
            .order_by(WorkflowDefinition.version.desc())
        )
        return self._first(stmt, "get_active")

    def list_versions(
        self,
        organization_id: str,
        entity_type: WorkflowEntityType,
    ) -> List[WorkflowDefinition]:
        stmt = (
            select(WorkflowDefinition)
            .where(
                WorkflowDefinition.organization_id == organization_id,
                WorkflowDefinition.entity_type == entity_type,
            )
            .order_by(WorkflowDefinition.version.asc())
        )
        return self._scalars(stmt, "list_versions")

    def latest_version(
        self,
        organization_id: str,
        entity_type: WorkflowEntityType,
    ) -> int:
        """Highest version number published so far (0 when none)."""
        stmt = select(func.max(WorkflowDefinition.version)).where(
            WorkflowDefinition.organization_id == organization_id,
            WorkflowDefinition.entity_type == entity_type,
        )
        return self.db.execute(stmt).scalar() or 0

    def count_references(self, definition_id: str) -> int:
        """Number of approval requests that captured this definition."""
        stmt = select(func.count(ApprovalRequest.id)).where(
            ApprovalRequest.workflow_id == definition_id
        )
        return self.db.execute(stmt).scalar_one()
