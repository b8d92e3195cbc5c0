"""
Workflow definition model.

An ordered list of role-gated approval steps for one entity type within
one organization. Definitions referenced by a request are never edited;
a new version is published instead.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import Boolean, Enum, Index, Integer, JSON, String, text
from sqlalchemy.orm import Mapped, mapped_column

from hr_approvals.models.base import TimestampModel, WorkflowEntityType, enum_values


class WorkflowDefinition(TimestampModel):
    """Versioned, per-organization approval chain for one entity type."""

    __tablename__ = "wf_definitions"
    __table_args__ = (
        Index("ix_wf_definition_org_entity", "organization_id", "entity_type"),
        # At most one active definition per (organization, entity type)
        Index(
            "uq_wf_definition_active",
            "organization_id",
            "entity_type",
            unique=True,
            sqlite_where=text("is_active = 1"),
            postgresql_where=text("is_active"),
        ),
        {"comment": "Approval chains per organization and entity type"},
    )

    organization_id: Mapped[str] = mapped_column(String(36), nullable=False)
    entity_type: Mapped[WorkflowEntityType] = mapped_column(
        Enum(
            WorkflowEntityType,
            name="wf_entity_type",
            native_enum=False,
            values_callable=enum_values,
            length=20,
        ),
        nullable=False,
    )
    name: Mapped[Optional[str]] = mapped_column(String(255))
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # [{"order": 1, "role": "hr", "required": true}, ...]
    steps: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)

    @property
    def step_count(self) -> int:
        return len(self.steps or [])
