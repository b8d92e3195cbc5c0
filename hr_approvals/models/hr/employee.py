"""
Employee and user profile records.

Owned by the HR CRUD side of the system; only the columns the workflow
engine reads are modelled here.
"""

from typing import Optional

from sqlalchemy import Boolean, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hr_approvals.models.base import TimestampModel

__all__ = ["Employee", "UserProfile"]


class Employee(TimestampModel):
    """Employee with a reporting line."""

    __tablename__ = "hr_employees"
    __table_args__ = (
        Index("ix_hr_employee_org", "organization_id"),
        Index("ix_hr_employee_manager", "manager_id"),
    )

    organization_id: Mapped[str] = mapped_column(String(36), nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)

    manager_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("hr_employees.id", ondelete="SET NULL"),
        nullable=True,
        comment="Line manager of this employee",
    )
    is_line_manager: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    manager: Mapped[Optional["Employee"]] = relationship(remote_side="Employee.id")


class UserProfile(TimestampModel):
    """
    Login identity with its organizational role.

    The id is the authenticated user id; `employee_id` links the user to
    their employee record when they have one.
    """

    __tablename__ = "hr_user_profiles"

    organization_id: Mapped[str] = mapped_column(String(36), nullable=False)
    role: Mapped[str] = mapped_column(String(50), nullable=False)
    employee_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("hr_employees.id", ondelete="SET NULL"),
        nullable=True,
    )

    employee: Mapped[Optional[Employee]] = relationship()
