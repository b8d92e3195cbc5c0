"""
Originating business records that participate in approval workflows.

Each record owns its own status vocabulary. The workflow engine writes
`status`, the rejection column and the per-stage approver stamps; all
other columns belong to the entity services.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import Date, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from hr_approvals.models.base import TimestampModel

__all__ = ["LeaveRequest", "PerDiemRequest", "PayrollRun", "PromotionRequest"]


class LeaveRequest(TimestampModel):
    """Leave request: line manager, then HR."""

    __tablename__ = "hr_leave_requests"

    organization_id: Mapped[str] = mapped_column(String(36), nullable=False)
    employee_id: Mapped[str] = mapped_column(String(36), ForeignKey("hr_employees.id"), nullable=False)
    leave_type: Mapped[str] = mapped_column(String(50), nullable=False, default="annual")
    start_date: Mapped[Optional[date]] = mapped_column(Date)
    end_date: Mapped[Optional[date]] = mapped_column(Date)
    days: Mapped[Optional[int]] = mapped_column(Integer)

    status: Mapped[str] = mapped_column(String(50), nullable=False, default="draft")
    rejection_reason: Mapped[Optional[str]] = mapped_column(Text)

    line_manager_approved_by: Mapped[Optional[str]] = mapped_column(String(36))
    line_manager_approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    hr_approved_by: Mapped[Optional[str]] = mapped_column(String(36))
    hr_approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))


class PerDiemRequest(TimestampModel):
    """Per-diem request: line manager, finance, then management."""

    __tablename__ = "hr_per_diem_requests"

    organization_id: Mapped[str] = mapped_column(String(36), nullable=False)
    employee_id: Mapped[str] = mapped_column(String(36), ForeignKey("hr_employees.id"), nullable=False)
    destination: Mapped[Optional[str]] = mapped_column(String(255))
    amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2))

    status: Mapped[str] = mapped_column(String(50), nullable=False, default="draft")
    rejection_reason: Mapped[Optional[str]] = mapped_column(Text)

    line_manager_approved_by: Mapped[Optional[str]] = mapped_column(String(36))
    line_manager_approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    finance_approved_by: Mapped[Optional[str]] = mapped_column(String(36))
    finance_approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    management_approved_by: Mapped[Optional[str]] = mapped_column(String(36))
    management_approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))


class PayrollRun(TimestampModel):
    """
    Monthly payroll run: finance reconciliation, then management approval.

    Gross/deduction/net totals come from the statutory calculator and are
    only carried here for reference.
    """

    __tablename__ = "hr_payroll_runs"

    organization_id: Mapped[str] = mapped_column(String(36), nullable=False)
    period_month: Mapped[int] = mapped_column(Integer, nullable=False)
    period_year: Mapped[int] = mapped_column(Integer, nullable=False)
    total_gross: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 2))
    total_deductions: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 2))
    total_net: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 2))

    status: Mapped[str] = mapped_column(String(50), nullable=False, default="draft")
    rejection_comments: Mapped[Optional[str]] = mapped_column(Text)

    finance_approved_by: Mapped[Optional[str]] = mapped_column(String(36))
    finance_approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    management_approved_by: Mapped[Optional[str]] = mapped_column(String(36))
    management_approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    approved_by: Mapped[Optional[str]] = mapped_column(String(36))
    approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))


class PromotionRequest(TimestampModel):
    """Promotion request: HR, then management."""

    __tablename__ = "hr_promotion_requests"

    organization_id: Mapped[str] = mapped_column(String(36), nullable=False)
    employee_id: Mapped[str] = mapped_column(String(36), ForeignKey("hr_employees.id"), nullable=False)
    current_title: Mapped[Optional[str]] = mapped_column(String(255))
    proposed_title: Mapped[Optional[str]] = mapped_column(String(255))
    proposed_salary: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2))

    status: Mapped[str] = mapped_column(String(50), nullable=False, default="draft")
    rejection_reason: Mapped[Optional[str]] = mapped_column(Text)

    hr_approved_by: Mapped[Optional[str]] = mapped_column(String(36))
    hr_approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    management_approved_by: Mapped[Optional[str]] = mapped_column(String(36))
    management_approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
