"""
Database enums for the approval workflow.

Provides SQLAlchemy-compatible enum definitions shared by the models,
schemas and services.
"""

import enum


class UserRole(str, enum.Enum):
    """Organizational role enumeration."""
    ADMIN = "admin"
    HR = "hr"
    FINANCE = "finance"
    MANAGEMENT = "management"
    EMPLOYEE = "employee"
    # Relationship role: resolved against the requester's manager at check time
    LINE_MANAGER = "line_manager"


class WorkflowEntityType(str, enum.Enum):
    """Business records that can be routed through an approval workflow."""
    LEAVE = "leave"
    PER_DIEM = "per_diem"
    PAYROLL = "payroll"
    PROMOTION = "promotion"


class ApprovalStatus(str, enum.Enum):
    """Overall status of an approval request."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class ApprovalOutcome(str, enum.Enum):
    """Decision recorded against a single step."""
    APPROVED = "approved"
    REJECTED = "rejected"


def enum_values(enum_cls):
    """values_callable for SQLAlchemy Enum columns (store `.value`, not name)."""
    return [member.value for member in enum_cls]
