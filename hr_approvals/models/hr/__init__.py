from hr_approvals.models.hr.employee import Employee, UserProfile
from hr_approvals.models.hr.requests import (
    LeaveRequest,
    PayrollRun,
    PerDiemRequest,
    PromotionRequest,
)

__all__ = [
    "Employee",
    "UserProfile",
    "LeaveRequest",
    "PayrollRun",
    "PerDiemRequest",
    "PromotionRequest",
]
