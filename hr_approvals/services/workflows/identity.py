"""
Identity/role provider boundary.

The engine never trusts a caller-supplied role on the decision path: it
asks an `IdentityProvider` who the approving user is.
"""

from typing import Optional, Protocol

from sqlalchemy.orm import Session

from hr_approvals.repositories.hr import UserProfileRepository
from hr_approvals.schemas.workflows import Principal


class IdentityProvider(Protocol):
    def get_principal(self, user_id: str) -> Optional[Principal]:
        """Resolve a user id to its role and employee link, or None."""
        ...


class DatabaseIdentityProvider:
    """Identity provider backed by user profiles and employee records."""

    def __init__(self, db: Session):
        self.profiles = UserProfileRepository(db)

    def get_principal(self, user_id: str) -> Optional[Principal]:
        found = self.profiles.get_with_employee(user_id)
        if found is None:
            return None

        profile, employee = found
        return Principal(
            user_id=profile.id,
            organization_id=profile.organization_id,
            role=profile.role,
            employee_id=profile.employee_id,
            is_line_manager=bool(employee and employee.is_line_manager),
        )
