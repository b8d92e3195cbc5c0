"""
User profile repository.

Backs the database identity provider: role, organization and linked
employee of an authenticated user.
"""

from typing import Optional, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session

from hr_approvals.models.hr import Employee, UserProfile
from hr_approvals.repositories.base.base_repository import BaseRepository


class UserProfileRepository(BaseRepository[UserProfile]):

    def __init__(self, db: Session):
        super().__init__(UserProfile, db)

    def get_with_employee(self, user_id: str) -> Optional[Tuple[UserProfile, Optional[Employee]]]:
        stmt = (
            select(UserProfile, Employee)
            .outerjoin(Employee, Employee.id == UserProfile.employee_id)
            .where(UserProfile.id == user_id)
        )
        row = self.db.execute(stmt).first()
        if row is None:
            return None
        return row[0], row[1]
