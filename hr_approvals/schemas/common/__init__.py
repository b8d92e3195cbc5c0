from hr_approvals.schemas.common.base import BaseCreateSchema, BaseSchema

__all__ = ["BaseCreateSchema", "BaseSchema"]
