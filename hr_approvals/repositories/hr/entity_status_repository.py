"""
Entity status repository.

Writes workflow-derived columns onto an originating business record
inside the caller's transaction.
"""

from typing import Any, Dict, Type

from sqlalchemy import update
from sqlalchemy.orm import Session

from hr_approvals.config.logging import get_logger
from hr_approvals.models.base import BaseModel

logger = get_logger(__name__)


class EntityStatusRepository:
    """Column writer for any originating entity model."""

    def __init__(self, db: Session):
        self.db = db

    def write(self, model: Type[BaseModel], entity_id: str, values: Dict[str, Any]) -> int:
        """
        Update the given columns on one row.

        Returns the number of rows updated (0 when the entity is missing).
        SQLAlchemy errors propagate to the caller unchanged.
        """
        stmt = (
            update(model)
            .where(model.id == entity_id)
            .values(**values)
            .execution_options(synchronize_session="fetch")
        )
        result = self.db.execute(stmt)
        logger.debug(
            f"Wrote {sorted(values)} on {model.__tablename__}",
            extra={"entity_id": entity_id, "rows": result.rowcount},
        )
        return result.rowcount
