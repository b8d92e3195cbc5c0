"""
Base repository with standardized data access and error handling.

Repositories never commit: the calling service owns the transaction so
that several writes can succeed or fail together.
"""

from typing import Any, Generic, List, Optional, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from hr_approvals.config.logging import get_logger
from hr_approvals.core.exceptions import DuplicateEntryError, RepositoryError
from hr_approvals.models.base import BaseModel

logger = get_logger(__name__)

# Type variable for model classes
ModelType = TypeVar("ModelType", bound=BaseModel)


class BaseRepository(Generic[ModelType]):
    """
    Base repository with standardized operations.

    Provides create/read helpers and translation of SQLAlchemy errors
    into application exceptions.
    """

    def __init__(self, model: Type[ModelType], db: Session):
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            db: Database session
        """
        self.model = model
        self.db = db

    @property
    def table_name(self) -> str:
        return self.model.__tablename__

    # ==================== Create Operations ====================

    def create(self, entity: ModelType) -> ModelType:
        """
        Add entity to the session and flush it.

        Args:
            entity: Entity to create

        Returns:
            Created entity with database defaults populated

        Raises:
            DuplicateEntryError: If a unique constraint is violated
            RepositoryError: On any other database failure
        """
        try:
            self.db.add(entity)
            self.db.flush()
        except IntegrityError as e:
            raise DuplicateEntryError(
                f"{self.model.__name__} already exists", table=self.table_name
            ) from e
        except SQLAlchemyError as e:
            raise RepositoryError(
                f"Create failed: {str(e)}", operation="create", table=self.table_name
            ) from e

        logger.debug(f"Created {self.model.__name__} with id: {entity.id}")
        return entity

    # ==================== Read Operations ====================

    def get_by_id(self, entity_id: Any) -> Optional[ModelType]:
        """
        Get entity by ID.

        Args:
            entity_id: Primary key value

        Returns:
            Entity or None
        """
        try:
            return self.db.get(self.model, entity_id)
        except SQLAlchemyError as e:
            raise RepositoryError(
                f"Get failed: {str(e)}", operation="get_by_id", table=self.table_name
            ) from e

    def find_by(self, **filters) -> List[ModelType]:
        """
        Find entities matching all given column equality filters.
        """
        stmt = select(self.model).filter_by(**filters)
        return self._scalars(stmt, "find_by")

    def _scalars(self, stmt, operation: str) -> List[Any]:
        try:
            return list(self.db.scalars(stmt).all())
        except SQLAlchemyError as e:
            raise RepositoryError(
                f"Query failed: {str(e)}", operation=operation, table=self.table_name
            ) from e

    def _first(self, stmt, operation: str) -> Optional[Any]:
        try:
            return self.db.scalars(stmt).first()
        except SQLAlchemyError as e:
            raise RepositoryError(
                f"Query failed: {str(e)}", operation=operation, table=self.table_name
            ) from e
