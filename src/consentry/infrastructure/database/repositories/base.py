"""
Base Repository Pattern

Shared plumbing for the SQLAlchemy stores. Each store operation opens
its own short session from the DatabaseManager, and driver errors are
translated into StoreError / StoreConstraintError so services never see
SQLAlchemy exceptions.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Generic, Type, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from consentry.infrastructure.database.connection import Base, DatabaseManager
from consentry.infrastructure.database.repositories.interfaces import (
    StoreConstraintError,
    StoreError,
)

# Type variable for model types
ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """
    Generic base repository.

    Subclass and specify the model type for entity-specific repositories.

    Usage:
        class WidgetRepository(BaseRepository[WidgetConfigModel]):
            ...

        repo = WidgetRepository(db_manager)
        widget = await repo.get_active_widget("w1")
    """

    def __init__(self, model: Type[ModelT], db: DatabaseManager) -> None:
        """
        Initialize repository with model class and database manager.

        Args:
            model: SQLAlchemy model class
            db: Database manager that hands out sessions
        """
        self._model = model
        self._db = db

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncGenerator[AsyncSession, None]:
        """
        Session for one store operation with error translation.

        Raises:
            StoreConstraintError: On integrity (CHECK/UNIQUE/FK) violations
            StoreError: On any other database failure
        """
        try:
            async with self._db.session() as session:
                yield session
        except IntegrityError as e:
            raise StoreConstraintError(
                f"{self._model.__tablename__}: integrity constraint violated",
                operation=operation,
                original_error=e,
            ) from e
        except SQLAlchemyError as e:
            raise StoreError(
                f"{self._model.__tablename__}: {operation} failed",
                operation=operation,
                original_error=e,
            ) from e
