"""Base repository: session handling and storage error translation."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from authz.domain.exceptions import DuplicateAssignmentException, RepositoryException
from authz.infrastructure.persistence.database import Base


class BaseRepository[ModelType: Base]:
    """Base repository over one ORM model.

    Subclasses map rows to domain entities. Every statement runs inside
    _guard(), which turns IntegrityError into DuplicateAssignmentException
    and any other SQLAlchemyError into RepositoryException.
    """

    duplicate_assignment_type: str = "row"

    def __init__(self, db: AsyncSession, model: type[ModelType]) -> None:
        self.db = db
        self.model = model

    @asynccontextmanager
    async def _guard(self, operation: str) -> AsyncIterator[None]:
        try:
            yield
        except IntegrityError as e:
            raise DuplicateAssignmentException(
                f"{self.model.__name__} violates a uniqueness rule",
                self.duplicate_assignment_type,
                {"operation": operation},
            ) from e
        except SQLAlchemyError as e:
            raise RepositoryException(operation, e) from e

    async def _get_row(self, entity_id: str) -> ModelType | None:
        """Return a single row by primary key, or None."""
        model: Any = self.model
        async with self._guard(f"{self.model.__tablename__}.get"):
            result = await self.db.execute(select(self.model).where(model.id == entity_id))
            return result.scalar_one_or_none()

    async def _flush(self, obj: ModelType, operation: str) -> ModelType:
        """Add, flush and refresh obj."""
        async with self._guard(operation):
            self.db.add(obj)
            await self.db.flush()
            await self.db.refresh(obj)
        return obj
