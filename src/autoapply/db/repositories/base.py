"""Generic repository shared by the vault and application tables."""

from typing import Any, Generic, Type, TypeVar
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from autoapply.db.models import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """Primary-key lookups and writes for one model.

    Repositories never commit: callers own the transaction
    (``async with session_factory.begin() as db``).

    Example:
        class AuthEventRepository(BaseRepository[AuthenticationEvent]):
            def __init__(self, db: AsyncSession):
                super().__init__(AuthenticationEvent, db)
    """

    def __init__(self, model: Type[ModelType], db: AsyncSession):
        self.model = model
        self.db = db

    async def get(self, id: UUID) -> ModelType | None:
        result = await self.db.execute(select(self.model).where(self.model.id == id))
        return result.scalar_one_or_none()

    async def create(self, **values: Any) -> ModelType:
        """Insert a row and return it with server defaults loaded."""
        row = self.model(**values)
        self.db.add(row)
        await self.db.flush()
        await self.db.refresh(row)
        return row

    async def update(self, id: UUID, **values: Any) -> ModelType | None:
        """Set the given columns on a row.

        ``None`` values and names that are not columns are ignored, so
        progress writes can pass only what changed.

        Returns:
            The updated row, or None if the id is unknown
        """
        row = await self.get(id)
        if row is None:
            return None

        for column, value in values.items():
            if value is not None and hasattr(row, column):
                setattr(row, column, value)

        await self.db.flush()
        return row

    async def delete(self, id: UUID) -> bool:
        """Delete a row by primary key.

        Returns:
            True if a row was deleted, False if the id is unknown
        """
        row = await self.get(id)
        if row is None:
            return False

        await self.db.delete(row)
        await self.db.flush()
        return True
