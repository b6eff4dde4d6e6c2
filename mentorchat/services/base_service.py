# mentorchat/services/base_service.py
"""Base service with common persistence helpers."""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from sqlalchemy import select
from typing import Type, Any, Dict, Optional, TypeVar, Generic

from ..core.exceptions import ConflictRetryableError

# Define generic type
T = TypeVar('T')

class BaseService(Generic[T]):
    def __init__(self, model: Type[T], db: AsyncSession):
        self.model = model
        self.db = db

    async def get(self, id: Any) -> Optional[T]:
        stmt = select(self.model).where(self.model.id == id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by(self, **filters) -> Optional[T]:
        stmt = select(self.model)
        for key, value in filters.items():
            stmt = stmt.where(getattr(self.model, key) == value)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, obj_in: Dict) -> T:
        obj = self.model(**obj_in)
        self.db.add(obj)
        await self.db.commit()
        await self.db.refresh(obj)
        return obj

    async def insert_unique(self, obj: Any) -> Any:
        """Insert a row guarded by a unique constraint.

        A violation rolls the session back and raises ConflictRetryableError so
        the caller can re-read the row that won. Objects loaded earlier in the
        session are expired by the rollback and must be re-read too.
        """
        self.db.add(obj)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise ConflictRetryableError(type(obj).__tablename__) from e
        await self.db.refresh(obj)
        return obj
