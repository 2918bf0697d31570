# cohort_scheduler/services/base_service.py
from contextlib import asynccontextmanager
from sqlalchemy.ext.asyncio import AsyncSession


class BaseService:
    def __init__(self, db: AsyncSession):
        self.db = db

    @asynccontextmanager
    async def transaction(self):
        """Commit on success, roll back and re-raise on any error"""
        try:
            yield
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
