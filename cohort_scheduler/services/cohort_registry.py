# cohort_scheduler/services/cohort_registry.py
from typing import List, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from cohort_scheduler.core.config import settings
from cohort_scheduler.core.logging import logger
from cohort_scheduler.models.schedule import is_schedule_table_name
from .base_service import BaseService

POSTGRES_CATALOG_QUERY = text(
    "SELECT table_name FROM information_schema.tables "
    "WHERE table_schema = 'public' AND table_name LIKE '%\\_schedule' ESCAPE '\\' "
    "ORDER BY table_name"
)

SQLITE_CATALOG_QUERY = text(
    "SELECT name FROM sqlite_master "
    "WHERE type = 'table' AND name LIKE '%\\_schedule' ESCAPE '\\' "
    "ORDER BY name"
)


class CohortRegistry(BaseService):
    """Discovers which cohort schedule tables exist."""

    def __init__(self, db: AsyncSession, fallback_tables: Optional[List[str]] = None):
        super().__init__(db)
        self.fallback_tables = list(fallback_tables or settings.FALLBACK_COHORT_TABLES)

    def _catalog_query(self):
        if self.db.get_bind().dialect.name == "sqlite":
            return SQLITE_CATALOG_QUERY
        return POSTGRES_CATALOG_QUERY

    async def list_cohort_tables(self) -> List[str]:
        """Schedule tables from the database catalog, or the configured list when discovery fails."""
        try:
            result = await self.db.execute(self._catalog_query())
            tables = [name for name in result.scalars().all() if is_schedule_table_name(name)]
        except Exception as e:
            logger.warning(f"Cohort table discovery failed, using fallback list: {str(e)}")
            await self._discard_transaction()
            return list(self.fallback_tables)

        if not tables:
            logger.warning("No cohort tables discovered, using fallback list")
            return list(self.fallback_tables)

        logger.info(f"Discovered {len(tables)} cohort tables")
        return tables

    async def _discard_transaction(self) -> None:
        try:
            await self.db.rollback()
        except SQLAlchemyError as e:
            logger.error(f"Rollback after failed discovery also failed: {str(e)}")
