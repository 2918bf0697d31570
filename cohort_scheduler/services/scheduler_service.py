# cohort_scheduler/services/scheduler_service.py
import asyncio
from datetime import date, timedelta
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from cohort_scheduler.core.config import regional_now, settings
from cohort_scheduler.core.logging import log_function_call, logger
from cohort_scheduler.schemas.scheduler import BatchReport, DateRange, RecordingSummary
from .base_service import BaseService
from .cohort_registry import CohortRegistry
from .graph_client import GraphClient
from .meeting_service import MeetingProvisioningJob
from .recording_service import RecordingCache, RecordingReconciliationJob


class BatchDriver(BaseService):
    """Daily run: attach yesterday's recordings, then provision the coming week's meetings."""

    def __init__(
        self,
        db: AsyncSession,
        client: Optional[GraphClient] = None,
        registry: Optional[CohortRegistry] = None,
        recording_cache: Optional[RecordingCache] = None,
        timeout_seconds: Optional[float] = None
    ):
        super().__init__(db)
        self.client = client
        self.registry = registry or CohortRegistry(db)
        self.recording_cache = recording_cache
        self.timeout_seconds = timeout_seconds or settings.BATCH_TIMEOUT_SECONDS

    @log_function_call(logger)
    async def run(self, today: Optional[date] = None) -> BatchReport:
        """Run the whole batch under the configured deadline.

        Configuration problems (missing Graph credentials, token exchange
        failure) raise ConfigurationError before any table is touched.
        """
        today = today or regional_now().date()
        client = self.client or GraphClient.from_settings()
        # Fail fast on bad credentials; the token is cached for the rest of the run
        await client.token_provider.get_token()

        try:
            return await asyncio.wait_for(self._run(client, today), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            logger.error(f"Batch run exceeded {self.timeout_seconds}s and was cancelled")
            return BatchReport(
                success=False,
                date_range=self._date_range(today),
                recordings=RecordingSummary(date=(today - timedelta(days=1)).isoformat()),
                error=f"Batch run timed out after {self.timeout_seconds} seconds",
            )

    def _date_range(self, today: date) -> DateRange:
        return DateRange(start=today, end=today + timedelta(days=settings.PROVISIONING_WINDOW_DAYS))

    async def _run(self, client, today: date) -> BatchReport:
        window = self._date_range(today)
        yesterday = today - timedelta(days=1)

        cache = self.recording_cache or RecordingCache(client)
        cache.reset()

        tables = await self.registry.list_cohort_tables()
        logger.info(f"Batch run for {len(tables)} cohort tables, window {window.start} to {window.end}")

        recordings = await RecordingReconciliationJob(self.db, client, cache).run(tables, yesterday)
        results = await MeetingProvisioningJob(self.db, client).run(tables, window.start, window.end)

        created = sum(getattr(r, "meetings_created", 0) for r in results)
        logger.info(f"Batch run finished: {created} meetings created, {recordings.total_fetched} recordings attached")
        return BatchReport(success=True, date_range=window, results=results, recordings=recordings)
