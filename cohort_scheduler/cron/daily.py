# cohort_scheduler/cron/daily.py
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from cohort_scheduler.core.config import settings
from cohort_scheduler.core.database import get_db_context
from cohort_scheduler.core.errors import BaseAPIError
from cohort_scheduler.core.logging import logger
from cohort_scheduler.services.scheduler_service import BatchDriver


async def run_daily_batch() -> None:
    logger.info("Starting scheduled cohort batch run")
    try:
        async with get_db_context() as db:
            report = await BatchDriver(db).run()
    except BaseAPIError as e:
        logger.error(f"Scheduled batch run aborted: {e.message}")
        return
    except Exception:
        logger.error("Scheduled batch run crashed", exc_info=True)
        return
    logger.info(
        f"Scheduled batch run finished (success={report.success}, "
        f"tables={len(report.results)}, recordings={report.recordings.total_fetched})"
    )


def create_scheduler() -> AsyncIOScheduler:
    """Daily job at SCHEDULER_HOUR:SCHEDULER_MINUTE in the regional timezone."""
    scheduler = AsyncIOScheduler(timezone=settings.REGION_TIMEZONE)
    scheduler.add_job(
        run_daily_batch,
        "cron",
        hour=settings.SCHEDULER_HOUR,
        minute=settings.SCHEDULER_MINUTE,
        id="cohort_daily_batch",
        max_instances=1,
        coalesce=True,
        replace_existing=True
    )
    return scheduler
