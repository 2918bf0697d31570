from fastapi import APIRouter, Depends

from cohort_scheduler.core.dependencies import get_batch_driver
from cohort_scheduler.core.security import require_cron_secret
from cohort_scheduler.schemas.common import ErrorResponse
from cohort_scheduler.schemas.scheduler import BatchReport
from cohort_scheduler.services.scheduler_service import BatchDriver

router = APIRouter(prefix="/api/scheduler", tags=["Scheduler"])


@router.api_route(
    "/generate-meetings",
    methods=["GET", "POST"],
    response_model=BatchReport,
    responses={401: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    dependencies=[Depends(require_cron_secret)]
)
async def generate_meetings(driver: BatchDriver = Depends(get_batch_driver)):
    """
    Daily batch trigger: attach yesterday's recordings, then create meetings for
    the next week's sessions. Called by an external cron with the shared secret.
    """
    return await driver.run()
