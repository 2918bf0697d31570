from fastapi import APIRouter, Depends

from cohort_scheduler.core.dependencies import get_graph_client
from cohort_scheduler.schemas.common import ErrorResponse
from cohort_scheduler.schemas.meeting import CreateMeetingRequest, CreateMeetingResponse
from cohort_scheduler.services.graph_client import GraphClient
from cohort_scheduler.services.meeting_service import create_adhoc_meeting

router = APIRouter(prefix="/api/teams", tags=["Teams"])


@router.post(
    "/create-meeting",
    response_model=CreateMeetingResponse,
    responses={500: {"model": ErrorResponse}, 502: {"model": ErrorResponse}}
)
async def create_teams_meeting(
    request: CreateMeetingRequest,
    client: GraphClient = Depends(get_graph_client)
):
    """Create a Teams meeting outside the schedule, falling back to a bare meeting if the invite fails."""
    return await create_adhoc_meeting(client, request)
