from fastapi import APIRouter, Depends, Query

from cohort_scheduler.core.dependencies import get_session_service
from cohort_scheduler.core.errors import ValidationError
from cohort_scheduler.models.schedule import is_schedule_table_name
from cohort_scheduler.schemas.common import ErrorResponse
from cohort_scheduler.schemas.session import (
    MaterialRemoveRequest,
    MaterialsRequest,
    MaterialsResponse,
    RescheduleDirection,
    RescheduleOptionsResponse,
    RescheduleRequest,
    RescheduleResponse,
    SwapMentorRequest,
    SwapMentorResponse
)
from cohort_scheduler.services.session_service import SessionService

router = APIRouter(prefix="/api/session", tags=["Sessions"])


@router.post(
    "/reschedule",
    response_model=RescheduleResponse,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}}
)
async def reschedule_session(
    request: RescheduleRequest,
    session_service: SessionService = Depends(get_session_service)
):
    """Prepone or postpone a session. The meeting link is cleared so a new one is provisioned."""
    return await session_service.reschedule(request)


@router.get("/reschedule-options", response_model=RescheduleOptionsResponse)
async def get_reschedule_options(
    table_name: str = Query(..., alias="tableName"),
    session_id: int = Query(..., alias="sessionId"),
    action_type: RescheduleDirection = Query(..., alias="actionType"),
    session_service: SessionService = Depends(get_session_service)
):
    """Dates a session can move to in the given direction"""
    if not is_schedule_table_name(table_name):
        raise ValidationError(message="tableName must be a cohort schedule table")
    return await session_service.reschedule_options(table_name, session_id, action_type)


@router.post("/swap-mentor", response_model=SwapMentorResponse)
async def swap_mentor(
    request: SwapMentorRequest,
    session_service: SessionService = Depends(get_session_service)
):
    """Assign a substitute mentor (or clear the substitute with swappedMentorId=null)."""
    return await session_service.swap_mentor(request)


@router.post("/materials", response_model=MaterialsResponse)
async def add_materials(
    request: MaterialsRequest,
    session_service: SessionService = Depends(get_session_service)
):
    return await session_service.add_materials(request.table_name, request.session_id, request.links)


@router.delete("/materials", response_model=MaterialsResponse)
async def remove_material(
    request: MaterialRemoveRequest,
    session_service: SessionService = Depends(get_session_service)
):
    return await session_service.remove_material(request.table_name, request.session_id, request.link)
