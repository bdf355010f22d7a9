from fastapi import APIRouter, Depends

from change_planner.api import get_change_planner_service
from change_planner.models.schemas import FixOptionsRequest, FixOptionsResponse
from change_planner.services.change_planner_service import ChangePlannerService

router = APIRouter()


@router.post("/fix-options", response_model=FixOptionsResponse)
def fix_options(
    request: FixOptionsRequest,
    service: ChangePlannerService = Depends(get_change_planner_service),
) -> FixOptionsResponse:
    return service.fix_options(request)
