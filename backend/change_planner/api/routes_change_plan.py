from fastapi import APIRouter, Depends

from change_planner.api import get_change_planner_service
from change_planner.models.schemas import ChangePlanRequest, ChangePlannerResponse, PlannerStatus
from change_planner.services.change_planner_service import ChangePlannerService

router = APIRouter()


@router.post("/change-plan", response_model=ChangePlannerResponse)
def plan_change(
    request: ChangePlanRequest,
    service: ChangePlannerService = Depends(get_change_planner_service),
) -> ChangePlannerResponse:
    return service.plan_change(request)


@router.get("/change-plan/status", response_model=PlannerStatus)
def planner_status(
    service: ChangePlannerService = Depends(get_change_planner_service),
) -> PlannerStatus:
    return service.status()
