from fastapi import HTTPException
from starlette.requests import Request

from change_planner.services.change_planner_service import ChangePlannerService


def get_change_planner_service(request: Request) -> ChangePlannerService:
    service = getattr(request.app.state, "change_planner", None)
    if service is None:
        raise HTTPException(status_code=500, detail="Change planner not initialized")
    return service
