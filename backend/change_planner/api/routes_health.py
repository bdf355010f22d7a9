from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
def healthcheck(request: Request) -> dict:
    config = request.app.state.settings
    return {"status": "ok", "service": config.app_name, "environment": config.environment}
