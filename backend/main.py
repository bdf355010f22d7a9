from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from change_planner.api import routes_change_plan, routes_fix_options, routes_health
from change_planner.core.config import settings
from change_planner.core.logging import configure_logging
from change_planner.services.change_planner_service import ChangePlannerService


def create_app(service: Optional[ChangePlannerService] = None) -> FastAPI:
    configure_logging()
    app = FastAPI(title=settings.app_name, version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(routes_health.router, tags=["health"])
    app.include_router(routes_change_plan.router, prefix="/api", tags=["change-plan"])
    app.include_router(routes_fix_options.router, prefix="/api", tags=["fix-options"])

    # Shared by request handlers through Depends(get_change_planner_service)
    app.state.change_planner = service or ChangePlannerService(config=settings)
    app.state.settings = settings
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
