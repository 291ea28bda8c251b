from fastapi import APIRouter
from projectgen.api.routes_health import router as health_router
from projectgen.api.routes_projects import router as projects_router
from projectgen.api.routes_events import router as events_router

router = APIRouter()
router.include_router(health_router, tags=["health"])
router.include_router(projects_router, tags=["projects"])
router.include_router(events_router, tags=["events"])
