from fastapi import APIRouter

from notenexus.core.config import settings
from notenexus.api.v1.endpoints import (
    announcements,
    dashboard,
    events,
    feedback,
    files,
    health,
    notes,
    subjects,
    tips,
    users,
)

api_router = APIRouter()

api_router.include_router(health.router)


@api_router.get("/health", tags=["Health"])
async def health_check():
    """Simple health check for load balancers"""
    return {"status": "healthy", "service": settings.APP_NAME}


api_router.include_router(users.router, prefix="/users", tags=["Users"])
api_router.include_router(notes.router, prefix="/notes", tags=["Notes"])
api_router.include_router(tips.router, prefix="/tips", tags=["Tips"])
api_router.include_router(files.router, prefix="/files", tags=["Files"])
api_router.include_router(subjects.router, prefix="/subjects", tags=["Subjects"])
api_router.include_router(announcements.router, prefix="/announcements", tags=["Announcements"])
api_router.include_router(events.router, prefix="/events", tags=["Events"])
api_router.include_router(feedback.router, prefix="/feedback", tags=["Feedback"])
api_router.include_router(dashboard.router, tags=["Dashboard"])
