"""API route aggregation.

All routers registered here get mounted in main.py under /api.

Learn: Auth is applied at the include_router level using FastAPI's
dependencies parameter. Handlers that need the identity declare
get_current_user again; FastAPI caches it per request, so the session
is resolved once. Health and auth routers are open (auth routes that
need a session declare it themselves).
"""

from fastapi import APIRouter, Depends

from taskboard.api.auth import router as auth_router
from taskboard.api.boards import router as boards_router
from taskboard.api.health import router as health_router
from taskboard.api.members import router as members_router
from taskboard.api.projects import router as projects_router
from taskboard.api.tasks import router as tasks_router
from taskboard.api.users import router as users_router
from taskboard.auth.dependencies import get_current_user

# All protected routers require authentication
_auth = [Depends(get_current_user)]

api_router = APIRouter(prefix="/api")

# Open routes
api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])

# Protected routes: require a valid session
api_router.include_router(users_router, tags=["users"], dependencies=_auth)
api_router.include_router(projects_router, tags=["projects"], dependencies=_auth)
api_router.include_router(members_router, tags=["members"], dependencies=_auth)
api_router.include_router(boards_router, tags=["boards", "columns"], dependencies=_auth)
api_router.include_router(tasks_router, tags=["tasks", "comments"], dependencies=_auth)
