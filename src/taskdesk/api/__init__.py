"""API route aggregation.

All routers registered here get mounted in main.py.

Auth is applied at the include_router level using FastAPI's
dependencies parameter, so every task, comment and user route requires
a verified identity. Health and auth routers are open; registration
resolves the caller itself and the service enforces ADMIN.
"""

from fastapi import APIRouter, Depends

from taskdesk.api.auth import router as auth_router
from taskdesk.api.comments import router as comments_router
from taskdesk.api.health import router as health_router
from taskdesk.api.tasks import router as tasks_router
from taskdesk.api.users import router as users_router
from taskdesk.auth.dependencies import get_current_user

# All protected routers require authentication
_auth = [Depends(get_current_user)]

api_router = APIRouter(prefix="/api")

# Open routes — no auth required
api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])

# Protected routes — require a valid bearer token
api_router.include_router(tasks_router, tags=["tasks"], dependencies=_auth)
api_router.include_router(comments_router, tags=["comments"], dependencies=_auth)
api_router.include_router(users_router, tags=["users"], dependencies=_auth)
