"""Main API router aggregation."""

from fastapi import APIRouter

from vivvers.api.admin import router as admin_router
from vivvers.api.auth import router as auth_router
from vivvers.api.comments import router as comments_router
from vivvers.api.projects import router as projects_router
from vivvers.api.tags import router as tags_router
from vivvers.api.users import router as users_router

# Main API router
api_router = APIRouter(prefix="/api")

# Include all sub-routers
api_router.include_router(auth_router)
api_router.include_router(users_router)
api_router.include_router(projects_router)
api_router.include_router(comments_router)
api_router.include_router(tags_router)
api_router.include_router(admin_router)
