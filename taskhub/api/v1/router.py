"""
API v1 Router
Main router for all API v1 endpoints
"""

from fastapi import APIRouter
from taskhub.api.v1.endpoints import activity_logs, auth, permissions, projects, roles, users

api_router = APIRouter()

# Authentication endpoints
api_router.include_router(
    auth.router,
    prefix="/auth",
    tags=["authentication"]
)

# Permission catalog endpoints
api_router.include_router(
    permissions.router,
    prefix="/permissions",
    tags=["permissions"]
)

# Role management endpoints
api_router.include_router(
    roles.router,
    prefix="/roles",
    tags=["roles"]
)

# User management endpoints
api_router.include_router(
    users.router,
    prefix="/users",
    tags=["users"]
)

# Project management endpoints
api_router.include_router(
    projects.router,
    prefix="/projects",
    tags=["projects"]
)

# Activity log endpoints
api_router.include_router(
    activity_logs.router,
    prefix="/activity-logs",
    tags=["activity-logs"]
)
