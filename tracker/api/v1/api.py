from fastapi import APIRouter
from tracker.api.v1.endpoints import health, projects

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])

# Resource endpoints
api_router.include_router(projects.router, prefix="/projects", tags=["projects"])
