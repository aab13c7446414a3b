"""API Routes module"""
from fastapi import APIRouter

from .tasks import router as tasks_router
from .suggestions import router as suggestions_router
from .workflows import router as workflows_router

# Main API router
api_router = APIRouter()

api_router.include_router(tasks_router, prefix="/tasks", tags=["Tasks"])
api_router.include_router(suggestions_router, prefix="/suggestions", tags=["Suggestions"])
api_router.include_router(workflows_router, prefix="/workflows", tags=["Workflows"])

__all__ = ["api_router"]
