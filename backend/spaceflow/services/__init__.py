"""Service modules - Business logic layer"""
from .transition_service import TransitionService
from .workflow_service import WorkflowService

__all__ = [
    "TransitionService",
    "WorkflowService",
]
