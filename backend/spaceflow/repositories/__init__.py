"""Repository modules - Data access layer"""
from .mongo_client import get_database, get_collection, create_indexes, close_connection
from .workflow_repo import WorkflowRepository
from .task_repo import TaskRepository
from .membership_repo import MembershipRepository
from .identity_repo import IdentityRepository
from .activity_repo import ActivityRepository
from .notification_repo import NotificationRepository

__all__ = [
    "get_database",
    "get_collection",
    "create_indexes",
    "close_connection",
    "WorkflowRepository",
    "TaskRepository",
    "MembershipRepository",
    "IdentityRepository",
    "ActivityRepository",
    "NotificationRepository",
]
