"""Notification Repository - Data access for the notification outbox

The engine only enqueues intents; delivery is another process's concern.
"""
from typing import Optional
from pymongo.collection import Collection

from .mongo_client import get_collection
from ..domain.models import NotificationIntent
from ..utils.logger import get_logger

logger = get_logger(__name__)


class NotificationRepository:
    """Repository for notification outbox operations"""

    def __init__(self, collection: Optional[Collection] = None):
        self._outbox: Collection = collection if collection is not None else get_collection("notification_outbox")

    def enqueue(self, intent: NotificationIntent) -> NotificationIntent:
        """Add a notification intent to the outbox"""
        doc = intent.model_dump()
        doc["_id"] = intent.notification_id

        self._outbox.insert_one(doc)
        logger.info(
            f"Queued notification for {len(intent.recipients)} recipient(s)",
            extra={"task_id": intent.task_id, "transition_id": intent.transition_id}
        )
        return intent

