"""Activity Repository - Append-only task activity log"""
from typing import List, Optional
from pymongo.collection import Collection
from pymongo import DESCENDING

from .mongo_client import get_collection
from ..domain.models import ActivityRecord, HistoryHop
from ..domain.enums import ActivityType
from ..utils.logger import get_logger

logger = get_logger(__name__)


class ActivityRepository:
    """Repository for activity records (append-only)"""

    def __init__(self, collection: Optional[Collection] = None):
        self._activities: Collection = collection if collection is not None else get_collection("activities")

    def append(self, record: ActivityRecord) -> ActivityRecord:
        """Append an activity record"""
        doc = record.model_dump()
        doc["_id"] = record.activity_id

        self._activities.insert_one(doc)
        logger.info(
            f"Recorded activity: {record.type.value}",
            extra={
                "task_id": record.task_id,
                "transition_id": record.transition_id,
                "actor_id": record.actor_id,
            }
        )
        return record

    def get_recent_status_changes(self, task_id: str, limit: int = 5) -> List[HistoryHop]:
        """Last status changes of a task as (from, to) hops, oldest first"""
        cursor = self._activities.find(
            {"task_id": task_id, "type": ActivityType.STATUS_CHANGED.value},
            {"_id": 0, "from_status_id": 1, "to_status_id": 1}
        ).sort("timestamp", DESCENDING).limit(limit)

        hops = [
            HistoryHop(from_status=doc["from_status_id"], to_status=doc["to_status_id"])
            for doc in cursor
        ]
        hops.reverse()
        return hops
