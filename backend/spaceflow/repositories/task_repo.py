"""Task Repository - Data access for tasks and their workflow binding"""
from typing import Any, Dict, Optional
from pymongo.collection import Collection
from pymongo import ASCENDING, ReturnDocument

from .mongo_client import get_collection
from ..domain.models import SubtaskSnapshot, TaskSnapshot
from ..domain.errors import ConcurrentModificationError, TaskNotFoundError
from ..utils.logger import get_logger
from ..utils.time import utc_now

logger = get_logger(__name__)

# Fields a snapshot is built from; subtasks are separate task documents
_TASK_PROJECTION = {"_id": 0}


class TaskRepository:
    """Repository for task operations"""

    def __init__(self, collection: Optional[Collection] = None):
        self._tasks: Collection = collection if collection is not None else get_collection("tasks")

    # =========================================================================
    # Reads
    # =========================================================================

    def get_task(self, task_id: str) -> Optional[TaskSnapshot]:
        """Get task with its subtasks, or None"""
        doc = self._tasks.find_one({"task_id": task_id}, _TASK_PROJECTION)
        if not doc:
            return None

        doc["subtasks"] = [
            SubtaskSnapshot(
                subtask_id=sub["task_id"],
                title=sub.get("title"),
                is_done=bool(sub.get("is_done")),
            )
            for sub in self._tasks.find(
                {"parent_task_id": task_id},
                {"_id": 0, "task_id": 1, "title": 1, "is_done": 1}
            ).sort("created_at", ASCENDING)
        ]
        return TaskSnapshot.model_validate(doc)

    def get_task_or_raise(self, task_id: str) -> TaskSnapshot:
        """Get task by ID or raise error"""
        task = self.get_task(task_id)
        if not task:
            raise TaskNotFoundError(f"Task {task_id} not found", details={"task_id": task_id})
        return task

    # =========================================================================
    # Writes
    # =========================================================================

    def create_task(self, task: TaskSnapshot, parent_task_id: Optional[str] = None) -> TaskSnapshot:
        """Insert a task document (seeding and tests)"""
        doc = task.model_dump(exclude={"subtasks"})
        doc["_id"] = task.task_id
        doc["parent_task_id"] = parent_task_id
        doc["is_done"] = False
        doc.setdefault("created_at", utc_now())
        self._tasks.insert_one(doc)
        logger.info(f"Created task: {task.task_id}", extra={"task_id": task.task_id})
        return task

    def compare_and_set_status(
        self,
        task_id: str,
        workflow_version: int,
        expected_status_id: str,
        new_workflow_status_id: str,
        new_status_id: Optional[str]
    ) -> TaskSnapshot:
        """
        Move a task to a new workflow status only if it still sits on the
        expected status of the expected version.

        The filter and the write are a single document operation, so two
        attempts racing from the same status can never both succeed.

        Raises:
            ConcurrentModificationError: Task exists but no longer matches
            TaskNotFoundError: Task does not exist
        """
        updates: Dict[str, Any] = {
            "workflow_status_id": new_workflow_status_id,
            "updated_at": utc_now(),
        }
        if new_status_id is not None:
            updates["status_id"] = new_status_id

        filter_query = {
            "task_id": task_id,
            "workflow_version": workflow_version,
            "workflow_status_id": expected_status_id,
        }

        result = self._tasks.find_one_and_update(
            filter_query,
            {"$set": updates},
            projection=_TASK_PROJECTION,
            return_document=ReturnDocument.AFTER
        )

        if result is None:
            exists = self._tasks.find_one({"task_id": task_id}, {"_id": 1})
            if exists:
                logger.warning(
                    f"Lost status race on task {task_id}",
                    extra={
                        "task_id": task_id,
                        "from_status_id": expected_status_id,
                        "to_status_id": new_workflow_status_id,
                    }
                )
                raise ConcurrentModificationError(
                    f"Task {task_id} was modified. Please refresh and try again.",
                    details={
                        "expected_status_id": expected_status_id,
                        "expected_workflow_version": workflow_version,
                    }
                )
            raise TaskNotFoundError(f"Task {task_id} not found", details={"task_id": task_id})

        logger.info(
            f"Task {task_id} moved to {new_workflow_status_id}",
            extra={"task_id": task_id, "to_status_id": new_workflow_status_id}
        )
        return self.get_task_or_raise(task_id)

    def update_fields(self, task_id: str, updates: Dict[str, Any]) -> TaskSnapshot:
        """Set plain task attributes (post-function writes)"""
        updates = {**updates, "updated_at": utc_now()}
        result = self._tasks.find_one_and_update(
            {"task_id": task_id},
            {"$set": updates},
            projection=_TASK_PROJECTION,
            return_document=ReturnDocument.AFTER
        )
        if result is None:
            raise TaskNotFoundError(f"Task {task_id} not found", details={"task_id": task_id})

        logger.debug(
            f"Updated task {task_id} fields: {sorted(updates)}",
            extra={"task_id": task_id}
        )
        return self.get_task_or_raise(task_id)
