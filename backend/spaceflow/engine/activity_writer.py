"""Activity Writer - Append-only activity records of committed transitions"""
from typing import TYPE_CHECKING, Optional

from ..domain.models import ActivityRecord, TransitionContext
from ..domain.enums import ActivityType
from ..utils.idgen import generate_activity_id
from ..utils.time import utc_now
from ..utils.logger import get_logger

if TYPE_CHECKING:
    from ..repositories.activity_repo import ActivityRepository

logger = get_logger(__name__)


class ActivityWriter:
    """
    Write activity records (append-only)

    Exactly one STATUS_CHANGED record is written per committed transition.
    """

    def __init__(self, repo: Optional["ActivityRepository"] = None):
        if repo is None:
            from ..repositories.activity_repo import ActivityRepository
            repo = ActivityRepository()
        self.repo = repo

    def write_status_changed(
        self,
        context: TransitionContext,
        actor_id: str,
        attempt_id: Optional[str] = None,
        correlation_id: Optional[str] = None
    ) -> ActivityRecord:
        """Write the status change record of a committed attempt"""
        transition = context.transition
        record = ActivityRecord(
            activity_id=generate_activity_id(),
            task_id=context.task.task_id,
            space_id=context.task.space_id,
            type=ActivityType.STATUS_CHANGED,
            actor_id=actor_id,
            from_status_id=transition.from_status_id,
            to_status_id=transition.to_status_id,
            transition_id=transition.transition_id,
            transition_key=transition.key,
            workflow_id=context.workflow_version.workflow_id,
            workflow_version=context.workflow_version.version,
            attempt_id=attempt_id,
            timestamp=utc_now(),
            correlation_id=correlation_id,
        )
        return self.repo.append(record)
