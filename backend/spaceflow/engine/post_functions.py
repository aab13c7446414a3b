"""Post-Function Runner - Side effects after a committed status change

Actions run in declared order against the post-transition task. A failing
action is logged and reported; it never undoes the status change and never
stops the actions after it.
"""
from typing import TYPE_CHECKING, List, Optional

from ..domain.models import (
    AssignAction, NotificationIntent, NotifyAction, PostFunctionOutcome, SetFieldAction,
    TaskSnapshot, TransitionContext, UnknownAction
)
from ..domain.enums import PostFunctionOutcomeStatus, PostFunctionType, RoleMarker
from ..utils.idgen import generate_notification_id
from ..utils.time import utc_now
from ..utils.logger import get_logger

if TYPE_CHECKING:
    from ..repositories.notification_repo import NotificationRepository
    from ..repositories.task_repo import TaskRepository

logger = get_logger(__name__)


class PostFunctionRunner:
    """Runs SET_FIELD, ASSIGN and NOTIFY actions of a transition"""

    def __init__(
        self,
        task_repo: Optional["TaskRepository"] = None,
        notification_repo: Optional["NotificationRepository"] = None
    ):
        if task_repo is None:
            from ..repositories.task_repo import TaskRepository
            task_repo = TaskRepository()
        if notification_repo is None:
            from ..repositories.notification_repo import NotificationRepository
            notification_repo = NotificationRepository()
        self.task_repo = task_repo
        self.notification_repo = notification_repo

    def run(
        self,
        context: TransitionContext,
        task: TaskSnapshot,
        from_status_id: str,
        actor_id: str
    ) -> List[PostFunctionOutcome]:
        """
        Run every action of the transition.

        Args:
            context: Attempt context (the transition being applied)
            task: Task as it is after the status change
            from_status_id: Status the task left
            actor_id: User who performed the transition

        Returns:
            One outcome per action, in order
        """
        outcomes: List[PostFunctionOutcome] = []
        transition = context.transition

        for index, action in enumerate(transition.post_functions):
            log_extra = {
                "task_id": task.task_id,
                "transition_id": transition.transition_id,
                "action_type": action.type,
            }
            try:
                if isinstance(action, SetFieldAction):
                    outcome, task = self._set_field(index, action, task)
                elif isinstance(action, AssignAction):
                    outcome, task = self._assign(index, action, task)
                elif isinstance(action, NotifyAction):
                    outcome = self._notify(index, action, context, task, from_status_id, actor_id)
                elif isinstance(action, UnknownAction):
                    logger.warning(f"Ignoring unknown post-function '{action.raw_type}'", extra=log_extra)
                    outcome = PostFunctionOutcome(
                        index=index,
                        type=PostFunctionType.UNKNOWN.value,
                        status=PostFunctionOutcomeStatus.SKIPPED,
                        detail=f"unknown action type {action.raw_type}"
                    )
                else:
                    continue
            except Exception as e:
                logger.error(f"Post-function {index} failed: {e}", extra=log_extra, exc_info=True)
                outcome = PostFunctionOutcome(
                    index=index,
                    type=action.type,
                    status=PostFunctionOutcomeStatus.FAILED,
                    detail=str(e)
                )
            outcomes.append(outcome)

        return outcomes

    # =========================================================================
    # Actions
    # =========================================================================

    def _set_field(self, index: int, action: SetFieldAction, task: TaskSnapshot):
        field_name = TaskSnapshot.resolve_attribute(action.field)
        if field_name is None or field_name not in TaskSnapshot.MUTABLE_FIELDS:
            logger.debug(
                f"SET_FIELD skipped for non-writable field '{action.field}'",
                extra={"task_id": task.task_id}
            )
            skipped = PostFunctionOutcome(
                index=index,
                type=PostFunctionType.SET_FIELD.value,
                status=PostFunctionOutcomeStatus.SKIPPED,
                detail=f"field {action.field} is not writable"
            )
            return skipped, task

        # Coerce through the model so a bad value fails here, not in storage
        coerced = TaskSnapshot.model_validate({**task.model_dump(), field_name: action.value})
        updated = self.task_repo.update_fields(task.task_id, {field_name: getattr(coerced, field_name)})
        applied = PostFunctionOutcome(
            index=index,
            type=PostFunctionType.SET_FIELD.value,
            status=PostFunctionOutcomeStatus.APPLIED,
            detail=field_name
        )
        return applied, updated

    def _assign(self, index: int, action: AssignAction, task: TaskSnapshot):
        if not action.user_id:
            skipped = PostFunctionOutcome(
                index=index,
                type=PostFunctionType.ASSIGN.value,
                status=PostFunctionOutcomeStatus.SKIPPED,
                detail="no user to assign"
            )
            return skipped, task

        updated = self.task_repo.update_fields(task.task_id, {"assignee_id": action.user_id})
        logger.info(
            f"Task {task.task_id} assigned to {action.user_id}",
            extra={"task_id": task.task_id, "actor_id": action.user_id}
        )
        applied = PostFunctionOutcome(
            index=index,
            type=PostFunctionType.ASSIGN.value,
            status=PostFunctionOutcomeStatus.APPLIED,
            detail=action.user_id
        )
        return applied, updated

    def _notify(
        self,
        index: int,
        action: NotifyAction,
        context: TransitionContext,
        task: TaskSnapshot,
        from_status_id: str,
        actor_id: str
    ) -> PostFunctionOutcome:
        recipients: List[str] = []
        for recipient in action.recipients:
            if recipient.strip().upper() == RoleMarker.ASSIGNEE.value:
                recipient = task.assignee_id
            if recipient and recipient not in recipients:
                recipients.append(recipient)

        if not recipients:
            return PostFunctionOutcome(
                index=index,
                type=PostFunctionType.NOTIFY.value,
                status=PostFunctionOutcomeStatus.SKIPPED,
                detail="no recipients"
            )

        transition = context.transition
        intent = NotificationIntent(
            notification_id=generate_notification_id(),
            task_id=task.task_id,
            transition_id=transition.transition_id,
            transition_name=transition.name,
            recipients=recipients,
            from_status_id=from_status_id,
            to_status_id=transition.to_status_id,
            actor_id=actor_id,
            created_at=utc_now(),
        )
        self.notification_repo.enqueue(intent)
        return PostFunctionOutcome(
            index=index,
            type=PostFunctionType.NOTIFY.value,
            status=PostFunctionOutcomeStatus.APPLIED,
            detail=intent.notification_id
        )
