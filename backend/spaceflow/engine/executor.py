"""
Transition Executor
===================

Runs one transition attempt end to end:

    PENDING    context loaded, guards not yet run
    APPLIED    status written, post-functions running
    COMMITTED  terminal, activity recorded
    REJECTED   terminal, nothing was written

Steps:
    1. Load the task snapshot and the workflow version it is bound to
    2. Resolve the transition by id and/or key inside that version only
    3. Check the transition leaves the task's current status
    4. Resolve requester capabilities and run guards (role, fields, validators)
    5. Re-check the privileged identity right before the write
    6. Conditional status write keyed on the observed status; never retried
    7. Post-functions (best effort, no rollback)
    8. One activity record (best effort)
"""
from typing import Optional

from ..domain.models import StatusSummary, TransitionContext, TransitionResult
from ..domain.enums import AttemptState, RoleMarker
from ..domain.errors import (
    DomainError, InvalidTransitionError, PermissionDeniedError, ValidationError
)
from ..utils.idgen import generate_attempt_id
from ..utils.logger import get_logger
from .activity_writer import ActivityWriter
from .capability_resolver import CapabilityResolver
from .definition_store import WorkflowDefinitionStore
from .guard_evaluator import GuardEvaluator
from .post_functions import PostFunctionRunner

logger = get_logger(__name__)


class TransitionExecutor:
    """Authoritative entry point for changing a task's workflow status"""

    def __init__(
        self,
        store: Optional[WorkflowDefinitionStore] = None,
        capability_resolver: Optional[CapabilityResolver] = None,
        guard: Optional[GuardEvaluator] = None,
        post_function_runner: Optional[PostFunctionRunner] = None,
        activity_writer: Optional[ActivityWriter] = None
    ):
        self.store = store or WorkflowDefinitionStore()
        self.capability_resolver = capability_resolver or CapabilityResolver()
        self.guard = guard or GuardEvaluator()
        self.post_function_runner = post_function_runner or PostFunctionRunner(task_repo=self.store.task_repo)
        self.activity_writer = activity_writer or ActivityWriter()

    def perform_transition(
        self,
        task_id: str,
        requester_id: str,
        transition_id: Optional[str] = None,
        transition_key: Optional[str] = None,
        correlation_id: Optional[str] = None
    ) -> TransitionResult:
        """
        Apply a transition to a task on behalf of a requester.

        Raises:
            ValidationError: Neither transition id nor key given
            NotFoundError: Task, workflow version or transition missing
            InvalidTransitionError: Transition does not leave the current status
            PermissionDeniedError: Role gate or privileged re-check failed
            ValidationFailedError: A required field is empty
            ValidatorFailedError: A structural validator failed
            ConcurrentModificationError: The task moved before the write
        """
        if not transition_id and not transition_key:
            raise ValidationError("transition_id or transition_key is required")

        attempt_id = generate_attempt_id()
        log_extra = {
            "task_id": task_id,
            "actor_id": requester_id,
            "attempt_id": attempt_id,
        }
        self._log_state(AttemptState.PENDING, log_extra)

        try:
            context = self._build_context(task_id, requester_id, transition_id, transition_key)
            log_extra.update({
                "transition_id": context.transition.transition_id,
                "from_status_id": context.transition.from_status_id,
                "to_status_id": context.transition.to_status_id,
            })

            self.guard.enforce(context)
            self._recheck_privileged(context, requester_id)

            task = context.task
            transition = context.transition
            target = context.workflow_version.get_status(transition.to_status_id)
            legacy_status_id = target.status_ref_id or task.status_id

            updated_task = self.store.task_repo.compare_and_set_status(
                task_id=task.task_id,
                workflow_version=task.workflow_version,
                expected_status_id=transition.from_status_id,
                new_workflow_status_id=transition.to_status_id,
                new_status_id=legacy_status_id,
            )
        except DomainError as e:
            self._log_state(AttemptState.REJECTED, {**log_extra, "error_code": e.error_code})
            raise

        self._log_state(AttemptState.APPLIED, log_extra)

        outcomes = self.post_function_runner.run(
            context,
            updated_task,
            from_status_id=transition.from_status_id,
            actor_id=requester_id
        )

        try:
            self.activity_writer.write_status_changed(
                context,
                actor_id=requester_id,
                attempt_id=attempt_id,
                correlation_id=correlation_id
            )
        except Exception as e:
            logger.error(f"Failed to record activity: {e}", extra=log_extra, exc_info=True)

        self._log_state(AttemptState.COMMITTED, log_extra)

        return TransitionResult(
            task_id=task.task_id,
            new_status_id=transition.to_status_id,
            workflow_status=StatusSummary.from_status(target),
            attempt_id=attempt_id,
            attempt_state=AttemptState.COMMITTED,
            post_functions=outcomes,
        )

    def build_context(
        self,
        task_id: str,
        requester_id: str,
        transition_id: Optional[str] = None,
        transition_key: Optional[str] = None
    ) -> TransitionContext:
        """Assemble a fresh attempt context without mutating anything"""
        return self._build_context(task_id, requester_id, transition_id, transition_key)

    # =========================================================================
    # Internals
    # =========================================================================

    def _build_context(
        self,
        task_id: str,
        requester_id: str,
        transition_id: Optional[str],
        transition_key: Optional[str]
    ) -> TransitionContext:
        task = self.store.load_task_context(task_id)
        workflow_version = self.store.get_version(task.workflow_id, task.workflow_version)
        transition = self.store.resolve_transition(
            task.workflow_id,
            task.workflow_version,
            transition_id=transition_id,
            transition_key=transition_key
        )

        if transition.from_status_id != task.workflow_status_id:
            raise InvalidTransitionError(
                "Transition is not available from the task's current status",
                details={
                    "transition_id": transition.transition_id,
                    "from_status_id": transition.from_status_id,
                    "current_status_id": task.workflow_status_id,
                }
            )
        if transition.disabled:
            raise InvalidTransitionError(
                "Transition is disabled",
                details={"transition_id": transition.transition_id}
            )

        capabilities = self.capability_resolver.resolve(task, requester_id)
        if not capabilities.has_space_access:
            raise PermissionDeniedError("Access denied", details={"space_id": task.space_id})

        return TransitionContext(
            task=task,
            transition=transition,
            workflow_version=workflow_version,
            capabilities=capabilities,
        )

    def _recheck_privileged(self, context: TransitionContext, requester_id: str) -> None:
        if RoleMarker.SYSTEM_ADMIN.value not in context.transition.conditions.roles:
            return
        if not self.capability_resolver.is_privileged(requester_id):
            raise PermissionDeniedError(
                "Only system administrators can perform this transition",
                details={"transition_id": context.transition.transition_id}
            )

    def _log_state(self, state: AttemptState, extra: dict) -> None:
        logger.info(
            f"Transition attempt {extra.get('attempt_id')} {state.value}",
            extra={**extra, "attempt_state": state.value}
        )
