"""Transition Service - Task transition and suggestion use cases"""
from typing import TYPE_CHECKING, List, Optional

from ..config.settings import settings
from ..domain.models import (
    AvailableTransition, InlineSuggestionContext, StatusSummary, TransitionCandidate,
    TransitionContext, TransitionResult, TransitionSuggestion
)
from ..domain.errors import PermissionDeniedError
from ..engine.capability_resolver import CapabilityResolver
from ..engine.definition_store import WorkflowDefinitionStore
from ..engine.executor import TransitionExecutor
from ..engine.guard_evaluator import GuardEvaluator
from ..engine.recommendation import RecommendationScorer
from ..utils.logger import get_logger

if TYPE_CHECKING:
    from ..repositories.activity_repo import ActivityRepository

logger = get_logger(__name__)


class TransitionService:
    """Service for transitioning tasks and suggesting their next move"""

    def __init__(
        self,
        store: Optional[WorkflowDefinitionStore] = None,
        capability_resolver: Optional[CapabilityResolver] = None,
        executor: Optional[TransitionExecutor] = None,
        activity_repo: Optional["ActivityRepository"] = None,
        scorer: Optional[RecommendationScorer] = None
    ):
        self.store = store or WorkflowDefinitionStore()
        self.capability_resolver = capability_resolver or CapabilityResolver()
        self.guard = GuardEvaluator()
        self.executor = executor or TransitionExecutor(
            store=self.store,
            capability_resolver=self.capability_resolver,
            guard=self.guard
        )
        if activity_repo is None:
            from ..repositories.activity_repo import ActivityRepository
            activity_repo = ActivityRepository()
        self.activity_repo = activity_repo
        self.scorer = scorer or RecommendationScorer()

    # =========================================================================
    # Transitions
    # =========================================================================

    def perform_transition(
        self,
        task_id: str,
        requester_id: str,
        transition_id: Optional[str] = None,
        transition_key: Optional[str] = None,
        correlation_id: Optional[str] = None
    ) -> TransitionResult:
        """Apply a transition; see TransitionExecutor.perform_transition"""
        return self.executor.perform_transition(
            task_id=task_id,
            requester_id=requester_id,
            transition_id=transition_id,
            transition_key=transition_key,
            correlation_id=correlation_id,
        )

    def list_available_transitions(self, task_id: str, requester_id: str) -> List[AvailableTransition]:
        """
        Transitions leaving the task's current status, each with the guard
        outcome for this requester. Nothing is written.
        """
        task = self.store.load_task_context(task_id)
        version = self.store.get_version(task.workflow_id, task.workflow_version)
        capabilities = self.capability_resolver.resolve(task, requester_id)
        if not capabilities.has_space_access:
            raise PermissionDeniedError("Access denied", details={"space_id": task.space_id})

        available = []
        for transition in version.transitions_from(task.workflow_status_id):
            if transition.disabled or not transition.ui_trigger.is_visible:
                continue
            context = TransitionContext(
                task=task,
                transition=transition,
                workflow_version=version,
                capabilities=capabilities,
            )
            outcome = self.guard.evaluate(context)
            available.append(AvailableTransition(
                transition_id=transition.transition_id,
                key=transition.key,
                name=transition.name,
                to_status=StatusSummary.from_status(version.get_status(transition.to_status_id)),
                ui_trigger=transition.ui_trigger,
                allowed=outcome.allowed,
                family=outcome.family,
                reason=outcome.reason,
                field=outcome.field,
            ))
        return available

    # =========================================================================
    # Suggestions
    # =========================================================================

    def suggest_transition(
        self,
        task_id: str,
        requester_id: Optional[str] = None
    ) -> Optional[TransitionSuggestion]:
        """Suggest the next transition of a stored task from its own history"""
        task = self.store.load_task_context(task_id)
        if requester_id is not None:
            capabilities = self.capability_resolver.resolve(task, requester_id)
            if not capabilities.has_space_access:
                raise PermissionDeniedError("Access denied", details={"space_id": task.space_id})

        version = self.store.get_version(task.workflow_id, task.workflow_version)
        candidates = [
            TransitionCandidate.from_transition(transition, version)
            for transition in version.transitions_from(task.workflow_status_id)
        ]
        history = self.activity_repo.get_recent_status_changes(
            task_id, limit=settings.activity_history_limit
        )

        suggestion = self.scorer.suggest(
            task.workflow_status_id,
            candidates,
            recent_history=history,
            tags=task.tags,
            priority=task.priority,
        )
        logger.info(
            f"Suggestion for task {task_id}: "
            f"{suggestion.transition_key if suggestion else 'none'}",
            extra={"task_id": task_id}
        )
        return suggestion

    def suggest_from_context(self, context: InlineSuggestionContext) -> Optional[TransitionSuggestion]:
        """Suggest a transition from caller-supplied context (no stored task)"""
        candidates = [transition.to_candidate() for transition in context.transitions]
        return self.scorer.suggest(
            context.current_status_key,
            candidates,
            recent_history=context.recent_history,
            tags=context.tags,
            priority=context.priority,
        )
