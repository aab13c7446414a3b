"""Workflow Definition Store - Read-only access to published workflow versions"""
from typing import TYPE_CHECKING, Dict, Optional, Tuple

from ..domain.models import TaskSnapshot, Transition, WorkflowVersion
from ..domain.errors import (
    InvalidTransitionError, TaskNotFoundError, TransitionNotFoundError, WorkflowNotFoundError
)
from ..utils.logger import get_logger

if TYPE_CHECKING:
    from ..repositories.task_repo import TaskRepository
    from ..repositories.workflow_repo import WorkflowRepository

logger = get_logger(__name__)


class WorkflowDefinitionStore:
    """
    Loads workflow versions and task snapshots for the engine.

    Published versions never change, so each decoded version is kept for
    the lifetime of the store.
    """

    def __init__(
        self,
        workflow_repo: Optional["WorkflowRepository"] = None,
        task_repo: Optional["TaskRepository"] = None
    ):
        if workflow_repo is None:
            from ..repositories.workflow_repo import WorkflowRepository
            workflow_repo = WorkflowRepository()
        if task_repo is None:
            from ..repositories.task_repo import TaskRepository
            task_repo = TaskRepository()
        self.workflow_repo = workflow_repo
        self.task_repo = task_repo
        self._versions: Dict[Tuple[str, int], WorkflowVersion] = {}

    def get_version(self, workflow_id: str, version: int) -> WorkflowVersion:
        """Get a published version or raise WorkflowNotFoundError"""
        cache_key = (workflow_id, version)
        cached = self._versions.get(cache_key)
        if cached is not None:
            return cached

        loaded = self.workflow_repo.get_version(workflow_id, version)
        if loaded is None:
            raise WorkflowNotFoundError(
                f"Workflow {workflow_id} version {version} not found",
                details={"workflow_id": workflow_id, "version": version}
            )

        self._versions[cache_key] = loaded
        logger.debug(
            f"Loaded workflow {workflow_id} v{version}",
            extra={"workflow_id": workflow_id, "workflow_version": version}
        )
        return loaded

    def resolve_transition(
        self,
        workflow_id: str,
        version: int,
        transition_id: Optional[str] = None,
        transition_key: Optional[str] = None
    ) -> Transition:
        """Find a transition inside one version; never looks at other versions"""
        workflow_version = self.get_version(workflow_id, version)
        transition = workflow_version.find_transition(transition_id, transition_key)
        if transition is None:
            raise TransitionNotFoundError(
                "Transition not found",
                details={
                    "workflow_id": workflow_id,
                    "workflow_version": version,
                    "transition_id": transition_id,
                    "transition_key": transition_key,
                }
            )
        return transition

    def load_task_context(self, task_id: str) -> TaskSnapshot:
        """Load a fresh task snapshot; the task must be bound to a workflow"""
        task = self.task_repo.get_task(task_id)
        if task is None:
            raise TaskNotFoundError(f"Task {task_id} not found", details={"task_id": task_id})
        if not task.is_workflow_bound:
            raise InvalidTransitionError(
                "Task is not using a workflow",
                details={"task_id": task_id}
            )
        return task
