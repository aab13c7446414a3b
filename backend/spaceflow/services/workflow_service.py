"""Workflow Service - Read side of workflow definitions"""
from typing import TYPE_CHECKING, Optional

from ..domain.models import WorkflowDetail
from ..domain.errors import WorkflowNotFoundError
from ..utils.logger import get_logger

if TYPE_CHECKING:
    from ..repositories.workflow_repo import WorkflowRepository

logger = get_logger(__name__)


class WorkflowService:
    """Service for workflow lookups"""

    def __init__(self, repo: Optional["WorkflowRepository"] = None):
        if repo is None:
            from ..repositories.workflow_repo import WorkflowRepository
            repo = WorkflowRepository()
        self.repo = repo

    def get_workflow_detail(self, workflow_id: str, version: Optional[int] = None) -> WorkflowDetail:
        """
        Get a workflow with one of its versions.

        Args:
            workflow_id: Workflow ID
            version: Published version number; the header's current version
                when omitted

        Raises:
            WorkflowNotFoundError: Workflow or requested version missing
        """
        workflow = self.repo.get_workflow(workflow_id)
        if workflow is None:
            raise WorkflowNotFoundError(f"Workflow {workflow_id} not found")

        requested = version or workflow.current_version
        workflow_version = self.repo.get_version(workflow_id, requested)
        if workflow_version is None:
            raise WorkflowNotFoundError(
                f"Workflow {workflow_id} version {requested} not found",
                details={"workflow_id": workflow_id, "version": requested}
            )

        return WorkflowDetail(
            workflow=workflow,
            version=workflow_version,
            published_versions=self.repo.list_version_numbers(workflow_id),
        )
