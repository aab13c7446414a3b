"""Workflow Repository - Data access for workflow headers and published versions"""
from typing import Any, Dict, List, Optional
from pydantic import ValidationError
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError
from pymongo import DESCENDING

from .mongo_client import get_collection
from ..domain.models import Workflow, WorkflowVersion
from ..domain.errors import AlreadyExistsError, WorkflowValidationError
from ..utils.logger import get_logger
from ..utils.time import utc_now

logger = get_logger(__name__)


class WorkflowRepository:
    """Repository for workflow operations. Published versions are never updated."""

    def __init__(self, database: Optional[Database] = None):
        if database is not None:
            self._workflows: Collection = database["workflows"]
            self._versions: Collection = database["workflow_versions"]
        else:
            self._workflows = get_collection("workflows")
            self._versions = get_collection("workflow_versions")

    # =========================================================================
    # Workflow headers
    # =========================================================================

    def get_workflow(self, workflow_id: str) -> Optional[Workflow]:
        """Get workflow header by ID"""
        doc = self._workflows.find_one({"workflow_id": workflow_id}, {"_id": 0})
        if doc:
            return Workflow.model_validate(doc)
        return None

    def save_workflow(self, workflow: Workflow) -> Workflow:
        """Insert or replace a workflow header"""
        doc = workflow.model_dump()
        doc["updated_at"] = utc_now()
        self._workflows.replace_one(
            {"workflow_id": workflow.workflow_id},
            {"_id": workflow.workflow_id, **doc},
            upsert=True
        )
        logger.info(f"Saved workflow: {workflow.workflow_id}", extra={"workflow_id": workflow.workflow_id})
        return workflow

    # =========================================================================
    # Published versions
    # =========================================================================

    def get_version(self, workflow_id: str, version: int) -> Optional[WorkflowVersion]:
        """
        Get one published version.

        Raises:
            WorkflowValidationError: Stored document does not decode into a
                consistent graph
        """
        doc = self._versions.find_one({"workflow_id": workflow_id, "version": version}, {"_id": 0})
        if not doc:
            return None
        return self._decode(doc)

    def get_latest_version(self, workflow_id: str) -> Optional[WorkflowVersion]:
        """Get the highest published version"""
        doc = self._versions.find_one(
            {"workflow_id": workflow_id},
            {"_id": 0},
            sort=[("version", DESCENDING)]
        )
        if not doc:
            return None
        return self._decode(doc)

    def list_version_numbers(self, workflow_id: str) -> List[int]:
        """Published version numbers, newest first"""
        cursor = self._versions.find(
            {"workflow_id": workflow_id},
            {"_id": 0, "version": 1}
        ).sort("version", DESCENDING)
        return [doc["version"] for doc in cursor]

    def publish_version(self, version: WorkflowVersion) -> WorkflowVersion:
        """
        Publish a new immutable version and bump the header's current version.

        Raises:
            AlreadyExistsError: (workflow_id, version) already published
        """
        doc: Dict[str, Any] = version.model_dump(mode="json")
        doc["published_at"] = version.published_at or utc_now()
        doc["_id"] = f"{version.workflow_id}:v{version.version}"

        try:
            self._versions.insert_one(doc)
        except DuplicateKeyError:
            raise AlreadyExistsError(
                f"Workflow {version.workflow_id} version {version.version} is already published",
                details={"workflow_id": version.workflow_id, "version": version.version}
            )

        self._workflows.update_one(
            {"workflow_id": version.workflow_id},
            {"$max": {"current_version": version.version}, "$set": {"updated_at": utc_now()}}
        )
        logger.info(
            f"Published workflow version: {version.workflow_id} v{version.version}",
            extra={"workflow_id": version.workflow_id, "workflow_version": version.version}
        )
        return version

    def _decode(self, doc: Dict[str, Any]) -> WorkflowVersion:
        workflow_id = doc.get("workflow_id", "unknown")
        try:
            return WorkflowVersion.model_validate(doc)
        except ValidationError as e:
            logger.error(
                f"Corrupted workflow version {workflow_id} v{doc.get('version')}: {str(e)[:300]}",
                extra={"workflow_id": workflow_id, "workflow_version": doc.get("version")}
            )
            raise WorkflowValidationError(
                f"Workflow {workflow_id} version {doc.get('version')} is invalid",
                details={"errors": [err["msg"] for err in e.errors()][:10]}
            )
