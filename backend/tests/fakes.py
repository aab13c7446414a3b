"""
In-memory collaborators and builders for tests.

The fakes implement the same methods the engine calls on the MongoDB
repositories. FakeTaskRepository.compare_and_set_status holds a lock around
the compare and the write, which is what MongoDB's single-document
find_one_and_update guarantees.
"""
import threading
from typing import Any, Callable, Dict, Iterable, List, Optional, Set

from spaceflow.domain.models import (
    ActivityRecord, HistoryHop, NotificationIntent, SubtaskSnapshot, TaskSnapshot,
    Workflow, WorkflowVersion
)
from spaceflow.domain.errors import ConcurrentModificationError, TaskNotFoundError
from spaceflow.engine import (
    ActivityWriter, CapabilityResolver, PostFunctionRunner, TransitionExecutor,
    WorkflowDefinitionStore
)
from spaceflow.services.transition_service import TransitionService
from spaceflow.services.workflow_service import WorkflowService

SPACE_ID = "SPACE-1"
WORKFLOW_ID = "WF-test"


# ============================================================================
# Fake repositories
# ============================================================================

class FakeWorkflowRepository:
    def __init__(self, versions: Iterable[WorkflowVersion] = (), workflow: Optional[Workflow] = None):
        self.versions: Dict[tuple, WorkflowVersion] = {}
        self.workflows: Dict[str, Workflow] = {}
        self.version_reads = 0
        for version in versions:
            self.add(version)
        if workflow is not None:
            self.workflows[workflow.workflow_id] = workflow

    def add(self, version: WorkflowVersion) -> None:
        self.versions[(version.workflow_id, version.version)] = version
        header = self.workflows.get(version.workflow_id)
        if header is None or header.current_version < version.version:
            self.workflows[version.workflow_id] = Workflow(
                workflow_id=version.workflow_id,
                space_id=version.space_id,
                name=version.name,
                current_version=version.version,
            )

    def get_workflow(self, workflow_id: str) -> Optional[Workflow]:
        return self.workflows.get(workflow_id)

    def get_version(self, workflow_id: str, version: int) -> Optional[WorkflowVersion]:
        self.version_reads += 1
        return self.versions.get((workflow_id, version))

    def list_version_numbers(self, workflow_id: str) -> List[int]:
        return sorted((v for (wf, v) in self.versions if wf == workflow_id), reverse=True)


class FakeTaskRepository:
    def __init__(self, tasks: Iterable[TaskSnapshot] = ()):
        self.tasks: Dict[str, TaskSnapshot] = {task.task_id: task for task in tasks}
        self.lock = threading.Lock()
        self.before_write: Optional[Callable[[], Any]] = None
        self.writes = 0

    def get_task(self, task_id: str) -> Optional[TaskSnapshot]:
        task = self.tasks.get(task_id)
        return task.model_copy(deep=True) if task else None

    def get_task_or_raise(self, task_id: str) -> TaskSnapshot:
        task = self.get_task(task_id)
        if task is None:
            raise TaskNotFoundError(f"Task {task_id} not found")
        return task

    def compare_and_set_status(
        self,
        task_id: str,
        workflow_version: int,
        expected_status_id: str,
        new_workflow_status_id: str,
        new_status_id: Optional[str]
    ) -> TaskSnapshot:
        if self.before_write is not None:
            self.before_write()
        with self.lock:
            current = self.tasks.get(task_id)
            if current is None:
                raise TaskNotFoundError(f"Task {task_id} not found")
            if (current.workflow_version != workflow_version
                    or current.workflow_status_id != expected_status_id):
                raise ConcurrentModificationError(f"Task {task_id} was modified")
            updates = {"workflow_status_id": new_workflow_status_id}
            if new_status_id is not None:
                updates["status_id"] = new_status_id
            self.tasks[task_id] = current.model_copy(update=updates)
            self.writes += 1
        return self.get_task(task_id)

    def update_fields(self, task_id: str, updates: Dict[str, Any]) -> TaskSnapshot:
        with self.lock:
            self.tasks[task_id] = self.tasks[task_id].model_copy(update=updates)
        return self.get_task(task_id)

    def close_subtasks(self, task_id: str) -> None:
        task = self.tasks[task_id]
        self.tasks[task_id] = task.model_copy(update={
            "subtasks": [sub.model_copy(update={"is_done": True}) for sub in task.subtasks]
        })


class FakeMembershipRepository:
    def __init__(self, roles: Optional[Dict[str, str]] = None):
        self.roles = {user: role.upper() for user, role in (roles or {}).items()}

    def get_space_role(self, space_id: str, user_id: str) -> Optional[str]:
        return self.roles.get(user_id)


class FakeIdentityRepository:
    def __init__(self, privileged: Iterable[str] = ()):
        self.privileged: Set[str] = set(privileged)
        self.calls = 0
        # Optional scripted answers, consumed one per call
        self.answers: List[bool] = []

    def is_privileged_identity(self, user_id: str) -> bool:
        self.calls += 1
        if self.answers:
            return self.answers.pop(0)
        return user_id in self.privileged


class FakeActivityRepository:
    def __init__(self, fail: bool = False):
        self.records: List[ActivityRecord] = []
        self.fail = fail

    def append(self, record: ActivityRecord) -> ActivityRecord:
        if self.fail:
            raise RuntimeError("activity sink unavailable")
        self.records.append(record)
        return record

    def get_recent_status_changes(self, task_id: str, limit: int = 5) -> List[HistoryHop]:
        hops = [
            HistoryHop(from_status=r.from_status_id, to_status=r.to_status_id)
            for r in self.records if r.task_id == task_id
        ]
        return hops[-limit:]


class FakeNotificationRepository:
    def __init__(self, fail: bool = False):
        self.intents: List[NotificationIntent] = []
        self.fail = fail

    def enqueue(self, intent: NotificationIntent) -> NotificationIntent:
        if self.fail:
            raise RuntimeError("outbox unavailable")
        self.intents.append(intent)
        return intent


# ============================================================================
# Builders
# ============================================================================

def status(status_id: str, name: str, category: str = "TODO", **extra: Any) -> Dict[str, Any]:
    return {"status_id": status_id, "key": name, "name": name, "category": category, **extra}


def transition(transition_id: str, from_id: str, to_id: str, **extra: Any) -> Dict[str, Any]:
    data = {
        "transition_id": transition_id,
        "name": extra.pop("name", transition_id),
        "from_status_id": from_id,
        "to_status_id": to_id,
    }
    data.update(extra)
    return data


def make_version(
    transitions: List[Dict[str, Any]],
    statuses: Optional[List[Dict[str, Any]]] = None,
    version: int = 1,
    workflow_id: str = WORKFLOW_ID
) -> WorkflowVersion:
    """Default graph: A (todo), B (in progress), C (in progress), Review, Done"""
    if statuses is None:
        statuses = [
            status("st-a", "A", is_initial=True, status_ref_id="TODO"),
            status("st-b", "B", "IN_PROGRESS", status_ref_id="IN_PROGRESS"),
            status("st-c", "C", "IN_PROGRESS"),
            status("st-review", "Review", "IN_PROGRESS"),
            status("st-done", "Done", "DONE", is_final=True, status_ref_id="DONE"),
        ]
    return WorkflowVersion.model_validate({
        "workflow_id": workflow_id,
        "space_id": SPACE_ID,
        "version": version,
        "name": "Test workflow",
        "statuses": statuses,
        "transitions": transitions,
    })


def make_task(
    task_id: str = "TSK-1",
    status_id: str = "st-a",
    version: int = 1,
    subtasks: Iterable[bool] = (),
    **extra: Any
) -> TaskSnapshot:
    return TaskSnapshot(
        task_id=task_id,
        space_id=SPACE_ID,
        title=extra.pop("title", "Write the release notes"),
        workflow_id=WORKFLOW_ID,
        workflow_version=version,
        workflow_status_id=status_id,
        status_id="TODO",
        subtasks=[
            SubtaskSnapshot(subtask_id=f"{task_id}-sub-{i}", is_done=done)
            for i, done in enumerate(subtasks)
        ],
        **extra
    )


class Harness:
    """Wires an executor and services over one set of fakes"""

    def __init__(
        self,
        versions: Iterable[WorkflowVersion],
        tasks: Iterable[TaskSnapshot],
        roles: Optional[Dict[str, str]] = None,
        privileged: Iterable[str] = ()
    ):
        self.workflow_repo = FakeWorkflowRepository(versions)
        self.task_repo = FakeTaskRepository(tasks)
        self.membership_repo = FakeMembershipRepository(roles if roles is not None else {"USR-1": "MEMBER"})
        self.identity_repo = FakeIdentityRepository(privileged)
        self.activity_repo = FakeActivityRepository()
        self.notification_repo = FakeNotificationRepository()

        self.store = WorkflowDefinitionStore(self.workflow_repo, self.task_repo)
        self.capabilities = CapabilityResolver(self.membership_repo, self.identity_repo)
        self.executor = self.new_executor()
        self.transition_service = TransitionService(
            store=self.store,
            capability_resolver=self.capabilities,
            executor=self.executor,
            activity_repo=self.activity_repo,
        )
        self.workflow_service = WorkflowService(repo=self.workflow_repo)

    def new_executor(self) -> TransitionExecutor:
        return TransitionExecutor(
            store=self.store,
            capability_resolver=self.capabilities,
            post_function_runner=PostFunctionRunner(self.task_repo, self.notification_repo),
            activity_writer=ActivityWriter(self.activity_repo),
        )

    def task(self, task_id: str = "TSK-1") -> TaskSnapshot:
        return self.task_repo.tasks[task_id]
