"""Tests for PostFunctionRunner."""

from spaceflow.domain.enums import PostFunctionOutcomeStatus
from spaceflow.domain.models import RequesterCapabilities, TransitionContext
from spaceflow.engine.post_functions import PostFunctionRunner
from tests.fakes import (
    FakeNotificationRepository, FakeTaskRepository, make_task, make_version, transition
)


def run(post_functions, task=None, notification_repo=None):
    task = task or make_task(assignee_id="USR-dev")
    version = make_version([transition("t-ab", "st-a", "st-b", name="Start", post_functions=post_functions)])
    task_repo = FakeTaskRepository([task])
    notification_repo = notification_repo or FakeNotificationRepository()
    context = TransitionContext(
        task=task,
        transition=version.transitions[0],
        workflow_version=version,
        capabilities=RequesterCapabilities(user_id="USR-1", role="MEMBER"),
    )
    runner = PostFunctionRunner(task_repo, notification_repo)
    outcomes = runner.run(context, task, from_status_id="st-a", actor_id="USR-1")
    return outcomes, task_repo.tasks[task.task_id], notification_repo


class TestSetField:
    """Tests for SET_FIELD."""

    def test_sets_mutable_field_by_camel_case_name(self):
        outcomes, task, _ = run([{"type": "SET_FIELD", "field": "assigneeId", "value": "USR-9"}])
        assert outcomes[0].status == PostFunctionOutcomeStatus.APPLIED
        assert task.assignee_id == "USR-9"

    def test_skips_unknown_field(self):
        outcomes, task, _ = run([{"type": "SET_FIELD", "field": "storyPoints", "value": 5}])
        assert outcomes[0].status == PostFunctionOutcomeStatus.SKIPPED

    def test_skips_workflow_binding_fields(self):
        outcomes, task, _ = run([{"type": "SET_FIELD", "field": "workflowStatusId", "value": "st-done"}])
        assert outcomes[0].status == PostFunctionOutcomeStatus.SKIPPED
        assert task.workflow_status_id == "st-a"

    def test_bad_value_fails_and_next_action_runs(self):
        outcomes, task, _ = run([
            {"type": "SET_FIELD", "field": "dueDate", "value": "not a date"},
            {"type": "SET_FIELD", "field": "priority", "value": "LOW"},
        ])
        assert [o.status for o in outcomes] == [
            PostFunctionOutcomeStatus.FAILED, PostFunctionOutcomeStatus.APPLIED
        ]
        assert task.due_date is None
        assert task.priority == "LOW"


class TestAssignAndNotify:
    """Tests for ASSIGN and NOTIFY."""

    def test_assign(self):
        outcomes, task, _ = run([{"type": "assign", "userId": "USR-7"}])
        assert outcomes[0].status == PostFunctionOutcomeStatus.APPLIED
        assert task.assignee_id == "USR-7"

    def test_notify_resolves_assignee_after_reassignment(self):
        outcomes, _, notifications = run([
            {"type": "ASSIGN", "user_id": "USR-7"},
            {"type": "NOTIFY", "recipients": ["ASSIGNEE", "USR-lead", "USR-7"]},
        ])
        assert outcomes[1].status == PostFunctionOutcomeStatus.APPLIED
        intent = notifications.intents[0]
        assert intent.recipients == ["USR-7", "USR-lead"]
        assert intent.transition_name == "Start"
        assert (intent.from_status_id, intent.to_status_id) == ("st-a", "st-b")
        assert intent.actor_id == "USR-1"

    def test_notify_without_recipients_is_skipped(self):
        task = make_task(assignee_id=None)
        outcomes, _, notifications = run([{"type": "NOTIFY", "recipients": ["ASSIGNEE"]}], task=task)
        assert outcomes[0].status == PostFunctionOutcomeStatus.SKIPPED
        assert notifications.intents == []

    def test_unknown_action_ignored(self):
        outcomes, task, _ = run([
            {"type": "WEBHOOK", "url": "https://example.com"},
            {"type": "SET_FIELD", "field": "title", "value": "Done"},
        ])
        assert outcomes[0].status == PostFunctionOutcomeStatus.SKIPPED
        assert outcomes[0].type == "UNKNOWN"
        assert task.title == "Done"
