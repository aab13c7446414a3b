"""Tests for domain models and payload decoding."""

import pytest
from pydantic import ValidationError

from spaceflow.domain.enums import UiTrigger
from spaceflow.domain.errors import (
    ConcurrentModificationError, DomainError, ValidationFailedError
)
from spaceflow.domain.models import (
    AssignAction, InlineSuggestionContext, NoOpenSubtasksValidator, NotifyAction,
    SetFieldAction, TaskSnapshot, TransitionConditions, UnknownAction, UnknownValidator,
    normalize_key
)
from tests.fakes import make_task, make_version, status, transition


class TestNormalizeKey:
    """Tests for normalize_key."""

    def test_trims_lowers_and_dashes(self):
        assert normalize_key("  Ready  For Review ") == "ready-for-review"
        assert normalize_key("QA") == "qa"


class TestTransitionPayloads:
    """Validators and post-functions decode into tagged variants."""

    def test_validator_list(self):
        version = make_version([transition("t", "st-a", "st-b", validators=[
            {"type": "no_open_subtasks"}, {"type": "CUSTOM_SCRIPT", "script": "x"},
        ])])
        validators = version.transitions[0].validators
        assert isinstance(validators[0], NoOpenSubtasksValidator)
        assert isinstance(validators[1], UnknownValidator)
        assert validators[1].raw_type == "CUSTOM_SCRIPT"

    def test_legacy_validator_object(self):
        version = make_version([transition("t", "st-a", "st-b", validators={"preventOpenSubtasks": True})])
        assert isinstance(version.transitions[0].validators[0], NoOpenSubtasksValidator)

        version = make_version([transition("t", "st-a", "st-b", validators={"preventOpenSubtasks": False})])
        assert version.transitions[0].validators == []

    def test_legacy_actions_wrapper(self):
        version = make_version([transition("t", "st-a", "st-b", post_functions={"actions": [
            {"type": "set_field", "field": "priority", "value": "HIGH"},
            {"type": "ASSIGN", "userId": "USR-2"},
            {"type": "NOTIFY", "recipients": "ASSIGNEE"},
            {"type": "ARCHIVE"},
        ]})])
        actions = version.transitions[0].post_functions
        assert isinstance(actions[0], SetFieldAction) and actions[0].value == "HIGH"
        assert isinstance(actions[1], AssignAction) and actions[1].user_id == "USR-2"
        assert isinstance(actions[2], NotifyAction) and actions[2].recipients == ["ASSIGNEE"]
        assert isinstance(actions[3], UnknownAction) and actions[3].raw_type == "ARCHIVE"

    def test_ui_trigger_defaults(self):
        version = make_version([
            transition("t1", "st-a", "st-b", ui_trigger="hidden"),
            transition("t2", "st-a", "st-c", ui_trigger="SPARKLE"),
            transition("t3", "st-b", "st-c", ui_trigger=None),
        ])
        assert [t.ui_trigger for t in version.transitions] == [
            UiTrigger.HIDDEN, UiTrigger.NORMAL, UiTrigger.NORMAL
        ]

    def test_conditions_roles_upper_cased(self):
        conditions = TransitionConditions.model_validate({"roles": ["admin", " assignee "], "requiredFields": None})
        assert conditions.roles == ["ADMIN", "ASSIGNEE"]
        assert conditions.required_fields == []
        assert conditions.has_role_restriction
        assert not TransitionConditions(roles=["any", "admin"]).has_role_restriction


class TestWorkflowVersion:
    """Graph invariants of a published version."""

    def test_endpoints_must_belong_to_version(self):
        with pytest.raises(ValidationError):
            make_version([transition("t", "st-a", "st-elsewhere")])

    def test_duplicate_status_ids_rejected(self):
        with pytest.raises(ValidationError):
            make_version([], statuses=[status("st-a", "A"), status("st-a", "B")])

    def test_duplicate_keys_rejected(self):
        with pytest.raises(ValidationError):
            make_version([
                transition("t1", "st-a", "st-b", key="go"),
                transition("t2", "st-a", "st-c", key="Go"),
            ])

    def test_transition_key_defaults_to_id(self):
        version = make_version([transition("T-AB", "st-a", "st-b")])
        assert version.transitions[0].key == "t-ab"
        assert version.find_transition(transition_key="T-AB").transition_id == "T-AB"

    def test_transitions_from_in_order(self):
        version = make_version([
            transition("t2", "st-a", "st-c", order=2),
            transition("t1", "st-a", "st-b", order=1),
            transition("t3", "st-b", "st-c"),
        ])
        assert [t.transition_id for t in version.transitions_from("st-a")] == ["t1", "t2"]
        assert version.initial_status.status_id == "st-a"


class TestTaskSnapshot:
    """Attribute resolution used by guards and SET_FIELD."""

    def test_resolve_attribute(self):
        assert TaskSnapshot.resolve_attribute("dueDate") == "due_date"
        assert TaskSnapshot.resolve_attribute("due_date") == "due_date"
        assert TaskSnapshot.resolve_attribute("storyPoints") is None

    def test_custom_field_value(self):
        task = make_task(custom_field_values=[{"key": "env", "value": "prod"}, {"key": "os", "value": []}])
        assert task.custom_field_value("env") == "prod"
        assert task.custom_field_value("os") is None
        assert task.custom_field_value("missing") is None

    def test_open_subtasks(self):
        assert make_task(subtasks=[True, False]).has_open_subtasks
        assert not make_task(subtasks=[True]).has_open_subtasks
        assert not make_task().has_open_subtasks


class TestInlineContext:
    """Caller-supplied suggestion context."""

    def test_camel_case_payload(self):
        context = InlineSuggestionContext.model_validate({
            "taskId": "TSK-9",
            "currentStatusKey": "todo",
            "transitions": [{
                "id": "t1", "fromKey": "todo", "toKey": "review", "toName": "Review",
                "uiTrigger": "button", "conditions": {"roles": ["any"]}, "isDisabled": False,
            }],
            "recentHistory": [{"fromKey": "todo", "toKey": "review"}],
            "tags": ["qa"],
            "priority": "HIGH",
        })
        candidate = context.transitions[0].to_candidate()
        assert candidate.to_label == "review Review"
        assert candidate.ui_trigger == UiTrigger.BUTTON
        assert candidate.roles == ["ANY"]
        assert context.recent_history[0].to_status == "review"


class TestErrors:
    """Domain error payloads."""

    def test_to_dict(self):
        error = ValidationFailedError("dueDate is required", field="dueDate")
        assert error.http_status == 422
        assert error.to_dict() == {
            "error": {
                "code": "VALIDATION_FAILED",
                "message": "dueDate is required",
                "details": {"field": "dueDate"},
            }
        }

    def test_concurrency_is_a_conflict(self):
        error = ConcurrentModificationError("moved")
        assert isinstance(error, DomainError)
        assert error.http_status == 409
        assert error.error_code == "CONCURRENT_MODIFICATION"
