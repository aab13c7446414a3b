"""Guard Evaluator - Role, required-field and validator gates of a transition

Guards are pure: they read a TransitionContext and return a GuardOutcome.
Evaluation order is fixed (roles, required fields, validators) and the
first failure short-circuits the rest.
"""
from typing import Callable, List

from ..domain.models import (
    GuardOutcome, NoOpenSubtasksValidator, TransitionContext, UnknownValidator, is_empty_value
)
from ..domain.enums import GuardFamily, RoleMarker, ValidatorType
from ..domain.errors import PermissionDeniedError, ValidationFailedError, ValidatorFailedError
from ..utils.logger import get_logger

logger = get_logger(__name__)


class GuardEvaluator:
    """Evaluates transition guards against a task snapshot"""

    def check_roles(self, context: TransitionContext) -> GuardOutcome:
        """
        Pass when the role list is empty or contains ANY, when the space role
        is listed, when ASSIGNEE is listed and the requester is the assignee,
        or when SYSTEM_ADMIN is listed and the requester is privileged.
        """
        roles = context.transition.conditions.roles
        if not roles or RoleMarker.ANY.value in roles:
            return GuardOutcome.allow()

        capabilities = context.capabilities
        if capabilities.role and capabilities.role in roles:
            return GuardOutcome.allow()
        if RoleMarker.ASSIGNEE.value in roles and capabilities.is_assignee:
            return GuardOutcome.allow()
        if RoleMarker.SYSTEM_ADMIN.value in roles and capabilities.is_privileged:
            return GuardOutcome.allow()

        return GuardOutcome.deny(
            GuardFamily.ROLE,
            "You do not have permission to perform this transition"
        )

    def check_required_fields(self, context: TransitionContext) -> GuardOutcome:
        """Named task attributes and template custom fields must be non-empty"""
        task = context.task
        conditions = context.transition.conditions

        for field_name in conditions.required_fields:
            if is_empty_value(task.attribute_value(field_name)):
                return GuardOutcome.deny(
                    GuardFamily.REQUIRED_FIELD,
                    f"{field_name} is required for this transition",
                    field=field_name
                )

        for field_key in conditions.template_fields:
            if task.custom_field_value(field_key) is None:
                return GuardOutcome.deny(
                    GuardFamily.REQUIRED_FIELD,
                    f"{field_key} is required for this transition",
                    field=field_key
                )

        return GuardOutcome.allow()

    def check_validators(self, context: TransitionContext) -> GuardOutcome:
        task = context.task
        for validator in context.transition.validators:
            if isinstance(validator, NoOpenSubtasksValidator):
                if task.has_open_subtasks:
                    return GuardOutcome.deny(
                        GuardFamily.VALIDATOR,
                        "Close all subtasks before moving this task",
                        validator=ValidatorType.NO_OPEN_SUBTASKS.value
                    )
            elif isinstance(validator, UnknownValidator):
                logger.warning(
                    f"Ignoring unknown validator '{validator.raw_type}'",
                    extra={
                        "task_id": task.task_id,
                        "transition_id": context.transition.transition_id,
                    }
                )
        return GuardOutcome.allow()

    @property
    def _checks(self) -> List[Callable[[TransitionContext], GuardOutcome]]:
        return [self.check_roles, self.check_required_fields, self.check_validators]

    def evaluate(self, context: TransitionContext) -> GuardOutcome:
        """Run all guards in order; return the first denial or allow"""
        for check in self._checks:
            outcome = check(context)
            if not outcome.allowed:
                logger.info(
                    f"Guard {outcome.family.value} denied transition: {outcome.reason}",
                    extra={
                        "task_id": context.task.task_id,
                        "transition_id": context.transition.transition_id,
                        "actor_id": context.capabilities.user_id,
                    }
                )
                return outcome
        return GuardOutcome.allow()

    def enforce(self, context: TransitionContext) -> None:
        """Raise the typed domain error of the first failing guard"""
        outcome = self.evaluate(context)
        if outcome.allowed:
            return

        details = {"transition_id": context.transition.transition_id}
        if outcome.family == GuardFamily.ROLE:
            raise PermissionDeniedError(
                outcome.reason,
                details={**details, "roles": context.transition.conditions.roles}
            )
        if outcome.family == GuardFamily.REQUIRED_FIELD:
            raise ValidationFailedError(outcome.reason, field=outcome.field, details=details)
        raise ValidatorFailedError(outcome.reason, validator=outcome.validator, details=details)
