"""Domain Models - Pydantic schemas for all entities"""
from datetime import datetime
from typing import Annotated, Any, ClassVar, Dict, FrozenSet, List, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .enums import (
    ActivityType, AttemptState, GuardFamily, NotificationStatus, PostFunctionOutcomeStatus,
    PostFunctionType, RoleMarker, StatusCategory, UiTrigger, ValidatorType
)


def normalize_key(value: str) -> str:
    """Normalize a status/transition key: trimmed, lower-case, whitespace runs -> '-'"""
    return "-".join(str(value).strip().lower().split())


def is_empty_value(value: Any) -> bool:
    """A value that does not satisfy a required-field condition"""
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (list, tuple, dict, set)):
        return len(value) == 0
    return False


# ============================================================================
# Identity
# ============================================================================

class ActorContext(BaseModel):
    """Current actor context from the bearer token"""
    model_config = ConfigDict(extra="forbid")

    user_id: str = Field(..., description="Verified user ID (token subject)")
    email: Optional[str] = Field(None, description="User email if present in token")
    display_name: Optional[str] = Field(None, description="User display name")


class RequesterCapabilities(BaseModel):
    """What the requester may do, resolved once per transition attempt"""
    model_config = ConfigDict(frozen=True)

    user_id: str
    role: Optional[str] = Field(None, description="Upper-cased space role, None if not a member")
    is_assignee: bool = False
    is_privileged: bool = Field(False, description="Elevated (system-admin) identity")

    @property
    def has_space_access(self) -> bool:
        return self.role is not None or self.is_privileged


# ============================================================================
# Transition payloads (decoded once when a workflow version is loaded)
# ============================================================================

class TransitionConditions(BaseModel):
    """Role list and required-field lists gating a transition"""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    roles: List[str] = Field(default_factory=list, description="Space roles or pseudo-roles (ANY, ASSIGNEE, SYSTEM_ADMIN)")
    required_fields: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("required_fields", "requiredFields"),
        description="Task attributes that must be non-empty"
    )
    template_fields: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("template_fields", "templateFields"),
        description="Custom-field keys that must carry a non-empty value"
    )

    @field_validator("roles", mode="before")
    @classmethod
    def _normalize_roles(cls, value: Any) -> List[str]:
        if not value:
            return []
        return [str(role).strip().upper() for role in value if str(role).strip()]

    @field_validator("required_fields", "template_fields", mode="before")
    @classmethod
    def _none_to_list(cls, value: Any) -> List[str]:
        return list(value or [])

    @property
    def has_role_restriction(self) -> bool:
        """True unless the role list is empty or contains ANY"""
        return bool(self.roles) and RoleMarker.ANY.value not in self.roles


class NoOpenSubtasksValidator(BaseModel):
    """Fails while any subtask is not done"""
    type: Literal["NO_OPEN_SUBTASKS"] = "NO_OPEN_SUBTASKS"


class UnknownValidator(BaseModel):
    """Validator type this engine does not know; kept for forward compatibility"""
    model_config = ConfigDict(extra="allow")

    type: Literal["UNKNOWN"] = "UNKNOWN"
    raw_type: Optional[str] = None


TransitionValidator = Annotated[
    Union[NoOpenSubtasksValidator, UnknownValidator],
    Field(discriminator="type")
]


class SetFieldAction(BaseModel):
    """Set a task attribute after the transition"""
    type: Literal["SET_FIELD"] = "SET_FIELD"
    field: Optional[str] = None
    value: Any = None


class AssignAction(BaseModel):
    """Reassign the task owner after the transition"""
    model_config = ConfigDict(populate_by_name=True)

    type: Literal["ASSIGN"] = "ASSIGN"
    user_id: Optional[str] = Field(None, validation_alias=AliasChoices("user_id", "userId"))


class NotifyAction(BaseModel):
    """Produce a notification intent after the transition"""
    type: Literal["NOTIFY"] = "NOTIFY"
    recipients: List[str] = Field(default_factory=list)

    @field_validator("recipients", mode="before")
    @classmethod
    def _none_to_list(cls, value: Any) -> List[str]:
        if isinstance(value, str):
            return [value]
        return list(value or [])


class UnknownAction(BaseModel):
    """Action type this engine does not know; logged and ignored at run time"""
    model_config = ConfigDict(extra="allow")

    type: Literal["UNKNOWN"] = "UNKNOWN"
    raw_type: Optional[str] = None


PostFunction = Annotated[
    Union[SetFieldAction, AssignAction, NotifyAction, UnknownAction],
    Field(discriminator="type")
]

_KNOWN_VALIDATORS = {v.value for v in ValidatorType if v is not ValidatorType.UNKNOWN}
_KNOWN_ACTIONS = {a.value for a in PostFunctionType if a is not PostFunctionType.UNKNOWN}


def _tag_items(items: List[Any], known: set) -> List[Any]:
    """Upper-case each item's type and fold unknown types into the UNKNOWN variant"""
    tagged = []
    for item in items:
        if isinstance(item, BaseModel):
            tagged.append(item)
            continue
        if isinstance(item, str):
            item = {"type": item}
        if not isinstance(item, dict):
            continue
        item_type = str(item.get("type") or "").strip().upper()
        if item_type in known:
            tagged.append({**item, "type": item_type})
        else:
            tagged.append({
                **item,
                "type": "UNKNOWN",
                "raw_type": item.get("raw_type") or item.get("type"),
            })
    return tagged


def decode_validators(value: Any) -> List[Any]:
    """Accept a validator list or the legacy {"preventOpenSubtasks": true} object"""
    if not value:
        return []
    if isinstance(value, dict):
        if "type" in value:
            return _tag_items([value], _KNOWN_VALIDATORS)
        decoded: List[Any] = []
        if value.get("preventOpenSubtasks") or value.get("prevent_open_subtasks"):
            decoded.append({"type": ValidatorType.NO_OPEN_SUBTASKS.value})
        return decoded
    return _tag_items(list(value), _KNOWN_VALIDATORS)


def decode_post_functions(value: Any) -> List[Any]:
    """Accept an action list or the legacy {"actions": [...]} wrapper"""
    if not value:
        return []
    if isinstance(value, dict):
        if "type" in value:
            value = [value]
        else:
            value = value.get("actions") or []
    return _tag_items(list(value), _KNOWN_ACTIONS)


# ============================================================================
# Workflow definition
# ============================================================================

class WorkflowStatus(BaseModel):
    """Status node of one workflow version"""
    model_config = ConfigDict(extra="ignore")

    status_id: str = Field(..., description="Row ID, unique per version")
    key: str = Field(..., description="Stable key shared across versions")
    name: str
    category: StatusCategory = StatusCategory.TODO
    color: Optional[str] = None
    is_initial: bool = False
    is_final: bool = False
    order: int = 0
    status_ref_id: Optional[str] = Field(None, description="Legacy simple status mirrored onto the task")

    @field_validator("key", mode="before")
    @classmethod
    def _normalize(cls, value: Any) -> str:
        return normalize_key(value)


class StatusSummary(BaseModel):
    """Status as returned to callers"""
    id: str
    name: str
    category: StatusCategory
    color: Optional[str] = None
    is_final: bool = False

    @classmethod
    def from_status(cls, status: WorkflowStatus) -> "StatusSummary":
        return cls(
            id=status.status_id,
            name=status.name,
            category=status.category,
            color=status.color,
            is_final=status.is_final,
        )


class Transition(BaseModel):
    """Guarded edge between two statuses of one workflow version"""
    model_config = ConfigDict(extra="ignore")

    transition_id: str = Field(..., description="Row ID, changes per version")
    key: str = Field(..., description="Stable key, survives re-versioning")
    name: str
    from_status_id: str
    to_status_id: str
    ui_trigger: UiTrigger = UiTrigger.NORMAL
    conditions: TransitionConditions = Field(default_factory=TransitionConditions)
    validators: List[TransitionValidator] = Field(default_factory=list)
    post_functions: List[PostFunction] = Field(default_factory=list)
    disabled: bool = False
    order: int = 0

    @model_validator(mode="before")
    @classmethod
    def _default_key(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("key") and data.get("transition_id"):
            data = {**data, "key": data["transition_id"]}
        return data

    @field_validator("key", mode="before")
    @classmethod
    def _normalize(cls, value: Any) -> str:
        return normalize_key(value)

    @field_validator("ui_trigger", mode="before")
    @classmethod
    def _parse_trigger(cls, value: Any) -> UiTrigger:
        if isinstance(value, UiTrigger):
            return value
        if not value:
            return UiTrigger.NORMAL
        try:
            return UiTrigger(str(value).strip().upper())
        except ValueError:
            return UiTrigger.NORMAL

    @field_validator("conditions", mode="before")
    @classmethod
    def _conditions(cls, value: Any) -> Any:
        return value or {}

    @field_validator("validators", mode="before")
    @classmethod
    def _validators(cls, value: Any) -> List[Any]:
        return decode_validators(value)

    @field_validator("post_functions", mode="before")
    @classmethod
    def _post_functions(cls, value: Any) -> List[Any]:
        return decode_post_functions(value)


class Workflow(BaseModel):
    """Workflow header; versions are stored separately"""
    model_config = ConfigDict(extra="ignore")

    workflow_id: str
    space_id: str
    name: str
    description: Optional[str] = None
    current_version: int = Field(1, ge=1, description="Latest published version (informational)")
    is_default: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class WorkflowVersion(BaseModel):
    """
    One published, immutable version of a workflow graph.

    Every transition's endpoints must be statuses of this same version, and
    transition keys are unique inside the version.
    """
    model_config = ConfigDict(extra="ignore")

    workflow_id: str
    space_id: str
    version: int = Field(..., ge=1)
    name: str
    description: Optional[str] = None
    statuses: List[WorkflowStatus] = Field(..., min_length=1)
    transitions: List[Transition] = Field(default_factory=list)
    published_at: Optional[datetime] = None
    published_by: Optional[str] = None

    @model_validator(mode="after")
    def _check_graph(self) -> "WorkflowVersion":
        status_ids = [s.status_id for s in self.statuses]
        if len(set(status_ids)) != len(status_ids):
            raise ValueError(f"Duplicate status_id in workflow {self.workflow_id} v{self.version}")

        known = set(status_ids)
        keys = set()
        for transition in self.transitions:
            if transition.from_status_id not in known or transition.to_status_id not in known:
                raise ValueError(
                    f"Transition {transition.transition_id} references a status outside "
                    f"workflow {self.workflow_id} v{self.version}"
                )
            if transition.key in keys:
                raise ValueError(f"Duplicate transition key '{transition.key}' in v{self.version}")
            keys.add(transition.key)
        return self

    def get_status(self, status_id: Optional[str]) -> Optional[WorkflowStatus]:
        for status in self.statuses:
            if status.status_id == status_id:
                return status
        return None

    def find_transition(
        self,
        transition_id: Optional[str] = None,
        transition_key: Optional[str] = None
    ) -> Optional[Transition]:
        """Find by ID and/or key; when both are given both must match"""
        if not transition_id and not transition_key:
            return None
        key = normalize_key(transition_key) if transition_key else None
        for transition in self.transitions:
            if transition_id and transition.transition_id != transition_id:
                continue
            if key and transition.key != key:
                continue
            return transition
        return None

    def transitions_from(self, status_id: Optional[str]) -> List[Transition]:
        """Outgoing transitions of a status, in display order"""
        outgoing = [t for t in self.transitions if t.from_status_id == status_id]
        return sorted(outgoing, key=lambda t: t.order)

    @property
    def initial_status(self) -> WorkflowStatus:
        for status in self.statuses:
            if status.is_initial:
                return status
        return sorted(self.statuses, key=lambda s: s.order)[0]


class WorkflowDetail(BaseModel):
    """Header plus one resolved version, for read-side callers"""
    workflow: Workflow
    version: WorkflowVersion
    published_versions: List[int] = Field(default_factory=list, description="Newest first")


# ============================================================================
# Task snapshot (external entity, referenced not owned)
# ============================================================================

class CustomFieldValue(BaseModel):
    """Value of one template custom field on a task"""
    key: str
    value: Any = None


class SubtaskSnapshot(BaseModel):
    """Subtask state as seen by validators"""
    subtask_id: str
    title: Optional[str] = None
    is_done: bool = False


class TaskSnapshot(BaseModel):
    """
    Task plus the denormalized data guards need.

    Attribute names are snake_case; camelCase aliases (``dueDate``) are
    accepted so legacy condition payloads can name fields either way.
    """
    model_config = ConfigDict(extra="ignore", alias_generator=to_camel, populate_by_name=True)

    # Attributes a SET_FIELD post-function may write
    MUTABLE_FIELDS: ClassVar[FrozenSet[str]] = frozenset({
        "title", "description", "priority", "due_date", "tags", "assignee_id",
    })

    task_id: str
    space_id: str
    title: str = ""
    description: Optional[str] = None
    priority: Optional[str] = None
    due_date: Optional[datetime] = None
    tags: List[str] = Field(default_factory=list)
    assignee_id: Optional[str] = None
    workflow_id: Optional[str] = None
    workflow_version: Optional[int] = None
    workflow_status_id: Optional[str] = None
    status_id: Optional[str] = None
    custom_field_values: List[CustomFieldValue] = Field(default_factory=list)
    subtasks: List[SubtaskSnapshot] = Field(default_factory=list)
    updated_at: Optional[datetime] = None

    @classmethod
    def resolve_attribute(cls, name: Optional[str]) -> Optional[str]:
        """Map a snake_case or camelCase attribute name to the model field"""
        if not name:
            return None
        if name in cls.model_fields:
            return name
        for field_name, info in cls.model_fields.items():
            if name in (info.alias, to_camel(field_name)):
                return field_name
        return None

    def attribute_value(self, name: str) -> Any:
        resolved = self.resolve_attribute(name)
        if resolved is None:
            return None
        return getattr(self, resolved)

    def custom_field_value(self, key: str) -> Any:
        for field_value in self.custom_field_values:
            if field_value.key == key and not is_empty_value(field_value.value):
                return field_value.value
        return None

    @property
    def has_open_subtasks(self) -> bool:
        return any(not subtask.is_done for subtask in self.subtasks)

    @property
    def is_workflow_bound(self) -> bool:
        return bool(self.workflow_id and self.workflow_version and self.workflow_status_id)


# ============================================================================
# Engine context & results
# ============================================================================

class TransitionContext(BaseModel):
    """Snapshot assembled fresh for every attempt"""
    model_config = ConfigDict(frozen=True)

    task: TaskSnapshot
    transition: Transition
    workflow_version: WorkflowVersion
    capabilities: RequesterCapabilities


class GuardOutcome(BaseModel):
    """Allow/deny decision of a guard with the reason for a denial"""
    allowed: bool
    family: Optional[GuardFamily] = None
    reason: Optional[str] = None
    field: Optional[str] = None
    validator: Optional[str] = None

    @classmethod
    def allow(cls) -> "GuardOutcome":
        return cls(allowed=True)

    @classmethod
    def deny(cls, family: GuardFamily, reason: str, **kwargs: Any) -> "GuardOutcome":
        return cls(allowed=False, family=family, reason=reason, **kwargs)


class PostFunctionOutcome(BaseModel):
    """Result of one post-function action"""
    index: int
    type: str
    status: PostFunctionOutcomeStatus
    detail: Optional[str] = None


class ActivityRecord(BaseModel):
    """Append-only record of one committed transition"""
    activity_id: str
    task_id: str
    space_id: str
    type: ActivityType = ActivityType.STATUS_CHANGED
    actor_id: str
    from_status_id: str
    to_status_id: str
    transition_id: str
    transition_key: Optional[str] = None
    workflow_id: str
    workflow_version: int
    attempt_id: Optional[str] = None
    timestamp: datetime
    correlation_id: Optional[str] = None


class NotificationIntent(BaseModel):
    """Well-formed request for the notification collaborator"""
    notification_id: str
    task_id: str
    transition_id: str
    transition_name: str
    recipients: List[str]
    from_status_id: str
    to_status_id: str
    actor_id: str
    status: NotificationStatus = NotificationStatus.PENDING
    created_at: datetime


class TransitionResult(BaseModel):
    """Successful transition attempt"""
    task_id: str
    new_status_id: str
    workflow_status: StatusSummary
    attempt_id: str
    attempt_state: AttemptState = AttemptState.COMMITTED
    post_functions: List[PostFunctionOutcome] = Field(default_factory=list)


class AvailableTransition(BaseModel):
    """A transition leaving the task's status with the requester's guard outcome"""
    transition_id: str
    key: str
    name: str
    to_status: StatusSummary
    ui_trigger: UiTrigger
    allowed: bool
    family: Optional[GuardFamily] = None
    reason: Optional[str] = None
    field: Optional[str] = None


# ============================================================================
# Recommendation
# ============================================================================

class HistoryHop(BaseModel):
    """One past status change, oldest first in history lists"""
    model_config = ConfigDict(populate_by_name=True)

    from_status: str = Field(..., validation_alias=AliasChoices("from_status", "from_key", "fromKey", "from_status_id"))
    to_status: str = Field(..., validation_alias=AliasChoices("to_status", "to_key", "toKey", "to_status_id"))


class TransitionCandidate(BaseModel):
    """Transition as seen by the recommendation scorer"""
    transition_id: str
    transition_key: Optional[str] = None
    name: str = ""
    from_ref: Optional[str] = None
    to_ref: Optional[str] = None
    to_label: str = Field("", description="Text the keyword heuristics read (target key and name)")
    ui_trigger: UiTrigger = UiTrigger.NORMAL
    roles: List[str] = Field(default_factory=list)
    disabled: bool = False

    @classmethod
    def from_transition(cls, transition: Transition, version: WorkflowVersion) -> "TransitionCandidate":
        target = version.get_status(transition.to_status_id)
        label = f"{target.key} {target.name}" if target else ""
        return cls(
            transition_id=transition.transition_id,
            transition_key=transition.key,
            name=transition.name,
            from_ref=transition.from_status_id,
            to_ref=transition.to_status_id,
            to_label=label,
            ui_trigger=transition.ui_trigger,
            roles=transition.conditions.roles,
            disabled=transition.disabled,
        )


class TransitionSuggestion(BaseModel):
    """Best-guess next transition; the only recommendation shape exposed to UIs"""
    transition_id: str
    transition_key: str
    confidence: float = Field(..., ge=0, le=0.95)
    rationale: List[str] = Field(default_factory=list)


class InlineTransition(BaseModel):
    """Transition described inline by a caller that has no stored task"""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    name: str = ""
    key: Optional[str] = None
    from_key: Optional[str] = Field(None, validation_alias=AliasChoices("from_key", "fromKey"))
    to_key: Optional[str] = Field(None, validation_alias=AliasChoices("to_key", "toKey"))
    to_name: Optional[str] = Field(None, validation_alias=AliasChoices("to_name", "toName"))
    ui_trigger: Optional[str] = Field(None, validation_alias=AliasChoices("ui_trigger", "uiTrigger"))
    conditions: Optional[Dict[str, Any]] = None
    disabled: bool = False
    is_disabled: bool = Field(False, validation_alias=AliasChoices("is_disabled", "isDisabled"))

    def to_candidate(self) -> TransitionCandidate:
        conditions = TransitionConditions.model_validate(self.conditions or {})
        label = " ".join(part for part in (self.to_key, self.to_name) if part)
        try:
            trigger = UiTrigger(str(self.ui_trigger).strip().upper()) if self.ui_trigger else UiTrigger.NORMAL
        except ValueError:
            trigger = UiTrigger.NORMAL
        return TransitionCandidate(
            transition_id=self.id,
            transition_key=normalize_key(self.key) if self.key else None,
            name=self.name,
            from_ref=self.from_key,
            to_ref=self.to_key,
            to_label=label,
            ui_trigger=trigger,
            roles=conditions.roles,
            disabled=self.disabled or self.is_disabled,
        )


class InlineSuggestionContext(BaseModel):
    """Everything the scorer needs, supplied by the caller"""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    task_id: Optional[str] = Field(None, validation_alias=AliasChoices("task_id", "taskId"))
    current_status_key: Optional[str] = Field(
        None, validation_alias=AliasChoices("current_status_key", "currentStatusKey")
    )
    transitions: List[InlineTransition] = Field(default_factory=list)
    recent_history: List[HistoryHop] = Field(
        default_factory=list, validation_alias=AliasChoices("recent_history", "recentHistory")
    )
    tags: List[str] = Field(default_factory=list)
    priority: Optional[str] = None
