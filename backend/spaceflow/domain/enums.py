"""Domain Enums"""
from enum import Enum


class StatusCategory(str, Enum):
    """Board column a workflow status rolls up into"""
    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"


class UiTrigger(str, Enum):
    """How a transition is surfaced in the UI"""
    NORMAL = "NORMAL"
    BUTTON = "BUTTON"
    MENU = "MENU"
    AI = "AI"
    HIDDEN = "HIDDEN"
    DISABLED = "DISABLED"

    @property
    def is_visible(self) -> bool:
        return self not in (UiTrigger.HIDDEN, UiTrigger.DISABLED)


class RoleMarker(str, Enum):
    """Pseudo-roles understood by role gating"""
    ANY = "ANY"
    ASSIGNEE = "ASSIGNEE"
    SYSTEM_ADMIN = "SYSTEM_ADMIN"


class ValidatorType(str, Enum):
    """Structural validator kinds"""
    NO_OPEN_SUBTASKS = "NO_OPEN_SUBTASKS"
    UNKNOWN = "UNKNOWN"


class PostFunctionType(str, Enum):
    """Post-function action kinds"""
    SET_FIELD = "SET_FIELD"
    ASSIGN = "ASSIGN"
    NOTIFY = "NOTIFY"
    UNKNOWN = "UNKNOWN"


class PostFunctionOutcomeStatus(str, Enum):
    """What happened to one post-function action"""
    APPLIED = "APPLIED"
    SKIPPED = "SKIPPED"
    FAILED = "FAILED"


class GuardFamily(str, Enum):
    """Guard families, in evaluation order"""
    ROLE = "ROLE"
    REQUIRED_FIELD = "REQUIRED_FIELD"
    VALIDATOR = "VALIDATOR"


class AttemptState(str, Enum):
    """Externally visible states of one transition attempt"""
    PENDING = "PENDING"
    APPLIED = "APPLIED"
    COMMITTED = "COMMITTED"
    REJECTED = "REJECTED"


class ActivityType(str, Enum):
    """Activity record types written by the engine"""
    STATUS_CHANGED = "STATUS_CHANGED"


class NotificationStatus(str, Enum):
    """Notification intent status in the outbox"""
    PENDING = "PENDING"
    SENT = "SENT"
    FAILED = "FAILED"
