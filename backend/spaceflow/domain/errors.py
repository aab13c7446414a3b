"""Domain Errors - Centralized Exception Hierarchy"""
from typing import Any, Dict, Optional


class DomainError(Exception):
    """Base domain error - all errors extend this"""

    error_code: str = "DOMAIN_ERROR"
    http_status: int = 400

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if error_code:
            self.error_code = error_code

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to API response dict"""
        return {
            "error": {
                "code": self.error_code,
                "message": self.message,
                "details": self.details
            }
        }


# Authentication & Authorization Errors
class AuthenticationError(DomainError):
    """Token missing, invalid, or expired"""
    error_code = "AUTHENTICATION_ERROR"
    http_status = 401


class PermissionDeniedError(DomainError):
    """Requester's role or identity does not allow the transition"""
    error_code = "PERMISSION_DENIED"
    http_status = 403


# Validation Errors
class ValidationError(DomainError):
    """Input validation failed"""
    error_code = "VALIDATION_ERROR"
    http_status = 400


class ValidationFailedError(ValidationError):
    """A field required by the transition is missing on the task"""
    error_code = "VALIDATION_FAILED"
    http_status = 422

    def __init__(self, message: str, field: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details={"field": field, **(details or {})})
        self.field = field


class ValidatorFailedError(ValidationError):
    """A structural validator rejected the task data"""
    error_code = "VALIDATOR_FAILED"
    http_status = 422

    def __init__(self, message: str, validator: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details={"validator": validator, **(details or {})})
        self.validator = validator


class WorkflowValidationError(ValidationError):
    """Stored workflow definition could not be decoded"""
    error_code = "WORKFLOW_VALIDATION_ERROR"


# Not Found Errors
class NotFoundError(DomainError):
    """Resource not found"""
    error_code = "NOT_FOUND"
    http_status = 404


class TaskNotFoundError(NotFoundError):
    """Task not found"""
    error_code = "TASK_NOT_FOUND"


class WorkflowNotFoundError(NotFoundError):
    """Workflow or workflow version not found"""
    error_code = "WORKFLOW_NOT_FOUND"


class TransitionNotFoundError(NotFoundError):
    """Transition not found in the task's workflow version"""
    error_code = "TRANSITION_NOT_FOUND"


# Conflict Errors
class ConflictError(DomainError):
    """Resource conflict"""
    error_code = "CONFLICT"
    http_status = 409


class InvalidTransitionError(ConflictError):
    """Transition does not apply from the task's current status"""
    error_code = "INVALID_TRANSITION"


class ConcurrentModificationError(ConflictError):
    """Task status changed between read and conditional write"""
    error_code = "CONCURRENT_MODIFICATION"


class AlreadyExistsError(ConflictError):
    """Resource already exists"""
    error_code = "ALREADY_EXISTS"
