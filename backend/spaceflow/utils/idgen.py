"""ID Generation Utilities"""
import uuid
from datetime import datetime, timezone
from typing import Optional


def generate_id(prefix: Optional[str] = None) -> str:
    """
    Generate a unique ID with optional prefix

    Args:
        prefix: Optional prefix for the ID (e.g., 'ACT', 'TRA')

    Returns:
        Unique ID string

    Examples:
        >>> generate_id('ACT')
        'ACT-a1b2c3d4e5f6'
    """
    unique_part = uuid.uuid4().hex[:12]

    if prefix:
        return f"{prefix}-{unique_part}"
    return unique_part


def generate_workflow_id() -> str:
    """Generate workflow ID"""
    return generate_id("WF")


def generate_task_id() -> str:
    """Generate task ID"""
    return generate_id("TSK")


def generate_attempt_id() -> str:
    """Generate transition attempt ID"""
    return generate_id("TRA")


def generate_activity_id() -> str:
    """Generate activity record ID"""
    return generate_id("ACT")


def generate_notification_id() -> str:
    """Generate notification intent ID"""
    return generate_id("NTF")


def generate_correlation_id() -> str:
    """
    Generate a correlation ID for request tracing

    Returns:
        Correlation ID string with timestamp prefix
    """
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
    unique_part = uuid.uuid4().hex[:8]
    return f"COR-{timestamp}-{unique_part}"
