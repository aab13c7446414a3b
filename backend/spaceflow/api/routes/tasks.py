"""Task API Routes - Transition endpoints"""
from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Depends, HTTPException
from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from ..deps import get_current_user_dep, get_correlation_id_dep, get_transition_service
from ...domain.models import ActorContext, AvailableTransition, TransitionResult
from ...domain.errors import DomainError
from ...services.transition_service import TransitionService
from ...utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================

class TransitionRequest(BaseModel):
    """Request to transition a task; id, key or both"""
    model_config = ConfigDict(populate_by_name=True)

    transition_id: Optional[str] = Field(
        None, validation_alias=AliasChoices("transition_id", "transitionId")
    )
    transition_key: Optional[str] = Field(
        None, validation_alias=AliasChoices("transition_key", "transitionKey")
    )


class AvailableTransitionsResponse(BaseModel):
    """Transitions leaving the task's current status"""
    task_id: str
    items: List[AvailableTransition]


# ============================================================================
# Routes
# ============================================================================

@router.post("/{task_id}/transition", response_model=TransitionResult)
def transition_task(
    task_id: str,
    request: TransitionRequest,
    actor: ActorContext = Depends(get_current_user_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: TransitionService = Depends(get_transition_service)
):
    """
    Transition a task

    Runs role, required-field and validator guards, then moves the task only
    if it still sits on the transition's source status.
    """
    try:
        result = service.perform_transition(
            task_id=task_id,
            requester_id=actor.user_id,
            transition_id=request.transition_id,
            transition_key=request.transition_key,
            correlation_id=correlation_id
        )

        logger.info(
            f"Transitioned task {task_id} to {result.workflow_status.name}",
            extra={"task_id": task_id, "actor_id": actor.user_id, "attempt_id": result.attempt_id}
        )
        return result

    except DomainError as e:
        raise HTTPException(status_code=e.http_status, detail=e.to_dict())


@router.get("/{task_id}/transitions", response_model=AvailableTransitionsResponse)
def list_task_transitions(
    task_id: str,
    actor: ActorContext = Depends(get_current_user_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: TransitionService = Depends(get_transition_service)
):
    """List transitions from the current status with the caller's guard outcome"""
    try:
        items = service.list_available_transitions(task_id, actor.user_id)
        return AvailableTransitionsResponse(task_id=task_id, items=items)

    except DomainError as e:
        raise HTTPException(status_code=e.http_status, detail=e.to_dict())


@router.get("/{task_id}/suggestion")
def suggest_task_transition(
    task_id: str,
    actor: ActorContext = Depends(get_current_user_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: TransitionService = Depends(get_transition_service)
) -> Dict[str, Any]:
    """
    Suggest the next transition of a task

    Returns {"suggestion": null} when nothing is confident enough.
    """
    try:
        suggestion = service.suggest_transition(task_id, requester_id=actor.user_id)
        return {"suggestion": suggestion.model_dump(mode="json") if suggestion else None}

    except DomainError as e:
        raise HTTPException(status_code=e.http_status, detail=e.to_dict())
