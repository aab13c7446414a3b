"""Suggestion API Routes - Transition prediction from inline context"""
from typing import Any, Dict
from fastapi import APIRouter, Depends

from ..deps import get_current_user_dep, get_correlation_id_dep, get_transition_service
from ...domain.models import ActorContext, InlineSuggestionContext
from ...services.transition_service import TransitionService
from ...utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter()


@router.post("/transition")
def suggest_transition(
    request: InlineSuggestionContext,
    actor: ActorContext = Depends(get_current_user_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: TransitionService = Depends(get_transition_service)
) -> Dict[str, Any]:
    """
    Predict the next transition

    The caller supplies the current status key, candidate transitions with
    from/to keys, recent history, tags and priority. Nothing is read or
    written server side.
    """
    suggestion = service.suggest_from_context(request)
    logger.debug(
        f"Inline suggestion over {len(request.transitions)} transition(s)",
        extra={"task_id": request.task_id, "actor_id": actor.user_id}
    )
    return {"suggestion": suggestion.model_dump(mode="json") if suggestion else None}
